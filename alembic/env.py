"""
alembic.env

Alembic migration environment for the restogate credential store.

Responsibilities:
- Expose principal and restaurant metadata for autogeneration.
- Run migrations offline or online. Async driver URLs are converted to their
  sync counterparts because Alembic runs synchronously here.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import make_url

from restogate.db import models  # noqa: F401  # register tables on Base.metadata
from restogate.db.base import Base
from restogate.settings import get_settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

_SYNC_DRIVERS = {"sqlite+aiosqlite": "sqlite", "postgresql+asyncpg": "postgresql+psycopg"}


def _get_database_url() -> str:
    raw = os.environ.get("RESTOGATE_DATABASE_URL") or get_settings().database_url
    url = make_url(raw)
    sync = _SYNC_DRIVERS.get(url.drivername)
    return url.set(drivername=sync).render_as_string(hide_password=False) if sync else raw


def run_migrations_offline() -> None:
    context.configure(
        url=_get_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = _get_database_url()
    connectable = engine_from_config(configuration, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        # Batch mode lets column alterations work on SQLite.
        context.configure(
            connection=connection, target_metadata=target_metadata, render_as_batch=True
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
