"""
restogate.api.app

FastAPI app factory for the restogate service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/handlers.
- Build the process-wide auth components once (token service, password hasher,
  security event sink) from an explicit Settings object.
- Initialize and dispose the DB engine/session factory over the app lifespan.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from restogate import __version__
from restogate.api.errors import register_exception_handlers
from restogate.api.routers.auth import router as auth_router
from restogate.api.routers.health import router as health_router
from restogate.api.routers.restaurants import router as restaurants_router
from restogate.api.routers.superadmin import router as superadmin_router
from restogate.auth.jwt import JwtConfig, TokenService
from restogate.auth.passwords import PasswordHasher
from restogate.db.init_db import init_db
from restogate.db.session import create_engine, create_sessionmaker, session_scope
from restogate.observability.logging import configure_logging, get_logger
from restogate.observability.middleware import RequestContextMiddleware
from restogate.observability.security_events import (
    LoggingSecurityEventSink,
    SecurityEventSink,
)
from restogate.services.account_service import AccountService
from restogate.settings import Settings

log = get_logger(__name__)


def create_app(
    *,
    settings: Settings,
    security_events: SecurityEventSink | None = None,
) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Prod schema changes go through Alembic.
            await init_db(engine)
        await _bootstrap_superadmin(app, settings)
        try:
            yield
        finally:
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="restogate",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Built once and shared read-only by every request.
    app.state.settings = settings
    app.state.tokens = TokenService(cfg=JwtConfig.from_settings(settings))
    app.state.hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.security_events = security_events or LoggingSecurityEventSink()

    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app, settings=settings)
    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(restaurants_router)
    app.include_router(superadmin_router)
    return app


async def _bootstrap_superadmin(app: FastAPI, settings: Settings) -> None:
    email = settings.bootstrap_superadmin_email
    password = settings.bootstrap_superadmin_password
    if not email or not password:
        return
    async with session_scope(app.state.sessionmaker) as session:
        svc = AccountService(
            session=session,
            hasher=app.state.hasher,
            marker_bytes=settings.session_marker_bytes,
        )
        created = await svc.ensure_superadmin(
            name=settings.bootstrap_superadmin_name, email=email, password=password
        )
    log.info("bootstrap_superadmin", created=created)


# --- Module Notes -----------------------------------------------------------
# Single composition root: business logic stays in services and the auth package.
