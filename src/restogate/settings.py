"""
restogate.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for every component.
- Hide secrets from repr/logging (JWT secret, bootstrap password).
- Refuse to start a production process with the development signing secret.
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_JWT_SECRET = "dev-secret-change-me-not-for-production"


class Settings(BaseSettings):
    """
    Built once at process startup and handed to `create_app`; components receive
    it (or values derived from it) explicitly instead of reading globals.
    """

    model_config = SettingsConfigDict(env_prefix="RESTOGATE_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "restogate"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Tokens
    jwt_alg: str = "HS256"
    jwt_issuer: str = "restogate-api"
    jwt_audience: str = "restogate-client"
    jwt_secret: str = Field(default=DEV_JWT_SECRET, repr=False)
    access_token_ttl_seconds: int = Field(default=60 * 60, ge=1)
    refresh_token_ttl_seconds: int = Field(default=7 * 24 * 60 * 60, ge=1)

    # Credentials and sessions
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    session_marker_bytes: int = Field(default=32, ge=16, le=128)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./restogate.db"

    # Optional first-run superadmin
    bootstrap_superadmin_email: str | None = None
    bootstrap_superadmin_password: str | None = Field(default=None, repr=False)
    bootstrap_superadmin_name: str = "Platform Admin"

    @model_validator(mode="after")
    def _check_prod_secret(self) -> Settings:
        if self.env == "prod" and self.jwt_secret == DEV_JWT_SECRET:
            raise ValueError("RESTOGATE_JWT_SECRET must be set in prod")
        return self

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(seconds=self.access_token_ttl_seconds)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(seconds=self.refresh_token_ttl_seconds)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Only the process entrypoint and Alembic read settings this way.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Request handlers read the instance stored on `app.state.settings`, so tests can
# build an app with their own Settings without touching the environment.
