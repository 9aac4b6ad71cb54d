"""
restogate.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Expose the objects built once in `create_app` (settings, token service,
  password hasher, security event sink) to request handlers.
- Provide request-scoped DB sessions and client identity.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from restogate.auth.jwt import TokenService
from restogate.auth.passwords import PasswordHasher
from restogate.observability.security_events import ClientInfo, SecurityEventSink
from restogate.services.account_service import AccountService
from restogate.services.auth_service import AuthService
from restogate.settings import Settings


def settings_dep(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[no-any-return]


def tokens_dep(request: Request) -> TokenService:
    return request.app.state.tokens  # type: ignore[no-any-return]


def hasher_dep(request: Request) -> PasswordHasher:
    return request.app.state.hasher  # type: ignore[no-any-return]


def security_events_dep(request: Request) -> SecurityEventSink:
    return request.app.state.security_events  # type: ignore[no-any-return]


def client_info_dep(request: Request) -> ClientInfo:
    return ClientInfo.from_request(request)


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # Created during app lifespan startup in `restogate.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[no-any-return]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit is managed explicitly by the service layer.
    async with session_factory() as session:
        yield session


def auth_service_dep(
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    tokens: TokenService = Depends(tokens_dep),
    hasher: PasswordHasher = Depends(hasher_dep),
    events: SecurityEventSink = Depends(security_events_dep),
) -> AuthService:
    return AuthService(
        session=session,
        tokens=tokens,
        hasher=hasher,
        events=events,
        marker_bytes=settings.session_marker_bytes,
    )


def account_service_dep(
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    hasher: PasswordHasher = Depends(hasher_dep),
) -> AccountService:
    return AccountService(
        session=session, hasher=hasher, marker_bytes=settings.session_marker_bytes
    )


# --- Module Notes -----------------------------------------------------------
# Nothing here reads module-level configuration; everything hangs off app.state.
