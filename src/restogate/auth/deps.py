"""
restogate.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert an access token (httpOnly cookie first, then bearer header) into a
  typed `Principal` (required or optional).
- Enforce role membership via reusable dependency factories.
- Report invalid tokens and denied authorizations as security events.
"""

from __future__ import annotations

from fastapi import Cookie, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from restogate.api.cookies import ACCESS_COOKIE
from restogate.api.deps import client_info_dep, db_session, security_events_dep, tokens_dep
from restogate.auth.guard import authorize
from restogate.auth.jwt import TokenService
from restogate.auth.models import Principal, Role
from restogate.db.repositories.principals import PrincipalRepo
from restogate.errors import AuthenticationError, AuthFailure, AuthorizationError
from restogate.observability.security_events import (
    ClientInfo,
    SecurityEventSink,
    SecurityEventType,
    security_event,
)

_bearer = HTTPBearer(auto_error=False)


def _presented_token(
    access_cookie: str | None = Cookie(default=None, alias=ACCESS_COOKIE),
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str | None:
    # Browser sessions carry the cookie; API clients send a bearer header.
    if access_cookie:
        return access_cookie
    return creds.credentials if creds is not None and creds.credentials else None


async def get_principal(
    token: str | None = Depends(_presented_token),
    session: AsyncSession = Depends(db_session),
    tokens: TokenService = Depends(tokens_dep),
    events: SecurityEventSink = Depends(security_events_dep),
    client: ClientInfo = Depends(client_info_dep),
) -> Principal:
    try:
        if token is None:
            raise AuthenticationError(AuthFailure.missing_token)
        return await tokens.validate(token, principals=PrincipalRepo(session))
    except AuthenticationError as e:
        # The precise failure goes to the event stream, never to the client.
        events.emit(
            security_event(
                SecurityEventType.invalid_token_presented,
                client=client,
                actor_id=e.subject,
                role=e.role,
                failure=e.failure.value,
            )
        )
        raise


async def optional_principal(
    token: str | None = Depends(_presented_token),
    session: AsyncSession = Depends(db_session),
    tokens: TokenService = Depends(tokens_dep),
) -> Principal | None:
    return await tokens.validate_optional(token, principals=PrincipalRepo(session))


def require_roles(*allowed: Role):
    allowed_set = frozenset(allowed)

    def _dep(
        principal: Principal = Depends(get_principal),
        events: SecurityEventSink = Depends(security_events_dep),
        client: ClientInfo = Depends(client_info_dep),
    ) -> Principal:
        try:
            return authorize(principal, allowed_set)
        except AuthorizationError:
            events.emit(
                security_event(
                    SecurityEventType.authorization_denied,
                    client=client,
                    actor_id=principal.subject,
                    role=principal.role.value,
                    required_roles=sorted(r.value for r in allowed_set),
                )
            )
            raise

    return _dep


require_diner = require_roles(Role.diner)
require_owner = require_roles(Role.restaurant_owner)
require_superadmin = require_roles(Role.superadmin)
require_account_holder = require_roles(Role.restaurant_owner, Role.superadmin)


# --- Module Notes -----------------------------------------------------------
# Routes declare `Depends(require_owner)` etc.; FastAPI caches `get_principal` per
# request, so the token is validated once even when several deps need it.
