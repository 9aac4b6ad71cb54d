"""
restogate.auth.sessions

Session registry: one live session marker per principal.

Responsibilities:
- Mint a fresh marker from a CSPRNG, overwriting any previous one.
- Clear the marker, invalidating every outstanding token at once.
- Compare a token's marker with the stored one.
"""

from __future__ import annotations

import hmac
import secrets
import uuid

from restogate.auth.models import Role
from restogate.db.repositories.principals import PrincipalRepo
from restogate.errors import NotFoundError


def new_session_marker(nbytes: int = 32) -> str:
    return secrets.token_urlsafe(nbytes)


def markers_match(stored: str | None, presented: str) -> bool:
    if stored is None:
        return False
    return hmac.compare_digest(stored.encode(), presented.encode())


class SessionRegistry:
    def __init__(self, principals: PrincipalRepo, *, marker_bytes: int = 32) -> None:
        self._principals = principals
        self._marker_bytes = marker_bytes

    async def mint(self, role: Role, principal_id: uuid.UUID) -> str:
        marker = new_session_marker(self._marker_bytes)
        # Last write wins: a concurrent login for the same principal silently
        # invalidates the other caller's token.
        if not await self._principals.set_session_marker(role, principal_id, marker):
            raise NotFoundError("Principal not found")
        return marker

    async def clear(self, role: Role, principal_id: uuid.UUID) -> None:
        await self._principals.set_session_marker(role, principal_id, None)

    async def matches(self, role: Role, principal_id: uuid.UUID, marker: str) -> bool:
        record = await self._principals.get(role, principal_id)
        return record is not None and markers_match(record.session_marker, marker)


# --- Module Notes -----------------------------------------------------------
# Writes flush through the request session; the calling service commits.
