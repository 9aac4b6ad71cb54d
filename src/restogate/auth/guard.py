"""
restogate.auth.guard

Role authorization: set membership, nothing else.
"""

from __future__ import annotations

from collections.abc import Iterable

from restogate.auth.models import Principal, Role
from restogate.errors import AuthorizationError


def authorize(principal: Principal, allowed: Iterable[Role]) -> Principal:
    allowed_set = frozenset(allowed)
    if principal.role not in allowed_set:
        raise AuthorizationError(
            "Access denied",
            detail={"required_roles": sorted(r.value for r in allowed_set)},
        )
    return principal
