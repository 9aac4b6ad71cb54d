"""
restogate.auth.models

Auth domain models.

Responsibilities:
- Define the principal roles.
- Define the authenticated identity type (`Principal`) injected into endpoints.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass


class Role(enum.StrEnum):
    # Values are embedded in tokens; treat as a stable wire contract.
    diner = "diner"
    restaurant_owner = "restaurantOwner"
    superadmin = "superadmin"


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity resolved from a validated token.
    """

    id: uuid.UUID
    role: Role
    name: str
    session_marker: str
    email: str | None = None

    @property
    def subject(self) -> str:
        return str(self.id)

    def summary(self) -> dict[str, str | None]:
        return {"id": self.subject, "role": self.role.value, "name": self.name, "email": self.email}


# --- Module Notes -----------------------------------------------------------
# Keep this model minimal; it crosses the API, service and guard boundaries.
