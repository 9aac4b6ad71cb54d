"""
restogate.db.repositories.principals

Repository for the three principal tables.

Responsibilities:
- Look up principals by (role, id) and (role, email).
- Create owners, superadmins and diners.
- Write session markers and password hashes.
"""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from restogate.auth.models import Role
from restogate.db.models import Diner, PrincipalRecord, RestaurantOwner, Superadmin
from restogate.errors import ConflictError

_MODELS: dict[Role, type[Diner] | type[RestaurantOwner] | type[Superadmin]] = {
    Role.diner: Diner,
    Role.restaurant_owner: RestaurantOwner,
    Role.superadmin: Superadmin,
}


class PrincipalRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, role: Role, principal_id: uuid.UUID) -> PrincipalRecord | None:
        # populate_existing: always observe the latest committed marker.
        return await self._session.get(_MODELS[role], principal_id, populate_existing=True)

    async def get_by_email(self, role: Role, email: str) -> PrincipalRecord | None:
        model = _MODELS[role]
        stmt = select(model).where(model.email == email)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def email_taken(self, role: Role, email: str) -> bool:
        return await self.get_by_email(role, email) is not None

    async def create_owner(
        self, *, name: str, email: str, password_hash: str, phone: str
    ) -> RestaurantOwner:
        owner = RestaurantOwner(name=name, email=email, password_hash=password_hash, phone=phone)
        await self._add_unique(owner)
        return owner

    async def create_superadmin(
        self, *, name: str, email: str, password_hash: str
    ) -> Superadmin:
        admin = Superadmin(name=name, email=email, password_hash=password_hash)
        await self._add_unique(admin)
        return admin

    async def create_diner(self, *, name: str) -> Diner:
        diner = Diner(name=name)
        self._session.add(diner)
        await self._session.flush()
        return diner

    async def set_session_marker(
        self, role: Role, principal_id: uuid.UUID, marker: str | None
    ) -> bool:
        record = await self._session.get(_MODELS[role], principal_id, with_for_update=True)
        if record is None:
            return False
        record.session_marker = marker
        await self._session.flush()
        return True

    async def set_password_hash(
        self, role: Role, principal_id: uuid.UUID, password_hash: str
    ) -> bool:
        record = await self._session.get(_MODELS[role], principal_id, with_for_update=True)
        if record is None:
            return False
        record.password_hash = password_hash
        await self._session.flush()
        return True

    async def _add_unique(self, record: RestaurantOwner | Superadmin) -> None:
        self._session.add(record)
        try:
            await self._session.flush()
        except IntegrityError as e:
            raise ConflictError("An account with this email already exists") from e


# --- Module Notes -----------------------------------------------------------
# Callers own the transaction: repositories flush, services commit.
