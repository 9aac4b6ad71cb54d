"""
restogate.services.account_service

Account and tenant lifecycle service.

Responsibilities:
- Register restaurant owners together with their (pending) restaurant.
- Create superadmins, including the optional bootstrap account.
- Apply verification/account status changes and revoke the owner's session
  whenever the resulting gate decision is a suspension.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from restogate.auth.gate import GateDecision, evaluate, requires_session_clear
from restogate.auth.models import Role
from restogate.auth.passwords import PasswordHasher, check_password_policy
from restogate.auth.sessions import SessionRegistry
from restogate.auth.validation import normalize_email
from restogate.db.models import (
    AccountStatus,
    Restaurant,
    RestaurantOwner,
    RestaurantType,
    Superadmin,
    VerificationStatus,
)
from restogate.db.repositories.principals import PrincipalRepo
from restogate.db.repositories.restaurants import RestaurantRepo
from restogate.errors import ConflictError, NotFoundError, ValidationError
from restogate.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class OwnerRegistration:
    owner: RestaurantOwner
    restaurant: Restaurant
    decision: GateDecision


def _required(**fields: str) -> dict[str, str]:
    cleaned = {k: (v or "").strip() for k, v in fields.items()}
    missing = sorted(k for k, v in cleaned.items() if not v)
    if missing:
        raise ValidationError(
            "All required fields must be provided", detail={"missing_fields": missing}
        )
    return cleaned


class AccountService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        hasher: PasswordHasher,
        marker_bytes: int = 32,
    ) -> None:
        self._session = session
        self._hasher = hasher

        self._principals = PrincipalRepo(session)
        self._restaurants = RestaurantRepo(session)
        self._sessions = SessionRegistry(self._principals, marker_bytes=marker_bytes)

    async def register_owner(
        self,
        *,
        owner_name: str,
        email: str,
        password: str,
        phone: str,
        restaurant_name: str,
        restaurant_type: str,
        address: str,
    ) -> OwnerRegistration:
        fields = _required(
            owner_name=owner_name,
            email=email,
            password=password,
            phone=phone,
            restaurant_name=restaurant_name,
            restaurant_type=restaurant_type,
            address=address,
        )
        email = normalize_email(fields["email"])
        try:
            kind = RestaurantType(fields["restaurant_type"])
        except ValueError as e:
            raise ValidationError(
                "Invalid restaurant type",
                detail={"allowed": [t.value for t in RestaurantType]},
            ) from e
        check_password_policy(password)

        if await self._principals.email_taken(Role.restaurant_owner, email):
            raise ConflictError("An account with this email already exists")

        password_hash = await asyncio.to_thread(self._hasher.hash, password)
        owner = await self._principals.create_owner(
            name=fields["owner_name"], email=email, password_hash=password_hash, phone=fields["phone"]
        )
        restaurant = await self._restaurants.create(
            owner_id=owner.id, name=fields["restaurant_name"], type=kind, address=fields["address"]
        )
        await self._session.commit()

        log.info("owner_registered", owner_id=str(owner.id), restaurant_id=str(restaurant.id))
        return OwnerRegistration(
            owner=owner,
            restaurant=restaurant,
            decision=evaluate(restaurant.verification_status, restaurant.account_status),
        )

    async def create_superadmin(self, *, name: str, email: str, password: str) -> Superadmin:
        fields = _required(name=name, email=email, password=password)
        email = normalize_email(fields["email"])
        check_password_policy(password)

        if await self._principals.email_taken(Role.superadmin, email):
            raise ConflictError("An account with this email already exists")

        password_hash = await asyncio.to_thread(self._hasher.hash, password)
        admin = await self._principals.create_superadmin(
            name=fields["name"], email=email, password_hash=password_hash
        )
        await self._session.commit()
        log.info("superadmin_created", superadmin_id=str(admin.id))
        return admin

    async def ensure_superadmin(self, *, name: str, email: str, password: str) -> bool:
        """
        Create the bootstrap superadmin unless one with that email exists.
        """

        if await self._principals.email_taken(Role.superadmin, normalize_email(email)):
            return False
        await self.create_superadmin(name=name, email=email, password=password)
        return True

    async def update_verification_status(
        self,
        restaurant_id: uuid.UUID,
        status: VerificationStatus | str,
        *,
        actor: str,
    ) -> tuple[Restaurant, GateDecision]:
        try:
            verification = VerificationStatus(status)
        except ValueError as e:
            raise ValidationError("Invalid verification status") from e

        # Verifying a restaurant also reactivates it.
        account = AccountStatus.active if verification is VerificationStatus.verified else None
        return await self._apply_lifecycle(
            restaurant_id,
            verification_status=verification,
            account_status=account,
            actor=actor,
        )

    async def set_account_status(
        self,
        restaurant_id: uuid.UUID,
        status: AccountStatus | str,
        *,
        actor: str,
    ) -> tuple[Restaurant, GateDecision]:
        try:
            account = AccountStatus(status)
        except ValueError as e:
            raise ValidationError("Invalid account status") from e
        return await self._apply_lifecycle(restaurant_id, account_status=account, actor=actor)

    async def _apply_lifecycle(
        self,
        restaurant_id: uuid.UUID,
        *,
        verification_status: VerificationStatus | None = None,
        account_status: AccountStatus | None = None,
        actor: str,
    ) -> tuple[Restaurant, GateDecision]:
        restaurant = await self._restaurants.get(restaurant_id)
        if restaurant is None:
            raise NotFoundError("Restaurant not found")
        before = evaluate(restaurant.verification_status, restaurant.account_status)

        restaurant = await self._restaurants.set_lifecycle(
            restaurant_id,
            verification_status=verification_status,
            account_status=account_status,
        )
        if restaurant is None:
            raise NotFoundError("Restaurant not found")
        after = evaluate(restaurant.verification_status, restaurant.account_status)

        # Suspension must revoke the owner's tokens in the same transaction.
        cleared = requires_session_clear(after)
        if cleared:
            await self._sessions.clear(Role.restaurant_owner, restaurant.owner_id)
        await self._session.commit()

        log.info(
            "restaurant_lifecycle_updated",
            restaurant_id=str(restaurant.id),
            actor=actor,
            verification_status=restaurant.verification_status.value,
            account_status=restaurant.account_status.value,
            granted_before=before.granted,
            granted_after=after.granted,
            sessions_cleared=cleared,
        )
        return restaurant, after


# --- Module Notes -----------------------------------------------------------
# Rejection (pending -> rejected) leaves the owner's marker alone; only a
# suspension revokes sessions.
