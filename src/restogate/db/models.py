"""
restogate.db.models

Persistence schema for principals and tenant lifecycle state.

Responsibilities:
- Define one table per principal variant (diner, restaurant owner, superadmin),
  each able to hold a single session marker.
- Define the Restaurant record that owns the tenant lifecycle pair.
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import Enum, ForeignKey, String
from sqlalchemy import Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from restogate.db.base import Base


def _utcnow() -> datetime:
    # Persist naive UTC timestamps; SQLite drops tz info anyway.
    return datetime.now(tz=UTC).replace(tzinfo=None)


class VerificationStatus(enum.StrEnum):
    pending = "pending"
    verified = "verified"
    rejected = "rejected"


class AccountStatus(enum.StrEnum):
    active = "active"
    suspended = "suspended"


class RestaurantType(enum.StrEnum):
    fastfood = "fastfood"
    fine_dining = "fine-dining"
    cafe = "cafe"
    buffet = "buffet"
    home_kitchen = "home-kitchen"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [m.value for m in enum_cls]


class SessionHolder:
    """
    Columns shared by every principal table.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    # At most one live marker; NULL means no token for this principal validates.
    session_marker: Mapped[str | None] = mapped_column(String(256), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class Diner(SessionHolder, Base):
    __tablename__ = "diners"

    # Diners have no secret; the columns exist so every principal has one shape.
    password_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    email: Mapped[str | None] = mapped_column(String(254), nullable=True)


class RestaurantOwner(SessionHolder, Base):
    __tablename__ = "restaurant_owners"

    email: Mapped[str] = mapped_column(String(254), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)

    restaurant: Mapped[Restaurant | None] = relationship(back_populates="owner", uselist=False)


class Superadmin(SessionHolder, Base):
    __tablename__ = "superadmins"

    email: Mapped[str] = mapped_column(String(254), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)


class Restaurant(Base):
    __tablename__ = "restaurants"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("restaurant_owners.id"),
        nullable=False,
        unique=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    type: Mapped[RestaurantType] = mapped_column(
        Enum(RestaurantType, values_callable=_enum_values), nullable=False
    )
    address: Mapped[str] = mapped_column(String(512), nullable=False)

    # The two lifecycle axes are independent; the access gate reads both.
    verification_status: Mapped[VerificationStatus] = mapped_column(
        Enum(VerificationStatus, values_callable=_enum_values),
        nullable=False,
        default=VerificationStatus.pending,
        index=True,
    )
    account_status: Mapped[AccountStatus] = mapped_column(
        Enum(AccountStatus, values_callable=_enum_values), nullable=False, default=AccountStatus.active
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    owner: Mapped[RestaurantOwner] = relationship(back_populates="restaurant")

    def lifecycle_summary(self) -> dict[str, str]:
        return {
            "id": str(self.id),
            "name": self.name,
            "verification_status": self.verification_status.value,
            "account_status": self.account_status.value,
        }


PrincipalRecord = Diner | RestaurantOwner | Superadmin


# --- Module Notes -----------------------------------------------------------
# Enum values are stored in the DB and returned by the API; treat them as a
# stable contract.
