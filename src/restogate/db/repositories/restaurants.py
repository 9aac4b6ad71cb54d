from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restogate.db.models import AccountStatus, Restaurant, RestaurantType, VerificationStatus


class RestaurantRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        owner_id: uuid.UUID,
        name: str,
        type: RestaurantType,
        address: str,
    ) -> Restaurant:
        # New tenants always start unverified but active.
        restaurant = Restaurant(
            owner_id=owner_id,
            name=name,
            type=type,
            address=address,
            verification_status=VerificationStatus.pending,
            account_status=AccountStatus.active,
        )
        self._session.add(restaurant)
        await self._session.flush()
        return restaurant

    async def get(self, restaurant_id: uuid.UUID) -> Restaurant | None:
        return await self._session.get(Restaurant, restaurant_id, populate_existing=True)

    async def get_for_owner(self, owner_id: uuid.UUID) -> Restaurant | None:
        stmt = (
            select(Restaurant)
            .where(Restaurant.owner_id == owner_id)
            .execution_options(populate_existing=True)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def set_lifecycle(
        self,
        restaurant_id: uuid.UUID,
        *,
        verification_status: VerificationStatus | None = None,
        account_status: AccountStatus | None = None,
    ) -> Restaurant | None:
        restaurant = await self._session.get(Restaurant, restaurant_id, with_for_update=True)
        if restaurant is None:
            return None
        if verification_status is not None:
            restaurant.verification_status = verification_status
        if account_status is not None:
            restaurant.account_status = account_status
        await self._session.flush()
        return restaurant
