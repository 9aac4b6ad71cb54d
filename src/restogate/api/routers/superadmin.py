"""
restogate.api.routers.superadmin

Platform-operator endpoints (superadmin only).

Responsibilities:
- Create additional superadmins.
- Change a restaurant's verification and account status; suspension revokes
  the owner's session as part of the same request.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.status import HTTP_201_CREATED

from restogate.api.deps import account_service_dep
from restogate.auth.deps import require_superadmin
from restogate.auth.gate import GateDecision, describe
from restogate.auth.models import Principal
from restogate.db.models import Restaurant
from restogate.services.account_service import AccountService

router = APIRouter(prefix="/v1/superadmin", tags=["superadmin"])


class SuperadminCreateRequest(BaseModel):
    name: str = Field(max_length=256)
    email: str = Field(max_length=1024)
    password: str = Field(max_length=1024)


class StatusUpdateRequest(BaseModel):
    status: str = Field(min_length=1, max_length=32)


def _lifecycle_response(restaurant: Restaurant, decision: GateDecision) -> dict[str, Any]:
    return {
        "success": True,
        "restaurant": restaurant.lifecycle_summary(),
        "access": describe(decision),
    }


@router.post("/superadmins", status_code=HTTP_201_CREATED)
async def create_superadmin(
    body: SuperadminCreateRequest,
    _: Principal = Depends(require_superadmin),
    svc: AccountService = Depends(account_service_dep),
) -> dict[str, Any]:
    admin = await svc.create_superadmin(name=body.name, email=body.email, password=body.password)
    return {
        "success": True,
        "superadmin": {"id": str(admin.id), "name": admin.name, "email": admin.email},
    }


@router.patch("/restaurants/{restaurant_id}/verification")
async def update_verification(
    restaurant_id: uuid.UUID,
    body: StatusUpdateRequest,
    principal: Principal = Depends(require_superadmin),
    svc: AccountService = Depends(account_service_dep),
) -> dict[str, Any]:
    restaurant, decision = await svc.update_verification_status(
        restaurant_id, body.status, actor=principal.subject
    )
    return _lifecycle_response(restaurant, decision)


@router.patch("/restaurants/{restaurant_id}/account-status")
async def update_account_status(
    restaurant_id: uuid.UUID,
    body: StatusUpdateRequest,
    principal: Principal = Depends(require_superadmin),
    svc: AccountService = Depends(account_service_dep),
) -> dict[str, Any]:
    restaurant, decision = await svc.set_account_status(
        restaurant_id, body.status, actor=principal.subject
    )
    return _lifecycle_response(restaurant, decision)
