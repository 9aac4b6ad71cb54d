"""
restogate.api.routers.restaurants

Restaurant-owner onboarding and access status.

Responsibilities:
- Register an owner together with a pending restaurant.
- Let an authenticated owner re-poll the access gate without re-submitting
  credentials.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.status import HTTP_201_CREATED

from restogate.api.deps import account_service_dep, auth_service_dep
from restogate.auth.deps import require_owner
from restogate.auth.gate import describe
from restogate.auth.models import Principal
from restogate.services.account_service import AccountService
from restogate.services.auth_service import AuthService

router = APIRouter(prefix="/v1/restaurant", tags=["restaurant"])


class SignupRequest(BaseModel):
    owner_name: str = Field(max_length=256)
    email: str = Field(max_length=1024)
    password: str = Field(max_length=1024)
    phone: str = Field(max_length=32)
    restaurant_name: str = Field(max_length=256)
    restaurant_type: str = Field(max_length=32)
    address: str = Field(max_length=512)


@router.post("/signup", status_code=HTTP_201_CREATED)
async def signup(
    body: SignupRequest,
    svc: AccountService = Depends(account_service_dep),
) -> dict[str, Any]:
    reg = await svc.register_owner(**body.model_dump())
    # New tenants are pending, so no session is minted here; the owner logs in
    # once a superadmin has verified the restaurant.
    return {
        "success": True,
        "message": "Restaurant account created successfully",
        "owner": {"id": str(reg.owner.id), "name": reg.owner.name, "email": reg.owner.email},
        "restaurant": reg.restaurant.lifecycle_summary(),
        "access": describe(reg.decision),
    }


@router.get("/status")
async def access_status(
    principal: Principal = Depends(require_owner),
    svc: AuthService = Depends(auth_service_dep),
) -> dict[str, Any]:
    restaurant, decision = await svc.access_status(principal=principal)
    return {
        "success": True,
        "restaurant": restaurant.lifecycle_summary(),
        "access": describe(decision),
    }
