"""
restogate.api.routers.auth

Session endpoints for every principal role.

Responsibilities:
- Owner and superadmin login (one shared pipeline), diner session start.
- Refresh, logout, password rotation.
- Mirror issued tokens into httpOnly cookies and clear them on logout.
- Current-principal and optional-auth session checks.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Cookie, Depends, Response
from pydantic import BaseModel, Field

from restogate.api.cookies import REFRESH_COOKIE, clear_auth_cookies, set_auth_cookies
from restogate.api.deps import auth_service_dep, client_info_dep, settings_dep
from restogate.auth.deps import (
    get_principal,
    optional_principal,
    require_account_holder,
    require_diner,
)
from restogate.auth.gate import describe
from restogate.auth.models import Principal, Role
from restogate.observability.security_events import ClientInfo
from restogate.services.auth_service import AuthService, LoginResult, TokenPair
from restogate.settings import Settings

router = APIRouter(prefix="/v1/auth", tags=["auth"])


class LoginRequest(BaseModel):
    # Format and length rules live in the service so every entry point shares them.
    email: str = Field(max_length=1024)
    password: str = Field(max_length=1024)


class DinerSessionRequest(BaseModel):
    name: str = Field(min_length=1, max_length=256)


class RefreshRequest(BaseModel):
    # Optional: browser clients rely on the refresh cookie instead.
    refresh_token: str | None = Field(default=None, min_length=1)


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

    @classmethod
    def from_pair(cls, pair: TokenPair) -> TokenResponse:
        return cls(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            token_type=pair.token_type,
            expires_in=pair.expires_in,
        )


class LoginResponse(TokenResponse):
    principal: dict[str, Any]
    restaurant: dict[str, Any] | None = None
    access: dict[str, Any] | None = None
    redirect_to: str | None = None


def _login_response(result: LoginResult, response: Response, settings: Settings) -> LoginResponse:
    pair = result.tokens
    set_auth_cookies(
        response,
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        settings=settings,
    )
    return LoginResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        token_type=pair.token_type,
        expires_in=pair.expires_in,
        principal=result.principal.summary(),
        restaurant=result.restaurant.lifecycle_summary() if result.restaurant else None,
        access=describe(result.decision) if result.decision else None,
        redirect_to=result.decision.redirect_to if result.decision else None,
    )


@router.post("/restaurant/login", response_model=LoginResponse)
async def restaurant_login(
    body: LoginRequest,
    response: Response,
    svc: AuthService = Depends(auth_service_dep),
    client: ClientInfo = Depends(client_info_dep),
    settings: Settings = Depends(settings_dep),
) -> LoginResponse:
    result = await svc.login(
        role=Role.restaurant_owner, email=body.email, secret=body.password, client=client
    )
    return _login_response(result, response, settings)


@router.post("/superadmin/login", response_model=LoginResponse)
async def superadmin_login(
    body: LoginRequest,
    response: Response,
    svc: AuthService = Depends(auth_service_dep),
    client: ClientInfo = Depends(client_info_dep),
    settings: Settings = Depends(settings_dep),
) -> LoginResponse:
    result = await svc.login(
        role=Role.superadmin, email=body.email, secret=body.password, client=client
    )
    return _login_response(result, response, settings)


@router.post("/diner/session", response_model=LoginResponse)
async def start_diner_session(
    body: DinerSessionRequest,
    response: Response,
    svc: AuthService = Depends(auth_service_dep),
    client: ClientInfo = Depends(client_info_dep),
    settings: Settings = Depends(settings_dep),
) -> LoginResponse:
    result = await svc.start_diner_session(name=body.name, client=client)
    return _login_response(result, response, settings)


@router.get("/diner/session")
async def current_diner(principal: Principal = Depends(require_diner)) -> dict[str, Any]:
    return {"success": True, "user": principal.summary()}


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    response: Response,
    body: RefreshRequest | None = None,
    refresh_cookie: str | None = Cookie(default=None, alias=REFRESH_COOKIE),
    svc: AuthService = Depends(auth_service_dep),
    client: ClientInfo = Depends(client_info_dep),
    settings: Settings = Depends(settings_dep),
) -> TokenResponse:
    token = (body.refresh_token if body is not None else None) or refresh_cookie
    pair = await svc.refresh(refresh_token=token, client=client)
    set_auth_cookies(
        response,
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        settings=settings,
    )
    return TokenResponse.from_pair(pair)


@router.post("/logout")
async def logout(
    response: Response,
    principal: Principal = Depends(get_principal),
    svc: AuthService = Depends(auth_service_dep),
    client: ClientInfo = Depends(client_info_dep),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    await svc.logout(principal=principal, client=client)
    clear_auth_cookies(response, settings=settings)
    return {"success": True, "message": "Logged out"}


@router.get("/me")
async def me(
    principal: Principal = Depends(get_principal),
    svc: AuthService = Depends(auth_service_dep),
) -> dict[str, Any]:
    restaurant = await svc.restaurant_for(principal)
    return {
        "success": True,
        "user": principal.summary(),
        "restaurant": restaurant.lifecycle_summary() if restaurant else None,
    }


@router.get("/session")
async def session_status(
    principal: Principal | None = Depends(optional_principal),
) -> dict[str, Any]:
    # Anonymous callers are fine here; a bad token simply reads as anonymous.
    if principal is None:
        return {"authenticated": False, "user": None}
    return {"authenticated": True, "user": principal.summary()}


@router.post("/password")
async def change_password(
    body: PasswordChangeRequest,
    principal: Principal = Depends(require_account_holder),
    svc: AuthService = Depends(auth_service_dep),
) -> dict[str, Any]:
    await svc.change_password(
        principal=principal,
        current_secret=body.current_password,
        new_secret=body.new_password,
    )
    return {"success": True, "message": "Password updated"}


# --- Module Notes -----------------------------------------------------------
# Blocked owner logins never reach `_login_response`; the service raises
# AccessBlockedError and the exception handler renders the 403 envelope.
