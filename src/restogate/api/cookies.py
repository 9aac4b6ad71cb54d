"""
restogate.api.cookies

httpOnly cookie transport for access and refresh tokens.

Responsibilities:
- Set both token cookies after login, diner session start and refresh.
- Clear them on logout.
- Keep cookie attributes in one place: `Secure` + `SameSite=strict` in prod,
  `SameSite=lax` elsewhere, lifetimes equal to the token TTLs.
"""

from __future__ import annotations

from typing import Any

from starlette.responses import Response

from restogate.settings import Settings

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def _attributes(settings: Settings) -> dict[str, Any]:
    prod = settings.env == "prod"
    return {
        "httponly": True,
        "secure": prod,
        "samesite": "strict" if prod else "lax",
        "path": "/",
    }


def set_auth_cookies(
    response: Response,
    *,
    access_token: str,
    refresh_token: str,
    settings: Settings,
) -> None:
    attrs = _attributes(settings)
    response.set_cookie(
        ACCESS_COOKIE, access_token, max_age=settings.access_token_ttl_seconds, **attrs
    )
    response.set_cookie(
        REFRESH_COOKIE, refresh_token, max_age=settings.refresh_token_ttl_seconds, **attrs
    )


def clear_auth_cookies(response: Response, *, settings: Settings) -> None:
    attrs = _attributes(settings)
    response.delete_cookie(ACCESS_COOKIE, **attrs)
    response.delete_cookie(REFRESH_COOKIE, **attrs)


# --- Module Notes -----------------------------------------------------------
# Header clients keep working: `auth.deps` reads the access cookie first and
# falls back to `Authorization: Bearer`.
