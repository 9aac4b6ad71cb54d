"""
restogate.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Liveness check (`/healthz`) reporting the service identity.
- Readiness check (`/readyz`) that round-trips the credential store.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from restogate.api.deps import db_session, settings_dep
from restogate.settings import Settings

router = APIRouter()


@router.get("/healthz")
async def healthz(settings: Settings = Depends(settings_dep)) -> dict[str, str]:
    return {"status": "ok", "service": settings.service_name, "env": settings.env}


@router.get("/readyz")
async def readyz(session: AsyncSession = Depends(db_session)) -> dict[str, str]:
    # Token validation needs the store on every request; no store, not ready.
    await session.execute(text("SELECT 1"))
    return {"status": "ready"}
