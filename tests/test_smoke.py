"""
tests.test_smoke

Minimal smoke tests to validate the service can boot and serve core endpoints.

Responsibilities:
- Ensure the FastAPI app starts, creates its schema and answers the health checks.
- Ensure the bootstrap superadmin is created once and only once.
"""

from __future__ import annotations

import httpx
import pytest

from restogate.api.app import create_app
from restogate.settings import DEV_JWT_SECRET, Settings


@pytest.mark.asyncio
async def test_health_endpoints(api: httpx.AsyncClient) -> None:
    r = await api.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "service": "restogate", "env": "test"}

    r = await api.get("/readyz")
    assert r.status_code == 200
    assert r.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_request_id_is_echoed(api: httpx.AsyncClient) -> None:
    r = await api.get("/healthz", headers={"x-request-id": "req-123"})
    assert r.headers["x-request-id"] == "req-123"
    assert (await api.get("/healthz")).headers["x-request-id"]


@pytest.mark.asyncio
async def test_bootstrap_superadmin_is_idempotent(settings: Settings) -> None:
    settings = settings.model_copy(
        update={
            "bootstrap_superadmin_email": "boot@restogate.test",
            "bootstrap_superadmin_password": "B00t!Strap",
        }
    )
    # Two boots against the same database must not collide on the unique email.
    for _ in range(2):
        app = create_app(settings=settings)
        async with app.router.lifespan_context(app):
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
                r = await client.post(
                    "/v1/auth/superadmin/login",
                    json={"email": "boot@restogate.test", "password": "B00t!Strap"},
                )
                assert r.status_code == 200


def test_prod_refuses_the_development_secret() -> None:
    with pytest.raises(ValueError):
        Settings(env="prod", jwt_secret=DEV_JWT_SECRET)
    Settings(env="prod", jwt_secret="a-real-production-secret-0123456789abcdef")


# --- Module Notes -----------------------------------------------------------
# Endpoint-level flows live in test_api.py; this file only proves the process boots.
