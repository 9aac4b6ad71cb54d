"""
tests.conftest

Shared fixtures for the restogate test-suite.

Responsibilities:
- Build an isolated Settings object per test (file-backed SQLite in tmp_path,
  cheap bcrypt rounds, a fixed signing secret).
- Provide the process-wide auth components (hasher, token service) and a
  recording security event sink.
- Seed restaurant owners and superadmins through the real services.
"""

from __future__ import annotations

import http.cookiejar
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from restogate.api.app import create_app
from restogate.auth.jwt import JwtConfig, TokenService
from restogate.auth.passwords import PasswordHasher
from restogate.db.init_db import init_db
from restogate.db.models import AccountStatus, VerificationStatus
from restogate.db.repositories.restaurants import RestaurantRepo
from restogate.db.session import create_engine, create_sessionmaker
from restogate.observability.security_events import ClientInfo, SecurityEvent, SecurityEventType
from restogate.services.account_service import AccountService
from restogate.services.auth_service import AuthService
from restogate.settings import Settings

TEST_SECRET = "restogate-test-signing-secret-0123456789abcdef"
OWNER_PASSWORD = "Str0ng!Pass"
ADMIN_EMAIL = "root@restogate.test"
ADMIN_PASSWORD = "Adm1n!Secret"


class RecordingSink:
    """
    Security event sink that keeps every event in memory.
    """

    def __init__(self) -> None:
        self.events: list[SecurityEvent] = []

    def emit(self, event: SecurityEvent) -> None:
        self.events.append(event)

    def types(self) -> list[SecurityEventType]:
        return [e.type for e in self.events]

    def of_type(self, type: SecurityEventType) -> list[SecurityEvent]:
        return [e for e in self.events if e.type is type]


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@dataclass(frozen=True)
class SeededOwner:
    owner_id: uuid.UUID
    restaurant_id: uuid.UUID
    email: str
    password: str


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'restogate.db'}",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        log_level="WARNING",
    )


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def client_info() -> ClientInfo:
    return ClientInfo(ip="203.0.113.7", user_agent="pytest")


@pytest.fixture
def hasher(settings: Settings) -> PasswordHasher:
    return PasswordHasher(rounds=settings.bcrypt_rounds)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime.now(tz=UTC).replace(microsecond=0))


@pytest.fixture
def tokens(settings: Settings) -> TokenService:
    return TokenService(cfg=JwtConfig.from_settings(settings))


@pytest_asyncio.fixture
async def sessionmaker(settings: Settings) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_engine(settings)
    await init_db(engine)
    try:
        yield create_sessionmaker(engine)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session(
    sessionmaker: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with sessionmaker() as s:
        yield s


@pytest.fixture
def auth_service_for(
    tokens: TokenService, hasher: PasswordHasher, sink: RecordingSink
) -> Callable[[AsyncSession], AuthService]:
    def _build(s: AsyncSession) -> AuthService:
        return AuthService(session=s, tokens=tokens, hasher=hasher, events=sink)

    return _build


@pytest.fixture
def seed_owner(
    sessionmaker: async_sessionmaker[AsyncSession], hasher: PasswordHasher
) -> Callable[..., Awaitable[SeededOwner]]:
    async def _seed(
        email: str = "owner@bistro.test",
        *,
        verification: VerificationStatus = VerificationStatus.verified,
        account: AccountStatus = AccountStatus.active,
    ) -> SeededOwner:
        async with sessionmaker() as s:
            reg = await AccountService(session=s, hasher=hasher).register_owner(
                owner_name="Olive Owner",
                email=email,
                password=OWNER_PASSWORD,
                phone="+15550100",
                restaurant_name="Bistro Uno",
                restaurant_type="cafe",
                address="1 Main St",
            )
            await RestaurantRepo(s).set_lifecycle(
                reg.restaurant.id, verification_status=verification, account_status=account
            )
            await s.commit()
        return SeededOwner(
            owner_id=reg.owner.id,
            restaurant_id=reg.restaurant.id,
            email=email,
            password=OWNER_PASSWORD,
        )

    return _seed


@pytest.fixture
def seed_superadmin(
    sessionmaker: async_sessionmaker[AsyncSession], hasher: PasswordHasher
) -> Callable[..., Awaitable[uuid.UUID]]:
    async def _seed(email: str = "admin@restogate.test") -> uuid.UUID:
        async with sessionmaker() as s:
            admin = await AccountService(session=s, hasher=hasher).create_superadmin(
                name="Ada Admin", email=email, password=ADMIN_PASSWORD
            )
        return admin.id

    return _seed


@pytest.fixture
def app(settings: Settings, sink: RecordingSink) -> FastAPI:
    return create_app(
        settings=settings.model_copy(
            update={
                "bootstrap_superadmin_email": ADMIN_EMAIL,
                "bootstrap_superadmin_password": ADMIN_PASSWORD,
            }
        ),
        security_events=sink,
    )


@pytest_asyncio.fixture
async def api(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    # httpx ASGITransport does not drive the lifespan; enter it explicitly.
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        # Refuse every cookie: this client authenticates only with what a request sends.
        jar = http.cookiejar.CookieJar(
            policy=http.cookiejar.DefaultCookiePolicy(allowed_domains=[])
        )
        async with httpx.AsyncClient(
            transport=transport, base_url="http://test", cookies=jar
        ) as client:
            yield client


# --- Module Notes -----------------------------------------------------------
# Every test gets its own database file, so tests never share principals or markers.
