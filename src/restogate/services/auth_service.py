"""
restogate.services.auth_service

Session lifecycle service (transaction owner for login/logout/refresh).

Responsibilities:
- Run the single login pipeline shared by every role:
  input hygiene -> credential verifier -> access gate (owners) -> session
  registry -> token issuer.
- Start anonymous diner sessions.
- Refresh and revoke sessions.
- Report each outcome to the security event sink.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from restogate.auth.gate import Blocked, GateDecision, evaluate, requires_session_clear
from restogate.auth.jwt import TokenService, TokenType
from restogate.auth.models import Principal, Role
from restogate.auth.passwords import PasswordHasher, check_password_policy
from restogate.auth.sessions import SessionRegistry
from restogate.auth.validation import normalize_email
from restogate.db.models import PrincipalRecord, Restaurant
from restogate.db.repositories.principals import PrincipalRepo
from restogate.db.repositories.restaurants import RestaurantRepo
from restogate.errors import (
    AccessBlockedError,
    AuthenticationError,
    AuthFailure,
    NotFoundError,
    ValidationError,
)
from restogate.observability.logging import get_logger
from restogate.observability.security_events import (
    ClientInfo,
    SecurityEventSink,
    SecurityEventType,
    security_event,
)

log = get_logger(__name__)

MAX_SECRET_LENGTH = 128


@dataclass(frozen=True, slots=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"


@dataclass(frozen=True, slots=True)
class LoginResult:
    principal: Principal
    tokens: TokenPair
    decision: GateDecision | None = None
    restaurant: Restaurant | None = None


class AuthService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        tokens: TokenService,
        hasher: PasswordHasher,
        events: SecurityEventSink,
        marker_bytes: int = 32,
    ) -> None:
        self._session = session
        self._tokens = tokens
        self._hasher = hasher
        self._events = events

        self._principals = PrincipalRepo(session)
        self._restaurants = RestaurantRepo(session)
        self._sessions = SessionRegistry(self._principals, marker_bytes=marker_bytes)

    async def login(
        self,
        *,
        role: Role,
        email: str,
        secret: str,
        client: ClientInfo,
    ) -> LoginResult:
        if role is Role.diner:
            raise ValidationError("Diners start sessions without credentials")
        if not email.strip() or not secret.strip():
            raise ValidationError("Email and password are required")
        if len(secret) > MAX_SECRET_LENGTH:
            raise ValidationError("Invalid password format")
        email = normalize_email(email)

        record = await self._principals.get_by_email(role, email)
        stored_hash = record.password_hash if record is not None else None
        # Unknown identifier and wrong secret take the same path and the same time.
        matched = await asyncio.to_thread(self._hasher.verify, secret, stored_hash)
        if record is None or not matched:
            self._emit(SecurityEventType.login_failed, client, role=role, reason="invalid_credentials")
            raise AuthenticationError(AuthFailure.invalid_credentials)

        decision: GateDecision | None = None
        restaurant: Restaurant | None = None
        if role is Role.restaurant_owner:
            restaurant = await self._restaurants.get_for_owner(record.id)
            if restaurant is None:
                raise NotFoundError("Restaurant not found")
            decision = evaluate(restaurant.verification_status, restaurant.account_status)
            if isinstance(decision, Blocked):
                await self._block(record, restaurant, decision, client)

        marker = await self._sessions.mint(role, record.id)
        await self._session.commit()

        principal = _principal_from(record, role, marker)
        self._emit(
            SecurityEventType.login_succeeded, client, principal=principal, endpoint="login"
        )
        log.info("login_succeeded", principal_id=principal.subject, role=role.value)
        return LoginResult(
            principal=principal,
            tokens=self._issue_pair(principal),
            decision=decision,
            restaurant=restaurant,
        )

    async def start_diner_session(self, *, name: str, client: ClientInfo) -> LoginResult:
        name = name.strip()
        if not name:
            raise ValidationError("Name is required")
        diner = await self._principals.create_diner(name=name)
        marker = await self._sessions.mint(Role.diner, diner.id)
        await self._session.commit()

        principal = _principal_from(diner, Role.diner, marker)
        self._emit(
            SecurityEventType.login_succeeded, client, principal=principal, endpoint="diner_session"
        )
        return LoginResult(principal=principal, tokens=self._issue_pair(principal))

    async def refresh(self, *, refresh_token: str | None, client: ClientInfo) -> TokenPair:
        try:
            if not refresh_token:
                raise AuthenticationError(AuthFailure.missing_token)
            principal = await self._tokens.validate(
                refresh_token, principals=self._principals, expected_type=TokenType.refresh
            )
        except AuthenticationError as e:
            self._emit(
                SecurityEventType.token_refresh_failed,
                client,
                actor_id=e.subject,
                role=e.role,
                reason=e.failure.value,
            )
            raise

        # Same marker: a refresh continues the session, it does not start a new one.
        pair = self._issue_pair(principal)
        self._emit(SecurityEventType.token_refreshed, client, principal=principal)
        return pair

    async def logout(self, *, principal: Principal, client: ClientInfo) -> None:
        await self._sessions.clear(principal.role, principal.id)
        await self._session.commit()
        self._emit(SecurityEventType.logout_completed, client, principal=principal)

    async def access_status(self, *, principal: Principal) -> tuple[Restaurant, GateDecision]:
        restaurant = await self._restaurants.get_for_owner(principal.id)
        if restaurant is None:
            raise NotFoundError("Restaurant not found")
        return restaurant, evaluate(restaurant.verification_status, restaurant.account_status)

    async def restaurant_for(self, principal: Principal) -> Restaurant | None:
        if principal.role is not Role.restaurant_owner:
            return None
        return await self._restaurants.get_for_owner(principal.id)

    async def change_password(
        self,
        *,
        principal: Principal,
        current_secret: str,
        new_secret: str,
    ) -> None:
        if not current_secret or not new_secret:
            raise ValidationError("Current password and new password are required")
        check_password_policy(new_secret)

        record = await self._principals.get(principal.role, principal.id)
        if record is None:
            raise NotFoundError("Principal not found")
        if not await asyncio.to_thread(self._hasher.verify, current_secret, record.password_hash):
            raise ValidationError("Current password is incorrect")

        new_hash = await asyncio.to_thread(self._hasher.hash, new_secret)
        await self._principals.set_password_hash(principal.role, principal.id, new_hash)
        await self._session.commit()
        log.info("password_changed", principal_id=principal.subject, role=principal.role.value)

    async def _block(
        self,
        record: PrincipalRecord,
        restaurant: Restaurant,
        decision: Blocked,
        client: ClientInfo,
    ) -> None:
        if requires_session_clear(decision):
            await self._sessions.clear(Role.restaurant_owner, record.id)
        await self._session.commit()
        self._emit(
            SecurityEventType.login_failed,
            client,
            actor_id=str(record.id),
            role=Role.restaurant_owner,
            reason=decision.reason.value,
        )
        raise AccessBlockedError(
            decision,
            detail={
                "verification_status": restaurant.verification_status.value,
                "account_status": restaurant.account_status.value,
                "restaurant": {"id": str(restaurant.id), "name": restaurant.name},
            },
        )

    def _issue_pair(self, principal: Principal) -> TokenPair:
        kwargs = {
            "principal_id": principal.id,
            "role": principal.role,
            "session_marker": principal.session_marker,
        }
        return TokenPair(
            access_token=self._tokens.issue(**kwargs, token_type=TokenType.access),
            refresh_token=self._tokens.issue(**kwargs, token_type=TokenType.refresh),
            expires_in=int(self._tokens.ttl_for(TokenType.access).total_seconds()),
        )

    def _emit(
        self,
        type: SecurityEventType,
        client: ClientInfo,
        *,
        principal: Principal | None = None,
        actor_id: str | None = None,
        role: Role | str | None = None,
        **detail: object,
    ) -> None:
        if principal is not None:
            actor_id, role = principal.subject, principal.role
        self._events.emit(
            security_event(
                type,
                client=client,
                actor_id=actor_id,
                role=str(role) if role is not None else None,
                **detail,
            )
        )


def _principal_from(record: PrincipalRecord, role: Role, marker: str) -> Principal:
    return Principal(
        id=record.id, role=role, name=record.name, email=record.email, session_marker=marker
    )


# --- Module Notes -----------------------------------------------------------
# Gate side effects (clearing a suspended owner's marker) are committed before the
# blocked response is raised, so the revocation sticks even though the call fails.
