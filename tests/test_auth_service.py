"""
tests.test_auth_service

Login pipeline and session lifecycle at the service layer.

Responsibilities:
- Owner login across lifecycle states (granted, pending, suspended).
- Revocation through suspension, logout and concurrent logins.
- Identical failures for unknown identifiers and wrong secrets.
- Refresh, password rotation and the emitted security events.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from restogate.auth.gate import GateReason, Granted
from restogate.auth.jwt import JwtConfig, TokenService, TokenType
from restogate.auth.models import Role
from restogate.db.models import AccountStatus, VerificationStatus
from restogate.db.repositories.principals import PrincipalRepo
from restogate.errors import (
    AccessBlockedError,
    AuthenticationError,
    AuthFailure,
    ValidationError,
)
from restogate.observability.security_events import SecurityEventType
from restogate.services.account_service import AccountService
from tests.conftest import ADMIN_PASSWORD


async def _login(auth_service_for, sessionmaker, client_info, owner, *, secret=None):
    async with sessionmaker() as s:
        return await auth_service_for(s).login(
            role=Role.restaurant_owner,
            email=owner.email,
            secret=secret or owner.password,
            client=client_info,
        )


async def _validate(tokens, sessionmaker, token, expected_type=TokenType.access):
    async with sessionmaker() as s:
        return await tokens.validate(
            token, principals=PrincipalRepo(s), expected_type=expected_type
        )


@pytest.mark.asyncio
async def test_verified_active_owner_gets_a_working_token(
    auth_service_for, sessionmaker, client_info, tokens, seed_owner, sink
) -> None:
    owner = await seed_owner()
    result = await _login(auth_service_for, sessionmaker, client_info, owner)

    assert isinstance(result.decision, Granted)
    assert result.decision.redirect_to == "/restaurant/dashboard"
    assert result.restaurant is not None and result.restaurant.id == owner.restaurant_id
    assert result.tokens.expires_in == 3600

    principal = await _validate(tokens, sessionmaker, result.tokens.access_token)
    assert principal.id == owner.owner_id
    assert principal.role is Role.restaurant_owner

    (event,) = sink.of_type(SecurityEventType.login_succeeded)
    assert event.actor_id == str(owner.owner_id)
    assert event.role == "restaurantOwner"
    assert event.client.ip == "203.0.113.7"


@pytest.mark.asyncio
async def test_pending_owner_is_blocked_without_a_session(
    auth_service_for, sessionmaker, client_info, seed_owner, sink
) -> None:
    owner = await seed_owner(verification=VerificationStatus.pending)

    with pytest.raises(AccessBlockedError) as exc:
        await _login(auth_service_for, sessionmaker, client_info, owner)

    err = exc.value
    assert err.status_code == 403
    assert err.decision.reason is GateReason.verification_pending
    assert err.detail["status"] == "verification_pending"
    assert err.detail["redirect_to"] == "/restaurant/verification-pending"
    assert err.detail["verification_status"] == "pending"

    async with sessionmaker() as s:
        record = await PrincipalRepo(s).get(Role.restaurant_owner, owner.owner_id)
    assert record is not None and record.session_marker is None

    (event,) = sink.of_type(SecurityEventType.login_failed)
    assert event.detail["reason"] == "verification_pending"


@pytest.mark.asyncio
async def test_rejected_owner_is_blocked(
    auth_service_for, sessionmaker, client_info, seed_owner
) -> None:
    owner = await seed_owner(verification=VerificationStatus.rejected)
    with pytest.raises(AccessBlockedError) as exc:
        await _login(auth_service_for, sessionmaker, client_info, owner)
    assert exc.value.detail["redirect_to"] == "/restaurant/verification-rejected"


@pytest.mark.asyncio
async def test_suspension_revokes_outstanding_tokens(
    auth_service_for, sessionmaker, client_info, tokens, hasher, seed_owner, settings, clock
) -> None:
    owner = await seed_owner()
    result = await _login(auth_service_for, sessionmaker, client_info, owner)

    async with sessionmaker() as s:
        _, decision = await AccountService(session=s, hasher=hasher).set_account_status(
            owner.restaurant_id, "suspended", actor="admin"
        )
    assert decision.reason is GateReason.account_suspended

    for token, typ in (
        (result.tokens.access_token, TokenType.access),
        (result.tokens.refresh_token, TokenType.refresh),
    ):
        with pytest.raises(AuthenticationError) as exc:
            await _validate(tokens, sessionmaker, token, typ)
        assert exc.value.failure is AuthFailure.session_invalidated

    # Revocation is a different failure from plain expiry.
    clock.now = clock.now - timedelta(hours=2)
    expired = TokenService(cfg=JwtConfig.from_settings(settings), clock=clock).issue(
        principal_id=owner.owner_id,
        role=Role.restaurant_owner,
        session_marker=result.principal.session_marker,
    )
    with pytest.raises(AuthenticationError) as exc:
        await _validate(tokens, sessionmaker, expired)
    assert exc.value.failure is AuthFailure.expired_token


@pytest.mark.asyncio
async def test_suspended_owner_login_is_blocked_and_clears_the_session(
    auth_service_for, sessionmaker, client_info, seed_owner
) -> None:
    owner = await seed_owner(account=AccountStatus.suspended)
    async with sessionmaker() as s:
        await PrincipalRepo(s).set_session_marker(Role.restaurant_owner, owner.owner_id, "stale")
        await s.commit()

    with pytest.raises(AccessBlockedError) as exc:
        await _login(auth_service_for, sessionmaker, client_info, owner)
    assert exc.value.decision.reason is GateReason.account_suspended
    assert exc.value.detail["redirect_to"] == "/restaurant/account-suspended"

    async with sessionmaker() as s:
        record = await PrincipalRepo(s).get(Role.restaurant_owner, owner.owner_id)
    assert record is not None and record.session_marker is None


@pytest.mark.asyncio
async def test_rejection_keeps_the_current_session(
    auth_service_for, sessionmaker, client_info, tokens, hasher, seed_owner
) -> None:
    owner = await seed_owner()
    result = await _login(auth_service_for, sessionmaker, client_info, owner)

    async with sessionmaker() as s:
        restaurant, decision = await AccountService(
            session=s, hasher=hasher
        ).update_verification_status(owner.restaurant_id, "rejected", actor="admin")
    assert restaurant.verification_status is VerificationStatus.rejected
    assert decision.reason is GateReason.verification_rejected

    principal = await _validate(tokens, sessionmaker, result.tokens.access_token)
    assert principal.id == owner.owner_id


@pytest.mark.asyncio
async def test_verification_reactivates_a_suspended_restaurant(
    sessionmaker, hasher, seed_owner
) -> None:
    owner = await seed_owner(account=AccountStatus.suspended)
    async with sessionmaker() as s:
        restaurant, decision = await AccountService(
            session=s, hasher=hasher
        ).update_verification_status(owner.restaurant_id, "verified", actor="admin")
    assert restaurant.account_status is AccountStatus.active
    assert decision.granted


@pytest.mark.asyncio
async def test_invalid_lifecycle_values(sessionmaker, hasher, seed_owner) -> None:
    owner = await seed_owner()
    async with sessionmaker() as s:
        svc = AccountService(session=s, hasher=hasher)
        with pytest.raises(ValidationError, match="Invalid verification status"):
            await svc.update_verification_status(owner.restaurant_id, "approved", actor="a")
        with pytest.raises(ValidationError, match="Invalid account status"):
            await svc.set_account_status(owner.restaurant_id, "deleted", actor="a")


@pytest.mark.asyncio
async def test_concurrent_logins_leave_exactly_one_live_token(
    auth_service_for, sessionmaker, client_info, tokens, seed_owner
) -> None:
    owner = await seed_owner()
    first, second = await asyncio.gather(
        _login(auth_service_for, sessionmaker, client_info, owner),
        _login(auth_service_for, sessionmaker, client_info, owner),
    )

    live = []
    for result in (first, second):
        try:
            await _validate(tokens, sessionmaker, result.tokens.access_token)
            live.append(result)
        except AuthenticationError as e:
            assert e.failure is AuthFailure.session_invalidated
    assert len(live) == 1

    async with sessionmaker() as s:
        record = await PrincipalRepo(s).get(Role.restaurant_owner, owner.owner_id)
    assert record is not None
    assert record.session_marker == live[0].principal.session_marker


@pytest.mark.asyncio
async def test_unknown_email_and_wrong_secret_fail_identically(
    auth_service_for, sessionmaker, client_info, seed_owner, sink
) -> None:
    owner = await seed_owner()
    failures = []
    for email, secret in ((owner.email, "Wr0ng!Pass"), ("nobody@bistro.test", owner.password)):
        async with sessionmaker() as s:
            with pytest.raises(AuthenticationError) as exc:
                await auth_service_for(s).login(
                    role=Role.restaurant_owner, email=email, secret=secret, client=client_info
                )
        failures.append(exc.value)

    wrong_secret, unknown = failures
    assert wrong_secret.failure is unknown.failure is AuthFailure.invalid_credentials
    assert wrong_secret.public_message == unknown.public_message == "Invalid credentials"
    assert str(wrong_secret) == str(unknown)
    assert wrong_secret.detail == unknown.detail == {}

    events = sink.of_type(SecurityEventType.login_failed)
    assert len(events) == 2
    assert {e.actor_id for e in events} == {"anonymous"}


@pytest.mark.asyncio
async def test_owner_credentials_do_not_open_a_superadmin_session(
    auth_service_for, session, client_info, seed_owner
) -> None:
    owner = await seed_owner()
    with pytest.raises(AuthenticationError) as exc:
        await auth_service_for(session).login(
            role=Role.superadmin, email=owner.email, secret=owner.password, client=client_info
        )
    assert exc.value.failure is AuthFailure.invalid_credentials


@pytest.mark.asyncio
async def test_email_is_matched_case_insensitively(
    auth_service_for, session, client_info, seed_owner
) -> None:
    owner = await seed_owner()
    result = await auth_service_for(session).login(
        role=Role.restaurant_owner,
        email="  OWNER@Bistro.TEST ",
        secret=owner.password,
        client=client_info,
    )
    assert result.principal.id == owner.owner_id


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("email", "secret", "message"),
    [
        ("", "Str0ng!Pass", "Email and password are required"),
        ("owner@bistro.test", "   ", "Email and password are required"),
        ("not-an-email", "Str0ng!Pass", "Invalid email format"),
        ("owner@bistro.test", "x" * 129, "Invalid password format"),
    ],
)
async def test_login_input_hygiene(
    auth_service_for, session, client_info, email, secret, message
) -> None:
    with pytest.raises(ValidationError, match=message):
        await auth_service_for(session).login(
            role=Role.restaurant_owner, email=email, secret=secret, client=client_info
        )


@pytest.mark.asyncio
async def test_superadmin_login(
    auth_service_for, session, client_info, tokens, seed_superadmin
) -> None:
    admin_id = await seed_superadmin()
    result = await auth_service_for(session).login(
        role=Role.superadmin, email="admin@restogate.test", secret=ADMIN_PASSWORD, client=client_info
    )
    assert result.decision is None
    assert result.restaurant is None
    principal = await tokens.validate(
        result.tokens.access_token, principals=PrincipalRepo(session)
    )
    assert principal.id == admin_id


@pytest.mark.asyncio
async def test_refresh_keeps_the_session_marker(
    auth_service_for, sessionmaker, client_info, tokens, seed_owner, sink
) -> None:
    owner = await seed_owner()
    login = await _login(auth_service_for, sessionmaker, client_info, owner)

    async with sessionmaker() as s:
        pair = await auth_service_for(s).refresh(
            refresh_token=login.tokens.refresh_token, client=client_info
        )
    refreshed = await _validate(tokens, sessionmaker, pair.access_token)
    assert refreshed.session_marker == login.principal.session_marker
    # The first access token still validates; refresh does not rotate the session.
    await _validate(tokens, sessionmaker, login.tokens.access_token)
    assert sink.of_type(SecurityEventType.token_refreshed)


@pytest.mark.asyncio
async def test_refresh_rejects_access_tokens(
    auth_service_for, sessionmaker, client_info, seed_owner, sink
) -> None:
    owner = await seed_owner()
    login = await _login(auth_service_for, sessionmaker, client_info, owner)

    async with sessionmaker() as s:
        with pytest.raises(AuthenticationError) as exc:
            await auth_service_for(s).refresh(
                refresh_token=login.tokens.access_token, client=client_info
            )
    assert exc.value.failure is AuthFailure.invalid_token
    (event,) = sink.of_type(SecurityEventType.token_refresh_failed)
    assert event.detail["reason"] == "invalid_token"
    # Wrong token type fails before the subject is trusted.
    assert event.actor_id == "anonymous"


@pytest.mark.asyncio
async def test_logout_revokes_access_and_refresh(
    auth_service_for, sessionmaker, client_info, tokens, seed_owner, sink
) -> None:
    owner = await seed_owner()
    login = await _login(auth_service_for, sessionmaker, client_info, owner)

    async with sessionmaker() as s:
        await auth_service_for(s).logout(principal=login.principal, client=client_info)

    with pytest.raises(AuthenticationError):
        await _validate(tokens, sessionmaker, login.tokens.access_token)
    async with sessionmaker() as s:
        with pytest.raises(AuthenticationError) as exc:
            await auth_service_for(s).refresh(
                refresh_token=login.tokens.refresh_token, client=client_info
            )
    assert exc.value.failure is AuthFailure.session_invalidated
    (failed,) = sink.of_type(SecurityEventType.token_refresh_failed)
    assert (failed.actor_id, failed.role) == (str(owner.owner_id), "restaurantOwner")
    assert SecurityEventType.logout_completed in sink.types()


@pytest.mark.asyncio
async def test_diner_session(auth_service_for, sessionmaker, client_info, tokens) -> None:
    async with sessionmaker() as s:
        result = await auth_service_for(s).start_diner_session(name="  Dana  ", client=client_info)
    assert result.principal.role is Role.diner
    assert result.principal.name == "Dana"
    assert result.principal.email is None
    principal = await _validate(tokens, sessionmaker, result.tokens.access_token)
    assert principal.id == result.principal.id


@pytest.mark.asyncio
async def test_diners_cannot_use_credential_login(auth_service_for, session, client_info) -> None:
    with pytest.raises(ValidationError):
        await auth_service_for(session).login(
            role=Role.diner, email="d@x.test", secret="Str0ng!Pass", client=client_info
        )


@pytest.mark.asyncio
async def test_change_password(
    auth_service_for, sessionmaker, client_info, seed_owner
) -> None:
    owner = await seed_owner()
    login = await _login(auth_service_for, sessionmaker, client_info, owner)

    async with sessionmaker() as s:
        svc = auth_service_for(s)
        with pytest.raises(ValidationError, match="Current password is incorrect"):
            await svc.change_password(
                principal=login.principal, current_secret="Wr0ng!Pass", new_secret="N3w!Secret"
            )
        with pytest.raises(ValidationError, match="at least one number"):
            await svc.change_password(
                principal=login.principal, current_secret=owner.password, new_secret="NoDigits!"
            )
        await svc.change_password(
            principal=login.principal, current_secret=owner.password, new_secret="N3w!Secret"
        )

    with pytest.raises(AuthenticationError):
        await _login(auth_service_for, sessionmaker, client_info, owner)
    result = await _login(auth_service_for, sessionmaker, client_info, owner, secret="N3w!Secret")
    assert result.principal.id == owner.owner_id


# --- Module Notes -----------------------------------------------------------
# Each step opens its own session, mirroring one request per step in the API.


@pytest.mark.asyncio
async def test_refresh_requires_a_token(auth_service_for, session, client_info, sink) -> None:
    with pytest.raises(AuthenticationError) as exc:
        await auth_service_for(session).refresh(refresh_token=None, client=client_info)
    assert exc.value.failure is AuthFailure.missing_token
    (event,) = sink.of_type(SecurityEventType.token_refresh_failed)
    assert event.detail["reason"] == "missing_token"
