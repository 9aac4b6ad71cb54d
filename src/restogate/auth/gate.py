"""
restogate.auth.gate

Access gate for restaurant owners.

Responsibilities:
- Map a tenant's (verification status, account status) pair to a decision.
- Attach a message and a redirect target to every decision.
- Say which decisions must also revoke the owner's session.

The mapping is a pure function of the pair:

    verified + active     -> Granted
    pending  + any        -> Blocked(verification_pending)
    rejected + any        -> Blocked(verification_rejected)
    verified + suspended  -> Blocked(account_suspended)
    anything else         -> Blocked(access_denied)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Literal, TypeVar

from restogate.db.models import AccountStatus, VerificationStatus


class GateReason(enum.StrEnum):
    verification_pending = "verification_pending"
    verification_rejected = "verification_rejected"
    account_suspended = "account_suspended"
    access_denied = "access_denied"


@dataclass(frozen=True, slots=True)
class Granted:
    message: str = "Welcome! You have full access to your dashboard."
    redirect_to: str = "/restaurant/dashboard"
    granted: Literal[True] = True


@dataclass(frozen=True, slots=True)
class Blocked:
    reason: GateReason
    message: str
    redirect_to: str
    granted: Literal[False] = False


GateDecision = Granted | Blocked

GRANTED = Granted()

_BLOCKED: dict[GateReason, Blocked] = {
    GateReason.verification_pending: Blocked(
        reason=GateReason.verification_pending,
        message="Your restaurant verification is still pending. Please wait for approval.",
        redirect_to="/restaurant/verification-pending",
    ),
    GateReason.verification_rejected: Blocked(
        reason=GateReason.verification_rejected,
        message="Your restaurant verification was rejected. Please contact support.",
        redirect_to="/restaurant/verification-rejected",
    ),
    GateReason.account_suspended: Blocked(
        reason=GateReason.account_suspended,
        message="Your restaurant account is suspended. Please contact support.",
        redirect_to="/restaurant/account-suspended",
    ),
    GateReason.access_denied: Blocked(
        reason=GateReason.access_denied,
        message="Access denied. Please contact support for assistance.",
        redirect_to="/restaurant/access-denied",
    ),
}


_E = TypeVar("_E", VerificationStatus, AccountStatus)


def _coerce(enum_cls: type[_E], value: _E | str) -> _E | None:
    try:
        return enum_cls(value)
    except ValueError:
        return None


def evaluate(
    verification_status: VerificationStatus | str,
    account_status: AccountStatus | str,
) -> GateDecision:
    verification = _coerce(VerificationStatus, verification_status)
    account = _coerce(AccountStatus, account_status)

    if verification is VerificationStatus.verified and account is AccountStatus.active:
        return GRANTED
    if verification is VerificationStatus.pending:
        return _BLOCKED[GateReason.verification_pending]
    if verification is VerificationStatus.rejected:
        return _BLOCKED[GateReason.verification_rejected]
    if verification is VerificationStatus.verified and account is AccountStatus.suspended:
        return _BLOCKED[GateReason.account_suspended]
    return _BLOCKED[GateReason.access_denied]


def requires_session_clear(decision: GateDecision) -> bool:
    # Rejection deliberately keeps the marker; only suspension revokes sessions.
    return isinstance(decision, Blocked) and decision.reason is GateReason.account_suspended


def describe(decision: GateDecision) -> dict[str, object]:
    return {
        "granted": decision.granted,
        "reason": None if isinstance(decision, Granted) else decision.reason.value,
        "message": decision.message,
        "redirect_to": decision.redirect_to,
    }


# --- Module Notes -----------------------------------------------------------
# Used at owner login (to decide whether to mint a session at all), by the status
# endpoint, and by lifecycle updates that must revoke sessions on suspension.
