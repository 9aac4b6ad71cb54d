"""
restogate.errors

Closed error taxonomy shared by services, auth dependencies and the API layer.

Responsibilities:
- Enumerate every error kind a caller must handle (`ErrorKind`).
- Enumerate the distinct authentication failures (`AuthFailure`).
- Carry an HTTP status and a client-safe message on every exception.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from restogate.auth.gate import Blocked


class ErrorKind(enum.StrEnum):
    validation = "validation_error"
    authentication = "unauthorized"
    authorization = "forbidden"
    not_found = "not_found"
    conflict = "conflict"
    internal = "server_error"


class AuthFailure(enum.StrEnum):
    missing_token = "missing_token"
    invalid_credentials = "invalid_credentials"
    invalid_token = "invalid_token"
    expired_token = "expired_token"
    principal_not_found = "principal_not_found"
    session_invalidated = "session_invalidated"


# Stale or orphaned tokens are reported exactly like a bad signature so a
# holder of an old token learns nothing about the account's state.
_PUBLIC_AUTH_MESSAGES: dict[AuthFailure, str] = {
    AuthFailure.missing_token: "No token provided",
    AuthFailure.invalid_credentials: "Invalid credentials",
    AuthFailure.invalid_token: "Invalid token",
    AuthFailure.expired_token: "Token expired",
    AuthFailure.principal_not_found: "Invalid token",
    AuthFailure.session_invalidated: "Invalid token",
}


class ServiceError(Exception):
    kind: ErrorKind = ErrorKind.internal
    status_code: int = 500

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    @property
    def public_message(self) -> str:
        return self.message


class ValidationError(ServiceError):
    kind = ErrorKind.validation
    status_code = 400


class AuthenticationError(ServiceError):
    kind = ErrorKind.authentication
    status_code = 401

    def __init__(
        self,
        failure: AuthFailure,
        message: str | None = None,
        *,
        subject: str | None = None,
        role: str | None = None,
    ) -> None:
        super().__init__(message or _PUBLIC_AUTH_MESSAGES[failure])
        self.failure = failure
        # Known only once the signature checked out (stale or orphaned tokens).
        self.subject = subject
        self.role = role

    @property
    def public_message(self) -> str:
        return _PUBLIC_AUTH_MESSAGES[self.failure]


class AuthorizationError(ServiceError):
    kind = ErrorKind.authorization
    status_code = 403

    def __init__(self, message: str = "Access denied", *, detail: dict[str, Any] | None = None):
        super().__init__(message, detail=detail)


class AccessBlockedError(AuthorizationError):
    """
    A valid principal whose tenant lifecycle state does not permit access.
    """

    def __init__(self, decision: Blocked, *, detail: dict[str, Any] | None = None) -> None:
        merged = {"status": decision.reason.value, "redirect_to": decision.redirect_to}
        merged.update(detail or {})
        super().__init__(decision.message, detail=merged)
        self.decision = decision


class NotFoundError(ServiceError):
    kind = ErrorKind.not_found
    status_code = 404


class ConflictError(ServiceError):
    kind = ErrorKind.conflict
    status_code = 409


# --- Module Notes -----------------------------------------------------------
# `AuthenticationError.message` keeps the precise internal reason for logs;
# responses always use `public_message`.
