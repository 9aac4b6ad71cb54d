"""
restogate.observability.security_events

Security event contract and the default structlog sink.

Responsibilities:
- Enumerate the authentication/authorization outcomes the core reports.
- Capture the caller's network identity from a request.
- Hand events to a pluggable sink; storage and alerting live behind it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

from starlette.requests import Request

from restogate.observability.logging import get_logger

ANONYMOUS = "anonymous"


class SecurityEventType(enum.StrEnum):
    login_succeeded = "LOGIN_SUCCEEDED"
    login_failed = "LOGIN_FAILED"
    logout_completed = "LOGOUT_COMPLETED"
    token_refreshed = "TOKEN_REFRESHED"
    token_refresh_failed = "TOKEN_REFRESH_FAILED"
    invalid_token_presented = "INVALID_TOKEN_PRESENTED"
    authorization_denied = "AUTHORIZATION_DENIED"


_FAILURES = frozenset(
    {
        SecurityEventType.login_failed,
        SecurityEventType.token_refresh_failed,
        SecurityEventType.invalid_token_presented,
        SecurityEventType.authorization_denied,
    }
)


@dataclass(frozen=True, slots=True)
class ClientInfo:
    ip: str = "unknown"
    user_agent: str = "unknown"

    @classmethod
    def from_request(cls, request: Request) -> ClientInfo:
        # First hop of x-forwarded-for wins over the socket peer (reverse proxies).
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            ip = forwarded.split(",")[0].strip()
        elif request.client is not None:
            ip = request.client.host
        else:
            ip = "unknown"
        ip = ip.removeprefix("::ffff:") or "unknown"
        user_agent = request.headers.get("user-agent", "unknown")[:200]
        return cls(ip=ip, user_agent=user_agent)


@dataclass(frozen=True, slots=True)
class SecurityEvent:
    type: SecurityEventType
    actor_id: str
    role: str
    client: ClientInfo
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    detail: dict[str, Any] = field(default_factory=dict)

    @property
    def is_failure(self) -> bool:
        return self.type in _FAILURES


def security_event(
    type: SecurityEventType,
    *,
    client: ClientInfo,
    actor_id: str | None = None,
    role: str | None = None,
    **detail: Any,
) -> SecurityEvent:
    return SecurityEvent(
        type=type,
        actor_id=actor_id or ANONYMOUS,
        role=role or "unknown",
        client=client,
        detail=detail,
    )


class SecurityEventSink(Protocol):
    def emit(self, event: SecurityEvent) -> None: ...


class LoggingSecurityEventSink:
    """
    Writes each event as one structured log line on `restogate.security`.
    """

    def __init__(self) -> None:
        self._log = get_logger("restogate.security")

    def emit(self, event: SecurityEvent) -> None:
        log_fn = self._log.warning if event.is_failure else self._log.info
        log_fn(
            "security_event",
            security_event=event.type.value,
            actor_id=event.actor_id,
            role=event.role,
            ip=event.client.ip,
            user_agent=event.client.user_agent,
            occurred_at=event.timestamp.isoformat(),
            detail=event.detail,
        )


# --- Module Notes -----------------------------------------------------------
# Emission is synchronous and must not raise into request handling; sinks that
# ship events elsewhere should buffer internally.
