"""
restogate.auth.jwt

JWT issuing and validation.

Responsibilities:
- Issue signed, time-bound access and refresh tokens that embed the principal's
  role and current session marker.
- Validate tokens in a fixed order: signature, expiry, principal, session marker.
- Offer an optional-auth variant that never raises.

Note:
- HS256 with a process-wide secret; the secret is loaded once from Settings.
"""

from __future__ import annotations

import enum
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from restogate.auth.models import Principal, Role
from restogate.auth.sessions import markers_match
from restogate.db.repositories.principals import PrincipalRepo
from restogate.errors import AuthenticationError, AuthFailure
from restogate.settings import Settings


class TokenType(enum.StrEnum):
    access = "access"
    refresh = "refresh"


@dataclass(frozen=True, slots=True)
class JwtConfig:
    # Algorithm/issuer/audience are enforced during decoding.
    alg: str
    issuer: str
    audience: str
    secret: str
    access_ttl: timedelta = timedelta(hours=1)
    refresh_ttl: timedelta = timedelta(days=7)

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(
            alg=settings.jwt_alg,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
            access_ttl=settings.access_token_ttl,
            refresh_ttl=settings.refresh_token_ttl,
        )


@dataclass(frozen=True, slots=True)
class TokenClaims:
    subject: uuid.UUID
    role: Role
    session_marker: str
    token_type: TokenType
    issued_at: datetime
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _invalid(reason: str) -> AuthenticationError:
    return AuthenticationError(AuthFailure.invalid_token, f"Invalid token: {reason}")


class TokenService:
    def __init__(self, *, cfg: JwtConfig, clock: Callable[[], datetime] = _utcnow) -> None:
        self._cfg = cfg
        self._clock = clock

    def ttl_for(self, token_type: TokenType) -> timedelta:
        return self._cfg.refresh_ttl if token_type is TokenType.refresh else self._cfg.access_ttl

    def issue(
        self,
        *,
        principal_id: uuid.UUID,
        role: Role,
        session_marker: str,
        token_type: TokenType = TokenType.access,
        ttl: timedelta | None = None,
    ) -> str:
        now = self._clock()
        ttl = ttl if ttl is not None else self.ttl_for(token_type)
        # Keep the payload minimal; everything else is read from the store on use.
        payload: dict[str, Any] = {
            "iss": self._cfg.issuer,
            "aud": self._cfg.audience,
            "sub": str(principal_id),
            "role": role.value,
            "sid": session_marker,
            "typ": token_type.value,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        return jwt.encode(payload, self._cfg.secret, algorithm=self._cfg.alg)

    def decode(self, token: str, *, expected_type: TokenType = TokenType.access) -> TokenClaims:
        """
        Signature and expiry checks only; no store access.
        """

        try:
            # Expiry is checked below against the injected clock, inclusively.
            payload = jwt.decode(
                token,
                self._cfg.secret,
                algorithms=[self._cfg.alg],
                issuer=self._cfg.issuer,
                audience=self._cfg.audience,
                options={
                    "require": ["exp", "iat", "iss", "aud", "sub"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except InvalidTokenError as e:
            raise _invalid(str(e)) from e

        exp, iat = payload.get("exp"), payload.get("iat")
        if not isinstance(exp, int | float) or not isinstance(iat, int | float):
            raise _invalid("non-numeric time claims")
        if self._clock().timestamp() >= exp:
            raise AuthenticationError(AuthFailure.expired_token)

        if payload.get("typ") != expected_type.value:
            raise _invalid("unexpected token type")
        marker = payload.get("sid")
        if not isinstance(marker, str) or not marker:
            raise _invalid("missing session marker")
        try:
            role = Role(payload.get("role"))
            subject = uuid.UUID(str(payload["sub"]))
        except ValueError as e:
            raise _invalid("malformed subject or role") from e

        return TokenClaims(
            subject=subject,
            role=role,
            session_marker=marker,
            token_type=expected_type,
            issued_at=datetime.fromtimestamp(iat, tz=UTC),
            expires_at=datetime.fromtimestamp(exp, tz=UTC),
        )

    async def validate(
        self,
        token: str,
        *,
        principals: PrincipalRepo,
        expected_type: TokenType = TokenType.access,
    ) -> Principal:
        claims = self.decode(token, expected_type=expected_type)

        # Every validation re-reads the principal so revocation is immediate.
        record = await principals.get(claims.role, claims.subject)
        if record is None:
            raise AuthenticationError(
                AuthFailure.principal_not_found,
                "Principal not found",
                subject=str(claims.subject),
                role=claims.role.value,
            )
        if not markers_match(record.session_marker, claims.session_marker):
            raise AuthenticationError(
                AuthFailure.session_invalidated,
                "Session invalidated",
                subject=str(claims.subject),
                role=claims.role.value,
            )

        return Principal(
            id=record.id,
            role=claims.role,
            name=record.name,
            email=record.email,
            session_marker=claims.session_marker,
        )

    async def validate_optional(
        self,
        token: str | None,
        *,
        principals: PrincipalRepo,
    ) -> Principal | None:
        if not token:
            return None
        try:
            return await self.validate(token, principals=principals)
        except AuthenticationError:
            return None


# --- Module Notes -----------------------------------------------------------
# A token is revoked the moment its `sid` stops matching the stored marker;
# there is no token blacklist.
