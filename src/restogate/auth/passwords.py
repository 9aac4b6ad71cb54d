"""
restogate.auth.passwords

Credential verification and the password policy.

Responsibilities:
- Hash secrets with bcrypt (salted, iterated, configurable work factor).
- Verify a submitted secret against a stored hash without revealing whether the
  principal exists.
- Enforce one password policy everywhere a password is set.
"""

from __future__ import annotations

import re

import bcrypt

from restogate.errors import ValidationError
from restogate.observability.logging import get_logger

log = get_logger(__name__)

# bcrypt only consumes the first 72 bytes of its input.
MAX_SECRET_BYTES = 72
MIN_SECRET_LENGTH = 8
SPECIAL_CHARACTERS = '!@#$%^&*(),.?":{}|<>'

_POLICY: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"\d"), "Password must contain at least one number"),
    (
        re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]"),
        f"Password must contain at least one special character ({SPECIAL_CHARACTERS})",
    ),
]


class PasswordHasher:
    def __init__(self, *, rounds: int = 12) -> None:
        self._rounds = rounds
        # Verified against when the identifier is unknown so both paths cost the same.
        self._dummy_hash = self.hash("restogate-timing-equalizer")

    def hash(self, secret: str) -> str:
        return bcrypt.hashpw(secret.encode("utf-8"), bcrypt.gensalt(rounds=self._rounds)).decode(
            "utf-8"
        )

    def verify(self, secret: str, stored_hash: str | None) -> bool:
        """
        True only when `stored_hash` exists and matches `secret`.

        bcrypt.checkpw compares in constant time.
        """

        candidate = stored_hash if stored_hash is not None else self._dummy_hash
        try:
            matched = bcrypt.checkpw(secret.encode("utf-8"), candidate.encode("utf-8"))
        except ValueError:
            # Malformed stored hash or over-long secret.
            log.warning("password_verify_rejected_input")
            return False
        return matched and stored_hash is not None


def check_password_policy(secret: str) -> None:
    if len(secret) < MIN_SECRET_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_SECRET_LENGTH} characters")
    if len(secret.encode("utf-8")) > MAX_SECRET_BYTES:
        raise ValidationError(f"Password must be at most {MAX_SECRET_BYTES} bytes")
    for pattern, message in _POLICY:
        if not pattern.search(secret):
            raise ValidationError(message)


# --- Module Notes -----------------------------------------------------------
# Hashing is CPU bound; services call `verify`/`hash` through `asyncio.to_thread`.
