"""
restogate.auth.validation

Identifier hygiene shared by every entry point that accepts an email.
"""

from __future__ import annotations

import re

from restogate.errors import ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_EMAIL_LENGTH = 254


def normalize_email(email: str) -> str:
    cleaned = email.strip().lower()
    if not cleaned or len(cleaned) > MAX_EMAIL_LENGTH or not EMAIL_RE.match(cleaned):
        raise ValidationError("Invalid email format")
    return cleaned
