"""Confirmation token generation."""

from __future__ import annotations

import re
import secrets
import string

TOKEN_LENGTH = 25
TOKEN_ALPHABET = string.ascii_letters + string.digits
TOKEN_REGEX = re.compile(rf"[A-Za-z0-9]{{{TOKEN_LENGTH}}}")


def generate_subscription_token() -> str:
    """Return a URL-safe alphanumeric token drawn from the OS CSPRNG."""

    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))


def is_well_formed_token(raw: str | None) -> bool:
    """Return True when ``raw`` has the shape of an issued token."""

    return bool(raw) and TOKEN_REGEX.fullmatch(raw) is not None
