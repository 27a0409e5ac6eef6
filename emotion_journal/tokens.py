"""
Signed token issuing.

Tokens carry the caller's email and expire after the configured lifetime.
No route in the service verifies them; ``decode_token`` exists for clients
and tooling that want to inspect one.
"""

from datetime import timedelta
from typing import Any

from jose import jwt

from .config import Settings
from .models import utcnow


def _secret(settings: Settings) -> str:
    if settings.jwt_secret is None:
        raise ValueError("JWT_SECRET is not configured")
    return settings.jwt_secret.get_secret_value()


def issue_token(email: str, settings: Settings) -> str:
    """
    Sign a token for ``email``.

    Args:
        email: Email to embed; it is not checked against any user store
        settings: Source of the secret, algorithm and lifetime

    Returns:
        The encoded token
    """
    now = utcnow()
    claims = {
        "email": email,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expires_minutes),
    }
    return jwt.encode(claims, _secret(settings), algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict[str, Any]:
    """Verify signature and expiry, returning the claims. Raises jose.JWTError."""
    return jwt.decode(token, _secret(settings), algorithms=[settings.jwt_algorithm])
