"""
Random token generators. Pure functions with no side effects.

All generators use the ``secrets`` module.
"""

from __future__ import annotations

import secrets


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure URL-safe random token.

    Args:
        length: Number of random bytes before base64 encoding (default 32).
            The resulting string will be longer than *length* characters.

    Returns:
        URL-safe base64-encoded token string.
    """
    return secrets.token_urlsafe(length)


def generate_token_id() -> str:
    """Generate a short unique id for the ``jti`` claim."""
    return secrets.token_hex(8)
