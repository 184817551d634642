"""
Access-level authorization gate.

authorize(required_level) builds a guard; the guard decodes a session token
and grants iff the token's ``access_level`` claim is an integer at or above
the required level. Every denial carries a DenyReason so callers can map it to
401 (token problems) or 403 (level problems) without re-inspecting the token.

This module is the only place access is decided. The FastAPI wrapper in
dependencies.require_access_level is a thin adapter over it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from errors import TokenExpired, TokenInvalid
from schemas.models.token import TokenAudience
from services.token_service import TokenService

BEARER_PREFIX = "bearer "


class DenyReason(str, Enum):
    MISSING_TOKEN = "missing_token"
    TOKEN_EXPIRED = "token_expired"
    TOKEN_INVALID = "token_invalid"
    MISSING_ACCESS_LEVEL = "missing_access_level"
    INVALID_ACCESS_LEVEL = "invalid_access_level"
    INSUFFICIENT_ACCESS_LEVEL = "insufficient_access_level"


# Reasons that mean "who are you?" rather than "you may not"
AUTHENTICATION_REASONS = frozenset(
    {DenyReason.MISSING_TOKEN, DenyReason.TOKEN_EXPIRED, DenyReason.TOKEN_INVALID}
)


@dataclass(frozen=True)
class AccessDecision:
    granted: bool
    reason: Optional[DenyReason] = None
    claims: Optional[dict[str, Any]] = None


Guard = Callable[[TokenService, Optional[str]], AccessDecision]


def extract_session_token(
    authorization_header: Optional[str], cookie_value: Optional[str]
) -> Optional[str]:
    """Pick the session token for a request. A Bearer header wins over the cookie."""
    if authorization_header and authorization_header.lower().startswith(BEARER_PREFIX):
        token = authorization_header[len(BEARER_PREFIX):].strip()
        if token:
            return token
    if cookie_value:
        return cookie_value.strip() or None
    return None


def _coerce_level(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            return None
    return None


def authorize(required_level: int) -> Guard:
    """Build a guard requiring ``access_level >= required_level``.

    Raises:
        ValueError: *required_level* is not an integer >= 1.
    """
    if isinstance(required_level, bool) or not isinstance(required_level, int):
        raise ValueError("required_level must be an integer")
    if required_level < 1:
        raise ValueError("required_level must be >= 1")

    def guard(tokens: TokenService, token: Optional[str]) -> AccessDecision:
        if not token:
            return AccessDecision(False, DenyReason.MISSING_TOKEN)
        try:
            claims = tokens.verify(token, TokenAudience.SESSION)
        except TokenExpired:
            return AccessDecision(False, DenyReason.TOKEN_EXPIRED)
        except TokenInvalid:
            return AccessDecision(False, DenyReason.TOKEN_INVALID)

        if "access_level" not in claims or claims["access_level"] is None:
            return AccessDecision(False, DenyReason.MISSING_ACCESS_LEVEL, claims)
        level = _coerce_level(claims["access_level"])
        if level is None:
            return AccessDecision(False, DenyReason.INVALID_ACCESS_LEVEL, claims)
        if level < required_level:
            return AccessDecision(False, DenyReason.INSUFFICIENT_ACCESS_LEVEL, claims)
        return AccessDecision(True, None, claims)

    guard.required_level = required_level  # type: ignore[attr-defined]
    return guard
