"""
Input validators and normalizers. Framework-agnostic pure functions.

The service layer calls these before touching the store; they never raise,
callers decide which error to surface.
"""

from __future__ import annotations

import re
from typing import Any, List, Optional, Tuple

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")
USERNAME_MIN_LENGTH = 3

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
_PASSWORD_SPECIALS = r'[!@#$%^&*()_+\-=\[\]{};\':"\\|,.<>\/?~`]'
_PASSWORD_ALLOWED = r'^[a-zA-Z0-9!@#$%^&*()_+\-=\[\]{};\':"\\|,.<>\/?~`\s]+$'


def normalize_email(email: Optional[str]) -> str:
    """Strip surrounding whitespace and lower-case an email address."""
    return (email or "").strip().lower()


def validate_email(email: str) -> bool:
    """Return True if *email* looks like ``local@domain.tld``."""
    return bool(EMAIL_RE.match(email))


def validate_username(username: str) -> bool:
    """Return True if *username* has at least 3 characters, all ``[A-Za-z0-9_]``."""
    return len(username) >= USERNAME_MIN_LENGTH and bool(USERNAME_RE.match(username))


def validate_password(password: str) -> Tuple[bool, List[str]]:
    """
    Validate a password against the account password policy.

    Returns:
        (is_valid, missing_requirements)
    """
    if not password:
        return False, ["Password is required"]

    missing = []

    if len(password) < PASSWORD_MIN_LENGTH:
        missing.append(f"At least {PASSWORD_MIN_LENGTH} characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        missing.append(f"Maximum {PASSWORD_MAX_LENGTH} characters")
    if not re.search(r"[A-Z]", password):
        missing.append("At least one uppercase letter")
    if not re.search(r"[a-z]", password):
        missing.append("At least one lowercase letter")
    if not re.search(r"[0-9]", password):
        missing.append("At least one number")
    if not re.search(_PASSWORD_SPECIALS, password):
        missing.append("At least one special character")
    if not re.match(_PASSWORD_ALLOWED, password):
        missing.append("Contains invalid characters")

    return len(missing) == 0, missing


def parse_access_level(value: Any, default: int = 1) -> int:
    """Coerce an access-level hint to an int >= 1, falling back to *default*.

    Accepts ints and decimal strings; booleans, floats, garbage and values
    below 1 all yield *default*.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = int(value.strip(), 10)
        except ValueError:
            return default
    else:
        return default
    return parsed if parsed >= 1 else default
