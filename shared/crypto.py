"""
Cryptographic helpers for single-use tokens.

Verification and reset tokens are persisted as SHA-256 digests so a leaked
users table does not hand out live tokens. Lookups hash the presented token
and compare by equality.
"""

from __future__ import annotations

import hashlib
import hmac


def hash_token(token: str) -> str:
    """Return the hex-encoded SHA-256 digest of *token*.

    Args:
        token: The plaintext token string to hash.

    Returns:
        64-character lowercase hex string.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def constant_time_equals(a: str, b: str) -> bool:
    """Compare two strings without leaking the position of the first mismatch."""
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
