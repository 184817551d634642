"""Argon2id implementation of PasswordHasher (via argon2-cffi).

Hashing is CPU-bound and synchronous; the auth service runs these calls in a
worker thread.
"""

from __future__ import annotations

from typing import Optional

from argon2 import PasswordHasher as _Argon2
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from config import HashingSettings


class Argon2PasswordHasher:
    def __init__(self, settings: Optional[HashingSettings] = None) -> None:
        settings = settings or HashingSettings()
        self._hasher = _Argon2(
            time_cost=settings.argon2_time_cost,
            memory_cost=settings.argon2_memory_cost,
            parallelism=settings.argon2_parallelism,
        )

    def hash(self, password: str) -> str:
        """Hash *password* with argon2id.

        Returns:
            Argon2 hash string (includes algorithm parameters and salt).
        """
        return self._hasher.hash(password)

    def verify(self, password_hash: str, password: str) -> bool:
        """Verify *password* against an argon2 *password_hash*.

        Returns:
            ``True`` if the password matches, ``False`` on mismatch or when
            the stored hash is not a valid argon2 hash.
        """
        try:
            return self._hasher.verify(password_hash, password)
        except (VerifyMismatchError, VerificationError, InvalidHashError):
            return False
