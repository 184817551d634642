"""UserRepository protocol: the auth service depends on this, not on a backend.

Implementations:
    - repositories.mongo_user_repository.MongoUserRepository (document store)
    - repositories.memory_user_repository.InMemoryUserRepository (dev/tests)

Contract shared by every backend:
    - emails are normalized (stripped, lower-cased) before storage and lookup
    - create() enforces uniqueness of email and username atomically and raises
      DuplicateEmail / DuplicateUsername on conflict
    - token fields hold digests; callers pass shared.crypto.hash_token(token)
    - I/O failures surface as errors.StoreUnavailable
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from schemas.models.user import UserDraft, UserProfile, UserRecord


class UserRepository(Protocol):
    async def find_by_email(self, email: str) -> Optional[UserRecord]: ...

    async def find_by_username(self, username: str) -> Optional[UserRecord]: ...

    async def find_by_email_or_username(
        self, identifier: str
    ) -> Optional[UserRecord]: ...

    async def create(self, draft: UserDraft) -> str: ...

    async def find_by_id(self, user_id: str) -> Optional[UserProfile]: ...

    async def find_by_verification_token(
        self, token_hash: str
    ) -> Optional[UserRecord]: ...

    async def mark_verified(self, user_id: str) -> None: ...

    async def store_verification_token(
        self, user_id: str, token_hash: str, expires_at: datetime
    ) -> None: ...

    async def store_reset_token(
        self, user_id: str, token_hash: str, expires_at: datetime
    ) -> None: ...

    async def find_by_reset_token(self, token_hash: str) -> Optional[UserRecord]:
        """Return the user holding *token_hash* only while it is unexpired."""
        ...

    async def update_password_clear_reset(
        self, user_id: str, new_hash: str, token_hash: str
    ) -> bool:
        """Set the password and clear the reset token in one atomic write.

        Returns ``False`` when the token is no longer on record (consumed by a
        concurrent reset or expired), in which case nothing is changed.
        """
        ...

    async def record_login(self, user_id: str) -> None: ...

    async def record_failed_login(self, user_id: str) -> None: ...

    async def ensure_indexes(self) -> None: ...

    async def ping(self) -> bool: ...
