"""
In-process user store for development and tests.

Each method runs to completion without awaiting, so on a single event loop
every check-and-write below is atomic with respect to other coroutines.
Returned records are copies; mutating them never changes stored state.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from errors import DuplicateEmail, DuplicateUsername
from schemas.models.user import UserDraft, UserProfile, UserRecord
from shared.validators import normalize_email


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryUserRepository:
    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock
        self._users: dict[str, UserRecord] = {}

    def _first(self, predicate: Callable[[UserRecord], bool]) -> Optional[UserRecord]:
        for user in self._users.values():
            if predicate(user):
                return user.model_copy(deep=True)
        return None

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        email = normalize_email(email)
        return self._first(lambda u: u.email == email)

    async def find_by_username(self, username: str) -> Optional[UserRecord]:
        username = username.strip()
        return self._first(lambda u: u.username is not None and u.username == username)

    async def find_by_email_or_username(self, identifier: str) -> Optional[UserRecord]:
        email = normalize_email(identifier)
        username = identifier.strip()
        return self._first(lambda u: u.email == email or u.username == username)

    async def create(self, draft: UserDraft) -> str:
        email = normalize_email(draft.email)
        if any(u.email == email for u in self._users.values()):
            raise DuplicateEmail("Email is already registered.", field="email")
        if draft.username is not None and any(
            u.username == draft.username for u in self._users.values()
        ):
            raise DuplicateUsername("Username is already taken.", field="username")

        now = self._clock()
        user_id = uuid.uuid4().hex
        self._users[user_id] = UserRecord(
            id=user_id,
            **draft.model_dump(exclude={"email"}),
            email=email,
            created_at=now,
            updated_at=now,
        )
        return user_id

    async def find_by_id(self, user_id: str) -> Optional[UserProfile]:
        user = self._users.get(user_id)
        return user.to_profile() if user else None

    async def find_by_verification_token(self, token_hash: str) -> Optional[UserRecord]:
        return self._first(lambda u: u.verification_token_hash == token_hash)

    def _patch(self, user_id: str, **fields) -> bool:
        user = self._users.get(user_id)
        if user is None:
            return False
        fields["updated_at"] = self._clock()
        self._users[user_id] = user.model_copy(update=fields)
        return True

    async def mark_verified(self, user_id: str) -> None:
        self._patch(
            user_id,
            is_verified=True,
            verification_token_hash=None,
            verification_token_expires_at=None,
        )

    async def store_verification_token(
        self, user_id: str, token_hash: str, expires_at: datetime
    ) -> None:
        self._patch(
            user_id,
            verification_token_hash=token_hash,
            verification_token_expires_at=expires_at,
        )

    async def store_reset_token(
        self, user_id: str, token_hash: str, expires_at: datetime
    ) -> None:
        self._patch(user_id, reset_token_hash=token_hash, reset_token_expires_at=expires_at)

    def _holds_live_reset_token(self, user: UserRecord, token_hash: str) -> bool:
        return (
            user.reset_token_hash == token_hash
            and user.reset_token_expires_at is not None
            and user.reset_token_expires_at > self._clock()
        )

    async def find_by_reset_token(self, token_hash: str) -> Optional[UserRecord]:
        return self._first(lambda u: self._holds_live_reset_token(u, token_hash))

    async def update_password_clear_reset(
        self, user_id: str, new_hash: str, token_hash: str
    ) -> bool:
        user = self._users.get(user_id)
        if user is None or not self._holds_live_reset_token(user, token_hash):
            return False
        return self._patch(
            user_id,
            password_hash=new_hash,
            reset_token_hash=None,
            reset_token_expires_at=None,
        )

    async def record_login(self, user_id: str) -> None:
        self._patch(user_id, last_login_at=self._clock(), failed_login_attempts=0)

    async def record_failed_login(self, user_id: str) -> None:
        user = self._users.get(user_id)
        if user is not None:
            self._patch(user_id, failed_login_attempts=user.failed_login_attempts + 1)

    async def ensure_indexes(self) -> None:
        return None

    async def ping(self) -> bool:
        return True
