"""
User record models.

Maps to the `users` collection (or the in-memory table).

- UserDraft   — what signup hands to the store
- UserRecord  — the full stored row, including the password hash and token digests
- UserProfile — the outward projection; never carries the hash or token fields

Token fields hold SHA-256 digests (shared.crypto.hash_token), not the tokens.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.base import RecordModel


class UserStatus(str, Enum):
    ACTIVE = "active"
    LOCKED = "locked"
    SUSPENDED = "suspended"


class UserDraft(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    email: str
    username: Optional[str] = None
    password_hash: str
    access_level: int = Field(default=1, ge=1)
    verification_token_hash: Optional[str] = None
    verification_token_expires_at: Optional[datetime] = None


class UserRecord(RecordModel):
    """Document model for the `users` collection."""

    email: str
    username: Optional[str] = None
    name: str = ""
    password_hash: str
    access_level: int = Field(default=1, ge=1)
    is_verified: bool = False
    verification_token_hash: Optional[str] = None
    verification_token_expires_at: Optional[datetime] = None
    reset_token_hash: Optional[str] = None
    reset_token_expires_at: Optional[datetime] = None
    failed_login_attempts: int = Field(default=0, ge=0)
    status: UserStatus = UserStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def to_profile(self) -> "UserProfile":
        return UserProfile.model_validate(
            self.model_dump(include=set(UserProfile.model_fields))
        )


class UserProfile(BaseModel):
    """Sanitized user shape: safe to return to callers and log."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    username: Optional[str] = None
    name: str = ""
    access_level: int = 1
    is_verified: bool = False
    status: UserStatus = UserStatus.ACTIVE
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
