"""
Document-store backend for users (pymongo async).

Uniqueness of email and username is enforced by unique indexes created in
ensure_indexes(); create() classifies DuplicateKeyError by the violated key.
Every mutation is a single update_one so concurrent writers never observe a
half-applied change.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError, PyMongoError

from errors import DuplicateEmail, DuplicateUsername, StoreUnavailable
from schemas.models.user import UserDraft, UserProfile, UserRecord
from shared.logging import get_logger
from shared.validators import normalize_email

log = get_logger(__name__)

_VERIFICATION_FIELDS = {"verification_token_hash": "", "verification_token_expires_at": ""}
_RESET_FIELDS = {"reset_token_hash": "", "reset_token_expires_at": ""}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _object_id(user_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(user_id)
    except (InvalidId, TypeError):
        return None


def _conflicting_field(error: DuplicateKeyError) -> str:
    """Name the unique field a DuplicateKeyError violated: ``username`` or ``email``."""
    details = error.details or {}
    fields = set(details.get("keyPattern") or {}) | set(details.get("keyValue") or {})
    if fields:
        return "username" if "username" in fields else "email"
    # Some servers report the violated index only in the message
    message = details.get("errmsg") or str(error)
    return "username" if "index: username_" in message else "email"


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except PyMongoError as e:
        log.error(
            "user_store_error",
            operation=operation,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise StoreUnavailable("User store is unavailable.") from e


class MongoUserRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def _find_one(self, query: dict, operation: str) -> Optional[UserRecord]:
        with _store_errors(operation):
            doc = await self._col.find_one(query)
        return UserRecord.from_document(doc)

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        return await self._find_one({"email": normalize_email(email)}, "find_by_email")

    async def find_by_username(self, username: str) -> Optional[UserRecord]:
        return await self._find_one({"username": username.strip()}, "find_by_username")

    async def find_by_email_or_username(self, identifier: str) -> Optional[UserRecord]:
        query = {
            "$or": [
                {"email": normalize_email(identifier)},
                {"username": identifier.strip()},
            ]
        }
        return await self._find_one(query, "find_by_email_or_username")

    async def create(self, draft: UserDraft) -> str:
        now = _now()
        record = UserRecord.model_validate(
            {
                **draft.model_dump(),
                "email": normalize_email(draft.email),
                "created_at": now,
                "updated_at": now,
            }
        )
        try:
            result = await self._col.insert_one(record.to_document())
        except DuplicateKeyError as e:
            field = _conflicting_field(e)
            log.warning("user_create_conflict", field=field)
            if field == "username":
                raise DuplicateUsername(
                    "Username is already taken.", field="username"
                ) from e
            raise DuplicateEmail("Email is already registered.", field="email") from e
        except PyMongoError as e:
            log.error("user_store_error", operation="create", error=str(e))
            raise StoreUnavailable("User store is unavailable.") from e
        return str(result.inserted_id)

    async def find_by_id(self, user_id: str) -> Optional[UserProfile]:
        oid = _object_id(user_id)
        if oid is None:
            return None
        record = await self._find_one({"_id": oid}, "find_by_id")
        return record.to_profile() if record else None

    async def find_by_verification_token(self, token_hash: str) -> Optional[UserRecord]:
        return await self._find_one(
            {"verification_token_hash": token_hash}, "find_by_verification_token"
        )

    async def _update(
        self,
        user_id: str,
        update: dict,
        operation: str,
        extra_filter: Optional[dict] = None,
    ) -> int:
        oid = _object_id(user_id)
        if oid is None:
            return 0
        query = {"_id": oid, **(extra_filter or {})}
        with _store_errors(operation):
            result = await self._col.update_one(query, update)
        return result.matched_count

    async def mark_verified(self, user_id: str) -> None:
        await self._update(
            user_id,
            {
                "$set": {"is_verified": True, "updated_at": _now()},
                "$unset": _VERIFICATION_FIELDS,
            },
            "mark_verified",
        )

    async def store_verification_token(
        self, user_id: str, token_hash: str, expires_at: datetime
    ) -> None:
        await self._update(
            user_id,
            {
                "$set": {
                    "verification_token_hash": token_hash,
                    "verification_token_expires_at": expires_at,
                    "updated_at": _now(),
                }
            },
            "store_verification_token",
        )

    async def store_reset_token(
        self, user_id: str, token_hash: str, expires_at: datetime
    ) -> None:
        await self._update(
            user_id,
            {
                "$set": {
                    "reset_token_hash": token_hash,
                    "reset_token_expires_at": expires_at,
                    "updated_at": _now(),
                }
            },
            "store_reset_token",
        )

    async def find_by_reset_token(self, token_hash: str) -> Optional[UserRecord]:
        return await self._find_one(
            {"reset_token_hash": token_hash, "reset_token_expires_at": {"$gt": _now()}},
            "find_by_reset_token",
        )

    async def update_password_clear_reset(
        self, user_id: str, new_hash: str, token_hash: str
    ) -> bool:
        now = _now()
        matched = await self._update(
            user_id,
            {
                "$set": {"password_hash": new_hash, "updated_at": now},
                "$unset": _RESET_FIELDS,
            },
            "update_password_clear_reset",
            extra_filter={
                "reset_token_hash": token_hash,
                "reset_token_expires_at": {"$gt": now},
            },
        )
        return matched == 1

    async def record_login(self, user_id: str) -> None:
        now = _now()
        await self._update(
            user_id,
            {"$set": {"last_login_at": now, "failed_login_attempts": 0, "updated_at": now}},
            "record_login",
        )

    async def record_failed_login(self, user_id: str) -> None:
        await self._update(
            user_id,
            {"$inc": {"failed_login_attempts": 1}, "$set": {"updated_at": _now()}},
            "record_failed_login",
        )

    async def ensure_indexes(self) -> None:
        with _store_errors("ensure_indexes"):
            await self._col.create_index([("email", ASCENDING)], unique=True)
            # Username is optional; only string values take part in uniqueness
            await self._col.create_index(
                [("username", ASCENDING)],
                unique=True,
                partialFilterExpression={"username": {"$type": "string"}},
            )
            await self._col.create_index(
                [("verification_token_hash", ASCENDING)], sparse=True
            )
            await self._col.create_index([("reset_token_hash", ASCENDING)], sparse=True)

    async def ping(self) -> bool:
        try:
            await self._col.database.command("ping")
            return True
        except PyMongoError as e:
            log.warning("user_store_ping_failed", error=str(e))
            return False
