"""
AuthService: the single orchestrator for account lifecycle flows.

signup → confirm_email → login, plus resend_verification, forgot_password,
reset_password and get_profile.

Collaborators are injected: the user store, the token engine, a password
hasher and a notification dispatcher. Every store call and every dispatch is
bounded by a timeout from AuthSettings; timeouts and unexpected store errors
are re-classified as StoreUnavailable so nothing driver-specific reaches the
HTTP layer.

Enumeration safety:
    forgot_password and resend_verification return the same message whether
    or not the account exists. login returns InvalidCredentials for both an
    unknown identifier and a wrong password, and spends a hash verification
    in both cases.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Optional, TypeVar

from config import AuthSettings
from errors import (
    AccountInactive,
    AppError,
    DuplicateEmail,
    DuplicateUsername,
    EmailNotVerified,
    InvalidCredentials,
    InvalidOrExpiredToken,
    NotFoundError,
    NotificationFailed,
    StoreUnavailable,
    TokenInvalid,
    ValidationError,
)
from infrastructure.email.protocol import NotificationDispatcher
from infrastructure.hashing.protocol import PasswordHasher
from repositories.protocol import UserRepository
from schemas.models.token import TokenAudience
from schemas.models.user import UserDraft, UserProfile, UserRecord
from services.token_service import TokenService
from shared.crypto import constant_time_equals, hash_token
from shared.generators import generate_secure_token
from shared.logging import get_logger
from shared.validators import (
    normalize_email,
    parse_access_level,
    validate_email,
    validate_password,
    validate_username,
)

log = get_logger(__name__)

T = TypeVar("T")

FORGOT_PASSWORD_MESSAGE = (
    "If an account exists for that email, a password reset link has been sent."
)
RESEND_VERIFICATION_MESSAGE = (
    "If an unverified account exists for that email, a new confirmation link "
    "has been sent."
)


@dataclass(frozen=True)
class SignupResult:
    user_id: str
    email: str
    name: str
    access_level: int
    verification_token: str


@dataclass(frozen=True)
class ConfirmationResult:
    already_verified: bool


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: UserProfile


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        tokens: TokenService,
        hasher: PasswordHasher,
        dispatcher: NotificationDispatcher,
        settings: Optional[AuthSettings] = None,
    ) -> None:
        self._users = users
        self._tokens = tokens
        self._hasher = hasher
        self._dispatcher = dispatcher
        self._settings = settings or AuthSettings()
        self._dummy_hash: Optional[str] = None

    # ── Collaborator plumbing ────────────────────────────────────────────────

    async def _store(self, operation: str, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, self._settings.store_timeout_seconds)
        except AppError:
            raise
        except asyncio.TimeoutError as e:
            log.error("user_store_timeout", operation=operation)
            raise StoreUnavailable("User store timed out.") from e
        except Exception as e:
            log.error(
                "user_store_error",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StoreUnavailable("User store is unavailable.") from e

    async def _dispatch(self, kind: str, call: Awaitable[bool], user_id: str) -> bool:
        """Run one send; any failure mode (False, exception, timeout) returns False."""
        try:
            sent = await asyncio.wait_for(
                call, self._settings.notification_timeout_seconds
            )
        except asyncio.TimeoutError:
            log.error("notification_timeout", kind=kind, user_id=user_id)
            return False
        except Exception as e:
            log.error(
                "notification_error",
                kind=kind,
                user_id=user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        if not sent:
            log.error("notification_rejected", kind=kind, user_id=user_id)
        return bool(sent)

    async def _hash(self, password: str) -> str:
        return await asyncio.to_thread(self._hasher.hash, password)

    async def _verify_password(self, password_hash: str, password: str) -> bool:
        return await asyncio.to_thread(self._hasher.verify, password_hash, password)

    async def _burn_password_check(self, password: str) -> None:
        # Same work as a real comparison so an unknown identifier costs the same
        if self._dummy_hash is None:
            self._dummy_hash = await self._hash(generate_secure_token())
        await self._verify_password(self._dummy_hash, password)

    # ── Signup ───────────────────────────────────────────────────────────────

    def _validate_signup(
        self, email: str, password: str, username: Optional[str]
    ) -> None:
        if not email:
            raise ValidationError("Email is required.", field="email")
        if not password:
            raise ValidationError("Password is required.", field="password")
        if not validate_email(email):
            raise ValidationError("Invalid email address.", field="email")

        ok, missing = validate_password(password)
        if not ok:
            raise ValidationError(
                "Password does not meet requirements.",
                field="password",
                details={"missing": missing},
            )

        if username is not None:
            if not self._settings.usernames_enabled:
                raise ValidationError("Usernames are not supported.", field="username")
            if not validate_username(username):
                raise ValidationError(
                    "Username must be at least 3 characters of letters, digits "
                    "or underscores.",
                    field="username",
                )

    async def signup(
        self,
        name: Optional[str],
        email: str,
        password: str,
        username: Optional[str] = None,
        access_level_hint: Any = None,
    ) -> SignupResult:
        email = normalize_email(email)
        name = (name or "").strip()
        if username is not None:
            username = username.strip() or None
        self._validate_signup(email, password or "", username)

        if await self._store("find_by_email", self._users.find_by_email(email)):
            raise DuplicateEmail("Email is already registered.", field="email")
        if username is not None and await self._store(
            "find_by_username", self._users.find_by_username(username)
        ):
            raise DuplicateUsername("Username is already taken.", field="username")

        access_level = 1
        if self._settings.access_level_hint_enabled:
            access_level = parse_access_level(access_level_hint)

        password_hash = await self._hash(password)
        token, expires_at = self._tokens.mint_verification(email)

        # The unique index (or the in-memory check) is authoritative under races
        user_id = await self._store(
            "create",
            self._users.create(
                UserDraft(
                    name=name,
                    email=email,
                    username=username,
                    password_hash=password_hash,
                    access_level=access_level,
                    verification_token_hash=hash_token(token),
                    verification_token_expires_at=expires_at,
                )
            ),
        )

        sent = await self._dispatch(
            "confirmation",
            self._dispatcher.send_confirmation(email, name or None, token),
            user_id,
        )
        if not sent:
            # Row stays unverified; resend_verification re-issues the token
            log.warning("signup_confirmation_undelivered", user_id=user_id)
            raise NotificationFailed(
                "Account created but the confirmation email could not be sent. "
                "Request a new confirmation email to finish signing up."
            )

        log.info(
            "signup_succeeded",
            user_id=user_id,
            access_level=access_level,
            has_username=username is not None,
        )
        return SignupResult(
            user_id=user_id,
            email=email,
            name=name,
            access_level=access_level,
            verification_token=token,
        )

    # ── Email confirmation ───────────────────────────────────────────────────

    async def confirm_email(self, token: str) -> ConfirmationResult:
        claims = self._tokens.verify(token, TokenAudience.EMAIL_VERIFICATION)

        user = await self._store(
            "find_by_verification_token",
            self._users.find_by_verification_token(hash_token(token)),
        )
        if user is None:
            # Token no longer on record: either superseded, or already consumed
            owner = await self._store(
                "find_by_email", self._users.find_by_email(claims.get("email", ""))
            )
            if owner is not None and owner.is_verified:
                log.info("email_confirmation_repeated", user_id=owner.id)
                return ConfirmationResult(already_verified=True)
            log.warning("email_confirmation_failed", reason="token_not_on_record")
            raise TokenInvalid("Verification token is no longer valid.")

        if user.is_verified:
            return ConfirmationResult(already_verified=True)

        await self._store("mark_verified", self._users.mark_verified(user.id))
        log.info("email_confirmed", user_id=user.id)
        return ConfirmationResult(already_verified=False)

    async def resend_verification(self, email: str) -> str:
        email = normalize_email(email)
        user = await self._store("find_by_email", self._users.find_by_email(email))
        if user is None or user.is_verified:
            log.info("verification_resend_skipped")
            return RESEND_VERIFICATION_MESSAGE

        token, expires_at = self._tokens.mint_verification(user.email)
        await self._store(
            "store_verification_token",
            self._users.store_verification_token(user.id, hash_token(token), expires_at),
        )
        await self._dispatch(
            "confirmation",
            self._dispatcher.send_confirmation(user.email, user.name or None, token),
            user.id,
        )
        log.info("verification_resent", user_id=user.id)
        return RESEND_VERIFICATION_MESSAGE

    # ── Login ────────────────────────────────────────────────────────────────

    async def login(self, identifier: str, password: str) -> LoginResult:
        identifier = (identifier or "").strip()
        password = password or ""
        if not identifier or not password:
            raise ValidationError("Identifier and password are required.")

        user: Optional[UserRecord]
        if self._settings.usernames_enabled:
            user = await self._store(
                "find_by_email_or_username",
                self._users.find_by_email_or_username(identifier),
            )
        else:
            user = await self._store("find_by_email", self._users.find_by_email(identifier))

        if user is None:
            await self._burn_password_check(password)
            log.info("login_failed", reason="invalid_credentials")
            raise InvalidCredentials("Invalid email or password.")

        if not user.is_verified:
            log.info("login_failed", reason="email_not_verified", user_id=user.id)
            raise EmailNotVerified("Please verify your email before logging in.")

        if not await self._verify_password(user.password_hash, password):
            await self._store(
                "record_failed_login", self._users.record_failed_login(user.id)
            )
            log.info("login_failed", reason="invalid_credentials", user_id=user.id)
            raise InvalidCredentials("Invalid email or password.")

        if not user.is_active:
            log.warning("login_failed", reason="account_inactive", user_id=user.id)
            raise AccountInactive("This account is not active.")

        await self._store("record_login", self._users.record_login(user.id))
        session = self._tokens.mint_session(
            user.id, user.email, user.access_level, username=user.username
        )
        log.info("login_succeeded", user_id=user.id, access_level=user.access_level)
        return LoginResult(token=session, user=user.to_profile())

    # ── Password recovery ────────────────────────────────────────────────────

    async def forgot_password(self, email: str) -> str:
        email = normalize_email(email)
        user = await self._store("find_by_email", self._users.find_by_email(email))
        if user is None:
            log.info("password_reset_requested", account_found=False)
            return FORGOT_PASSWORD_MESSAGE

        token, expires_at = self._tokens.mint_password_reset(user.id)
        try:
            await self._store(
                "store_reset_token",
                self._users.store_reset_token(user.id, hash_token(token), expires_at),
            )
        except StoreUnavailable:
            # Answer as for an unknown email; a 503 here would reveal the account
            log.error("password_reset_not_issued", user_id=user.id)
            return FORGOT_PASSWORD_MESSAGE
        await self._dispatch(
            "password_reset",
            self._dispatcher.send_password_reset(user.email, user.name or None, token),
            user.id,
        )
        log.info("password_reset_requested", account_found=True, user_id=user.id)
        return FORGOT_PASSWORD_MESSAGE

    async def reset_password(self, token: str, new_password: str) -> None:
        if not token:
            raise InvalidOrExpiredToken("Invalid or expired password reset token.")
        ok, missing = validate_password(new_password or "")
        if not ok:
            raise ValidationError(
                "Password does not meet requirements.",
                field="new_password",
                details={"missing": missing},
            )

        try:
            claims = self._tokens.verify(token, TokenAudience.PASSWORD_RESET)
        except TokenInvalid as e:
            log.info("password_reset_failed", reason=e.error_code)
            raise InvalidOrExpiredToken(
                "Invalid or expired password reset token."
            ) from e

        token_hash = hash_token(token)
        user = await self._store(
            "find_by_reset_token", self._users.find_by_reset_token(token_hash)
        )
        if user is None or not constant_time_equals(
            str(claims.get("userId", "")), str(user.id)
        ):
            log.info("password_reset_failed", reason="token_not_on_record")
            raise InvalidOrExpiredToken("Invalid or expired password reset token.")

        new_hash = await self._hash(new_password)
        updated = await self._store(
            "update_password_clear_reset",
            self._users.update_password_clear_reset(user.id, new_hash, token_hash),
        )
        if not updated:
            log.info("password_reset_failed", reason="token_consumed", user_id=user.id)
            raise InvalidOrExpiredToken("Invalid or expired password reset token.")

        log.info("password_reset_completed", user_id=user.id)

    # ── Profile ──────────────────────────────────────────────────────────────

    async def get_profile(self, user_id: str) -> UserProfile:
        profile = await self._store("find_by_id", self._users.find_by_id(user_id))
        if profile is None:
            raise NotFoundError("User not found.")
        return profile
