"""
Shared test configuration and fakes.

- dotenv loading is disabled so tests control config through monkeypatch.setenv()
  or explicit settings objects only
- FakeHasher keeps tests fast (argon2 is exercised in unit/test_infrastructure.py)
- RecordingDispatcher captures outbound messages instead of sending them
- MutableClock lets tests move time forward deterministically
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from config import AuthSettings, JWTSettings
from repositories.memory_user_repository import InMemoryUserRepository
from services.auth_service import AuthService
from services.token_service import TokenService

TEST_SECRET = "test-secret-that-is-long-enough-for-hs256"


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


class MutableClock:
    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeHasher:
    def hash(self, password: str) -> str:
        return "fake$" + password[::-1]

    def verify(self, password_hash: str, password: str) -> bool:
        return password_hash == self.hash(password)


@dataclass
class SentMessage:
    kind: str
    to: str
    name: Optional[str]
    token: str


class RecordingDispatcher:
    def __init__(self) -> None:
        self.sent: list[SentMessage] = []
        self.fail = False
        self.initialized = False
        self.closed = False

    async def initialize(self) -> None:
        self.initialized = True

    async def aclose(self) -> None:
        self.closed = True

    async def _record(self, kind: str, to: str, name: Optional[str], token: str) -> bool:
        if self.fail:
            return False
        self.sent.append(SentMessage(kind, to, name, token))
        return True

    async def send_confirmation(self, to: str, name: Optional[str], token: str) -> bool:
        return await self._record("confirmation", to, name, token)

    async def send_password_reset(self, to: str, name: Optional[str], token: str) -> bool:
        return await self._record("password_reset", to, name, token)

    def last(self, kind: str) -> SentMessage:
        return [m for m in self.sent if m.kind == kind][-1]


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def jwt_settings() -> JWTSettings:
    return JWTSettings(jwt_secret=TEST_SECRET, jwt_private_key="", jwt_public_key="")


@pytest.fixture
def token_service(jwt_settings, clock) -> TokenService:
    return TokenService(jwt_settings, clock=clock)


@pytest.fixture
def users(clock) -> InMemoryUserRepository:
    return InMemoryUserRepository(clock=clock)


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def auth_settings() -> AuthSettings:
    return AuthSettings(
        usernames_enabled=True,
        access_level_hint_enabled=False,
        store_timeout_seconds=1.0,
        notification_timeout_seconds=1.0,
    )


@pytest.fixture
def auth_service(users, token_service, dispatcher, auth_settings) -> AuthService:
    return AuthService(
        users=users,
        tokens=token_service,
        hasher=FakeHasher(),
        dispatcher=dispatcher,
        settings=auth_settings,
    )


@pytest.fixture
def make_auth_service(users, token_service, dispatcher, auth_settings):
    """Build an AuthService with AuthSettings overrides (and optionally a store)."""

    def _make(store=None, **overrides) -> AuthService:
        return AuthService(
            users=store or users,
            tokens=token_service,
            hasher=FakeHasher(),
            dispatcher=dispatcher,
            settings=auth_settings.model_copy(update=overrides),
        )

    return _make
