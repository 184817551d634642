"""Unit tests for AppSettings and sub-configs."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from config import (
    DEV_JWT_SECRET,
    AppSettings,
    AuthSettings,
    DatabaseSettings,
    EmailSettings,
    JWTSettings,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def with_mongo(monkeypatch):
    """Set the required MONGODB_URI so AppSettings can be instantiated."""
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
    monkeypatch.delenv("STORE_BACKEND", raising=False)
    return monkeypatch


# ---------------------------------------------------------------------------
# DatabaseSettings
# ---------------------------------------------------------------------------


class TestDatabaseSettings:
    def test_loads_mongodb_uri(self, with_mongo):
        assert DatabaseSettings().mongodb_uri == "mongodb://localhost:27017/"

    def test_defaults(self, with_mongo):
        s = DatabaseSettings()
        assert s.store_backend == "mongo"
        assert s.db_name == "authentique"
        assert s.users_collection == "users"

    def test_missing_mongodb_uri_raises_for_mongo(self, monkeypatch):
        monkeypatch.delenv("MONGODB_URI", raising=False)
        monkeypatch.setenv("STORE_BACKEND", "mongo")
        with pytest.raises(PydanticValidationError):
            DatabaseSettings()

    def test_memory_backend_needs_no_uri(self, monkeypatch):
        monkeypatch.delenv("MONGODB_URI", raising=False)
        monkeypatch.setenv("STORE_BACKEND", "memory")
        assert DatabaseSettings().store_backend == "memory"

    def test_unknown_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("STORE_BACKEND", "mysql")
        with pytest.raises(PydanticValidationError):
            DatabaseSettings()


# ---------------------------------------------------------------------------
# JWTSettings
# ---------------------------------------------------------------------------


class TestJWTSettings:
    def test_defaults(self, monkeypatch):
        for var in (
            "JWT_ISSUER",
            "SESSION_TOKEN_TTL_SECONDS",
            "VERIFICATION_TOKEN_TTL_SECONDS",
            "PASSWORD_RESET_TOKEN_TTL_SECONDS",
            "SESSION_COOKIE_NAME",
            "JWT_PRIVATE_KEY",
            "JWT_PUBLIC_KEY",
            "JWT_SECRET",
        ):
            monkeypatch.delenv(var, raising=False)
        s = JWTSettings()
        assert s.jwt_issuer == "authentique"
        assert s.session_token_ttl_seconds == 3600
        assert s.verification_token_ttl_seconds == 86400
        assert s.password_reset_token_ttl_seconds == 3600
        assert s.session_cookie_name == "auth_token"
        assert s.jwt_secret == DEV_JWT_SECRET

    def test_ttl_from_env(self, monkeypatch):
        monkeypatch.setenv("SESSION_TOKEN_TTL_SECONDS", "120")
        assert JWTSettings().session_token_ttl_seconds == 120


@pytest.mark.parametrize(
    "private_key, public_key, expected",
    [
        ("private", "public", True),
        ("private", None, False),
        (None, None, False),
    ],
    ids=["keys_present", "public_missing", "keys_absent"],
)
def test_jwt_use_rs256(monkeypatch, private_key, public_key, expected):
    for var, value in (("JWT_PRIVATE_KEY", private_key), ("JWT_PUBLIC_KEY", public_key)):
        if value:
            monkeypatch.setenv(var, value)
        else:
            monkeypatch.delenv(var, raising=False)
    assert JWTSettings().use_rs256 is expected


# ---------------------------------------------------------------------------
# AuthSettings / EmailSettings
# ---------------------------------------------------------------------------


def test_auth_settings_defaults(monkeypatch):
    for var in ("USERNAMES_ENABLED", "ACCESS_LEVEL_HINT_ENABLED"):
        monkeypatch.delenv(var, raising=False)
    s = AuthSettings()
    assert s.usernames_enabled is True
    assert s.access_level_hint_enabled is False
    assert s.store_timeout_seconds > 0
    assert s.notification_timeout_seconds > 0


def test_access_level_hint_flag_from_env(monkeypatch):
    monkeypatch.setenv("ACCESS_LEVEL_HINT_ENABLED", "true")
    assert AuthSettings().access_level_hint_enabled is True


def test_email_provider_default(monkeypatch):
    monkeypatch.delenv("EMAIL_PROVIDER", raising=False)
    assert EmailSettings().email_provider == "console"


# ---------------------------------------------------------------------------
# AppSettings
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "env, expected",
    [("production", True), ("development", False)],
    ids=["production", "development"],
)
def test_is_production(with_mongo, env, expected):
    with_mongo.setenv("ENV", env)
    with_mongo.setenv("EMAIL_PROVIDER", "resend")
    with_mongo.setenv("JWT_SECRET", "a-real-production-secret-value")
    assert AppSettings().is_production is expected


class TestProductionSecretGuard:
    def test_dev_secret_rejected_in_production(self, with_mongo):
        with_mongo.setenv("ENV", "production")
        with_mongo.setenv("EMAIL_PROVIDER", "resend")
        with_mongo.delenv("JWT_SECRET", raising=False)
        with_mongo.delenv("JWT_PRIVATE_KEY", raising=False)
        with_mongo.delenv("JWT_PUBLIC_KEY", raising=False)
        with pytest.raises(PydanticValidationError, match="JWT_SECRET"):
            AppSettings()

    def test_rs256_keys_satisfy_guard(self, with_mongo):
        with_mongo.setenv("ENV", "production")
        with_mongo.setenv("EMAIL_PROVIDER", "resend")
        with_mongo.delenv("JWT_SECRET", raising=False)
        with_mongo.setenv("JWT_PRIVATE_KEY", "private")
        with_mongo.setenv("JWT_PUBLIC_KEY", "public")
        assert AppSettings().jwt.use_rs256 is True

    def test_console_email_rejected_in_production(self, with_mongo):
        with_mongo.setenv("ENV", "production")
        with_mongo.setenv("JWT_SECRET", "a-real-production-secret-value")
        with_mongo.setenv("EMAIL_PROVIDER", "console")
        with pytest.raises(PydanticValidationError, match="EMAIL_PROVIDER"):
            AppSettings()

    def test_console_email_allowed_in_development(self, with_mongo):
        with_mongo.setenv("ENV", "development")
        with_mongo.setenv("EMAIL_PROVIDER", "console")
        assert AppSettings().email.email_provider == "console"

    def test_dev_secret_allowed_in_development(self, with_mongo):
        with_mongo.setenv("ENV", "development")
        with_mongo.delenv("JWT_SECRET", raising=False)
        assert AppSettings().jwt.jwt_secret == DEV_JWT_SECRET


class TestAppSettings:
    def test_sub_configs_populated(self, with_mongo):
        s = AppSettings()
        for attr in ("db", "jwt", "auth", "hashing", "email", "logging", "sentry"):
            assert getattr(s, attr) is not None, f"sub-config '{attr}' is None"

    def test_defaults(self, with_mongo):
        with_mongo.delenv("APP_URL", raising=False)
        s = AppSettings()
        assert s.app_name == "authentique"
        assert s.app_url == "http://localhost:8000"
