"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

The JWT secret has a development default; AppSettings refuses to start in
production while that default is still in place.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_JWT_SECRET = "change-me-in-production"


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # "mongo" is the reference backend; "memory" keeps users in-process (dev/tests)
    store_backend: Literal["mongo", "memory"] = "mongo"
    mongodb_uri: Optional[str] = None
    db_name: str = "authentique"
    users_collection: str = "users"

    # Bounded I/O so a wedged server surfaces as StoreUnavailable, not a hang
    mongo_server_selection_timeout_ms: int = 3000
    mongo_socket_timeout_ms: int = 5000

    @model_validator(mode="after")
    def _require_uri_for_mongo(self) -> "DatabaseSettings":
        if self.store_backend == "mongo" and not self.mongodb_uri:
            raise ValueError("MONGODB_URI must be set when STORE_BACKEND=mongo")
        return self


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    jwt_issuer: str = "authentique"
    session_token_ttl_seconds: int = 3600
    verification_token_ttl_seconds: int = 86400
    password_reset_token_ttl_seconds: int = 3600

    session_cookie_name: str = "auth_token"
    cookie_secure: bool = True

    # RS256 keys (preferred)
    jwt_private_key: str = ""
    jwt_public_key: str = ""

    # HS256 fallback (used when RS256 keys are absent)
    jwt_secret: str = DEV_JWT_SECRET

    @property
    def use_rs256(self) -> bool:
        return bool(self.jwt_private_key and self.jwt_public_key)


class AuthSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    usernames_enabled: bool = True
    # When on, signup honours a client-supplied access level ("ref").
    access_level_hint_enabled: bool = False

    store_timeout_seconds: float = 5.0
    notification_timeout_seconds: float = 10.0


class HashingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536  # KiB
    argon2_parallelism: int = 4


class EmailSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    email_provider: Literal["zeptomail", "resend", "console"] = "console"
    email_from_address: str = "noreply@example.com"
    email_from_name: str = "authentique"
    email_http_timeout_seconds: float = 5.0

    zepto_api_token: str = ""
    resend_api_key: str = ""


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_url: str = "http://localhost:8000"
    app_name: str = "authentique"

    cors_origins: list[str] = ["http://localhost:3000"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    jwt: Optional[JWTSettings] = None
    auth: Optional[AuthSettings] = None
    hashing: Optional[HashingSettings] = None
    email: Optional[EmailSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.db is None:
            self.db = DatabaseSettings()
        if self.jwt is None:
            self.jwt = JWTSettings()
        if self.auth is None:
            self.auth = AuthSettings()
        if self.hashing is None:
            self.hashing = HashingSettings()
        if self.email is None:
            self.email = EmailSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        if (
            self.is_production
            and not self.jwt.use_rs256
            and self.jwt.jwt_secret == DEV_JWT_SECRET
        ):
            raise ValueError(
                "JWT_SECRET must be set to a secure value in production. "
                'Generate one with: python -c "import secrets; '
                'print(secrets.token_urlsafe(32))"'
            )

        # The console provider keeps rendered mail, live tokens included, in memory
        if self.is_production and self.email.email_provider == "console":
            raise ValueError(
                "EMAIL_PROVIDER=console is for development only. "
                "Set EMAIL_PROVIDER to zeptomail or resend in production."
            )

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
