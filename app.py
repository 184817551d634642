"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.email.factory import build_dispatcher
from infrastructure.hashing.argon2_hasher import Argon2PasswordHasher
from repositories.factory import build_user_repository
from routes.auth_routes import router as auth_router
from routes.health_routes import router as health_router
from services.auth_service import AuthService
from services.token_service import TokenService
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        app.state.settings = settings

        mongo_client: Optional[AsyncMongoClient] = None
        db = None
        if settings.db.store_backend == "mongo":
            mongo_client = AsyncMongoClient(
                settings.db.mongodb_uri,
                tz_aware=True,
                serverSelectionTimeoutMS=settings.db.mongo_server_selection_timeout_ms,
                socketTimeoutMS=settings.db.mongo_socket_timeout_ms,
            )
            db = mongo_client[settings.db.db_name]
        app.state.mongo_client = mongo_client

        users = build_user_repository(settings.db, db)
        await users.ensure_indexes()

        dispatcher = build_dispatcher(settings)
        await dispatcher.initialize()

        tokens = TokenService(settings.jwt)
        app.state.user_repository = users
        app.state.token_service = tokens
        app.state.dispatcher = dispatcher
        app.state.auth_service = AuthService(
            users=users,
            tokens=tokens,
            hasher=Argon2PasswordHasher(settings.hashing),
            dispatcher=dispatcher,
            settings=settings.auth,
        )
        log.info(
            "app_started",
            store_backend=settings.db.store_backend,
            email_provider=settings.email.email_provider,
            signing_algorithm="RS256" if settings.jwt.use_rs256 else "HS256",
        )

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await dispatcher.aclose()
        if mongo_client is not None:
            await mongo_client.close()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    # Credentials are allowed so the session cookie can ride cross-origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router)

    return app
