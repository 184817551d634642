"""
FastAPI dependency providers.

Services are built once in the app lifespan and kept on app.state; the
providers below hand them to route handlers via Depends().

require_access_level(n) is the FastAPI face of services.authorization: it
turns a denied AccessDecision into 401 (token problems) or 403 (level
problems) and otherwise yields the verified SessionClaims.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import Request
from pydantic import ValidationError as PydanticValidationError

from config import AppSettings
from errors import AuthenticationError, ForbiddenError
from repositories.protocol import UserRepository
from schemas.models.token import SessionClaims
from services.auth_service import AuthService
from services.authorization import (
    AUTHENTICATION_REASONS,
    DenyReason,
    authorize,
    extract_session_token,
)
from services.token_service import TokenService
from shared.logging import get_logger

log = get_logger(__name__)

_DENY_MESSAGES = {
    DenyReason.MISSING_TOKEN: "Authentication required.",
    DenyReason.TOKEN_EXPIRED: "Session has expired.",
    DenyReason.TOKEN_INVALID: "Invalid session token.",
    DenyReason.MISSING_ACCESS_LEVEL: "Session carries no access level.",
    DenyReason.INVALID_ACCESS_LEVEL: "Session access level is not valid.",
    DenyReason.INSUFFICIENT_ACCESS_LEVEL: "Insufficient access level.",
}


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_user_repository(request: Request) -> UserRepository:
    return request.app.state.user_repository


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def require_access_level(level: int) -> Callable[[Request], Awaitable[SessionClaims]]:
    """Build a dependency that admits sessions with ``access_level >= level``."""
    guard = authorize(level)

    async def dependency(request: Request) -> SessionClaims:
        settings: AppSettings = request.app.state.settings
        token = extract_session_token(
            request.headers.get("Authorization"),
            request.cookies.get(settings.jwt.session_cookie_name),
        )
        decision = guard(request.app.state.token_service, token)
        if decision.granted:
            try:
                return SessionClaims.from_claims(decision.claims)
            except PydanticValidationError:
                # Signed by us but not shaped like a session
                reason = DenyReason.TOKEN_INVALID
        else:
            reason = decision.reason

        log.info(
            "access_denied",
            reason=reason.value,
            required_level=level,
            path=request.url.path,
        )
        if reason in AUTHENTICATION_REASONS:
            error = AuthenticationError(_DENY_MESSAGES[reason])
        else:
            error = ForbiddenError(_DENY_MESSAGES[reason])
        error.error_code = reason.value
        raise error

    return dependency


require_session = require_access_level(1)
