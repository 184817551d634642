"""
Session cookie helpers.

The session token travels either in ``Authorization: Bearer`` or in an
http-only cookie. SameSite is tightened to ``strict`` in production.
"""

from __future__ import annotations

from fastapi import Response

from config import AppSettings


def _same_site(settings: AppSettings) -> str:
    return "strict" if settings.is_production else "lax"


def _secure(settings: AppSettings) -> bool:
    return settings.jwt.cookie_secure or settings.is_production


def set_session_cookie(response: Response, token: str, settings: AppSettings) -> Response:
    response.set_cookie(
        settings.jwt.session_cookie_name,
        value=token,
        httponly=True,
        secure=_secure(settings),
        samesite=_same_site(settings),
        path="/",
        max_age=settings.jwt.session_token_ttl_seconds,
    )
    return response


def clear_session_cookie(response: Response, settings: AppSettings) -> Response:
    response.delete_cookie(
        settings.jwt.session_cookie_name,
        httponly=True,
        secure=_secure(settings),
        samesite=_same_site(settings),
        path="/",
    )
    return response
