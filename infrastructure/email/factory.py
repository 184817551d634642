"""Startup-time selection of the email provider (EMAIL_PROVIDER)."""

from __future__ import annotations

from config import AppSettings
from infrastructure.email.console import ConsoleProvider
from infrastructure.email.protocol import NotificationDispatcher
from infrastructure.email.renderer import EmailRenderer
from infrastructure.email.resend import ResendProvider
from infrastructure.email.zeptomail import ZeptoMailProvider


def build_dispatcher(settings: AppSettings) -> NotificationDispatcher:
    renderer = EmailRenderer(
        app_url=settings.app_url,
        app_name=settings.app_name,
        verification_ttl_seconds=settings.jwt.verification_token_ttl_seconds,
        password_reset_ttl_seconds=settings.jwt.password_reset_token_ttl_seconds,
    )
    provider = settings.email.email_provider
    if provider == "zeptomail":
        return ZeptoMailProvider(settings.email, renderer)
    if provider == "resend":
        return ResendProvider(settings.email, renderer)
    return ConsoleProvider(renderer)
