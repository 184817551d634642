"""Resend implementation of NotificationDispatcher (https://resend.com)."""

from __future__ import annotations

from typing import Optional

from config import EmailSettings
from infrastructure.email.renderer import EmailRenderer, RenderedEmail
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)

_RESEND_API_URL = "https://api.resend.com/emails"


class ResendProvider:
    def __init__(
        self,
        settings: EmailSettings,
        renderer: EmailRenderer,
        http_client: Optional[HttpClient] = None,
    ) -> None:
        self._settings = settings
        self._renderer = renderer
        self._http = http_client
        self._owns_http = http_client is None

    async def initialize(self) -> None:
        if self._http is None:
            self._http = HttpClient(timeout=self._settings.email_http_timeout_seconds)

    async def aclose(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def _send(self, to_email: str, email: RenderedEmail) -> bool:
        if not self._settings.resend_api_key:
            log.error("resend_send_failed", reason="api_key_not_configured")
            return False
        if self._http is None:
            log.error("resend_send_failed", reason="not_initialized")
            return False

        payload = {
            "from": f"{self._settings.email_from_name} <{self._settings.email_from_address}>",
            "to": [to_email],
            "subject": email.subject,
            "html": email.html_body,
            "text": email.text_body,
        }
        headers = {"Authorization": f"Bearer {self._settings.resend_api_key}"}

        try:
            response = await self._http.post(_RESEND_API_URL, json=payload, headers=headers)
        except Exception as e:
            log.error(
                "email_send_error",
                to_email=to_email,
                subject=email.subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if 200 <= response.status_code < 300:
            log.info("email_sent_success", to_email=to_email, subject=email.subject)
            return True
        log.error(
            "email_sent_failed",
            to_email=to_email,
            subject=email.subject,
            status_code=response.status_code,
            response=response.text[:200],
        )
        return False

    async def send_confirmation(self, to: str, name: Optional[str], token: str) -> bool:
        return await self._send(to, self._renderer.confirmation(name, token))

    async def send_password_reset(self, to: str, name: Optional[str], token: str) -> bool:
        return await self._send(to, self._renderer.password_reset(name, token))
