"""ZeptoMail implementation of NotificationDispatcher.

- async httpx via HttpClient, created in initialize() unless one is injected
- injected EmailSettings + EmailRenderer
"""

from __future__ import annotations

from typing import Optional

from config import EmailSettings
from infrastructure.email.renderer import EmailRenderer, RenderedEmail
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)

_ZEPTO_API_URL = "https://api.zeptomail.in/v1.1/email"


class ZeptoMailProvider:
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

    async def _send(self, to_email: str, to_name: Optional[str], email: RenderedEmail) -> bool:
        if not self._settings.zepto_api_token:
            log.error("zepto_mail_send_failed", reason="token_not_configured")
            return False
        if self._http is None:
            log.error("zepto_mail_send_failed", reason="not_initialized")
            return False

        payload: dict = {
            "from": {
                "address": self._settings.email_from_address,
                "name": self._settings.email_from_name,
            },
            "to": [
                {
                    "email_address": {
                        "address": to_email,
                        "name": to_name or to_email,
                    }
                }
            ],
            "subject": email.subject,
            "htmlbody": email.html_body,
            "textbody": email.text_body,
        }

        token = self._settings.zepto_api_token
        if not token.startswith("Zoho-enczapikey "):
            token = f"Zoho-enczapikey {token}"

        headers = {"Authorization": token, "Content-Type": "application/json"}

        try:
            response = await self._http.post(
                _ZEPTO_API_URL, json=payload, headers=headers
            )
            if response.status_code in (200, 201, 202):
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
        except Exception as e:
            log.error(
                "email_send_error",
                to_email=to_email,
                subject=email.subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def send_confirmation(self, to: str, name: Optional[str], token: str) -> bool:
        return await self._send(to, name, self._renderer.confirmation(name, token))

    async def send_password_reset(self, to: str, name: Optional[str], token: str) -> bool:
        return await self._send(to, name, self._renderer.password_reset(name, token))
