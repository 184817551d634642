"""Jinja2 rendering of outbound account emails.

Templates live in templates/emails/. Links point at the web app
(``{app_url}/confirm-email?token=...`` and ``{app_url}/reset-password?token=...``).
The stated link lifetime comes from the token TTLs in JWTSettings.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from jinja2 import Environment, FileSystemLoader, select_autoescape

_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html_body: str
    text_body: str


def describe_duration(seconds: int) -> str:
    """Human wording for a TTL: ``86400`` -> ``"24 hours"``, ``90`` -> ``"2 minutes"``."""
    if seconds >= 3600 and seconds % 3600 == 0:
        value, unit = seconds // 3600, "hour"
    else:
        value, unit = max(1, math.ceil(seconds / 60)), "minute"
    return f"{value} {unit}" if value == 1 else f"{value} {unit}s"


class EmailRenderer:
    def __init__(
        self,
        app_url: str,
        app_name: str = "authentique",
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
        verification_ttl_seconds: int = 86400,
        password_reset_ttl_seconds: int = 3600,
    ) -> None:
        self._app_url = app_url.rstrip("/")
        self._app_name = app_name
        self._verification_expiry = describe_duration(verification_ttl_seconds)
        self._reset_expiry = describe_duration(password_reset_ttl_seconds)
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def _link(self, path: str, token: str) -> str:
        return f"{self._app_url}/{path}?{urlencode({'token': token})}"

    def confirmation(self, name: Optional[str], token: str) -> RenderedEmail:
        link = self._link("confirm-email", token)
        html_body = self._jinja.get_template("confirmation.html").render(
            user_name=name,
            link=link,
            app_name=self._app_name,
            expires_in=self._verification_expiry,
        )
        text_body = (
            f"Confirm your email - {self._app_name}\n\n"
            f"Hello{f' {name}' if name else ''},\n\n"
            f"Confirm your email address by opening this link:\n{link}\n\n"
            f"The link expires in {self._verification_expiry}."
        )
        return RenderedEmail(
            subject=f"Confirm your email - {self._app_name}",
            html_body=html_body,
            text_body=text_body,
        )

    def password_reset(self, name: Optional[str], token: str) -> RenderedEmail:
        link = self._link("reset-password", token)
        html_body = self._jinja.get_template("password_reset.html").render(
            user_name=name,
            link=link,
            app_name=self._app_name,
            expires_in=self._reset_expiry,
        )
        text_body = (
            f"Reset your password - {self._app_name}\n\n"
            f"Hello{f' {name}' if name else ''},\n\n"
            f"Choose a new password by opening this link:\n{link}\n\n"
            f"The link expires in {self._reset_expiry}. If you did not ask for "
            f"a reset, ignore this email."
        )
        return RenderedEmail(
            subject=f"Reset your password - {self._app_name}",
            html_body=html_body,
            text_body=text_body,
        )
