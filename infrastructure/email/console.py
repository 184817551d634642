"""Console dispatcher for development: renders messages and keeps them in an outbox.

Nothing leaves the process. Only the recipient and subject are logged. The
outbox is bounded and AppSettings refuses this provider in production.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Optional

from infrastructure.email.renderer import EmailRenderer, RenderedEmail
from shared.logging import get_logger

log = get_logger(__name__)

OUTBOX_SIZE = 100


@dataclass(frozen=True)
class OutboxEntry:
    to: str
    kind: str
    email: RenderedEmail


class ConsoleProvider:
    def __init__(self, renderer: EmailRenderer, outbox_size: int = OUTBOX_SIZE) -> None:
        self._renderer = renderer
        self.outbox: deque[OutboxEntry] = deque(maxlen=outbox_size)

    async def initialize(self) -> None:
        return None

    async def aclose(self) -> None:
        self.outbox.clear()

    def _deliver(self, to: str, kind: str, email: RenderedEmail) -> bool:
        self.outbox.append(OutboxEntry(to=to, kind=kind, email=email))
        log.info("email_console_delivery", to_email=to, kind=kind, subject=email.subject)
        return True

    async def send_confirmation(self, to: str, name: Optional[str], token: str) -> bool:
        return self._deliver(to, "confirmation", self._renderer.confirmation(name, token))

    async def send_password_reset(self, to: str, name: Optional[str], token: str) -> bool:
        return self._deliver(
            to, "password_reset", self._renderer.password_reset(name, token)
        )
