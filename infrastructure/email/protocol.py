"""NotificationDispatcher protocol: services depend on this, not the concrete provider.

Lifecycle is two-phase: construct synchronously, then ``await initialize()``
before the first send; ``await aclose()`` on shutdown. Send methods return
``False`` (rather than raising) when the provider rejects or cannot reach the
message API.
"""

from typing import Optional, Protocol


class NotificationDispatcher(Protocol):
    async def initialize(self) -> None: ...

    async def aclose(self) -> None: ...

    async def send_confirmation(
        self, to: str, name: Optional[str], token: str
    ) -> bool: ...

    async def send_password_reset(
        self, to: str, name: Optional[str], token: str
    ) -> bool: ...
