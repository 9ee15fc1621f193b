"""Console mail backend for development and testing."""

from __future__ import annotations

from perema.core.logging import get_logger
from perema.notifications.base import BaseMailer
from perema.notifications.protocol import DeliveryResult, MailBackend, MailMessage

logger = get_logger(__name__)


class ConsoleMailer(BaseMailer):
    """
    Writes each message to the log instead of sending it.

    Sent messages are also kept in :attr:`outbox`, which tests inspect.
    """

    def __init__(self, *, sender: str = "perema@localhost", keep: int = 100):
        super().__init__(MailBackend.CONSOLE, sender=sender)
        self._keep = keep
        self.outbox: list[MailMessage] = []

    def _deliver(self, message: MailMessage) -> DeliveryResult:
        logger.info("mail_console", sender=self._sender, **message.to_dict())
        self.outbox.append(message)
        del self.outbox[: -self._keep]
        return DeliveryResult.ok(self.name)
