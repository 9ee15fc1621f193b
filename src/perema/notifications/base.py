"""
Mailer base class.

Provides what every backend shares: a name, an enable switch, recipient
checks and a structured log line per attempt.  Subclasses implement
:meth:`BaseMailer._deliver`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from perema.core.errors import ValidationError
from perema.core.logging import get_logger
from perema.notifications.protocol import DeliveryResult, MailBackend, MailMessage

logger = get_logger(__name__)


class BaseMailer(ABC):
    """Base class for mail backends."""

    def __init__(self, backend: MailBackend, *, sender: str, enabled: bool = True):
        self._backend = backend
        self._sender = sender
        self._enabled = enabled

    @property
    def name(self) -> str:
        return self._backend.value

    @property
    def sender(self) -> str:
        return self._sender

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def send(self, message: MailMessage) -> DeliveryResult:
        """Deliver *message*, logging the outcome."""
        if not self._enabled:
            return DeliveryResult.ok(self.name, "disabled; message dropped")
        if not message.recipient:
            return DeliveryResult.fail(
                self.name, ValidationError("Mail recipient is empty", field="recipient")
            )

        result = self._deliver(message)
        if result.success:
            logger.info(
                "mail_sent",
                backend=self.name,
                recipient=message.recipient,
                template_id=message.template_id,
                **message.tags,
            )
        else:
            logger.warning(
                "mail_failed",
                backend=self.name,
                recipient=message.recipient,
                status_code=result.status_code,
                error=result.message,
                **message.tags,
            )
        return result

    @abstractmethod
    def _deliver(self, message: MailMessage) -> DeliveryResult:
        """Hand *message* to the provider."""
        ...
