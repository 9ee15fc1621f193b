"""
Mail delivery protocol and data classes.

Defines the interface every mail backend implements plus the message and
delivery-result types.  Concrete backends live in ``channels/``.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class MailBackend(str, Enum):
    """Supported mail backends."""

    SENDGRID = "sendgrid"
    SMTP = "smtp"
    CONSOLE = "console"  # For development/testing


@dataclass
class MailMessage:
    """
    One outgoing mail.

    When ``template_id`` is set, backends that support provider-side
    templates render ``template_data`` with it; everyone else falls back to
    ``subject`` + ``text``.
    """

    recipient: str
    subject: str = ""
    text: str = ""
    template_id: str | None = None
    template_data: dict[str, Any] = field(default_factory=dict)
    # Free-form tags for logging (job name, contact id, ...)
    tags: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"recipient": self.recipient, "subject": self.subject}
        if self.template_id:
            result["template_id"] = self.template_id
            result["template_data"] = self.template_data
        if self.tags:
            result["tags"] = self.tags
        return result


@dataclass
class DeliveryResult:
    """Result of one delivery attempt."""

    backend: str
    success: bool
    message: str | None = None
    status_code: int | None = None
    error: Exception | None = None
    delivered_at: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.UTC)
    )

    @classmethod
    def ok(cls, backend: str, message: str | None = None, **kwargs: Any) -> DeliveryResult:
        return cls(backend=backend, success=True, message=message, **kwargs)

    @classmethod
    def fail(cls, backend: str, error: Exception, status_code: int | None = None) -> DeliveryResult:
        return cls(
            backend=backend,
            success=False,
            error=error,
            message=str(error),
            status_code=status_code,
        )


@runtime_checkable
class Mailer(Protocol):
    """
    Protocol for mail backends.

    ``send`` never raises for delivery problems; it reports them in the
    returned :class:`DeliveryResult` so batch jobs can carry on.
    """

    @property
    def name(self) -> str: ...

    def send(self, message: MailMessage) -> DeliveryResult: ...
