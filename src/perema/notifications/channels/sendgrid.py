"""SendGrid mail backend (dynamic templates via the v3 Web API)."""

from __future__ import annotations

from typing import Any

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from perema.core.errors import MailDeliveryError
from perema.notifications.base import BaseMailer
from perema.notifications.protocol import DeliveryResult, MailBackend, MailMessage


class SendGridMailer(BaseMailer):
    """
    Mail backend using the SendGrid API.

    Messages with a ``template_id`` are sent as dynamic-template mails with
    ``template_data`` as the template's substitution data; others as plain
    text.  The free tier allows about 100 mails per day.
    """

    def __init__(self, api_key: str, sender: str, *, client: Any | None = None):
        super().__init__(MailBackend.SENDGRID, sender=sender)
        self._client = client or SendGridAPIClient(api_key)

    def _build_message(self, message: MailMessage) -> Mail:
        if message.template_id:
            mail = Mail(from_email=self._sender, to_emails=message.recipient)
            mail.template_id = message.template_id
            mail.dynamic_template_data = dict(message.template_data)
            return mail
        return Mail(
            from_email=self._sender,
            to_emails=message.recipient,
            subject=message.subject or "perema notification",
            plain_text_content=message.text or " ",
        )

    def _deliver(self, message: MailMessage) -> DeliveryResult:
        try:
            response = self._client.send(self._build_message(message))
        except Exception as e:
            # python-http-client raises HTTPError subclasses carrying status_code
            status = getattr(e, "status_code", None)
            error = MailDeliveryError(f"SendGrid request failed: {e}", status_code=status, cause=e)
            return DeliveryResult.fail(self.name, error, status_code=status)

        status = getattr(response, "status_code", None)
        if status is not None and status >= 300:
            error = MailDeliveryError(f"SendGrid returned HTTP {status}", status_code=status)
            return DeliveryResult.fail(self.name, error, status_code=status)
        return DeliveryResult.ok(self.name, status_code=status)
