"""Email (SMTP) mail backend."""

from __future__ import annotations

import smtplib
from email.mime.text import MIMEText

from perema.core.errors import MailDeliveryError
from perema.notifications.base import BaseMailer
from perema.notifications.protocol import DeliveryResult, MailBackend, MailMessage


class SMTPMailer(BaseMailer):
    """
    Mail backend using SMTP.

    SMTP has no provider-side templates: templated messages are rendered
    as ``key: value`` lines below ``text``.
    """

    def __init__(
        self,
        smtp_host: str,
        sender: str,
        *,
        smtp_port: int = 587,
        smtp_user: str | None = None,
        smtp_password: str | None = None,
        use_tls: bool = True,
        timeout: float = 30.0,
    ):
        super().__init__(MailBackend.SMTP, sender=sender)
        self._smtp_host = smtp_host
        self._smtp_port = smtp_port
        self._smtp_user = smtp_user
        self._smtp_password = smtp_password
        self._use_tls = use_tls
        self._timeout = timeout

    def _build_message(self, message: MailMessage) -> str:
        body = message.text
        if message.template_data:
            lines = [f"{key}: {value}" for key, value in message.template_data.items()]
            body = "\n".join([body, "", *lines]).strip()

        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = message.subject or "perema notification"
        msg["From"] = self._sender
        msg["To"] = message.recipient
        return msg.as_string()

    def _deliver(self, message: MailMessage) -> DeliveryResult:
        try:
            with smtplib.SMTP(self._smtp_host, self._smtp_port, timeout=self._timeout) as server:
                if self._use_tls:
                    server.starttls()
                if self._smtp_user and self._smtp_password:
                    server.login(self._smtp_user, self._smtp_password)
                server.sendmail(self._sender, [message.recipient], self._build_message(message))
            return DeliveryResult.ok(self.name)

        except (smtplib.SMTPException, OSError) as e:
            return DeliveryResult.fail(self.name, MailDeliveryError(str(e), cause=e))
