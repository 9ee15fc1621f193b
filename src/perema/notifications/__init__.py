"""
Mail notifications.

Usage::

    from perema.notifications import MailMessage, create_mailer

    mailer = create_mailer(get_settings())
    result = mailer.send(MailMessage(recipient="me@example.com", subject="Hi", text="..."))
"""

from __future__ import annotations

from perema.core.errors import MissingConfigError
from perema.core.settings import PeremaSettings
from perema.notifications.base import BaseMailer
from perema.notifications.channels import ConsoleMailer, SendGridMailer, SMTPMailer
from perema.notifications.protocol import DeliveryResult, MailBackend, Mailer, MailMessage


def create_mailer(settings: PeremaSettings) -> BaseMailer:
    """Build the backend selected by ``settings.mail_backend``.

    Raises:
        MissingConfigError: a credential the backend needs is not set.
    """
    backend = MailBackend(settings.mail_backend)
    if backend is MailBackend.SENDGRID:
        if not settings.sendgrid_api_key:
            raise MissingConfigError("SENDGRID_API_KEY")
        return SendGridMailer(settings.sendgrid_api_key, settings.mail_from)
    if backend is MailBackend.SMTP:
        if not settings.smtp_host:
            raise MissingConfigError("PEREMA_SMTP_HOST")
        return SMTPMailer(
            settings.smtp_host,
            settings.mail_from,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
        )
    return ConsoleMailer(sender=settings.mail_from)


__all__ = [
    "BaseMailer",
    "ConsoleMailer",
    "DeliveryResult",
    "MailBackend",
    "MailMessage",
    "Mailer",
    "SMTPMailer",
    "SendGridMailer",
    "create_mailer",
]
