"""Concrete mail backends."""

from perema.notifications.channels.console import ConsoleMailer
from perema.notifications.channels.sendgrid import SendGridMailer
from perema.notifications.channels.smtp import SMTPMailer

__all__ = ["ConsoleMailer", "SendGridMailer", "SMTPMailer"]
