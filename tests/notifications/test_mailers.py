"""Tests for mail backends: console, SMTP and SendGrid.

Uses mocking to avoid real network calls. Covers:
- Backend selection from settings
- Message building
- send() success and failure paths
"""

from unittest.mock import MagicMock, patch

import pytest

from perema.core.errors import MailDeliveryError, MissingConfigError
from perema.core.settings import PeremaSettings
from perema.notifications import (
    ConsoleMailer,
    Mailer,
    MailMessage,
    SendGridMailer,
    SMTPMailer,
    create_mailer,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _message(**overrides) -> MailMessage:
    defaults = dict(
        recipient="me@example.com",
        subject="Birthday: Anna Smith",
        text="It's Anna Smith's birthday today (36 years old).",
        template_id="d-birthday",
        template_data={
            "birthday_person_nick": "Annie",
            "birthday_person": "Anna Smith",
            "birthday_age": "36 years old",
        },
        tags={"job": "birthday_reminders", "contact_id": 1},
    )
    defaults.update(overrides)
    return MailMessage(**defaults)


def _settings(**overrides) -> PeremaSettings:
    return PeremaSettings(_env_file=None, **overrides)


# ===========================================================================
# Factory
# ===========================================================================


class TestCreateMailer:
    def test_console_default(self):
        mailer = create_mailer(_settings())
        assert isinstance(mailer, ConsoleMailer)
        assert isinstance(mailer, Mailer)

    def test_sendgrid_requires_key(self):
        with pytest.raises(MissingConfigError) as exc_info:
            create_mailer(_settings(mail_backend="sendgrid", sendgrid_api_key=""))
        assert exc_info.value.key == "SENDGRID_API_KEY"

    def test_sendgrid(self):
        mailer = create_mailer(_settings(mail_backend="sendgrid", sendgrid_api_key="SG.test"))
        assert isinstance(mailer, SendGridMailer)
        assert mailer.name == "sendgrid"

    def test_smtp(self):
        mailer = create_mailer(_settings(mail_backend="SMTP", smtp_host="mail.example.com"))
        assert isinstance(mailer, SMTPMailer)

    def test_smtp_requires_host(self):
        with pytest.raises(MissingConfigError):
            create_mailer(_settings(mail_backend="smtp", smtp_host=""))


# ===========================================================================
# Console
# ===========================================================================


class TestConsoleMailer:
    def test_keeps_outbox(self):
        mailer = ConsoleMailer()
        result = mailer.send(_message())
        assert result.success
        assert result.backend == "console"
        assert mailer.outbox == [_message()]

    def test_outbox_bounded(self):
        mailer = ConsoleMailer(keep=2)
        for i in range(5):
            mailer.send(_message(subject=str(i)))
        assert [m.subject for m in mailer.outbox] == ["3", "4"]

    def test_empty_recipient_fails(self):
        mailer = ConsoleMailer()
        result = mailer.send(_message(recipient=""))
        assert not result.success
        assert mailer.outbox == []

    def test_disabled_drops(self):
        mailer = ConsoleMailer()
        mailer.disable()
        assert mailer.send(_message()).success
        assert mailer.outbox == []
        mailer.enable()
        mailer.send(_message())
        assert len(mailer.outbox) == 1


# ===========================================================================
# SMTP
# ===========================================================================


def _smtp_server(MockSMTP) -> MagicMock:
    server = MagicMock()
    MockSMTP.return_value.__enter__.return_value = server
    return server


class TestSMTPMailer:
    def test_build_message_renders_template_data(self):
        mailer = SMTPMailer("localhost", "perema@example.com")
        raw = mailer._build_message(_message())
        assert "Subject: Birthday: Anna Smith" in raw
        assert "From: perema@example.com" in raw
        assert "birthday_age: 36 years old" in raw

    @patch("smtplib.SMTP")
    def test_send_success(self, MockSMTP):
        server = _smtp_server(MockSMTP)
        mailer = SMTPMailer(
            "smtp.example.com",
            "perema@example.com",
            smtp_user="user",
            smtp_password="pass",
        )
        result = mailer.send(_message())
        assert result.success is True
        MockSMTP.assert_called_once_with("smtp.example.com", 587, timeout=30.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("user", "pass")
        server.sendmail.assert_called_once()
        assert server.sendmail.call_args.args[:2] == ("perema@example.com", ["me@example.com"])

    @patch("smtplib.SMTP")
    def test_send_no_tls_no_login(self, MockSMTP):
        server = _smtp_server(MockSMTP)
        mailer = SMTPMailer("localhost", "a@b.com", use_tls=False)
        assert mailer.send(_message()).success
        server.starttls.assert_not_called()
        server.login.assert_not_called()

    @patch("smtplib.SMTP")
    def test_send_smtp_error(self, MockSMTP):
        import smtplib

        server = _smtp_server(MockSMTP)
        server.sendmail.side_effect = smtplib.SMTPException("nope")
        result = SMTPMailer("localhost", "a@b.com").send(_message())
        assert result.success is False
        assert isinstance(result.error, MailDeliveryError)
        assert result.error.retryable

    @patch("smtplib.SMTP")
    def test_send_connection_refused(self, MockSMTP):
        MockSMTP.side_effect = OSError("connection refused")
        result = SMTPMailer("localhost", "a@b.com").send(_message())
        assert result.success is False
        assert "connection refused" in result.message


# ===========================================================================
# SendGrid
# ===========================================================================


class TestSendGridMailer:
    def _mailer(self, client):
        return SendGridMailer("SG.test", "perema@example.com", client=client)

    def test_templated_mail(self):
        client = MagicMock()
        client.send.return_value = MagicMock(status_code=202)

        result = self._mailer(client).send(_message())
        assert result.success
        assert result.status_code == 202

        payload = client.send.call_args.args[0].get()
        assert payload["template_id"] == "d-birthday"
        assert payload["from"]["email"] == "perema@example.com"
        personalization = payload["personalizations"][0]
        assert personalization["to"][0]["email"] == "me@example.com"
        assert personalization["dynamic_template_data"]["birthday_person"] == "Anna Smith"

    def test_plain_mail_without_template(self):
        client = MagicMock()
        client.send.return_value = MagicMock(status_code=202)

        self._mailer(client).send(_message(template_id=None))
        payload = client.send.call_args.args[0].get()
        assert "template_id" not in payload
        assert payload["subject"] == "Birthday: Anna Smith"
        assert payload["content"][0]["type"] == "text/plain"

    def test_error_status(self):
        client = MagicMock()
        client.send.return_value = MagicMock(status_code=400)

        result = self._mailer(client).send(_message())
        assert not result.success
        assert result.status_code == 400
        assert isinstance(result.error, MailDeliveryError)

    def test_client_exception(self):
        error = Exception("unauthorized")
        error.status_code = 401
        client = MagicMock()
        client.send.side_effect = error

        result = self._mailer(client).send(_message())
        assert not result.success
        assert result.status_code == 401
        assert "unauthorized" in result.message
