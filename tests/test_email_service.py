"""Tests for the SMTP relay client."""

import smtplib
from unittest.mock import patch

import pytest
from cryptography.fernet import Fernet

from email_relay import config
from email_relay.domain.settings.schemas import EmailSettings
from email_relay.email_service import (
    OutgoingEmail,
    SMTPTransport,
    build_message,
    decrypt_password,
    encrypt_password,
    text_to_html,
)


@pytest.fixture
def settings():
    return EmailSettings.from_values(
        {
            "email.enabled": True,
            "email.smtp.host": "smtp.office365.com",
            "email.smtp.port": 587,
            "email.smtp.secure": False,
            "email.smtp.username": "relay@wyalink.com",
            "email.smtp.password": "relay-secret",
            "email.from.name": "WyaLink",
        }
    )


@pytest.fixture
def outgoing():
    return OutgoingEmail(
        from_header="WyaLink <relay@wyalink.com>",
        from_address="relay@wyalink.com",
        to=["customer@example.com"],
        cc=["manager@example.com"],
        bcc=["audit@wyalink.com"],
        subject="Your quote",
        text="Hello\nThere",
        html="Hello<br>There",
    )


class TestBuildMessage:
    def test_headers_and_alternative_parts(self, outgoing):
        msg = build_message(outgoing)

        assert msg["From"] == "WyaLink <relay@wyalink.com>"
        assert msg["To"] == "customer@example.com"
        assert msg["Cc"] == "manager@example.com"
        assert msg["Subject"] == "Your quote"
        assert msg["Message-ID"]
        assert msg.get_content_subtype() == "alternative"
        assert [part.get_content_type() for part in msg.get_payload()] == ["text/plain", "text/html"]

    def test_bcc_is_not_a_header(self, outgoing):
        msg = build_message(outgoing)

        assert msg["Bcc"] is None
        assert "audit@wyalink.com" not in msg.as_string()

    def test_envelope_includes_every_recipient(self, outgoing):
        assert outgoing.recipients == [
            "customer@example.com",
            "manager@example.com",
            "audit@wyalink.com",
        ]


class TestSMTPTransport:
    @patch("email_relay.email_service.smtplib.SMTP")
    def test_starttls_when_not_secure(self, mock_smtp, settings, outgoing):
        server = mock_smtp.return_value
        server.has_extn.return_value = True
        server.sendmail.return_value = {}

        result = SMTPTransport(timeout=5).send(settings, outgoing)

        mock_smtp.assert_called_once_with("smtp.office365.com", 587, timeout=5)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("relay@wyalink.com", "relay-secret")
        from_address, recipients, _ = server.sendmail.call_args.args
        assert from_address == "relay@wyalink.com"
        assert recipients == outgoing.recipients
        server.quit.assert_called_once()
        assert result["refused"] == []

    @patch("email_relay.email_service.smtplib.SMTP")
    def test_no_starttls_when_relay_does_not_offer_it(self, mock_smtp, settings, outgoing):
        server = mock_smtp.return_value
        server.has_extn.return_value = False
        server.sendmail.return_value = {}

        SMTPTransport().send(settings, outgoing)

        server.starttls.assert_not_called()

    @patch("email_relay.email_service.smtplib.SMTP_SSL")
    def test_implicit_tls_when_secure(self, mock_smtp_ssl, outgoing):
        secure = EmailSettings.from_values(
            {"email.smtp.port": 465, "email.smtp.secure": True, "email.smtp.username": "relay@wyalink.com"}
        )
        mock_smtp_ssl.return_value.sendmail.return_value = {}

        SMTPTransport().send(secure, outgoing)

        args, kwargs = mock_smtp_ssl.call_args
        assert args == ("smtp.office365.com", 465)
        assert "context" in kwargs
        mock_smtp_ssl.return_value.quit.assert_called_once()

    @patch("email_relay.email_service.smtplib.SMTP")
    def test_connection_closed_and_error_raised_on_failure(self, mock_smtp, settings, outgoing):
        server = mock_smtp.return_value
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

        with pytest.raises(smtplib.SMTPAuthenticationError):
            SMTPTransport().send(settings, outgoing)

        server.close.assert_called_once()
        server.sendmail.assert_not_called()
        server.quit.assert_not_called()

    @patch("email_relay.email_service.smtplib.SMTP")
    def test_connection_closed_when_starttls_fails(self, mock_smtp, settings, outgoing):
        server = mock_smtp.return_value
        server.has_extn.return_value = True
        server.starttls.side_effect = smtplib.SMTPException("TLS handshake failed")

        with pytest.raises(smtplib.SMTPException):
            SMTPTransport().send(settings, outgoing)

        server.close.assert_called_once()
        server.login.assert_not_called()
        server.sendmail.assert_not_called()

    @patch("email_relay.email_service.smtplib.SMTP")
    def test_connection_closed_when_ehlo_fails(self, mock_smtp, settings, outgoing):
        server = mock_smtp.return_value
        server.ehlo.side_effect = smtplib.SMTPServerDisconnected("Connection unexpectedly closed")

        with pytest.raises(smtplib.SMTPServerDisconnected):
            SMTPTransport().send(settings, outgoing)

        server.close.assert_called_once()
        server.sendmail.assert_not_called()

    @patch("email_relay.email_service.smtplib.SMTP")
    def test_failed_quit_after_delivery_still_succeeds(self, mock_smtp, settings, outgoing):
        server = mock_smtp.return_value
        server.has_extn.return_value = False
        server.sendmail.return_value = {}
        server.quit.side_effect = smtplib.SMTPServerDisconnected("Connection unexpectedly closed")

        result = SMTPTransport().send(settings, outgoing)

        server.sendmail.assert_called_once()
        server.close.assert_called_once()
        assert result["id"]
        assert result["refused"] == []

    @patch("email_relay.email_service.smtplib.SMTP")
    def test_login_skipped_without_username(self, mock_smtp, outgoing):
        anonymous = EmailSettings.from_values({"email.smtp.host": "relay.internal"})
        mock_smtp.return_value.sendmail.return_value = {}

        SMTPTransport().send(anonymous, outgoing)

        mock_smtp.return_value.login.assert_not_called()

    @patch("email_relay.email_service.smtplib.SMTP")
    def test_new_connection_per_send(self, mock_smtp, settings, outgoing):
        mock_smtp.return_value.sendmail.return_value = {}
        transport = SMTPTransport()

        transport.send(settings, outgoing)
        transport.send(settings, outgoing)

        assert mock_smtp.call_count == 2
        assert mock_smtp.return_value.quit.call_count == 2


class TestHelpers:
    def test_text_to_html_replaces_every_newline(self):
        assert text_to_html("a\nb\n\nc") == "a<br>b<br><br>c"

    def test_password_round_trip_with_key(self, monkeypatch):
        monkeypatch.setattr(config, "SMTP_ENCRYPTION_KEY", Fernet.generate_key().decode())

        encrypted = encrypt_password("relay-secret")

        assert encrypted != "relay-secret"
        assert decrypt_password(encrypted) == "relay-secret"

    def test_password_plain_without_key(self, monkeypatch):
        monkeypatch.setattr(config, "SMTP_ENCRYPTION_KEY", "")

        assert encrypt_password("relay-secret") == "relay-secret"
        assert decrypt_password("relay-secret") == "relay-secret"
        assert decrypt_password(None) == ""


def test_transport_default_timeout(monkeypatch):
    monkeypatch.setattr(config, "SMTP_TIMEOUT_SECONDS", 12.5)

    assert SMTPTransport().timeout == 12.5
