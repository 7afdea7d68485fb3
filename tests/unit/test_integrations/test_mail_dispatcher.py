"""
Unit tests for the email dispatcher.

Provider clients are mocked; tests cover provider selection, credential
checks and the conversion of every failure into a SendResult.
"""

from unittest.mock import patch

import pytest

from baby_tracker.crypto import encrypt
from baby_tracker.integrations.mail import MailDeliveryError, MailMessage, send_email
from baby_tracker.models import EmailConfig

DISPATCHER = "baby_tracker.integrations.mail.dispatcher"


@pytest.fixture
def message():
    return MailMessage(
        to="parent@example.com",
        sender="tracker@example.com",
        subject="Hello",
        text="Plain body",
        html="<p>HTML body</p>",
    )


def save_config(session, **fields) -> EmailConfig:
    config = EmailConfig(**fields)
    session.add(config)
    session.commit()
    return config


class TestNoConfig:
    def test_missing_config_fails_without_raising(self, db_session, message):
        result = send_email(db_session, message)

        assert result.success is False
        assert result.error == "Email configuration not found."


class TestSendGrid:
    def test_sends_with_decrypted_key(self, db_session, message):
        save_config(db_session, provider_type="SENDGRID", sendgrid_api_key=encrypt("SG.key"))

        with patch(f"{DISPATCHER}.send_with_sendgrid") as mock_send:
            result = send_email(db_session, message)

        assert result.to_dict() == {"success": True}
        mock_send.assert_called_once_with(message, "SG.key")

    def test_missing_key(self, db_session, message):
        save_config(db_session, provider_type="SENDGRID")

        with patch(f"{DISPATCHER}.send_with_sendgrid") as mock_send:
            result = send_email(db_session, message)

        assert result.error == "SendGrid API key is not configured."
        mock_send.assert_not_called()

    def test_provider_exception_becomes_failure(self, db_session, message):
        save_config(db_session, provider_type="SENDGRID", sendgrid_api_key="SG.key")

        with patch(f"{DISPATCHER}.send_with_sendgrid", side_effect=RuntimeError("boom")):
            result = send_email(db_session, message)

        assert result.success is False
        assert result.error == "boom"

    def test_empty_exception_message_gets_default(self, db_session, message):
        save_config(db_session, provider_type="SENDGRID", sendgrid_api_key="SG.key")

        with patch(f"{DISPATCHER}.send_with_sendgrid", side_effect=RuntimeError()):
            result = send_email(db_session, message)

        assert result.error == "Failed to send email with SENDGRID"


class TestSmtp2go:
    def test_sends_with_key(self, db_session, message):
        save_config(db_session, provider_type="SMTP2GO", smtp2go_api_key=encrypt("api-123"))

        with patch(f"{DISPATCHER}.send_with_smtp2go") as mock_send:
            result = send_email(db_session, message)

        assert result.success is True
        mock_send.assert_called_once_with(message, "api-123")

    def test_delivery_error_message_kept(self, db_session, message):
        save_config(db_session, provider_type="SMTP2GO", smtp2go_api_key="api-123")

        with patch(
            f"{DISPATCHER}.send_with_smtp2go",
            side_effect=MailDeliveryError("Sender not verified"),
        ):
            result = send_email(db_session, message)

        assert result.to_dict() == {"success": False, "error": "Sender not verified"}

    def test_missing_key(self, db_session, message):
        save_config(db_session, provider_type="SMTP2GO")
        assert send_email(db_session, message).error == "SMTP2GO API key is not configured."


class TestManualSmtp:
    def test_sends_with_server_settings(self, db_session, message):
        save_config(
            db_session,
            provider_type="MANUAL_SMTP",
            server_address="smtp.example.com",
            port=465,
            username="mailer",
            password=encrypt("smtp-pass"),
            enable_tls=True,
            allow_self_signed_cert=True,
        )

        with patch(f"{DISPATCHER}.send_with_smtp") as mock_send:
            result = send_email(db_session, message)

        assert result.success is True
        mock_send.assert_called_once_with(
            message,
            host="smtp.example.com",
            port=465,
            username="mailer",
            password="smtp-pass",
            enable_tls=True,
            allow_self_signed_cert=True,
        )

    def test_incomplete_settings(self, db_session, message):
        save_config(db_session, provider_type="MANUAL_SMTP", server_address="smtp.example.com")

        with patch(f"{DISPATCHER}.send_with_smtp") as mock_send:
            result = send_email(db_session, message)

        assert result.error == "Manual SMTP settings are incomplete."
        mock_send.assert_not_called()

    def test_connection_error_becomes_failure(self, db_session, message):
        save_config(
            db_session,
            provider_type="MANUAL_SMTP",
            server_address="smtp.example.com",
            port=587,
            username="mailer",
            password="smtp-pass",
        )

        with patch(f"{DISPATCHER}.send_with_smtp", side_effect=ConnectionRefusedError("refused")):
            result = send_email(db_session, message)

        assert result.success is False
        assert result.error == "refused"


class TestUnsupportedProvider:
    def test_unknown_provider(self, db_session, message):
        save_config(db_session, provider_type="PIGEON")
        assert send_email(db_session, message).error == "Unsupported email provider."
