"""
Email dispatcher.

Reads the stored EmailConfig row and hands the message to the provider it
selects. Every outcome, including provider exceptions, comes back as a
SendResult; nothing is raised to the caller and nothing is retried.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from baby_tracker.crypto import decrypt
from baby_tracker.integrations.mail.base import MailMessage, SendResult
from baby_tracker.integrations.mail.exceptions import MailError
from baby_tracker.integrations.mail.sendgrid_client import send_with_sendgrid
from baby_tracker.integrations.mail.smtp2go_client import send_with_smtp2go
from baby_tracker.integrations.mail.smtp_client import send_with_smtp
from baby_tracker.models.email_config import (
    PROVIDER_MANUAL_SMTP,
    PROVIDER_SENDGRID,
    PROVIDER_SMTP2GO,
    EmailConfig,
)

logger = logging.getLogger(__name__)


def get_email_config(session: Session) -> EmailConfig | None:
    """Get the email configuration row, if one exists."""
    return session.scalar(select(EmailConfig).order_by(EmailConfig.created_at).limit(1))


def _deliver(config: EmailConfig, message: MailMessage) -> SendResult:
    provider = config.provider_type

    if provider == PROVIDER_SENDGRID:
        if not config.sendgrid_api_key:
            return SendResult.failed("SendGrid API key is not configured.")
        send_with_sendgrid(message, decrypt(config.sendgrid_api_key))

    elif provider == PROVIDER_SMTP2GO:
        if not config.smtp2go_api_key:
            return SendResult.failed("SMTP2GO API key is not configured.")
        send_with_smtp2go(message, decrypt(config.smtp2go_api_key))

    elif provider == PROVIDER_MANUAL_SMTP:
        if not (config.server_address and config.port and config.username and config.password):
            return SendResult.failed("Manual SMTP settings are incomplete.")
        send_with_smtp(
            message,
            host=config.server_address,
            port=config.port,
            username=config.username,
            password=decrypt(config.password),
            enable_tls=config.enable_tls,
            allow_self_signed_cert=config.allow_self_signed_cert,
        )

    else:
        logger.error(f"Unsupported email provider type: {provider}")
        return SendResult.failed("Unsupported email provider.")

    return SendResult.ok()


def send_email(session: Session, message: MailMessage) -> SendResult:
    """
    Send an email with the configured provider.

    Args:
        session: Database session used to read EmailConfig
        message: Message to send

    Returns:
        SendResult; success is False with an error message on any failure
    """
    config = get_email_config(session)
    if config is None:
        logger.error("Email configuration not found in the database")
        return SendResult.failed("Email configuration not found.")

    try:
        return _deliver(config, message)
    except MailError as e:
        logger.error(f"Email to {message.to} via {config.provider_type} failed: {e.message}")
        return SendResult.failed(e.message)
    except Exception as e:
        logger.error(
            f"Email to {message.to} via {config.provider_type} raised: {e}",
            exc_info=True,
        )
        return SendResult.failed(str(e) or f"Failed to send email with {config.provider_type}")
