"""
SendGrid delivery.
"""

import logging

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from baby_tracker.integrations.mail.base import MailMessage
from baby_tracker.integrations.mail.exceptions import MailDeliveryError

logger = logging.getLogger(__name__)


def send_with_sendgrid(message: MailMessage, api_key: str) -> None:
    """
    Send a message through the SendGrid API.

    Raises:
        MailDeliveryError: If SendGrid answers with a non-2xx status
    """
    mail = Mail(
        from_email=message.sender,
        to_emails=message.to,
        subject=message.subject,
        plain_text_content=message.text,
        html_content=message.html,
    )

    response = SendGridAPIClient(api_key).send(mail)
    if not 200 <= response.status_code < 300:
        raise MailDeliveryError(
            f"SendGrid returned status {response.status_code}: {response.body}"
        )

    logger.info(f"Email sent via SendGrid to {message.to}")
