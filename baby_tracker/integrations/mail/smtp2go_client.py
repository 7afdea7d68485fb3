"""
SMTP2GO delivery over its HTTP API.
"""

import logging

import httpx

from baby_tracker.config import get_settings
from baby_tracker.integrations.mail.base import MailMessage
from baby_tracker.integrations.mail.exceptions import MailDeliveryError

logger = logging.getLogger(__name__)

SMTP2GO_SEND_URL = "https://api.smtp2go.com/v3/email/send"


def extract_smtp2go_error(payload: dict) -> str:
    """Pick the most specific error message out of an SMTP2GO response."""
    data = payload.get("data") or {}
    failures = data.get("failures") or []
    first_failure = failures[0] if failures else {}
    if isinstance(first_failure, str):
        first_failure = {"error": first_failure}
    return (
        data.get("error")
        or first_failure.get("error")
        or "Failed to send email with SMTP2GO"
    )


def send_with_smtp2go(message: MailMessage, api_key: str) -> None:
    """
    Send a message through the SMTP2GO API.

    The call only counts as delivered when the response is 2xx and
    data.succeeded is positive.

    Raises:
        MailDeliveryError: With the error SMTP2GO reported
    """
    body = {
        "sender": message.sender,
        "to": [message.to],
        "subject": message.subject,
        "text_body": message.text,
        "html_body": message.html,
    }

    response = httpx.post(
        SMTP2GO_SEND_URL,
        json=body,
        headers={"X-Smtp2go-Api-Key": api_key},
        timeout=get_settings().http_timeout,
    )

    try:
        payload = response.json()
    except ValueError:
        payload = {}

    data = payload.get("data") or {}
    if response.is_success and (data.get("succeeded") or 0) > 0:
        logger.info(f"Email sent via SMTP2GO to {message.to}")
        return

    raise MailDeliveryError(extract_smtp2go_error(payload))
