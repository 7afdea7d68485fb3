"""
Email delivery through SendGrid, SMTP2GO or a manually configured SMTP server.
"""

from baby_tracker.integrations.mail.base import MailMessage, SendResult
from baby_tracker.integrations.mail.dispatcher import get_email_config, send_email
from baby_tracker.integrations.mail.exceptions import MailDeliveryError, MailError

__all__ = [
    "MailMessage",
    "SendResult",
    "get_email_config",
    "send_email",
    "MailDeliveryError",
    "MailError",
]
