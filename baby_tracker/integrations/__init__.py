"""
External service integrations for Baby Tracker.

Provides email delivery and Hermes push notifications.
"""

from baby_tracker.integrations.hermes import HermesResult, build_alert_payload, send_alert
from baby_tracker.integrations.mail import MailMessage, SendResult, send_email

__all__ = [
    "HermesResult",
    "build_alert_payload",
    "send_alert",
    "MailMessage",
    "SendResult",
    "send_email",
]
