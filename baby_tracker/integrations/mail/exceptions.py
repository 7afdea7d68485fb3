"""
Custom exceptions for email delivery.

Providers raise these; the dispatcher converts them into failed results.
"""


class MailError(Exception):
    """Base exception for email delivery."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class MailDeliveryError(MailError):
    """
    The provider did not accept the message.

    Causes:
    - Rejected credentials
    - Provider-side validation failure (bad sender, bad recipient)
    - Network failure talking to the provider
    """
