"""
Message and result types shared by the email providers.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class MailMessage:
    """An outgoing email with plain text and HTML bodies."""

    to: str
    sender: str
    subject: str
    text: str
    html: str


@dataclass
class SendResult:
    """
    Outcome of a send attempt.

    Failures carry a human-readable error; the dispatcher never raises.
    """

    success: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "SendResult":
        return cls(success=True)

    @classmethod
    def failed(cls, error: str) -> "SendResult":
        return cls(success=False, error=error)

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True}
        return {"success": False, "error": self.error}
