"""
Outbound email configuration.

A single row selects the provider used by the email dispatcher and holds
its credentials. Secrets are stored encrypted when ENC_HASH is configured.
"""

from typing import Optional

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from baby_tracker.models.base import TimestampedModel

PROVIDER_SENDGRID = "SENDGRID"
PROVIDER_SMTP2GO = "SMTP2GO"
PROVIDER_MANUAL_SMTP = "MANUAL_SMTP"

EMAIL_PROVIDERS = (PROVIDER_SENDGRID, PROVIDER_SMTP2GO, PROVIDER_MANUAL_SMTP)


class EmailConfig(TimestampedModel):
    """Email provider selection and credentials."""

    __tablename__ = "email_config"

    provider_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PROVIDER_SENDGRID,
        doc="SENDGRID, SMTP2GO or MANUAL_SMTP"
    )

    sendgrid_api_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    smtp2go_api_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Manual SMTP
    server_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    port: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    username: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    password: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    enable_tls: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    allow_self_signed_cert: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def to_response(self) -> dict:
        """Wire representation with secrets replaced by presence flags."""
        data = super().to_response()
        for key in ("sendgridApiKey", "smtp2goApiKey", "password"):
            data[key] = None
        data["hasSendgridApiKey"] = bool(self.sendgrid_api_key)
        data["hasSmtp2goApiKey"] = bool(self.smtp2go_api_key)
        data["hasPassword"] = bool(self.password)
        return data

    def __repr__(self) -> str:
        return f"<EmailConfig(provider_type='{self.provider_type}')>"
