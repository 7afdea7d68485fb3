"""
Email configuration API routes (system administrator only).

1. /api/email/config - Read or change the provider configuration
2. /api/email/test - Send a test message with the stored configuration
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from baby_tracker.api.dependencies import require_sysadmin
from baby_tracker.api.models import EmailConfigUpdateRequest, EmailTestRequest
from baby_tracker.api.response_builder import build_response
from baby_tracker.auth import AuthContext
from baby_tracker.crypto import encrypt
from baby_tracker.database import get_db
from baby_tracker.integrations.mail import MailMessage, get_email_config, send_email
from baby_tracker.models import EmailConfig

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/email", tags=["email"])

SECRET_FIELDS = ("sendgrid_api_key", "smtp2go_api_key", "password")


@router.get("/config")
def read_email_config(
    auth: AuthContext = Depends(require_sysadmin),
    db: Session = Depends(get_db),
):
    """Get the email configuration with secrets masked (null when unset)."""
    config = get_email_config(db)
    return build_response(config.to_response() if config else None)


@router.put("/config")
def write_email_config(
    request: EmailConfigUpdateRequest,
    auth: AuthContext = Depends(require_sysadmin),
    db: Session = Depends(get_db),
):
    """
    Create or update the email configuration.

    Secrets are encrypted before storage; an empty secret leaves the stored
    value unchanged.
    """
    config = get_email_config(db)
    if config is None:
        config = EmailConfig()
        db.add(config)

    for field, value in request.changes().items():
        if field in SECRET_FIELDS:
            if not value:
                continue
            value = encrypt(value)
        setattr(config, field, value)

    db.flush()
    logger.info(f"Email configuration updated (provider {config.provider_type})")
    return build_response(config.to_response())


@router.post("/test")
def send_test_email(
    request: EmailTestRequest,
    auth: AuthContext = Depends(require_sysadmin),
    db: Session = Depends(get_db),
):
    """Send a test email; provider failures come back as success false."""
    message = MailMessage(
        to=request.to,
        sender=request.sender,
        subject=request.subject,
        text="This is a test email from Baby Tracker. Your email settings work.",
        html="<p>This is a test email from <strong>Baby Tracker</strong>. Your email settings work.</p>",
    )
    return send_email(db, message).to_dict()
