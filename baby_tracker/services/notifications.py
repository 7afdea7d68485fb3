"""
Family push notifications.

Warnings go out through the family's own Hermes settings. A warning of the
same type for the same baby is sent at most once an hour.
"""

import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from baby_tracker.crypto import decrypt
from baby_tracker.integrations.hermes import HermesResult, build_alert_payload, send_alert
from baby_tracker.models.activity import NotificationLog
from baby_tracker.models.base import utcnow
from baby_tracker.models.family import FamilySettings
from baby_tracker.services.activities import get_baby_for_family

logger = logging.getLogger(__name__)

WARNING_REPEAT_INTERVAL = timedelta(hours=1)


class NotificationsDisabledError(Exception):
    """The family has not turned on push notifications."""


def _get_settings(session: Session, family_id: UUID) -> FamilySettings | None:
    return session.scalar(select(FamilySettings).where(FamilySettings.family_id == family_id))


def send_family_notification(session: Session, family_id: UUID, payload: dict) -> HermesResult:
    """
    Send an alert using a family's notification settings.

    Returns a failed result rather than raising when notifications are off,
    the API key is missing, or Hermes cannot be reached.
    """
    settings = _get_settings(session, family_id)
    if settings is None or not settings.notification_enabled:
        return HermesResult(False, "Notifications disabled")
    if not settings.hermes_api_key:
        return HermesResult(False, "Hermes API key missing")

    try:
        return send_alert(
            settings.hermes_api_endpoint,
            decrypt(settings.hermes_api_key),
            payload,
        )
    except Exception as e:
        logger.error(f"Hermes notification for family {family_id} failed: {e}", exc_info=True)
        return HermesResult(False, str(e) or "Unknown Hermes error")


def send_warning(
    session: Session,
    family_id: UUID,
    baby_id: UUID,
    notification_type: str,
) -> dict:
    """
    Send a FEED or DIAPER warning for a baby.

    Raises:
        ActivityNotFoundError: If the baby is not in this family
        NotificationsDisabledError: If the family has notifications off

    Returns:
        {"skipped": True} when the same warning went out within the hour,
        otherwise {"skipped": False, "result": HermesResult}
    """
    get_baby_for_family(session, baby_id, family_id)

    settings = _get_settings(session, family_id)
    if settings is None or not settings.notification_enabled:
        raise NotificationsDisabledError("Notifications are disabled")

    recent = session.scalar(
        select(NotificationLog)
        .where(
            NotificationLog.baby_id == baby_id,
            NotificationLog.type == notification_type,
            NotificationLog.sent_at > utcnow() - WARNING_REPEAT_INTERVAL,
        )
        .limit(1)
    )
    if recent is not None:
        logger.info(f"Skipping {notification_type} warning for baby {baby_id}: sent recently")
        return {"skipped": True}

    payload = build_alert_payload(
        notification_type,
        title=settings.notification_title,
        feed_subtitle=settings.notification_feed_subtitle,
        feed_body=settings.notification_feed_body,
        diaper_subtitle=settings.notification_diaper_subtitle,
        diaper_body=settings.notification_diaper_body,
    )
    result = send_family_notification(session, family_id, payload)

    if result.success:
        session.add(NotificationLog(baby_id=baby_id, type=notification_type, family_id=family_id))
        session.flush()

    return {"skipped": False, "result": result}
