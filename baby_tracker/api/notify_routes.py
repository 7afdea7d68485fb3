"""
Push notification API routes.

1. /api/notify/test - Send an alert with settings that are not saved yet
2. /api/notify/warning - Send a FEED or DIAPER warning for a baby

Hermes failures are answered with status 200 on the test route so that the
settings page can show the upstream message.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from baby_tracker.api.dependencies import get_auth_context
from baby_tracker.api.models import NotifyTestRequest, NotifyWarningRequest
from baby_tracker.api.response_builder import build_error_response, build_response
from baby_tracker.auth import AuthContext
from baby_tracker.database import get_db
from baby_tracker.integrations.hermes import build_alert_payload, send_alert
from baby_tracker.services import NotificationsDisabledError, send_warning

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notify", tags=["notifications"])


@router.post("/test")
def notify_test(
    request: NotifyTestRequest,
    auth: AuthContext = Depends(get_auth_context),
):
    """
    Send a test alert.

    Returns:
        {success: true} on delivery; {success: false, error} with 200 when
        Hermes rejects the alert and with 500 when it cannot be reached
    """
    if auth.family_id is None:
        return build_error_response("No family context", 403)
    if not request.hermes_api_key or not request.type:
        return build_error_response("API key and type are required", 400)

    payload = build_alert_payload(
        request.type,
        title=request.notification_title,
        feed_subtitle=request.notification_feed_subtitle,
        feed_body=request.notification_feed_body,
        diaper_subtitle=request.notification_diaper_subtitle,
        diaper_body=request.notification_diaper_body,
    )

    try:
        result = send_alert(request.hermes_api_endpoint, request.hermes_api_key, payload)
    except Exception as e:
        logger.error(f"Test notification for family {auth.family_id} failed: {e}", exc_info=True)
        return build_error_response(str(e) or "Failed to send test notification", 500)

    return result.to_dict()


@router.post("/warning")
def notify_warning(
    request: NotifyWarningRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """Send a warning unless the same one went out within the last hour."""
    if auth.family_id is None:
        return build_error_response("No family context", 403)
    if request.baby_id is None or not request.type:
        return build_error_response("Invalid body", 400)

    try:
        outcome = send_warning(db, auth.family_id, request.baby_id, request.type)
    except NotificationsDisabledError as e:
        return build_error_response(str(e), 400)

    if outcome["skipped"]:
        return build_response({"skipped": True})

    result = outcome["result"]
    if not result.success:
        return build_error_response(result.error, 502)
    return build_response()
