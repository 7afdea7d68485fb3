"""
Hermes push notification client.

Hermes takes a JSON alert and expects the raw API key in the
Authorization header, without a "Bearer" prefix.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from baby_tracker.config import get_settings

logger = logging.getLogger(__name__)

APP_NAME = "Baby Tracker"
ALERT_SOUND = "alert"

NOTIFICATION_FEED = "FEED"
NOTIFICATION_DIAPER = "DIAPER"
NOTIFICATION_TYPES = (NOTIFICATION_FEED, NOTIFICATION_DIAPER)


@dataclass
class HermesResult:
    """Outcome of a Hermes call."""

    success: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True}
        return {"success": False, "error": self.error}


def build_alert_payload(
    notification_type: str,
    title: str,
    feed_subtitle: Optional[str],
    feed_body: str,
    diaper_subtitle: Optional[str],
    diaper_body: str,
) -> dict:
    """
    Build the alert for a FEED or DIAPER warning.

    Empty subtitles are left out of the payload.
    """
    if notification_type == NOTIFICATION_FEED:
        subtitle, body = feed_subtitle, feed_body
    else:
        subtitle, body = diaper_subtitle, diaper_body

    payload = {
        "title": title,
        "body": body,
        "name": APP_NAME,
        "sound": ALERT_SOUND,
    }
    if subtitle:
        payload["subtitle"] = subtitle
    return payload


def send_alert(endpoint: Optional[str], api_key: str, payload: dict) -> HermesResult:
    """
    POST an alert to Hermes.

    Non-2xx answers are returned as failures carrying the response text.
    Transport errors propagate to the caller.

    Args:
        endpoint: Hermes URL; the configured default when empty
        api_key: Raw Hermes API key
        payload: Alert body

    Returns:
        HermesResult
    """
    settings = get_settings()
    endpoint = endpoint or settings.hermes_api_endpoint

    logger.info(f"Sending Hermes alert to {endpoint}")
    response = httpx.post(
        endpoint,
        json=payload,
        headers={"Authorization": api_key},
        timeout=settings.http_timeout,
    )

    if not response.is_success:
        text = response.text
        logger.warning(f"Hermes returned {response.status_code}: {text}")
        return HermesResult(False, text or f"Hermes API returned {response.status_code}")

    return HermesResult(True)
