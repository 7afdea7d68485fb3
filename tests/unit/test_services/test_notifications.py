"""
Unit tests for the notifications service.

Hermes is mocked; tests cover settings gating, key decryption and the
one-per-hour repeat guard.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import func, select

from baby_tracker.integrations.hermes import HermesResult
from baby_tracker.models import NotificationLog
from baby_tracker.models.base import utcnow
from baby_tracker.services.activities import ActivityNotFoundError
from baby_tracker.services.families import update_settings
from baby_tracker.services.notifications import (
    NotificationsDisabledError,
    send_family_notification,
    send_warning,
)

SEND_ALERT = "baby_tracker.services.notifications.send_alert"


@pytest.fixture
def notifications_on(db_session, sample_family):
    update_settings(
        db_session,
        sample_family.id,
        {
            "notification_enabled": True,
            "hermes_api_key": "hermes-key",
            "hermes_api_endpoint": "https://hermes.example.com/api/sendAlert",
        },
    )
    db_session.commit()


def sent_count(session) -> int:
    return session.scalar(select(func.count()).select_from(NotificationLog))


class TestSendFamilyNotification:
    def test_disabled(self, db_session, sample_family):
        with patch(SEND_ALERT) as mock_send:
            result = send_family_notification(db_session, sample_family.id, {"title": "x"})

        assert result.success is False
        assert result.error == "Notifications disabled"
        mock_send.assert_not_called()

    def test_missing_key(self, db_session, sample_family):
        update_settings(db_session, sample_family.id, {"notification_enabled": True})

        result = send_family_notification(db_session, sample_family.id, {"title": "x"})

        assert result.to_dict() == {"success": False, "error": "Hermes API key missing"}

    def test_sends_decrypted_key(self, db_session, sample_family, notifications_on):
        with patch(SEND_ALERT, return_value=HermesResult(True)) as mock_send:
            result = send_family_notification(db_session, sample_family.id, {"title": "x"})

        assert result.success is True
        endpoint, api_key, payload = mock_send.call_args.args
        assert endpoint == "https://hermes.example.com/api/sendAlert"
        assert api_key == "hermes-key"
        assert payload == {"title": "x"}

    def test_transport_error_becomes_failure(self, db_session, sample_family, notifications_on):
        with patch(SEND_ALERT, side_effect=ConnectionError("unreachable")):
            result = send_family_notification(db_session, sample_family.id, {"title": "x"})

        assert result.success is False
        assert result.error == "unreachable"


class TestSendWarning:
    def test_disabled_raises(self, db_session, sample_family, sample_baby):
        with pytest.raises(NotificationsDisabledError):
            send_warning(db_session, sample_family.id, sample_baby.id, "FEED")

    def test_baby_of_other_family(self, db_session, sample_family, notifications_on, other_baby):
        with pytest.raises(ActivityNotFoundError):
            send_warning(db_session, sample_family.id, other_baby.id, "FEED")

    def test_sends_feed_warning_and_records_it(
        self, db_session, sample_family, sample_baby, notifications_on
    ):
        with patch(SEND_ALERT, return_value=HermesResult(True)) as mock_send:
            outcome = send_warning(db_session, sample_family.id, sample_baby.id, "FEED")

        assert outcome["skipped"] is False
        assert outcome["result"].success is True
        payload = mock_send.call_args.args[2]
        assert payload["title"] == "Warning"
        assert payload["subtitle"] == "It's time for feeding"
        assert sent_count(db_session) == 1

    def test_repeat_within_hour_skipped(
        self, db_session, sample_family, sample_baby, notifications_on
    ):
        with patch(SEND_ALERT, return_value=HermesResult(True)) as mock_send:
            send_warning(db_session, sample_family.id, sample_baby.id, "DIAPER")
            outcome = send_warning(db_session, sample_family.id, sample_baby.id, "DIAPER")

        assert outcome == {"skipped": True}
        assert mock_send.call_count == 1

    def test_other_type_not_skipped(
        self, db_session, sample_family, sample_baby, notifications_on
    ):
        with patch(SEND_ALERT, return_value=HermesResult(True)) as mock_send:
            send_warning(db_session, sample_family.id, sample_baby.id, "DIAPER")
            send_warning(db_session, sample_family.id, sample_baby.id, "FEED")

        assert mock_send.call_count == 2

    def test_older_warning_does_not_block(
        self, db_session, sample_family, sample_baby, notifications_on
    ):
        db_session.add(
            NotificationLog(
                baby_id=sample_baby.id,
                family_id=sample_family.id,
                type="FEED",
                sent_at=utcnow() - timedelta(hours=2),
            )
        )
        db_session.commit()

        with patch(SEND_ALERT, return_value=HermesResult(True)) as mock_send:
            outcome = send_warning(db_session, sample_family.id, sample_baby.id, "FEED")

        assert outcome["skipped"] is False
        mock_send.assert_called_once()

    def test_failed_send_not_recorded(
        self, db_session, sample_family, sample_baby, notifications_on
    ):
        with patch(SEND_ALERT, return_value=HermesResult(False, "Unauthorized")):
            outcome = send_warning(db_session, sample_family.id, sample_baby.id, "FEED")

        assert outcome["result"].error == "Unauthorized"
        assert sent_count(db_session) == 0
