"""
Unit tests for the model base classes.

Tests:
- GUID TypeDecorator with SQLite (CHAR storage)
- Audit timestamps and soft deletion
- camelCase wire representation
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from baby_tracker.models import Baby, Family
from baby_tracker.models.base import ensure_utc, to_camel


class TestGUIDTypeDecorator:
    """Test the GUID TypeDecorator for UUID handling."""

    def test_guid_generation(self, db_session: Session):
        family = Family(name="Test", slug="test-family")
        db_session.add(family)
        db_session.commit()
        db_session.refresh(family)

        assert isinstance(family.id, uuid.UUID)

    def test_guid_persistence(self, db_session: Session):
        family = Family(name="Test", slug="test-family")
        db_session.add(family)
        db_session.commit()
        original_id = family.id

        db_session.expire_all()
        assert db_session.get(Family, original_id).id == original_id


class TestTimestampsAndSoftDelete:
    def test_created_at_is_set(self, db_session: Session):
        family = Family(name="Test", slug="test-family")
        db_session.add(family)
        db_session.commit()
        db_session.refresh(family)

        assert family.created_at is not None
        assert family.updated_at is None

    def test_soft_delete(self, db_session: Session, sample_family):
        baby = Baby(
            first_name="Ada",
            last_name="Smith",
            birth_date=datetime(2026, 6, 1, tzinfo=timezone.utc),
            family_id=sample_family.id,
        )
        db_session.add(baby)
        db_session.commit()

        assert baby.is_deleted is False
        baby.soft_delete()
        db_session.commit()

        assert baby.is_deleted is True
        assert db_session.get(Baby, baby.id) is not None


class TestWireFormat:
    def test_to_camel(self):
        assert to_camel("is_active") == "isActive"
        assert to_camel("feed_warning_time") == "feedWarningTime"
        assert to_camel("name") == "name"

    def test_ensure_utc_attaches_utc_to_naive(self):
        naive = datetime(2026, 1, 1, 12, 0)
        assert ensure_utc(naive).tzinfo == timezone.utc
        assert ensure_utc(None) is None

    def test_to_response_uses_camel_case_and_strings(self, sample_family):
        data = sample_family.to_response()

        assert data["id"] == str(sample_family.id)
        assert data["slug"] == "smith-family"
        assert data["isActive"] is True
        assert "is_active" not in data
        assert isinstance(data["createdAt"], str)
