"""
Unit tests for the family setup service.

Tests first-run setup, invitation-based setup, atomicity of family
creation and invitation validation.
"""

from datetime import timedelta

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from baby_tracker.crypto import is_encrypted
from baby_tracker.models import Caretaker, Family, FamilySettings, FamilySetup, SetupClaim
from baby_tracker.models.base import Base, utcnow
from baby_tracker.services import setup as setup_service
from baby_tracker.services.setup import (
    SetupConflictError,
    SetupForbiddenError,
    SetupPasswordError,
    SetupTokenExpiredError,
    SetupTokenNotFoundError,
    SetupValidationError,
    create_setup_invite,
    list_setup_invites,
    revoke_setup_invite,
    start_setup,
    validate_setup_token,
    verify_setup_password,
)


def count_rows(session, model) -> int:
    return session.scalar(select(func.count()).select_from(model))


def snapshot(session) -> tuple:
    """Row counts of everything a setup writes."""
    return tuple(
        count_rows(session, model)
        for model in (Family, FamilySettings, Caretaker, FamilySetup, SetupClaim)
    )


def bound_family_id(session, token: str):
    session.expire_all()
    return session.scalar(select(FamilySetup.family_id).where(FamilySetup.token == token))


def expire_invite(session, token: str) -> None:
    invite = session.scalar(select(FamilySetup).where(FamilySetup.token == token))
    invite.expires_at = utcnow() - timedelta(hours=1)
    session.commit()


class TestFirstRunSetup:
    """Test creating the first family without an invitation."""

    def test_creates_family_settings_and_system_caretaker(self, db_session):
        family = start_setup(db_session, "The Smiths", "smith-family")

        assert family.id is not None
        assert family.slug == "smith-family"
        assert family.is_active is True

        settings = db_session.scalar(
            select(FamilySettings).where(FamilySettings.family_id == family.id)
        )
        assert settings is not None
        assert settings.family_name == "The Smiths"

        system = db_session.scalar(
            select(Caretaker).where(Caretaker.family_id == family.id)
        )
        assert system.is_system is True
        assert system.role == "ADMIN"

    def test_second_family_requires_invitation(self, db_session, sample_family):
        with pytest.raises(SetupForbiddenError) as exc_info:
            start_setup(db_session, "Another", "another-family")

        assert exc_info.value.status_code == 403
        assert count_rows(db_session, Family) == 1

    @pytest.mark.parametrize(
        "name,slug",
        [(None, "good-slug"), ("", "good-slug"), ("Family", None), ("Family", "")],
    )
    def test_name_and_slug_required(self, db_session, name, slug):
        with pytest.raises(SetupValidationError) as exc_info:
            start_setup(db_session, name, slug)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Family name and slug are required"

    def test_invalid_slug_reports_validation_message(self, db_session):
        with pytest.raises(SetupValidationError) as exc_info:
            start_setup(db_session, "Family", "api")

        assert exc_info.value.message == "This URL is reserved by the system and cannot be used"
        assert count_rows(db_session, Family) == 0


class TestInvitedSetup:
    """Test creating a family with an invitation token."""

    def test_consumes_token(self, db_session, sample_family):
        invite = create_setup_invite(db_session, "invite-password")

        family = start_setup(db_session, "The Joneses", "jones-family", invite.token)

        setup_row = db_session.scalar(
            select(FamilySetup).where(FamilySetup.token == invite.token)
        )
        assert setup_row.family_id == family.id
        assert setup_row.is_used is True
        assert count_rows(db_session, FamilySettings) == 2

    def test_unknown_token_changes_nothing(self, db_session, sample_family):
        before = (
            count_rows(db_session, Family),
            count_rows(db_session, FamilySettings),
            count_rows(db_session, FamilySetup),
        )

        with pytest.raises(SetupTokenNotFoundError) as exc_info:
            start_setup(db_session, "Ghosts", "ghost-family", "nope00")

        assert exc_info.value.status_code == 404
        after = (
            count_rows(db_session, Family),
            count_rows(db_session, FamilySettings),
            count_rows(db_session, FamilySetup),
        )
        assert after == before

    def test_expired_token_is_not_found(self, db_session, sample_family):
        invite = create_setup_invite(db_session, "invite-password")
        expire_invite(db_session, invite.token)
        before = snapshot(db_session)

        with pytest.raises(SetupTokenNotFoundError) as exc_info:
            start_setup(db_session, "Late", "late-family", invite.token)

        assert exc_info.value.message == "Invalid or expired token"
        assert snapshot(db_session) == before
        assert bound_family_id(db_session, invite.token) is None

    def test_used_token_conflicts(self, db_session, sample_family):
        invite = create_setup_invite(db_session, "invite-password")
        first = start_setup(db_session, "The Joneses", "jones-family", invite.token)
        first_id = first.id
        before = snapshot(db_session)

        with pytest.raises(SetupConflictError) as exc_info:
            start_setup(db_session, "Again", "again-family", invite.token)

        assert exc_info.value.status_code == 409
        assert exc_info.value.message == "Token has already been used"
        assert snapshot(db_session) == before
        assert bound_family_id(db_session, invite.token) == first_id

    def test_taken_slug_conflicts_and_keeps_token(self, db_session, sample_family):
        invite = create_setup_invite(db_session, "invite-password")

        with pytest.raises(SetupConflictError):
            start_setup(db_session, "Copycats", "smith-family", invite.token)

        validate_setup_token(db_session, invite.token)

    def test_concurrent_setup_with_same_slug(self, db_session, sample_family, monkeypatch):
        """The loser of a slug race gets a conflict and its token stays unused."""
        first = create_setup_invite(db_session, "invite-password")
        second = create_setup_invite(db_session, "invite-password")

        # Both requests pass the pre-check; the unique index decides
        monkeypatch.setattr(setup_service, "slug_exists", lambda session, slug: False)

        start_setup(db_session, "Winners", "race-family", first.token)
        with pytest.raises(SetupConflictError):
            start_setup(db_session, "Losers", "race-family", second.token)

        families = db_session.scalars(
            select(Family).where(Family.slug == "race-family")
        ).all()
        assert len(families) == 1
        assert families[0].name == "Winners"

        loser = db_session.scalar(select(FamilySetup).where(FamilySetup.token == second.token))
        assert loser.family_id is None
        assert count_rows(db_session, FamilySettings) == 2


@pytest.fixture
def file_sessions(tmp_path):
    """
    Session factory over a file database.

    Each session gets its own connection, so one setup can commit while
    another is part way through.
    """
    engine = create_engine(f"sqlite:///{tmp_path / 'setup.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def run_competitor_first(monkeypatch, competitor):
    """
    Let `competitor` run to completion the first time start_setup checks
    the slug, after the token or first-run check has already passed.
    """
    real_slug_exists = setup_service.slug_exists
    results = []

    def slug_exists_after_competitor(session, slug):
        if not results:
            results.append(None)
            results[0] = competitor()
        return real_slug_exists(session, slug)

    monkeypatch.setattr(setup_service, "slug_exists", slug_exists_after_competitor)
    return results


class TestInterleavedSetup:
    """Two setups on separate connections, the second committing first."""

    def test_token_consumed_after_lookup(self, file_sessions, monkeypatch):
        with file_sessions() as session:
            start_setup(session, "The Smiths", "smith-family")
            token = create_setup_invite(session, "invite-password").token

        def competitor():
            with file_sessions() as other:
                return start_setup(other, "The Joneses", "jones-family", token).id

        results = run_competitor_first(monkeypatch, competitor)

        with file_sessions() as session:
            with pytest.raises(SetupConflictError) as exc_info:
                start_setup(session, "The Browns", "brown-family", token)

        assert exc_info.value.message == "Token has already been used"
        with file_sessions() as session:
            assert snapshot(session) == (2, 2, 2, 1, 1)
            assert bound_family_id(session, token) == results[0]
            assert session.scalar(select(Family).where(Family.slug == "brown-family")) is None

    def test_concurrent_first_runs(self, file_sessions, monkeypatch):
        def competitor():
            with file_sessions() as other:
                return start_setup(other, "The Joneses", "jones-family").id

        results = run_competitor_first(monkeypatch, competitor)

        with file_sessions() as session:
            with pytest.raises(SetupForbiddenError) as exc_info:
                start_setup(session, "The Smiths", "smith-family")

        assert exc_info.value.status_code == 403
        with file_sessions() as session:
            families = session.scalars(select(Family)).all()
            assert [family.slug for family in families] == ["jones-family"]
            assert snapshot(session) == (1, 1, 1, 0, 1)
            claim = session.scalar(select(SetupClaim))
            assert claim.family_id == results[0]


class TestValidateSetupToken:
    def test_valid_token(self, db_session, sample_family):
        invite = create_setup_invite(db_session, "invite-password")
        assert validate_setup_token(db_session, invite.token) == {"valid": True}

    def test_missing_token(self, db_session):
        with pytest.raises(SetupValidationError):
            validate_setup_token(db_session, None)

    def test_unknown_token(self, db_session):
        with pytest.raises(SetupTokenNotFoundError):
            validate_setup_token(db_session, "abc123")

    def test_expired_token(self, db_session, sample_family):
        invite = create_setup_invite(db_session, "invite-password")
        expire_invite(db_session, invite.token)

        with pytest.raises(SetupTokenExpiredError) as exc_info:
            validate_setup_token(db_session, invite.token)
        assert exc_info.value.status_code == 410

    def test_used_token(self, db_session, other_family):
        used = db_session.scalar(
            select(FamilySetup).where(FamilySetup.family_id == other_family.id)
        )
        with pytest.raises(SetupConflictError):
            validate_setup_token(db_session, used.token)


class TestCreateSetupInvite:
    def test_creates_six_hex_character_token(self, db_session, sample_family):
        invite = create_setup_invite(db_session, "invite-password")

        assert len(invite.token) == 6
        int(invite.token, 16)
        assert invite.setup_url == f"/setup/{invite.token}"
        assert invite.expires_at > utcnow() + timedelta(days=6)

    def test_password_stored_encrypted(self, db_session, sample_family):
        invite = create_setup_invite(db_session, "invite-password")

        row = db_session.scalar(select(FamilySetup).where(FamilySetup.token == invite.token))
        assert row.password != "invite-password"
        assert is_encrypted(row.password)

    def test_created_by_defaults_to_system_caretaker(self, db_session, sample_family):
        invite = create_setup_invite(db_session, "invite-password")

        row = db_session.scalar(select(FamilySetup).where(FamilySetup.token == invite.token))
        system = db_session.scalar(select(Caretaker).where(Caretaker.login_id == "00"))
        assert row.created_by == system.id

    def test_short_password_rejected(self, db_session):
        with pytest.raises(SetupValidationError):
            create_setup_invite(db_session, "12345")


class TestVerifySetupPassword:
    def test_correct_password(self, db_session, sample_family):
        invite = create_setup_invite(db_session, "invite-password")
        row = verify_setup_password(db_session, invite.token, "invite-password")
        assert row.token == invite.token

    def test_wrong_password(self, db_session, sample_family):
        invite = create_setup_invite(db_session, "invite-password")

        with pytest.raises(SetupPasswordError) as exc_info:
            verify_setup_password(db_session, invite.token, "wrong-password")
        assert exc_info.value.status_code == 401


class TestSetupInvites:
    def test_lists_newest_first_with_state(self, db_session, other_family):
        used = db_session.scalar(
            select(FamilySetup).where(FamilySetup.family_id == other_family.id)
        )
        used.created_at = utcnow() - timedelta(days=1)
        db_session.commit()
        fresh = create_setup_invite(db_session, "invite-password")

        invites = list_setup_invites(db_session)

        assert [invite["token"] for invite in invites] == [fresh.token, used.token]
        assert invites[0]["isUsed"] is False
        assert invites[0]["isExpired"] is False
        assert invites[0]["family"] is None
        assert invites[0]["creator"]["loginId"] == "00"
        assert invites[1]["isUsed"] is True
        assert invites[1]["family"] == {
            "id": str(other_family.id),
            "name": "The Joneses",
            "slug": "jones-family",
        }
        assert "password" not in invites[0]

    def test_revoke_deletes_invite(self, db_session, sample_family):
        invite = create_setup_invite(db_session, "invite-password")
        row = db_session.scalar(select(FamilySetup).where(FamilySetup.token == invite.token))

        assert revoke_setup_invite(db_session, str(row.id)) == {"id": str(row.id)}
        db_session.commit()

        with pytest.raises(SetupTokenNotFoundError):
            validate_setup_token(db_session, invite.token)

    def test_revoke_requires_id(self, db_session):
        with pytest.raises(SetupValidationError) as exc_info:
            revoke_setup_invite(db_session, None)
        assert exc_info.value.message == "Invite ID is required"

    @pytest.mark.parametrize("invite_id", ["not-a-uuid", "00000000-0000-0000-0000-000000000000"])
    def test_revoke_unknown_invite(self, db_session, invite_id):
        with pytest.raises(SetupTokenNotFoundError) as exc_info:
            revoke_setup_invite(db_session, invite_id)
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Invite not found"
