"""
Pytest configuration and fixtures for Baby Tracker tests.

Provides database session fixtures, an API client bound to the test
database, and sample families, babies and caretakers.
"""

import os

# Settings are cached on first use; pin them before the app is imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["PYTHON_ENV"] = "development"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["ADMIN_PASSWORD"] = "admin-test-password"
os.environ["ENC_HASH"] = "test-enc-hash"

from datetime import datetime, timezone
from typing import Generator

import pytest
import sqlalchemy as sa
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from baby_tracker.api.main import app
from baby_tracker.auth import authenticate, authenticate_sysadmin, ip_lockout, token_blacklist
from baby_tracker.database import get_db
from baby_tracker.models import Baby, Family, Medicine
from baby_tracker.models.base import Base
from baby_tracker.services import create_caretaker, create_setup_invite, start_setup

ADMIN_PASSWORD = "admin-test-password"
TEST_IP = "203.0.113.7"


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """
    Create a clean database session for each test.

    Uses an in-memory SQLite database shared through a StaticPool, so the
    API client's worker threads see the same data as the test.

    Yields:
        Session: SQLAlchemy session for database operations
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()
        # Disable foreign key constraints for drop operations
        with engine.begin() as connection:
            connection.execute(sa.text("PRAGMA foreign_keys=OFF"))
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(autouse=True)
def reset_auth_state():
    """Lockouts and invalidated tokens live in process memory."""
    ip_lockout.clear()
    token_blacklist.clear()
    yield
    ip_lockout.clear()
    token_blacklist.clear()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """API client whose requests use the test session."""

    def override_get_db():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# =============================================================================
# Sample data
# =============================================================================


@pytest.fixture
def sample_family(db_session: Session) -> Family:
    """First family, created through the first-run setup path."""
    return start_setup(db_session, "The Smiths", "smith-family")


@pytest.fixture
def other_family(db_session: Session, sample_family: Family) -> Family:
    """Second family, created with an invitation."""
    invite = create_setup_invite(db_session, "invite-password")
    return start_setup(db_session, "The Joneses", "jones-family", invite.token)


@pytest.fixture
def sample_baby(db_session: Session, sample_family: Family) -> Baby:
    baby = Baby(
        first_name="Ada",
        last_name="Smith",
        birth_date=datetime(2026, 6, 1, tzinfo=timezone.utc),
        family_id=sample_family.id,
    )
    db_session.add(baby)
    db_session.commit()
    db_session.refresh(baby)
    return baby


@pytest.fixture
def other_baby(db_session: Session, other_family: Family) -> Baby:
    baby = Baby(
        first_name="Ben",
        last_name="Jones",
        birth_date=datetime(2026, 5, 1, tzinfo=timezone.utc),
        family_id=other_family.id,
    )
    db_session.add(baby)
    db_session.commit()
    db_session.refresh(baby)
    return baby


@pytest.fixture
def sample_medicine(db_session: Session, sample_family: Family) -> Medicine:
    medicine = Medicine(name="Vitamin D", unit_abbr="ML", family_id=sample_family.id)
    db_session.add(medicine)
    db_session.commit()
    db_session.refresh(medicine)
    return medicine


@pytest.fixture
def sample_caretaker(db_session: Session, sample_family: Family):
    caretaker = create_caretaker(
        db_session,
        sample_family.id,
        {"login_id": "01", "name": "Mary", "type": "Parent", "security_pin": "4321"},
    )
    db_session.commit()
    return caretaker


# =============================================================================
# Authentication
# =============================================================================


@pytest.fixture
def auth_headers(db_session: Session, sample_family: Family) -> dict:
    """Bearer header for the sample family's system caretaker (shared PIN)."""
    result = authenticate(db_session, TEST_IP, "111222", family_slug=sample_family.slug)
    return {"Authorization": f"Bearer {result.token}"}


@pytest.fixture
def other_auth_headers(db_session: Session, other_family: Family) -> dict:
    result = authenticate(db_session, TEST_IP, "111222", family_slug=other_family.slug)
    return {"Authorization": f"Bearer {result.token}"}


@pytest.fixture
def sysadmin_headers() -> dict:
    result = authenticate_sysadmin(TEST_IP, ADMIN_PASSWORD)
    return {"Authorization": f"Bearer {result.token}"}
