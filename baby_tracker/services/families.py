"""
Family lookup and per-family settings.

Provides functions for:
- Resolving families by slug or id
- Reading and updating a family's settings row
- Listing and adding caretakers
- Creating a family together with its settings and system caretaker
"""

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from baby_tracker.crypto import encrypt
from baby_tracker.models.family import (
    DEFAULT_SECURITY_PIN,
    SYSTEM_CARETAKER_LOGIN_ID,
    Caretaker,
    Family,
    FamilySettings,
)

logger = logging.getLogger(__name__)

# Settings a family may change through the API
UPDATABLE_SETTINGS = (
    "family_name",
    "security_pin",
    "default_bottle_unit",
    "default_solids_unit",
    "default_height_unit",
    "default_weight_unit",
    "default_temp_unit",
    "activity_settings",
    "enable_debug_timer",
    "enable_debug_timezone",
    "notification_enabled",
    "hermes_api_endpoint",
    "hermes_api_key",
    "notification_title",
    "notification_feed_subtitle",
    "notification_feed_body",
    "notification_diaper_subtitle",
    "notification_diaper_body",
)


def get_family_by_slug(session: Session, slug: str) -> Optional[Family]:
    """Get an active family by its slug."""
    stmt = select(Family).where(Family.slug == slug, Family.is_active.is_(True))
    return session.scalar(stmt)


def get_family_by_id(session: Session, family_id: UUID) -> Optional[Family]:
    """Get a family by id."""
    return session.get(Family, family_id)


def get_active_families(session: Session) -> list[Family]:
    """Get all active families ordered by name."""
    stmt = select(Family).where(Family.is_active.is_(True)).order_by(Family.name)
    return list(session.scalars(stmt).all())


def count_families(session: Session) -> int:
    """Count every family, active or not."""
    return session.scalar(select(func.count()).select_from(Family))


def get_system_caretaker(
    session: Session,
    family_id: Optional[UUID] = None,
) -> Optional[Caretaker]:
    """
    Get the system caretaker.

    Args:
        session: Database session
        family_id: Restrict to this family's system caretaker

    Returns:
        The system caretaker, or None if there is none
    """
    conditions = [
        Caretaker.login_id == SYSTEM_CARETAKER_LOGIN_ID,
        Caretaker.deleted_at.is_(None),
    ]
    if family_id is not None:
        conditions.append(Caretaker.family_id == family_id)
    stmt = select(Caretaker).where(*conditions).limit(1)
    return session.scalar(stmt)


def get_or_create_settings(session: Session, family_id: UUID) -> FamilySettings:
    """
    Get a family's settings, creating defaults if the row is missing.

    Families created through setup always have settings; this covers
    families that were imported without them.
    """
    settings = session.scalar(
        select(FamilySettings).where(FamilySettings.family_id == family_id)
    )
    if settings is not None:
        return settings

    family = session.get(Family, family_id)
    settings = FamilySettings(
        family_id=family_id,
        family_name=family.name if family else "My Family",
    )
    session.add(settings)
    session.flush()
    logger.info(f"Created default settings for family {family_id}")
    return settings


def update_settings(
    session: Session,
    family_id: UUID,
    changes: dict[str, Any],
) -> FamilySettings:
    """
    Apply changes to a family's settings.

    Unknown fields are ignored. The Hermes API key is encrypted before it is
    stored, and a PIN change is mirrored onto the family's system caretaker
    so the shared PIN keeps working for login.

    Args:
        session: Database session
        family_id: Family whose settings change
        changes: Field name to new value (snake_case)

    Returns:
        Updated settings
    """
    settings = get_or_create_settings(session, family_id)

    for field, value in changes.items():
        if field not in UPDATABLE_SETTINGS:
            continue
        if field == "hermes_api_key" and value:
            value = encrypt(value)
        setattr(settings, field, value)

    new_pin = changes.get("security_pin")
    if new_pin:
        system_caretaker = get_system_caretaker(session, family_id)
        if system_caretaker is not None:
            system_caretaker.security_pin = new_pin

    session.flush()
    logger.info(f"Updated settings for family {family_id}: {sorted(changes)}")
    return settings


def list_caretakers(session: Session, family_id: UUID) -> list[Caretaker]:
    """Get a family's caretakers, excluding the system caretaker."""
    stmt = (
        select(Caretaker)
        .where(
            Caretaker.family_id == family_id,
            Caretaker.login_id != SYSTEM_CARETAKER_LOGIN_ID,
            Caretaker.deleted_at.is_(None),
        )
        .order_by(Caretaker.name)
    )
    return list(session.scalars(stmt).all())


def login_id_taken(session: Session, family_id: UUID, login_id: str) -> bool:
    """Check whether a login id is already used within a family."""
    stmt = select(Caretaker.id).where(
        Caretaker.family_id == family_id,
        Caretaker.login_id == login_id,
        Caretaker.deleted_at.is_(None),
    )
    return session.scalar(stmt.limit(1)) is not None


def create_caretaker(session: Session, family_id: UUID, data: dict[str, Any]) -> Caretaker:
    """
    Add a caretaker to a family.

    Once a family has a caretaker of its own, login requires a login id
    as well as a PIN.
    """
    caretaker = Caretaker(
        family_id=family_id,
        login_id=data["login_id"],
        name=data["name"],
        type=data.get("type"),
        role=data.get("role") or "USER",
        security_pin=data["security_pin"],
    )
    session.add(caretaker)
    session.flush()
    logger.info(f"Created caretaker {caretaker.id} ({caretaker.login_id}) for family {family_id}")
    return caretaker


def create_family_records(
    session: Session,
    name: str,
    slug: str,
    is_active: bool = True,
) -> Family:
    """
    Add a family with its settings row and system caretaker.

    The rows are flushed but not committed; the caller owns the transaction.
    """
    family = Family(name=name, slug=slug, is_active=is_active)
    session.add(family)
    session.flush()

    session.add(FamilySettings(family_id=family.id, family_name=name))
    session.add(
        Caretaker(
            login_id=SYSTEM_CARETAKER_LOGIN_ID,
            name="System",
            type="System",
            role="ADMIN",
            security_pin=DEFAULT_SECURITY_PIN,
            family_id=family.id,
        )
    )
    session.flush()
    return family
