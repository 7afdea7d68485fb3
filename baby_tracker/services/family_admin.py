"""
Family management for system administrators.

Lists every family with its caretaker and baby counts, and creates or
edits families outside the invitation flow.
"""

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from baby_tracker.models.activity import Baby
from baby_tracker.models.family import Caretaker, Family
from baby_tracker.services.families import create_family_records
from baby_tracker.services.setup import SetupError, SetupValidationError
from baby_tracker.services.slugs import slug_exists, validate_slug

logger = logging.getLogger(__name__)


class FamilyNotFoundError(SetupError):
    """No family with the requested id."""

    status_code = 404


def _count_by_family(session: Session, model) -> dict[UUID, int]:
    stmt = (
        select(model.family_id, func.count(model.id))
        .where(model.family_id.is_not(None), model.deleted_at.is_(None))
        .group_by(model.family_id)
    )
    return {family_id: count for family_id, count in session.execute(stmt).all()}


def list_families_with_counts(session: Session) -> list[dict]:
    """
    Get every family, active ones first and then by name.

    Each entry adds caretakerCount and babyCount to the family's fields.
    Soft-deleted caretakers and babies are not counted.
    """
    caretaker_counts = _count_by_family(session, Caretaker)
    baby_counts = _count_by_family(session, Baby)

    stmt = select(Family).order_by(Family.is_active.desc(), Family.name)
    families = []
    for family in session.scalars(stmt).all():
        data = family.to_response()
        data["caretakerCount"] = caretaker_counts.get(family.id, 0)
        data["babyCount"] = baby_counts.get(family.id, 0)
        families.append(data)
    return families


def _check_new_slug(session: Session, slug: str) -> None:
    validation = validate_slug(slug)
    if not validation.is_valid:
        raise SetupValidationError(validation.error)
    if slug_exists(session, slug):
        raise SetupValidationError("Slug already exists")


def create_family(session: Session, data: dict[str, Any]) -> Family:
    """
    Create a family directly, without an invitation.

    The family gets its settings row and system caretaker like one created
    through setup.

    Raises:
        SetupValidationError: Missing name or slug, invalid or taken slug
    """
    name = data.get("name")
    slug = data.get("slug")
    if not name or not slug:
        raise SetupValidationError("Name and slug are required")

    _check_new_slug(session, slug)

    is_active = data.get("is_active")
    family = create_family_records(
        session,
        name,
        slug,
        is_active=True if is_active is None else is_active,
    )
    logger.info(f"Administrator created family '{name}' ({slug})")
    return family


def update_family(session: Session, family_id: Optional[str], changes: dict[str, Any]) -> Family:
    """
    Change a family's name, slug or active flag.

    Raises:
        SetupValidationError: Missing id, invalid or taken slug
        FamilyNotFoundError: No family with that id
    """
    if not family_id:
        raise SetupValidationError("Family ID is required")

    try:
        family = session.get(Family, UUID(str(family_id)))
    except ValueError:
        family = None
    if family is None:
        raise FamilyNotFoundError("Family not found")

    slug = changes.get("slug")
    if slug and slug != family.slug:
        _check_new_slug(session, slug)
        family.slug = slug

    if changes.get("name"):
        family.name = changes["name"]
    if changes.get("is_active") is not None:
        family.is_active = changes["is_active"]

    session.flush()
    logger.info(f"Administrator updated family {family.id}: {sorted(changes)}")
    return family
