"""
Family-scoped activity log access.

Provides functions for:
- Creating, reading, updating and soft-deleting activity logs
- Babies and medicines owned by a family
- The newest feed for a baby and the merged activity history
- The categories a family has filed notes under

Every query is restricted to the caller's family; records of another
family are reported as not found (reads) or forbidden (writes).
"""

import logging
from datetime import datetime
from typing import Any, Optional, Type
from uuid import UUID

from sqlalchemy import distinct, select
from sqlalchemy.orm import Session

from baby_tracker.models.activity import (
    ActivityLog,
    Baby,
    BathLog,
    DiaperLog,
    FeedLog,
    Measurement,
    Medicine,
    MedicineLog,
    Note,
    SleepLog,
)

logger = logging.getLogger(__name__)

LOG_LABELS: dict[Type[ActivityLog], str] = {
    FeedLog: "Feed log",
    DiaperLog: "Diaper log",
    SleepLog: "Sleep log",
    MedicineLog: "Medicine log",
    Measurement: "Measurement",
    BathLog: "Bath log",
    Note: "Note",
}

# Columns a client may never set directly
PROTECTED_FIELDS = {"id", "family_id", "caretaker_id", "created_at", "updated_at", "deleted_at"}


class ActivityError(Exception):
    """Base exception for activity access; carries the HTTP status to report."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ActivityNotFoundError(ActivityError):
    status_code = 404


class ActivityForbiddenError(ActivityError):
    status_code = 403


def _label(model: Type[ActivityLog]) -> str:
    return LOG_LABELS.get(model, model.__name__)


def _writable(model, data: dict[str, Any]) -> dict[str, Any]:
    columns = set(model.__table__.columns.keys())
    return {
        key: value
        for key, value in data.items()
        if key in columns and key not in PROTECTED_FIELDS
    }


# =============================================================================
# Babies & Medicines
# =============================================================================


def get_baby_for_family(session: Session, baby_id: UUID, family_id: UUID) -> Baby:
    """
    Get a baby that belongs to a family.

    Raises:
        ActivityNotFoundError: If the baby does not exist in this family
    """
    stmt = select(Baby).where(
        Baby.id == baby_id,
        Baby.family_id == family_id,
        Baby.deleted_at.is_(None),
    )
    baby = session.scalar(stmt)
    if baby is None:
        raise ActivityNotFoundError("Baby not found in this family.")
    return baby


def list_babies(session: Session, family_id: UUID, include_inactive: bool = False) -> list[Baby]:
    """Get a family's babies ordered by first name."""
    conditions = [Baby.family_id == family_id, Baby.deleted_at.is_(None)]
    if not include_inactive:
        conditions.append(Baby.inactive.is_(False))
    stmt = select(Baby).where(*conditions).order_by(Baby.first_name)
    return list(session.scalars(stmt).all())


def create_baby(session: Session, family_id: UUID, data: dict[str, Any]) -> Baby:
    """Add a baby to a family."""
    baby = Baby(family_id=family_id, **_writable(Baby, data))
    session.add(baby)
    session.flush()
    logger.info(f"Created baby {baby.id} for family {family_id}")
    return baby


def list_medicines(session: Session, family_id: UUID, active_only: bool = True) -> list[Medicine]:
    """Get a family's medicines ordered by name."""
    conditions = [Medicine.family_id == family_id, Medicine.deleted_at.is_(None)]
    if active_only:
        conditions.append(Medicine.active.is_(True))
    stmt = select(Medicine).where(*conditions).order_by(Medicine.name)
    return list(session.scalars(stmt).all())


def create_medicine(session: Session, family_id: UUID, data: dict[str, Any]) -> Medicine:
    """Add a medicine to a family's catalogue."""
    medicine = Medicine(family_id=family_id, **_writable(Medicine, data))
    session.add(medicine)
    session.flush()
    logger.info(f"Created medicine {medicine.id} for family {family_id}")
    return medicine


# =============================================================================
# Activity logs
# =============================================================================


def create_log(
    session: Session,
    model: Type[ActivityLog],
    family_id: UUID,
    caretaker_id: Optional[UUID],
    data: dict[str, Any],
) -> ActivityLog:
    """
    Record an activity for one of the family's babies.

    Args:
        session: Database session
        model: Activity log class
        family_id: Caller's family
        caretaker_id: Caretaker recording the activity (None for the
            system caretaker)
        data: Column values (snake_case)

    Raises:
        ActivityNotFoundError: If the baby (or medicine) is not in this family
    """
    get_baby_for_family(session, data.get("baby_id"), family_id)

    if model is MedicineLog:
        medicine = session.get(Medicine, data.get("medicine_id"))
        if medicine is None or medicine.family_id != family_id:
            raise ActivityNotFoundError("Medicine not found in this family.")

    log = model(
        family_id=family_id,
        caretaker_id=caretaker_id,
        **_writable(model, data),
    )
    session.add(log)
    session.flush()
    logger.info(f"Created {_label(model).lower()} {log.id} for baby {log.baby_id}")
    return log


def get_log(
    session: Session,
    model: Type[ActivityLog],
    log_id: UUID,
    family_id: UUID,
) -> ActivityLog:
    """
    Get a single activity log of the caller's family.

    Raises:
        ActivityNotFoundError: If no such log exists in this family
    """
    stmt = select(model).where(
        model.id == log_id,
        model.family_id == family_id,
        model.deleted_at.is_(None),
    )
    log = session.scalar(stmt)
    if log is None:
        raise ActivityNotFoundError(f"{_label(model)} not found")
    return log


def list_logs(
    session: Session,
    model: Type[ActivityLog],
    family_id: UUID,
    baby_id: Optional[UUID] = None,
    log_type: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> list[ActivityLog]:
    """
    List a family's activity logs, newest first.

    The date range applies only when both ends are given.

    Args:
        session: Database session
        model: Activity log class
        family_id: Caller's family
        baby_id: Only this baby's logs
        log_type: Only logs of this type (models with a type column)
        start_date: Range start (inclusive)
        end_date: Range end (inclusive)
        limit: Maximum number of logs

    Returns:
        Logs ordered by their timeline time, newest first
    """
    time_column = getattr(model, model.TIME_FIELD)
    conditions = [model.family_id == family_id, model.deleted_at.is_(None)]

    if baby_id is not None:
        conditions.append(model.baby_id == baby_id)
    if log_type and hasattr(model, "type"):
        conditions.append(model.type == log_type)
    if start_date is not None and end_date is not None:
        conditions.append(time_column >= start_date)
        conditions.append(time_column <= end_date)

    stmt = select(model).where(*conditions).order_by(time_column.desc())
    if limit:
        stmt = stmt.limit(limit)

    return list(session.scalars(stmt).all())


def update_log(
    session: Session,
    model: Type[ActivityLog],
    log_id: UUID,
    family_id: UUID,
    changes: dict[str, Any],
) -> ActivityLog:
    """
    Update an activity log.

    Raises:
        ActivityNotFoundError: If the log does not exist
        ActivityForbiddenError: If the log belongs to another family
    """
    log = session.get(model, log_id)
    if log is None or log.is_deleted:
        raise ActivityNotFoundError(f"{_label(model)} not found")
    if log.family_id != family_id:
        raise ActivityForbiddenError("Forbidden")

    if "baby_id" in changes and changes["baby_id"] != log.baby_id:
        get_baby_for_family(session, changes["baby_id"], family_id)

    for field, value in _writable(model, changes).items():
        setattr(log, field, value)

    session.flush()
    logger.info(f"Updated {_label(model).lower()} {log_id}")
    return log


def delete_log(
    session: Session,
    model: Type[ActivityLog],
    log_id: UUID,
    family_id: UUID,
) -> None:
    """
    Soft-delete an activity log.

    Raises:
        ActivityNotFoundError: If the log does not exist
        ActivityForbiddenError: If the log belongs to another family
    """
    log = session.get(model, log_id)
    if log is None or log.is_deleted:
        raise ActivityNotFoundError(f"{_label(model)} not found")
    if log.family_id != family_id:
        raise ActivityForbiddenError("Forbidden")

    log.soft_delete()
    session.flush()
    logger.info(f"Deleted {_label(model).lower()} {log_id}")


def get_last_feed(
    session: Session,
    family_id: UUID,
    baby_id: UUID,
    feed_type: Optional[str] = None,
) -> Optional[FeedLog]:
    """Get a baby's most recent feed, optionally of one type."""
    get_baby_for_family(session, baby_id, family_id)
    logs = list_logs(session, FeedLog, family_id, baby_id=baby_id, log_type=feed_type, limit=1)
    return logs[0] if logs else None


def get_baby_history(
    session: Session,
    family_id: UUID,
    baby_id: UUID,
    limit: int = 200,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> dict[Type[ActivityLog], list[ActivityLog]]:
    """
    Collect every kind of activity for a baby.

    Without a date range, each kind is capped at `limit` records.

    Returns:
        Mapping of log class to its logs, each newest first
    """
    get_baby_for_family(session, baby_id, family_id)
    use_limit = None if (start_date and end_date) else limit
    return {
        model: list_logs(
            session,
            model,
            family_id,
            baby_id=baby_id,
            start_date=start_date,
            end_date=end_date,
            limit=use_limit,
        )
        for model in LOG_LABELS
    }


def list_note_categories(session: Session, family_id: UUID) -> list[str]:
    """Get the distinct categories used by a family's notes, alphabetically."""
    stmt = (
        select(distinct(Note.category))
        .where(
            Note.family_id == family_id,
            Note.category.is_not(None),
            Note.deleted_at.is_(None),
        )
        .order_by(Note.category)
    )
    return list(session.scalars(stmt).all())
