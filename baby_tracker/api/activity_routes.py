"""
Activity log API routes.

Every log type gets the same five routes under its own prefix:
    GET    /api/{kind}            - List (babyId, type, startDate + endDate, limit)
    POST   /api/{kind}            - Create
    GET    /api/{kind}/{log_id}   - Fetch one
    PUT    /api/{kind}/{log_id}   - Update
    DELETE /api/{kind}/{log_id}   - Soft delete

plus the newest feed, note categories, the merged timeline, babies and
medicines.
"""

import logging
from datetime import datetime
from typing import Optional, Type
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from baby_tracker.api.dependencies import require_family
from baby_tracker.api.models import (
    BabyCreateRequest,
    BathLogCreate,
    BathLogUpdate,
    DiaperLogCreate,
    DiaperLogUpdate,
    FeedLogCreate,
    FeedLogUpdate,
    MeasurementCreate,
    MeasurementUpdate,
    MedicineCreateRequest,
    MedicineLogCreate,
    MedicineLogUpdate,
    NoteCreate,
    NoteUpdate,
    SleepLogCreate,
    SleepLogUpdate,
)
from baby_tracker.api.response_builder import build_response, serialize
from baby_tracker.auth import AuthContext
from baby_tracker.database import get_db
from baby_tracker.models import (
    ActivityLog,
    BathLog,
    DiaperLog,
    FeedLog,
    Measurement,
    MedicineLog,
    Note,
    SleepLog,
)
from baby_tracker.models.base import ensure_utc, utcnow
from baby_tracker.services import (
    build_status_bubbles,
    build_timeline,
    create_baby,
    create_log,
    create_medicine,
    delete_log,
    get_baby_for_family,
    get_baby_history,
    get_last_feed,
    get_log,
    list_babies,
    list_logs,
    list_medicines,
    list_note_categories,
    update_log,
)

logger = logging.getLogger(__name__)

TIMELINE_LIMIT = 50


def build_log_router(
    prefix: str,
    model: Type[ActivityLog],
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
) -> APIRouter:
    """
    Build the CRUD routes for one activity log type.

    Args:
        prefix: URL prefix, e.g. "/api/feed-log"
        model: Activity log class
        create_schema: Request body for POST
        update_schema: Request body for PUT

    Returns:
        Router to include in the application
    """
    router = APIRouter(prefix=prefix, tags=["activities"])

    @router.get("")
    def list_entries(
        baby_id: Optional[UUID] = Query(None, alias="babyId"),
        log_type: Optional[str] = Query(None, alias="type"),
        start_date: Optional[datetime] = Query(None, alias="startDate"),
        end_date: Optional[datetime] = Query(None, alias="endDate"),
        limit: Optional[int] = Query(None, ge=1, le=1000),
        auth: AuthContext = Depends(require_family),
        db: Session = Depends(get_db),
    ):
        logs = list_logs(
            db,
            model,
            auth.family_id,
            baby_id=baby_id,
            log_type=log_type,
            start_date=ensure_utc(start_date),
            end_date=ensure_utc(end_date),
            limit=limit,
        )
        return build_response(serialize(logs))

    @router.post("", status_code=201)
    def create_entry(
        request: create_schema,
        auth: AuthContext = Depends(require_family),
        db: Session = Depends(get_db),
    ):
        log = create_log(db, model, auth.family_id, auth.caretaker_id, request.changes())
        return build_response(log.to_response())

    @router.get("/{log_id}")
    def get_entry(
        log_id: UUID,
        auth: AuthContext = Depends(require_family),
        db: Session = Depends(get_db),
    ):
        return build_response(get_log(db, model, log_id, auth.family_id).to_response())

    @router.put("/{log_id}")
    def update_entry(
        log_id: UUID,
        request: update_schema,
        auth: AuthContext = Depends(require_family),
        db: Session = Depends(get_db),
    ):
        log = update_log(db, model, log_id, auth.family_id, request.changes())
        return build_response(log.to_response())

    @router.delete("/{log_id}")
    def delete_entry(
        log_id: UUID,
        auth: AuthContext = Depends(require_family),
        db: Session = Depends(get_db),
    ):
        delete_log(db, model, log_id, auth.family_id)
        return build_response()

    return router


# Registered ahead of the log routers so "last" and "categories" are not read
# as log ids
feed_router = APIRouter(prefix="/api/feed-log", tags=["activities"])


@feed_router.get("/last")
def last_feed(
    baby_id: UUID = Query(..., alias="babyId"),
    feed_type: Optional[str] = Query(None, alias="type"),
    auth: AuthContext = Depends(require_family),
    db: Session = Depends(get_db),
):
    """Get a baby's most recent feed, optionally of one type."""
    feed = get_last_feed(db, auth.family_id, baby_id, feed_type)
    return build_response(feed.to_response() if feed else None)


note_router = APIRouter(prefix="/api/note", tags=["activities"])


@note_router.get("/categories")
def note_categories(
    auth: AuthContext = Depends(require_family),
    db: Session = Depends(get_db),
):
    """Categories the family has already filed notes under."""
    return build_response(list_note_categories(db, auth.family_id))


log_routers = [
    build_log_router("/api/feed-log", FeedLog, FeedLogCreate, FeedLogUpdate),
    build_log_router("/api/diaper-log", DiaperLog, DiaperLogCreate, DiaperLogUpdate),
    build_log_router("/api/sleep-log", SleepLog, SleepLogCreate, SleepLogUpdate),
    build_log_router("/api/medicine-log", MedicineLog, MedicineLogCreate, MedicineLogUpdate),
    build_log_router("/api/measurement", Measurement, MeasurementCreate, MeasurementUpdate),
    build_log_router("/api/bath-log", BathLog, BathLogCreate, BathLogUpdate),
    build_log_router("/api/note", Note, NoteCreate, NoteUpdate),
]


# =============================================================================
# Timeline, Babies & Medicines
# =============================================================================


router = APIRouter(prefix="/api", tags=["activities"])


@router.get("/timeline")
def timeline(
    baby_id: UUID = Query(..., alias="babyId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    auth: AuthContext = Depends(require_family),
    db: Session = Depends(get_db),
):
    """
    Merged activity timeline for a baby, newest first, with status bubbles.

    Without a date range only the newest entries are returned.
    """
    baby = get_baby_for_family(db, baby_id, auth.family_id)
    history = get_baby_history(
        db,
        auth.family_id,
        baby_id,
        start_date=ensure_utc(start_date),
        end_date=ensure_utc(end_date),
    )

    logs = [log for model_logs in history.values() for log in model_logs]
    limit = None if (start_date and end_date) else TIMELINE_LIMIT
    entries = build_timeline(logs, limit=limit)

    def newest(model):
        return history[model][0] if history[model] else None

    bubbles = build_status_bubbles(
        baby,
        last_feed=newest(FeedLog),
        last_diaper=newest(DiaperLog),
        last_sleep=newest(SleepLog),
        now=utcnow(),
    )

    return build_response({
        "entries": [entry.to_dict() for entry in entries],
        "status": [bubble.to_dict() for bubble in bubbles],
    })


@router.get("/baby")
def babies(
    include_inactive: bool = Query(False, alias="includeInactive"),
    auth: AuthContext = Depends(require_family),
    db: Session = Depends(get_db),
):
    return build_response(serialize(list_babies(db, auth.family_id, include_inactive)))


@router.post("/baby", status_code=201)
def add_baby(
    request: BabyCreateRequest,
    auth: AuthContext = Depends(require_family),
    db: Session = Depends(get_db),
):
    baby = create_baby(db, auth.family_id, request.model_dump())
    return build_response(baby.to_response())


@router.get("/medicine")
def medicines(
    active_only: bool = Query(True, alias="activeOnly"),
    auth: AuthContext = Depends(require_family),
    db: Session = Depends(get_db),
):
    return build_response(serialize(list_medicines(db, auth.family_id, active_only)))


@router.post("/medicine", status_code=201)
def add_medicine(
    request: MedicineCreateRequest,
    auth: AuthContext = Depends(require_family),
    db: Session = Depends(get_db),
):
    medicine = create_medicine(db, auth.family_id, request.model_dump())
    return build_response(medicine.to_response())
