"""
Baby and activity log models.

Entities:
- Baby: A child tracked by a family
- FeedLog, DiaperLog, SleepLog, MedicineLog, Measurement, BathLog, Note:
  Timestamped activity records
- Medicine: A family's medicine catalogue entry referenced by MedicineLog
- NotificationLog: Warning notifications already sent

Every activity log is scoped to a family and a baby, optionally records the
caretaker who logged it, and is soft-deleted rather than removed.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from baby_tracker.models.base import BaseModel, TimestampedModel, utcnow


class Baby(BaseModel):
    """
    A baby tracked by a family.

    Warning times are "HH:MM" thresholds: once that long has passed since the
    last feed or diaper change, the status bubble turns to a warning.
    """

    __tablename__ = "babies"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    birth_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    gender: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    inactive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    feed_warning_time: Mapped[str] = mapped_column(String(5), nullable=False, default="03:00")
    diaper_warning_time: Mapped[str] = mapped_column(String(5), nullable=False, default="02:00")

    family_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("families.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index("idx_baby_family", "family_id"),
        Index("idx_baby_deleted", "deleted_at"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Baby(name='{self.full_name}')>"


class ActivityLog(BaseModel):
    """
    Columns shared by every activity log.

    Subclasses set TIME_FIELD to the column that orders them on the timeline.
    """

    __abstract__ = True

    TIME_FIELD = "time"

    family_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("families.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    baby_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("babies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    caretaker_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("caretakers.id", ondelete="SET NULL"),
        nullable=True,
    )

    @property
    def occurred_at(self) -> datetime:
        """The time this activity is placed at on the timeline."""
        return getattr(self, self.TIME_FIELD)


class FeedLog(ActivityLog):
    """A breast, bottle or solids feed."""

    __tablename__ = "feed_logs"

    time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    start_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    feed_duration: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        doc="Breast feed duration in seconds"
    )
    type: Mapped[str] = mapped_column(String(10), nullable=False, doc="BREAST, BOTTLE or SOLIDS")
    amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    unit_abbr: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    side: Mapped[Optional[str]] = mapped_column(String(5), nullable=True, doc="LEFT or RIGHT")
    food: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class DiaperLog(ActivityLog):
    """A diaper change."""

    __tablename__ = "diaper_logs"

    time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(10), nullable=False, doc="WET, DIRTY or BOTH")
    condition: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)


class SleepLog(ActivityLog):
    """A nap or night sleep; end_time is NULL while the baby is still asleep."""

    __tablename__ = "sleep_logs"

    TIME_FIELD = "start_time"

    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, doc="Minutes asleep")
    type: Mapped[str] = mapped_column(String(20), nullable=False, doc="NAP or NIGHT_SLEEP")
    location: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    quality: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)


class Medicine(BaseModel):
    """A medicine a family keeps on hand."""

    __tablename__ = "medicines"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    typical_dose_size: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    unit_abbr: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    dose_min_time: Mapped[Optional[str]] = mapped_column(
        String(5),
        nullable=True,
        doc="Minimum time between doses as HH:MM"
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    family_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("families.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )


class MedicineLog(ActivityLog):
    """A dose of medicine given to a baby."""

    __tablename__ = "medicine_logs"

    time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    dose_amount: Mapped[float] = mapped_column(Float, nullable=False)
    unit_abbr: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    medicine_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("medicines.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    medicine: Mapped["Medicine"] = relationship("Medicine")


class Measurement(ActivityLog):
    """A height, weight, head circumference or temperature reading."""

    __tablename__ = "measurements"

    TIME_FIELD = "date"

    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(10), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class BathLog(ActivityLog):
    """A bath, noting whether soap and shampoo were used."""

    __tablename__ = "bath_logs"

    time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    soap_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    shampoo_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Note(ActivityLog):
    """A free-text note about a baby, optionally filed under a category."""

    __tablename__ = "notes"

    time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)


class NotificationLog(TimestampedModel):
    """A warning push notification sent for a baby; used to avoid repeats."""

    __tablename__ = "notification_logs"

    type: Mapped[str] = mapped_column(String(10), nullable=False, doc="FEED or DIAPER")
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    baby_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("babies.id", ondelete="CASCADE"),
        nullable=False,
    )
    family_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("families.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    __table_args__ = (
        Index("idx_notification_baby_type_sent", "baby_id", "type", "sent_at"),
    )
