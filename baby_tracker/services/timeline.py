"""
Timeline and status bubble formatting.

Turns activity logs into display entries for the family home page and
computes the feed/diaper/sleep status bubbles shown above the timeline.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from baby_tracker.models.activity import (
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

STATUS_OK = "ok"
STATUS_WARNING = "warning"
STATUS_UNKNOWN = "unknown"

DIAPER_TITLES = {"WET": "Wet", "DIRTY": "Dirty", "BOTH": "Wet and dirty"}
SLEEP_TITLES = {"NAP": "Nap", "NIGHT_SLEEP": "Night sleep"}
MEASUREMENT_TITLES = {
    "HEIGHT": "Height",
    "WEIGHT": "Weight",
    "HEAD_CIRCUMFERENCE": "Head circumference",
    "TEMPERATURE": "Temperature",
}


@dataclass
class TimelineEntry:
    """One row of the activity timeline."""

    kind: str
    time: datetime
    title: str
    details: list[str] = field(default_factory=list)
    id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "time": self.time.isoformat(),
            "title": self.title,
            "details": self.details,
        }


@dataclass
class StatusBubble:
    """Time since an activity and whether it is overdue."""

    kind: str
    label: str
    since: Optional[str]
    status: str

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "label": self.label,
            "since": self.since,
            "status": self.status,
        }


# =============================================================================
# Formatting helpers
# =============================================================================


def format_duration(minutes: int) -> str:
    """
    Format a number of minutes for display.

    Examples:
        >>> format_duration(125)
        '2h 05m'
        >>> format_duration(45)
        '45m'
    """
    minutes = max(0, int(minutes))
    hours, mins = divmod(minutes, 60)
    if hours:
        return f"{hours}h {mins:02d}m"
    return f"{mins}m"


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end (never negative)."""
    delta = ensure_utc(end) - ensure_utc(start)
    return max(0, int(delta.total_seconds() // 60))


def time_since(then: datetime, now: Optional[datetime] = None) -> str:
    """
    Describe how long ago something happened.

    Examples:
        "just now", "5m ago", "1h 20m ago"
    """
    minutes = minutes_between(then, now or utcnow())
    if minutes < 1:
        return "just now"
    return f"{format_duration(minutes)} ago"


def parse_warning_time(value: Optional[str]) -> Optional[int]:
    """
    Convert an "HH:MM" warning threshold to minutes.

    Returns None for empty or malformed values.
    """
    if not value:
        return None
    try:
        hours, minutes = value.split(":")
        return int(hours) * 60 + int(minutes)
    except ValueError:
        return None


def status_for(
    last_time: Optional[datetime],
    warning_time: Optional[str],
    now: Optional[datetime] = None,
) -> str:
    """
    Status of an activity given when it last happened.

    Returns:
        "warning" once the elapsed time reaches the HH:MM threshold,
        "ok" before that, "unknown" if the activity never happened
    """
    if last_time is None:
        return STATUS_UNKNOWN
    threshold = parse_warning_time(warning_time)
    if threshold is None:
        return STATUS_OK
    if minutes_between(last_time, now or utcnow()) >= threshold:
        return STATUS_WARNING
    return STATUS_OK


# =============================================================================
# Timeline entries
# =============================================================================


def _feed_entry(log: FeedLog) -> TimelineEntry:
    details = []
    if log.type == "BREAST":
        title = "Breast feed"
        if log.side:
            details.append(f"{log.side.title()} side")
        if log.feed_duration:
            details.append(format_duration(log.feed_duration // 60))
    elif log.type == "BOTTLE":
        title = "Bottle feed"
    else:
        title = "Solids"
        if log.food:
            details.append(log.food)
    if log.amount:
        details.append(f"{log.amount:g} {log.unit_abbr or ''}".strip())
    return TimelineEntry("feed", ensure_utc(log.time), title, details)


def _diaper_entry(log: DiaperLog) -> TimelineEntry:
    details = [value for value in (log.condition, log.color) if value]
    title = f"Diaper: {DIAPER_TITLES.get(log.type, log.type.title())}"
    return TimelineEntry("diaper", ensure_utc(log.time), title, details)


def _sleep_entry(log: SleepLog) -> TimelineEntry:
    title = SLEEP_TITLES.get(log.type, "Sleep")
    details = []
    if log.end_time is None:
        details.append("Sleeping")
    else:
        duration = log.duration
        if duration is None:
            duration = minutes_between(log.start_time, log.end_time)
        details.append(format_duration(duration))
    if log.location:
        details.append(log.location)
    if log.quality:
        details.append(f"{log.quality.title()} quality")
    # Completed sleeps are placed where they ended
    time = log.end_time or log.start_time
    return TimelineEntry("sleep", ensure_utc(time), title, details)


def _medicine_entry(log: MedicineLog) -> TimelineEntry:
    name = log.medicine.name if log.medicine is not None else "Medicine"
    details = [f"{log.dose_amount:g} {log.unit_abbr or ''}".strip()]
    if log.notes:
        details.append(log.notes)
    return TimelineEntry("medicine", ensure_utc(log.time), name, details)


def _measurement_entry(log: Measurement) -> TimelineEntry:
    title = MEASUREMENT_TITLES.get(log.type, log.type.title())
    details = [f"{log.value:g} {log.unit}"]
    if log.notes:
        details.append(log.notes)
    return TimelineEntry("measurement", ensure_utc(log.date), title, details)


def _bath_entry(log: BathLog) -> TimelineEntry:
    used = [name for name, flag in (("soap", log.soap_used), ("shampoo", log.shampoo_used)) if flag]
    details = [f"With {' and '.join(used)}" if used else "Water only"]
    if log.notes:
        details.append(log.notes)
    return TimelineEntry("bath", ensure_utc(log.time), "Bath", details)


def _note_entry(log: Note) -> TimelineEntry:
    return TimelineEntry("note", ensure_utc(log.time), log.category or "Note", [log.content])


ENTRY_BUILDERS = {
    FeedLog: _feed_entry,
    DiaperLog: _diaper_entry,
    SleepLog: _sleep_entry,
    MedicineLog: _medicine_entry,
    Measurement: _measurement_entry,
    BathLog: _bath_entry,
    Note: _note_entry,
}


def to_timeline_entry(log: ActivityLog) -> TimelineEntry:
    """Convert one activity log to a timeline entry."""
    entry = ENTRY_BUILDERS[type(log)](log)
    entry.id = str(log.id)
    return entry


def build_timeline(logs: Iterable[ActivityLog], limit: Optional[int] = None) -> list[TimelineEntry]:
    """
    Merge activity logs of any kind into one timeline, newest first.

    Args:
        logs: Activity logs (mixed types)
        limit: Keep only this many of the newest entries

    Returns:
        Timeline entries sorted by time descending
    """
    entries = sorted(
        (to_timeline_entry(log) for log in logs),
        key=lambda entry: entry.time,
        reverse=True,
    )
    if limit:
        entries = entries[:limit]
    return entries


def build_status_bubbles(
    baby,
    last_feed: Optional[FeedLog],
    last_diaper: Optional[DiaperLog],
    last_sleep: Optional[SleepLog],
    now: Optional[datetime] = None,
) -> list[StatusBubble]:
    """
    Compute the status bubbles shown for a baby.

    Feed and diaper bubbles turn to warning once the baby's HH:MM threshold
    has passed. The sleep bubble shows how long the baby has been asleep,
    or awake since the last sleep ended.
    """
    now = now or utcnow()
    bubbles = []

    feed_time = ensure_utc(last_feed.time) if last_feed else None
    bubbles.append(StatusBubble(
        kind="feed",
        label="Last feed",
        since=time_since(feed_time, now) if feed_time else None,
        status=status_for(feed_time, baby.feed_warning_time, now),
    ))

    diaper_time = ensure_utc(last_diaper.time) if last_diaper else None
    bubbles.append(StatusBubble(
        kind="diaper",
        label="Last diaper",
        since=time_since(diaper_time, now) if diaper_time else None,
        status=status_for(diaper_time, baby.diaper_warning_time, now),
    ))

    if last_sleep is not None:
        if last_sleep.end_time is None:
            bubbles.append(StatusBubble(
                kind="sleep",
                label="Sleeping",
                since=format_duration(minutes_between(last_sleep.start_time, now)),
                status="sleeping",
            ))
        else:
            bubbles.append(StatusBubble(
                kind="sleep",
                label="Awake",
                since=format_duration(minutes_between(last_sleep.end_time, now)),
                status="awake",
            ))

    return bubbles
