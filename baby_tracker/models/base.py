"""
Shared column types and base classes for the tracker models.

Every table has a UUID primary key and audit timestamps. Activity records,
caretakers and babies are soft-deleted so a family's history survives
mistakes; tenancy records (families, settings, invitations) are not.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, DateTime, TypeDecorator, func
from sqlalchemy.dialects.postgresql import JSONB, UUID as PostgreSQL_UUID
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import CHAR

from baby_tracker.config import get_settings


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes.

    SQLite drops tzinfo on DateTime(timezone=True) columns, so values read
    back from it are naive even though they were stored as UTC.
    """
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def to_camel(name: str) -> str:
    """Convert a snake_case column name to camelCase."""
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _json_value(value):
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, datetime):
        return ensure_utc(value).isoformat()
    return value


class GUID(TypeDecorator):
    """
    UUID column that works on both supported databases.

    PostgreSQL stores a native UUID; SQLite stores the 32-character hex form.
    Values always come back as uuid.UUID.
    """

    impl = CHAR(32)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PostgreSQL_UUID())
        return dialect.type_descriptor(CHAR(32))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        return str(value) if dialect.name == "postgresql" else value.hex

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


def get_json_type():
    """JSONB on PostgreSQL, plain JSON elsewhere."""
    if make_url(get_settings().database_url).get_backend_name() == "postgresql":
        return JSONB
    return JSON


class Base(DeclarativeBase):
    """Declarative base for all models."""

    type_annotation_map = {
        uuid.UUID: GUID,
    }


class TimestampedModel(Base):
    """
    Id and audit timestamps, without soft deletion.

    Used by families, settings, setup invitations, the email configuration
    and the notification log.
    """

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(GUID, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
    )

    def to_dict(self) -> dict:
        """Column values keyed by column name (relationships excluded)."""
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}

    def to_response(self) -> dict:
        """
        The record as it appears in API responses.

        Keys are camelCase, UUIDs become strings and datetimes ISO 8601 UTC.
        """
        return {to_camel(name): _json_value(value) for name, value in self.to_dict().items()}

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


class BaseModel(TimestampedModel):
    """
    Soft-deletable record.

    deleted_at stays NULL until soft_delete() is called; queries filter on
    it explicitly.
    """

    __abstract__ = True

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    def soft_delete(self) -> None:
        self.deleted_at = utcnow()

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
