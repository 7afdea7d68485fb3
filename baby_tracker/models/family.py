"""
Family tenancy models.

Entities:
- Family: A tenant, addressed in URLs by its slug
- FamilySettings: Per-family units, PIN and notification preferences
- FamilySetup: Single-use invitation that lets someone create a family
- SetupClaim: One-time claim that serializes first-run setup
- Caretaker: A person who logs activities for a family
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from baby_tracker.models.base import (
    BaseModel,
    TimestampedModel,
    ensure_utc,
    get_json_type,
    utcnow,
)

SYSTEM_CARETAKER_LOGIN_ID = "00"
DEFAULT_SECURITY_PIN = "111222"


class Family(TimestampedModel):
    """
    A family (tenant).

    Every activity record is scoped to a family. The slug is the first path
    segment of every family page and is unique across the system.
    """

    __tablename__ = "families"

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Display name of the family"
    )

    slug: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        doc="URL-safe unique identifier"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        doc="Inactive families cannot be resolved by slug"
    )

    settings: Mapped[Optional["FamilySettings"]] = relationship(
        "FamilySettings",
        back_populates="family",
        uselist=False,
    )

    caretakers: Mapped[list["Caretaker"]] = relationship(
        "Caretaker",
        back_populates="family",
    )

    __table_args__ = (
        Index("idx_family_active", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Family(name='{self.name}', slug='{self.slug}')>"


class FamilySettings(TimestampedModel):
    """
    Per-family preferences.

    Exactly one row per family, created in the same transaction as the
    family itself.
    """

    __tablename__ = "settings"

    family_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("families.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    family_name: Mapped[str] = mapped_column(String(100), nullable=False, default="My Family")
    security_pin: Mapped[str] = mapped_column(String(10), nullable=False, default=DEFAULT_SECURITY_PIN)

    # Default units
    default_bottle_unit: Mapped[str] = mapped_column(String(10), nullable=False, default="OZ")
    default_solids_unit: Mapped[str] = mapped_column(String(10), nullable=False, default="TBSP")
    default_height_unit: Mapped[str] = mapped_column(String(10), nullable=False, default="IN")
    default_weight_unit: Mapped[str] = mapped_column(String(10), nullable=False, default="LB")
    default_temp_unit: Mapped[str] = mapped_column(String(10), nullable=False, default="F")

    # Display preferences
    activity_settings: Mapped[Optional[dict]] = mapped_column(
        get_json_type(),
        nullable=True,
        doc="Order and visibility of activity tiles"
    )
    enable_debug_timer: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    enable_debug_timezone: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Push notifications
    notification_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    hermes_api_endpoint: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        default="https://hermes.funk-isoft.com/api/sendAlert",
    )
    hermes_api_key: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Hermes API key (encrypted when ENC_HASH is configured)"
    )
    notification_title: Mapped[str] = mapped_column(
        String(255), nullable=False, default="Warning"
    )
    notification_feed_subtitle: Mapped[str] = mapped_column(
        String(255), nullable=False, default="It's time for feeding"
    )
    notification_feed_body: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="Baby might be hungry soon, please be ready and prepare in advance",
    )
    notification_diaper_subtitle: Mapped[str] = mapped_column(
        String(255), nullable=False, default="It's time for a diaper check"
    )
    notification_diaper_body: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="Please check the diaper soon",
    )

    family: Mapped["Family"] = relationship("Family", back_populates="settings")

    def to_response(self) -> dict:
        """Wire representation; the PIN and Hermes key are never echoed back."""
        data = super().to_response()
        data.pop("securityPin")
        data["hermesApiKey"] = None
        data["hasHermesApiKey"] = bool(self.hermes_api_key)
        return data


class FamilySetup(TimestampedModel):
    """
    Family setup invitation.

    Created by a system administrator; consumed exactly once when the
    invited person creates their family. Consumption binds family_id.
    """

    __tablename__ = "family_setups"

    token: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        doc="Invitation token used in /setup/{token}"
    )

    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Password the invitee must present"
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("caretakers.id", ondelete="SET NULL"),
        nullable=True,
    )

    family_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("families.id", ondelete="CASCADE"),
        nullable=True,
        unique=True,
        doc="Family created with this invitation (NULL until consumed)"
    )

    creator: Mapped[Optional["Caretaker"]] = relationship("Caretaker", foreign_keys=[created_by])
    family: Mapped[Optional["Family"]] = relationship("Family", foreign_keys=[family_id])

    @property
    def is_expired(self) -> bool:
        """Check if the invitation has expired."""
        return ensure_utc(self.expires_at) < utcnow()

    @property
    def is_used(self) -> bool:
        """Check if the invitation has already been consumed."""
        return self.family_id is not None

    def __repr__(self) -> str:
        return f"<FamilySetup(token='{self.token}', family_id={self.family_id})>"


class SetupClaim(TimestampedModel):
    """
    Named one-time claim on a setup step.

    The unique name lets only one of several concurrent first-run setups
    through; the row records which family it produced.
    """

    __tablename__ = "setup_claims"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    family_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("families.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<SetupClaim(name='{self.name}', family_id={self.family_id})>"


class Caretaker(BaseModel):
    """
    A person who records activities.

    The system caretaker (login_id "00") stands in for the family's shared
    PIN when no individual caretakers have been created.
    """

    __tablename__ = "caretakers"

    login_id: Mapped[str] = mapped_column(String(10), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        doc="Relationship to the baby (parent, nanny, ...)"
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="USER")
    inactive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    security_pin: Mapped[str] = mapped_column(String(10), nullable=False)

    family_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("families.id", ondelete="SET NULL"),
        nullable=True,
    )

    family: Mapped[Optional["Family"]] = relationship("Family", back_populates="caretakers")

    __table_args__ = (
        Index("idx_caretaker_family", "family_id"),
        Index("idx_caretaker_login", "login_id"),
        Index("idx_caretaker_deleted", "deleted_at"),
    )

    @property
    def is_system(self) -> bool:
        """Check if this is the family's system caretaker."""
        return self.login_id == SYSTEM_CARETAKER_LOGIN_ID

    def to_response(self) -> dict:
        data = super().to_response()
        data.pop("securityPin")
        return data

    def __repr__(self) -> str:
        return f"<Caretaker(name='{self.name}', login_id='{self.login_id}')>"
