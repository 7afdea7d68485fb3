"""
SQLAlchemy models for Baby Tracker.

This module exports all database models for easy importing and
ensures Alembic can discover them for migrations.
"""

# Import base classes
from baby_tracker.models.base import (
    Base,
    BaseModel,
    GUID,
    TimestampedModel,
    ensure_utc,
    get_json_type,
    utcnow,
)

# Import all models (must be imported for Alembic autogenerate)
from baby_tracker.models.family import (
    SYSTEM_CARETAKER_LOGIN_ID,
    Caretaker,
    Family,
    FamilySettings,
    FamilySetup,
    SetupClaim,
)
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
    NotificationLog,
    SleepLog,
)
from baby_tracker.models.email_config import (
    EMAIL_PROVIDERS,
    PROVIDER_MANUAL_SMTP,
    PROVIDER_SENDGRID,
    PROVIDER_SMTP2GO,
    EmailConfig,
)

# Export all for easy importing
__all__ = [
    # Base classes
    "Base",
    "BaseModel",
    "GUID",
    "TimestampedModel",
    "ensure_utc",
    "get_json_type",
    "utcnow",
    # Family models
    "SYSTEM_CARETAKER_LOGIN_ID",
    "Caretaker",
    "Family",
    "FamilySettings",
    "FamilySetup",
    "SetupClaim",
    # Activity models
    "ActivityLog",
    "Baby",
    "BathLog",
    "DiaperLog",
    "FeedLog",
    "Measurement",
    "Medicine",
    "MedicineLog",
    "Note",
    "NotificationLog",
    "SleepLog",
    # Email configuration
    "EMAIL_PROVIDERS",
    "PROVIDER_MANUAL_SMTP",
    "PROVIDER_SENDGRID",
    "PROVIDER_SMTP2GO",
    "EmailConfig",
]
