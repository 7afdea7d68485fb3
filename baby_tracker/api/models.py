"""
Pydantic request models for the Baby Tracker API.

Request bodies use camelCase keys on the wire; fields are snake_case in
Python. Naive datetimes are taken to be UTC.
"""

from datetime import datetime
from typing import Any, ClassVar, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from baby_tracker.models.base import ensure_utc

HHMM_PATTERN = r"^\d{1,2}:\d{2}$"


class ApiModel(BaseModel):
    """Base for request bodies: camelCase aliases, UTC datetimes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    # Fields a partial update may omit but may not set to null
    NOT_NULL: ClassVar[tuple[str, ...]] = ()

    @field_validator("*")
    @classmethod
    def attach_utc(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return ensure_utc(v)
        return v

    @model_validator(mode="after")
    def reject_null_for_required_columns(self):
        for name in self.NOT_NULL:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise PydanticCustomError(
                    "not_null",
                    "{field} cannot be null",
                    {"field": to_camel(name)},
                )
        return self

    def changes(self) -> dict[str, Any]:
        """Fields the client actually sent, keyed by snake_case name."""
        return self.model_dump(exclude_unset=True)


class ApiResponse(BaseModel):
    """Envelope every API endpoint answers with."""

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None


# =============================================================================
# Setup & Family
# =============================================================================


class SetupStartRequest(ApiModel):
    """Create a family, optionally with an invitation token."""

    name: Optional[str] = Field(None, description="Family display name")
    slug: Optional[str] = Field(None, description="URL slug for the family")
    token: Optional[str] = Field(None, description="Invitation token")


class ValidateTokenRequest(ApiModel):
    token: Optional[str] = None


class SetupAuthRequest(ApiModel):
    """Exchange an invitation token and its password for a setup JWT."""

    token: Optional[str] = None
    password: Optional[str] = None


class CreateSetupLinkRequest(ApiModel):
    password: Optional[str] = Field(None, description="Password the invitee must present")


class FamilyCreateRequest(ApiModel):
    """Create a family directly (system administrator)."""

    name: Optional[str] = None
    slug: Optional[str] = None
    is_active: Optional[bool] = None


class FamilyUpdateRequest(ApiModel):
    """Change a family's name, slug or active flag (system administrator)."""

    NOT_NULL = ("name", "slug", "is_active")

    id: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = None
    is_active: Optional[bool] = None


# =============================================================================
# Auth
# =============================================================================


class LoginRequest(ApiModel):
    """Caretaker or shared PIN login."""

    login_id: Optional[str] = Field(None, description="Two-character caretaker login id")
    security_pin: Optional[str] = Field(None, description="PIN")
    family_slug: Optional[str] = Field(None, description="Restrict login to this family")


class AdminLoginRequest(ApiModel):
    password: Optional[str] = None


class CaretakerCreateRequest(ApiModel):
    login_id: str = Field(..., min_length=2, max_length=2)
    name: str = Field(..., min_length=1, max_length=100)
    type: Optional[str] = None
    role: Literal["USER", "ADMIN"] = "USER"
    security_pin: str = Field(..., min_length=4, max_length=10)

    @field_validator("login_id")
    @classmethod
    def validate_login_id(cls, v: str) -> str:
        if v == "00":
            raise ValueError("Login ID 00 is reserved for the system caretaker")
        return v


# =============================================================================
# Notifications
# =============================================================================


class NotifyTestRequest(ApiModel):
    """Send a test alert with unsaved notification settings."""

    hermes_api_key: Optional[str] = None
    hermes_api_endpoint: Optional[str] = None
    notification_title: str = ""
    notification_feed_subtitle: Optional[str] = None
    notification_feed_body: str = ""
    notification_diaper_subtitle: Optional[str] = None
    notification_diaper_body: str = ""
    type: Optional[Literal["FEED", "DIAPER"]] = None


class NotifyWarningRequest(ApiModel):
    baby_id: Optional[UUID] = None
    type: Optional[Literal["FEED", "DIAPER"]] = None


# =============================================================================
# Settings
# =============================================================================


class SettingsUpdateRequest(ApiModel):
    """Partial update of a family's settings."""

    NOT_NULL = (
        "family_name",
        "security_pin",
        "default_bottle_unit",
        "default_solids_unit",
        "default_height_unit",
        "default_weight_unit",
        "default_temp_unit",
        "enable_debug_timer",
        "enable_debug_timezone",
        "notification_enabled",
        "notification_title",
        "notification_feed_subtitle",
        "notification_feed_body",
        "notification_diaper_subtitle",
        "notification_diaper_body",
    )

    family_name: Optional[str] = Field(None, min_length=1, max_length=100)
    security_pin: Optional[str] = Field(None, min_length=4, max_length=10)
    default_bottle_unit: Optional[str] = None
    default_solids_unit: Optional[str] = None
    default_height_unit: Optional[str] = None
    default_weight_unit: Optional[str] = None
    default_temp_unit: Optional[str] = None
    activity_settings: Optional[dict] = None
    enable_debug_timer: Optional[bool] = None
    enable_debug_timezone: Optional[bool] = None
    notification_enabled: Optional[bool] = None
    hermes_api_endpoint: Optional[str] = None
    hermes_api_key: Optional[str] = None
    notification_title: Optional[str] = None
    notification_feed_subtitle: Optional[str] = None
    notification_feed_body: Optional[str] = None
    notification_diaper_subtitle: Optional[str] = None
    notification_diaper_body: Optional[str] = None


class EmailConfigUpdateRequest(ApiModel):
    """Partial update of the email provider configuration."""

    NOT_NULL = ("provider_type", "enable_tls", "allow_self_signed_cert")

    provider_type: Optional[Literal["SENDGRID", "SMTP2GO", "MANUAL_SMTP"]] = None
    sendgrid_api_key: Optional[str] = None
    smtp2go_api_key: Optional[str] = None
    server_address: Optional[str] = None
    port: Optional[int] = Field(None, ge=1, le=65535)
    username: Optional[str] = None
    password: Optional[str] = None
    enable_tls: Optional[bool] = None
    allow_self_signed_cert: Optional[bool] = None


class EmailTestRequest(ApiModel):
    to: str = Field(..., min_length=3)
    sender: str = Field(..., alias="from", min_length=3)
    subject: str = "Baby Tracker test email"


# =============================================================================
# Babies & Medicines
# =============================================================================


class BabyCreateRequest(ApiModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    birth_date: datetime
    gender: Optional[Literal["MALE", "FEMALE"]] = None
    inactive: bool = False
    feed_warning_time: str = Field("03:00", pattern=HHMM_PATTERN)
    diaper_warning_time: str = Field("02:00", pattern=HHMM_PATTERN)


class MedicineCreateRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    typical_dose_size: Optional[float] = Field(None, gt=0)
    unit_abbr: Optional[str] = None
    dose_min_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    notes: Optional[str] = None
    active: bool = True


# =============================================================================
# Activity logs
# =============================================================================


class FeedLogCreate(ApiModel):
    baby_id: UUID
    time: datetime
    type: Literal["BREAST", "BOTTLE", "SOLIDS"]
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    feed_duration: Optional[int] = Field(None, ge=0)
    amount: Optional[float] = Field(None, ge=0)
    unit_abbr: Optional[str] = None
    side: Optional[Literal["LEFT", "RIGHT"]] = None
    food: Optional[str] = None


class FeedLogUpdate(ApiModel):
    NOT_NULL = ("baby_id", "time", "type")

    baby_id: Optional[UUID] = None
    time: Optional[datetime] = None
    type: Optional[Literal["BREAST", "BOTTLE", "SOLIDS"]] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    feed_duration: Optional[int] = Field(None, ge=0)
    amount: Optional[float] = Field(None, ge=0)
    unit_abbr: Optional[str] = None
    side: Optional[Literal["LEFT", "RIGHT"]] = None
    food: Optional[str] = None


class DiaperLogCreate(ApiModel):
    baby_id: UUID
    time: datetime
    type: Literal["WET", "DIRTY", "BOTH"]
    condition: Optional[str] = None
    color: Optional[str] = None


class DiaperLogUpdate(ApiModel):
    NOT_NULL = ("baby_id", "time", "type")

    baby_id: Optional[UUID] = None
    time: Optional[datetime] = None
    type: Optional[Literal["WET", "DIRTY", "BOTH"]] = None
    condition: Optional[str] = None
    color: Optional[str] = None


class SleepLogCreate(ApiModel):
    baby_id: UUID
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0)
    type: Literal["NAP", "NIGHT_SLEEP"]
    location: Optional[str] = None
    quality: Optional[Literal["POOR", "FAIR", "GOOD", "EXCELLENT"]] = None


class SleepLogUpdate(ApiModel):
    NOT_NULL = ("baby_id", "start_time", "type")

    baby_id: Optional[UUID] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0)
    type: Optional[Literal["NAP", "NIGHT_SLEEP"]] = None
    location: Optional[str] = None
    quality: Optional[Literal["POOR", "FAIR", "GOOD", "EXCELLENT"]] = None


class MedicineLogCreate(ApiModel):
    baby_id: UUID
    medicine_id: UUID
    time: datetime
    dose_amount: float = Field(..., gt=0)
    unit_abbr: Optional[str] = None
    notes: Optional[str] = None


class MedicineLogUpdate(ApiModel):
    NOT_NULL = ("time", "dose_amount")

    time: Optional[datetime] = None
    dose_amount: Optional[float] = Field(None, gt=0)
    unit_abbr: Optional[str] = None
    notes: Optional[str] = None


class MeasurementCreate(ApiModel):
    baby_id: UUID
    date: datetime
    type: Literal["HEIGHT", "WEIGHT", "HEAD_CIRCUMFERENCE", "TEMPERATURE"]
    value: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=10)
    notes: Optional[str] = None


class MeasurementUpdate(ApiModel):
    NOT_NULL = ("baby_id", "date", "type", "value", "unit")

    baby_id: Optional[UUID] = None
    date: Optional[datetime] = None
    type: Optional[Literal["HEIGHT", "WEIGHT", "HEAD_CIRCUMFERENCE", "TEMPERATURE"]] = None
    value: Optional[float] = Field(None, gt=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=10)
    notes: Optional[str] = None


class BathLogCreate(ApiModel):
    baby_id: UUID
    time: datetime
    soap_used: bool = True
    shampoo_used: bool = True
    notes: Optional[str] = None


class BathLogUpdate(ApiModel):
    NOT_NULL = ("baby_id", "time", "soap_used", "shampoo_used")

    baby_id: Optional[UUID] = None
    time: Optional[datetime] = None
    soap_used: Optional[bool] = None
    shampoo_used: Optional[bool] = None
    notes: Optional[str] = None


class NoteCreate(ApiModel):
    baby_id: UUID
    time: datetime
    content: str = Field(..., min_length=1)
    category: Optional[str] = Field(None, max_length=50)


class NoteUpdate(ApiModel):
    NOT_NULL = ("baby_id", "time", "content")

    baby_id: Optional[UUID] = None
    time: Optional[datetime] = None
    content: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, max_length=50)
