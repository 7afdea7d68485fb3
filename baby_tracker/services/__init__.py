"""
Service layer for Baby Tracker.

Provides business logic and data access for:
- Slug validation and generation
- Family lookup and settings
- Family setup and invitations
- Family administration for system administrators
- Activity logs, babies and medicines
- Timeline formatting and status bubbles
- Push notification warnings
"""

from baby_tracker.services.slugs import (
    RESERVED_URLS,
    SlugGenerationError,
    SlugValidation,
    generate_slug,
    generate_slug_with_number,
    generate_unique_slug,
    is_reserved_slug,
    slug_exists,
    validate_slug,
)

from baby_tracker.services.families import (
    count_families,
    create_caretaker,
    create_family_records,
    get_active_families,
    get_family_by_id,
    get_family_by_slug,
    get_or_create_settings,
    get_system_caretaker,
    list_caretakers,
    login_id_taken,
    update_settings,
)

from baby_tracker.services.setup import (
    SetupConflictError,
    SetupError,
    SetupForbiddenError,
    SetupInternalError,
    SetupInvite,
    SetupPasswordError,
    SetupTokenExpiredError,
    SetupTokenNotFoundError,
    SetupValidationError,
    create_setup_invite,
    list_setup_invites,
    revoke_setup_invite,
    start_setup,
    validate_setup_token,
    verify_setup_password,
)

from baby_tracker.services.family_admin import (
    FamilyNotFoundError,
    create_family,
    list_families_with_counts,
    update_family,
)

from baby_tracker.services.activities import (
    ActivityError,
    ActivityForbiddenError,
    ActivityNotFoundError,
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

from baby_tracker.services.timeline import (
    StatusBubble,
    TimelineEntry,
    build_status_bubbles,
    build_timeline,
    format_duration,
    status_for,
    time_since,
)

from baby_tracker.services.notifications import (
    NotificationsDisabledError,
    send_family_notification,
    send_warning,
)

__all__ = [
    # Slugs
    "RESERVED_URLS",
    "SlugGenerationError",
    "SlugValidation",
    "generate_slug",
    "generate_slug_with_number",
    "generate_unique_slug",
    "is_reserved_slug",
    "slug_exists",
    "validate_slug",
    # Families
    "count_families",
    "create_caretaker",
    "create_family_records",
    "get_active_families",
    "get_family_by_id",
    "get_family_by_slug",
    "get_or_create_settings",
    "get_system_caretaker",
    "list_caretakers",
    "login_id_taken",
    "update_settings",
    # Setup
    "SetupConflictError",
    "SetupError",
    "SetupForbiddenError",
    "SetupInternalError",
    "SetupInvite",
    "SetupPasswordError",
    "SetupTokenExpiredError",
    "SetupTokenNotFoundError",
    "SetupValidationError",
    "create_setup_invite",
    "list_setup_invites",
    "revoke_setup_invite",
    "start_setup",
    "validate_setup_token",
    "verify_setup_password",
    # Family administration
    "FamilyNotFoundError",
    "create_family",
    "list_families_with_counts",
    "update_family",
    # Activities
    "ActivityError",
    "ActivityForbiddenError",
    "ActivityNotFoundError",
    "create_baby",
    "create_log",
    "create_medicine",
    "delete_log",
    "get_baby_for_family",
    "get_baby_history",
    "get_last_feed",
    "get_log",
    "list_babies",
    "list_logs",
    "list_medicines",
    "list_note_categories",
    "update_log",
    # Timeline
    "StatusBubble",
    "TimelineEntry",
    "build_status_bubbles",
    "build_timeline",
    "format_duration",
    "status_for",
    "time_since",
    # Notifications
    "NotificationsDisabledError",
    "send_family_notification",
    "send_warning",
]
