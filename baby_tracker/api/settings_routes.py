"""
Family settings API routes.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from baby_tracker.api.dependencies import require_admin, require_family
from baby_tracker.api.models import SettingsUpdateRequest
from baby_tracker.api.response_builder import build_response
from baby_tracker.auth import AuthContext
from baby_tracker.database import get_db
from baby_tracker.services import get_or_create_settings, update_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("")
def get_family_settings(
    auth: AuthContext = Depends(require_family),
    db: Session = Depends(get_db),
):
    """Get the caller's family settings, creating defaults if missing."""
    return build_response(get_or_create_settings(db, auth.family_id).to_response())


@router.put("")
def update_family_settings(
    request: SettingsUpdateRequest,
    auth: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Update only the fields sent in the request."""
    settings = update_settings(db, auth.family_id, request.changes())
    return build_response(settings.to_response())
