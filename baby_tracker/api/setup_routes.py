"""
Family setup API routes.

1. /api/setup/start - Create a family (first run or with an invitation)
2. /api/setup/validate-token - Check an invitation before showing the form
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from baby_tracker.api.models import SetupStartRequest, ValidateTokenRequest
from baby_tracker.api.response_builder import build_response
from baby_tracker.database import get_db
from baby_tracker.services import start_setup, validate_setup_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/setup", tags=["setup"])


@router.post("/start", status_code=200)
def setup_start(request: SetupStartRequest, db: Session = Depends(get_db)):
    """
    Create a family together with its settings.

    Failures are raised as SetupError subclasses and rendered by the
    application's exception handler with their status code.
    """
    family = start_setup(db, request.name, request.slug, request.token)
    return build_response(family.to_response())


@router.post("/validate-token")
def setup_validate_token(request: ValidateTokenRequest, db: Session = Depends(get_db)):
    """Check that an invitation token exists, is unexpired and unused."""
    return build_response(validate_setup_token(db, request.token))
