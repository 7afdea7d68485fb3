"""
Authentication API routes.

Handles PIN and administrator login:
1. /api/auth - Caretaker or shared PIN login
2. /api/auth/admin - System administrator login
3. /api/auth/logout - Invalidate the current token
4. /api/auth/token - Exchange an invitation password for a setup token
5. /api/auth/caretaker-exists - Whether login needs a login id
6. /api/caretaker - List and add caretakers
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from baby_tracker.api.dependencies import get_client_ip, require_admin, require_family
from baby_tracker.api.models import (
    AdminLoginRequest,
    CaretakerCreateRequest,
    LoginRequest,
    SetupAuthRequest,
)
from baby_tracker.api.response_builder import build_error_response, build_response, serialize
from baby_tracker.auth import (
    AuthContext,
    authenticate,
    authenticate_sysadmin,
    invalidate_token,
    issue_setup_token,
)
from baby_tracker.auth.context import bearer_token
from baby_tracker.auth.login import count_caretakers
from baby_tracker.config import get_settings
from baby_tracker.database import get_db
from baby_tracker.services import (
    create_caretaker,
    get_family_by_slug,
    list_caretakers,
    login_id_taken,
    verify_setup_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["authentication"])
caretaker_router = APIRouter(prefix="/api/caretaker", tags=["caretakers"])

CARETAKER_COOKIE = "caretakerId"


def _login_response(data: dict, caretaker_id: Optional[str]) -> JSONResponse:
    """Success envelope that also sets the legacy caretakerId cookie."""
    settings = get_settings()
    response = JSONResponse(content=build_response(data))
    if caretaker_id:
        response.set_cookie(
            CARETAKER_COOKIE,
            caretaker_id,
            max_age=settings.auth_life,
            httponly=True,
            secure=settings.cookie_secure,
            samesite="lax",
            path="/",
        )
    return response


@router.post("")
def login(
    request: LoginRequest,
    ip: str = Depends(get_client_ip),
    db: Session = Depends(get_db),
):
    """
    Log in with a PIN.

    While a family has no caretakers of its own, the family's shared PIN
    logs in as its system caretaker; otherwise a login id is required too.
    """
    result = authenticate(
        db,
        ip,
        security_pin=request.security_pin,
        login_id=request.login_id,
        family_slug=request.family_slug,
    )
    return _login_response(result.to_response(), result.caretaker_id)


@router.post("/admin")
def admin_login(request: AdminLoginRequest, ip: str = Depends(get_client_ip)):
    """Log in as the system administrator."""
    result = authenticate_sysadmin(ip, request.password)
    return build_response(result.to_response())


@router.post("/logout")
def logout(authorization: Optional[str] = Header(None)):
    """Invalidate the bearer token (if any) and clear the cookie."""
    token = bearer_token(authorization)
    if token:
        invalidate_token(token)

    response = JSONResponse(content=build_response())
    response.delete_cookie(CARETAKER_COOKIE, path="/")
    return response


@router.post("/token")
def setup_token_login(request: SetupAuthRequest, db: Session = Depends(get_db)):
    """Exchange an invitation token and its password for a setup session token."""
    if not request.token or not request.password:
        return build_error_response("Token and password are required", 400)

    verify_setup_password(db, request.token, request.password)
    token, expires_at = issue_setup_token(request.token)
    return build_response({"success": True, "token": token, "expiresAt": expires_at})


@router.get("/caretaker-exists")
def caretaker_exists(
    family_slug: Optional[str] = Query(None, alias="familySlug"),
    db: Session = Depends(get_db),
):
    """Report whether any caretaker besides the system caretaker exists."""
    family_id = None
    if family_slug:
        family = get_family_by_slug(db, family_slug)
        if family is None:
            return build_error_response("Invalid family", 404)
        family_id = family.id

    return build_response({"exists": count_caretakers(db, family_id) > 0})


# =============================================================================
# Caretakers
# =============================================================================


@caretaker_router.get("")
def caretakers(
    auth: AuthContext = Depends(require_family),
    db: Session = Depends(get_db),
):
    return build_response(serialize(list_caretakers(db, auth.family_id)))


@caretaker_router.post("", status_code=201)
def add_caretaker(
    request: CaretakerCreateRequest,
    auth: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Add a caretaker; login ids are unique within a family."""
    if login_id_taken(db, auth.family_id, request.login_id):
        return build_error_response("Login ID is already in use", 409)

    caretaker = create_caretaker(db, auth.family_id, request.changes())
    return build_response(caretaker.to_response())
