"""
Family API routes.

1. /api/family/by-slug/{slug} - Public family lookup used by the page guard
2. /api/family - The caller's family
3. /api/family/generate-slug - Suggest an unused slug
4. /api/family/create-setup-link - Invitation for a new family (sysadmin)
5. /api/family/manage - List, create and edit every family (sysadmin)
6. /api/family/setup-invites - List and revoke invitations (sysadmin)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from baby_tracker.api.dependencies import get_auth_context, require_family, require_sysadmin
from baby_tracker.api.models import (
    CreateSetupLinkRequest,
    FamilyCreateRequest,
    FamilyUpdateRequest,
)
from baby_tracker.api.response_builder import build_error_response, build_response
from baby_tracker.auth import AuthContext
from baby_tracker.database import get_db
from baby_tracker.services import (
    create_family,
    create_setup_invite,
    generate_unique_slug,
    get_family_by_id,
    get_family_by_slug,
    list_families_with_counts,
    list_setup_invites,
    revoke_setup_invite,
    update_family,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/family", tags=["family"])


@router.get("/by-slug/{slug}")
def family_by_slug(slug: str, db: Session = Depends(get_db)):
    """
    Look up an active family by slug.

    An unknown slug answers 200 with success false so that slug availability
    checks do not show up as failed requests in the browser.
    """
    family = get_family_by_slug(db, slug)
    if family is None:
        return {"success": False, "error": "Family not found"}
    return build_response(family.to_response())


@router.get("")
def current_family(
    auth: AuthContext = Depends(require_family),
    db: Session = Depends(get_db),
):
    """Get the family the caller is acting on."""
    family = get_family_by_id(db, auth.family_id)
    if family is None:
        return build_error_response("Family not found", 404)
    return build_response(family.to_response())


@router.get("/generate-slug")
def generate_slug(
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """Suggest a random adjective-animal slug nobody uses yet."""
    return build_response({"slug": generate_unique_slug(db)})


@router.post("/create-setup-link")
def create_setup_link(
    request: CreateSetupLinkRequest,
    auth: AuthContext = Depends(require_sysadmin),
    db: Session = Depends(get_db),
):
    """Create a single-use family setup invitation."""
    invite = create_setup_invite(db, request.password)
    return build_response({
        "token": invite.token,
        "setupUrl": invite.setup_url,
        "expiresAt": invite.expires_at.isoformat(),
    })


@router.get("/manage")
def manage_families(
    auth: AuthContext = Depends(require_sysadmin),
    db: Session = Depends(get_db),
):
    """Every family, active first, with caretaker and baby counts."""
    return build_response(list_families_with_counts(db))


@router.post("/manage")
def manage_create_family(
    request: FamilyCreateRequest,
    auth: AuthContext = Depends(require_sysadmin),
    db: Session = Depends(get_db),
):
    family = create_family(db, request.changes())
    return build_response(family.to_response())


@router.put("/manage")
def manage_update_family(
    request: FamilyUpdateRequest,
    auth: AuthContext = Depends(require_sysadmin),
    db: Session = Depends(get_db),
):
    """Update only the fields sent; the family is identified by id in the body."""
    changes = request.changes()
    family = update_family(db, changes.pop("id", None), changes)
    return build_response(family.to_response())


@router.get("/setup-invites")
def setup_invites(
    auth: AuthContext = Depends(require_sysadmin),
    db: Session = Depends(get_db),
):
    """Every setup invitation, newest first."""
    return build_response(list_setup_invites(db))


@router.delete("/setup-invites")
def delete_setup_invite(
    invite_id: Optional[str] = Query(None, alias="id"),
    auth: AuthContext = Depends(require_sysadmin),
    db: Session = Depends(get_db),
):
    """Revoke an invitation, used or not."""
    return build_response(revoke_setup_invite(db, invite_id))
