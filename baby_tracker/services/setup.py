"""
Family setup and invitation handling.

A family is created together with its settings row in one transaction.
Creation is open only on a fresh install; after that, a system
administrator hands out single-use invitation tokens.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from baby_tracker.config import get_settings
from baby_tracker.crypto import decrypt, encrypt
from baby_tracker.models.base import utcnow
from baby_tracker.models.family import Family, FamilySetup, SetupClaim
from baby_tracker.services.families import (
    count_families,
    create_family_records,
    get_system_caretaker,
)
from baby_tracker.services.slugs import slug_exists, validate_slug

logger = logging.getLogger(__name__)

MIN_INVITE_PASSWORD_LENGTH = 6
TOKEN_ATTEMPTS = 10
FIRST_RUN_CLAIM = "first-run"


class SetupError(Exception):
    """Base exception for family setup; carries the HTTP status to report."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SetupValidationError(SetupError):
    """Missing or malformed input."""

    status_code = 400


class SetupForbiddenError(SetupError):
    """Setup without an invitation once a family already exists."""

    status_code = 403


class SetupTokenNotFoundError(SetupError):
    """Unknown invitation token (or, when starting setup, an expired one)."""

    status_code = 404


class SetupPasswordError(SetupError):
    """Wrong password for an invitation."""

    status_code = 401


class SetupTokenExpiredError(SetupError):
    """Invitation token past its expiry."""

    status_code = 410


class SetupConflictError(SetupError):
    """Slug already taken or invitation already consumed."""

    status_code = 409


class SetupInternalError(SetupError):
    """Setup could not be completed for a reason the caller cannot fix."""

    status_code = 500


@dataclass
class SetupInvite:
    """A freshly created invitation."""

    token: str
    setup_url: str
    expires_at: datetime


def _get_setup_token(session: Session, token: str) -> Optional[FamilySetup]:
    return session.scalar(select(FamilySetup).where(FamilySetup.token == token))


def _claim_first_run(session: Session) -> SetupClaim:
    """
    Insert the first-run claim row.

    Only one transaction can insert it; a concurrent first-run setup that
    also saw zero families fails here.
    """
    claim = SetupClaim(name=FIRST_RUN_CLAIM)
    session.add(claim)
    try:
        session.flush()
    except IntegrityError:
        session.rollback()
        logger.warning("First-run setup lost to a concurrent request")
        raise SetupForbiddenError("Cannot create family without invitation token")
    return claim


def _bind_setup_token(session: Session, setup_token: FamilySetup, family: Family) -> None:
    """
    Mark an invitation as consumed by a family.

    The update only matches while the invitation is still unbound, so of two
    requests racing on one token exactly one binds it.
    """
    result = session.execute(
        update(FamilySetup)
        .where(FamilySetup.id == setup_token.id, FamilySetup.family_id.is_(None))
        .values(family_id=family.id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning(f"Invitation {setup_token.token} was consumed by a concurrent request")
        raise SetupConflictError("Token has already been used")


def start_setup(
    session: Session,
    name: Optional[str],
    slug: Optional[str],
    token: Optional[str] = None,
) -> Family:
    """
    Create a family, its settings and its system caretaker, consuming an
    invitation if given.

    Without a token, creation is allowed only while no family exists.
    Family, settings and token consumption are committed together; on any
    failure the transaction is rolled back and nothing is persisted.

    Args:
        session: Database session
        name: Family display name
        slug: Desired URL slug
        token: Invitation token, if any

    Returns:
        The created Family

    Raises:
        SetupError: Subclass matching the failure (400/403/404/409)
    """
    if not name or not slug:
        raise SetupValidationError("Family name and slug are required")

    validation = validate_slug(slug)
    if not validation.is_valid:
        raise SetupValidationError(validation.error)

    setup_token = None
    if token:
        setup_token = _get_setup_token(session, token)
        if setup_token is None or setup_token.is_expired:
            raise SetupTokenNotFoundError("Invalid or expired token")
        if setup_token.is_used:
            raise SetupConflictError("Token has already been used")
    elif count_families(session) > 0:
        raise SetupForbiddenError("Cannot create family without invitation token")

    if slug_exists(session, slug):
        raise SetupConflictError("That URL is already taken")

    claim = _claim_first_run(session) if setup_token is None else None

    try:
        family = create_family_records(session, name, slug)

        if claim is not None:
            claim.family_id = family.id
        else:
            _bind_setup_token(session, setup_token, family)

        session.commit()
    except IntegrityError:
        # Lost a race for the slug to a concurrent setup
        session.rollback()
        logger.warning(f"Setup for slug '{slug}' lost to a concurrent request")
        raise SetupConflictError("That URL is already taken")
    except Exception:
        session.rollback()
        raise

    logger.info(
        f"Created family '{name}' ({slug})"
        + (f" with invitation {token}" if token else " on first run")
    )
    return family


def validate_setup_token(session: Session, token: Optional[str]) -> dict:
    """
    Check that an invitation token can still be used.

    Raises:
        SetupError: 400 missing, 404 unknown, 410 expired, 409 used
    """
    if not token:
        raise SetupValidationError("Token is required")

    setup_token = _get_setup_token(session, token)
    if setup_token is None:
        raise SetupTokenNotFoundError("Invalid setup token")
    if setup_token.is_expired:
        raise SetupTokenExpiredError("Setup token has expired")
    if setup_token.is_used:
        raise SetupConflictError("Setup token has already been used")

    return {"valid": True}


def verify_setup_password(session: Session, token: str, password: str) -> FamilySetup:
    """
    Check the password that accompanies an invitation.

    The stored password is encrypted; the candidate is compared after
    decryption.

    Raises:
        SetupError: Same statuses as validate_setup_token
        SetupPasswordError: If the password does not match
    """
    validate_setup_token(session, token)
    setup_token = _get_setup_token(session, token)
    expected = decrypt(setup_token.password)
    if not secrets.compare_digest(expected.encode(), (password or "").encode()):
        raise SetupPasswordError("Invalid password")
    return setup_token


def create_setup_invite(
    session: Session,
    password: Optional[str],
    created_by: Optional[UUID] = None,
) -> SetupInvite:
    """
    Create a single-use family setup invitation.

    Tokens are six hex characters; up to ten candidates are tried before
    giving up. The invitation expires after SETUP_TOKEN_LIFETIME_DAYS.

    Args:
        session: Database session
        password: Password the invitee must present (at least 6 characters)
        created_by: Caretaker creating the invitation; defaults to the
            system caretaker when None

    Returns:
        SetupInvite with the token and its relative setup URL

    Raises:
        SetupValidationError: Password too short
        SetupInternalError: No unique token could be generated
    """
    if not password or len(password) < MIN_INVITE_PASSWORD_LENGTH:
        raise SetupValidationError("Password must be at least 6 characters long")

    if created_by is None:
        system_caretaker = get_system_caretaker(session)
        if system_caretaker is not None:
            created_by = system_caretaker.id

    token = None
    for _ in range(TOKEN_ATTEMPTS):
        candidate = secrets.token_hex(3)
        if _get_setup_token(session, candidate) is None:
            token = candidate
            break

    if token is None:
        raise SetupInternalError("Unable to generate unique token")

    expires_at = utcnow() + timedelta(days=get_settings().setup_token_lifetime_days)
    session.add(
        FamilySetup(
            token=token,
            password=encrypt(password),
            expires_at=expires_at,
            created_by=created_by,
        )
    )
    session.commit()

    logger.info(f"Created setup invitation {token} expiring {expires_at.isoformat()}")
    return SetupInvite(token=token, setup_url=f"/setup/{token}", expires_at=expires_at)


def list_setup_invites(session: Session) -> list[dict]:
    """
    Get every invitation, newest first, for the administration page.

    Each entry carries its expiry and usage state together with the creator
    and the family it produced, when there are any.
    """
    stmt = (
        select(FamilySetup)
        .options(selectinload(FamilySetup.creator), selectinload(FamilySetup.family))
        .order_by(FamilySetup.created_at.desc())
    )
    invites = []
    for invite in session.scalars(stmt).all():
        data = invite.to_response()
        data.pop("password")
        data["isExpired"] = invite.is_expired
        data["isUsed"] = invite.is_used
        data["creator"] = (
            {
                "id": str(invite.creator.id),
                "name": invite.creator.name,
                "loginId": invite.creator.login_id,
            }
            if invite.creator
            else None
        )
        data["family"] = (
            {
                "id": str(invite.family.id),
                "name": invite.family.name,
                "slug": invite.family.slug,
            }
            if invite.family
            else None
        )
        invites.append(data)
    return invites


def revoke_setup_invite(session: Session, invite_id: Optional[str]) -> dict:
    """
    Delete an invitation so its token can no longer be used.

    Raises:
        SetupValidationError: No id given
        SetupTokenNotFoundError: No invitation with that id
    """
    if not invite_id:
        raise SetupValidationError("Invite ID is required")

    try:
        invite = session.get(FamilySetup, UUID(invite_id))
    except ValueError:
        invite = None
    if invite is None:
        raise SetupTokenNotFoundError("Invite not found")

    session.delete(invite)
    session.flush()
    logger.info(f"Revoked setup invitation {invite.token}")
    return {"id": invite_id}
