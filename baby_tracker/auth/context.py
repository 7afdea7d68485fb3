"""
Request authentication context.

Resolves who is calling from a bearer JWT or, for older clients, the
caretakerId cookie, and which family the call acts on.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from baby_tracker.auth.exceptions import AuthenticationRequired
from baby_tracker.auth.tokens import TokenError, decode_token
from baby_tracker.models.family import SYSTEM_CARETAKER_LOGIN_ID, Caretaker
from baby_tracker.services.families import get_family_by_slug

logger = logging.getLogger(__name__)

# First path segments that never name a family
NON_FAMILY_SEGMENTS = ("api", "family-manager", "setup")


@dataclass
class AuthContext:
    """
    The authenticated caller.

    caretaker_id is None for system administrators and for the system
    caretaker, so activities they record are not attributed to anyone.
    """

    caretaker_id: Optional[uuid.UUID]
    caretaker_type: Optional[str] = None
    caretaker_role: str = "USER"
    family_id: Optional[uuid.UUID] = None
    family_slug: Optional[str] = None
    is_sys_admin: bool = False
    is_system_caretaker: bool = False
    token: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.is_sys_admin or self.is_system_caretaker or self.caretaker_role == "ADMIN"


def parse_uuid(value) -> Optional[uuid.UUID]:
    """Parse a UUID, returning None for empty or malformed values."""
    if not value:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an "Authorization: Bearer ..." header."""
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None
    return None


def family_slug_from_path(path: str) -> Optional[str]:
    """First path segment when it can name a family, else None."""
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return None
    if segments[0] in NON_FAMILY_SEGMENTS:
        return None
    return segments[0]


def _context_from_token(token: str) -> AuthContext:
    try:
        claims = decode_token(token)
    except TokenError as e:
        raise AuthenticationRequired(str(e))

    if claims.get("isSetupAuth"):
        raise AuthenticationRequired("Setup tokens cannot access this resource")

    is_sys_admin = bool(claims.get("isSysAdmin"))
    return AuthContext(
        caretaker_id=None if is_sys_admin else parse_uuid(claims.get("id")),
        caretaker_type=claims.get("type"),
        caretaker_role=claims.get("role") or "USER",
        family_id=parse_uuid(claims.get("familyId")),
        family_slug=claims.get("familySlug"),
        is_sys_admin=is_sys_admin,
        token=token,
    )


def _context_from_cookie(session: Session, caretaker_id: str) -> Optional[AuthContext]:
    parsed = parse_uuid(caretaker_id)
    if parsed is None:
        return None

    stmt = (
        select(Caretaker)
        .options(joinedload(Caretaker.family))
        .where(Caretaker.id == parsed, Caretaker.deleted_at.is_(None))
    )
    caretaker = session.scalar(stmt)
    if caretaker is None:
        return None

    return AuthContext(
        caretaker_id=caretaker.id,
        caretaker_type=caretaker.type,
        caretaker_role=caretaker.role or "USER",
        family_id=caretaker.family_id,
        family_slug=caretaker.family.slug if caretaker.family else None,
    )


def _sysadmin_family_id(
    session: Session,
    query_family_id: Optional[str],
    path: str,
    referer: Optional[str],
) -> Optional[uuid.UUID]:
    family_id = parse_uuid(query_family_id)
    if family_id is not None:
        return family_id

    candidates = [path]
    if referer:
        candidates.append(urlparse(referer).path)

    for candidate in candidates:
        slug = family_slug_from_path(candidate)
        if slug:
            family = get_family_by_slug(session, slug)
            if family is not None:
                return family.id
    return None


def resolve_auth_context(
    session: Session,
    authorization: Optional[str] = None,
    caretaker_cookie: Optional[str] = None,
    query_family_id: Optional[str] = None,
    path: str = "",
    referer: Optional[str] = None,
) -> AuthContext:
    """
    Work out who is calling and for which family.

    The bearer token wins over the cookie. A system administrator has no
    family of their own and takes it from ?familyId=, then from the family
    slug in the request path or the Referer. A system caretaker acts with
    caretaker_id None.

    Raises:
        AuthenticationRequired: No valid credentials
    """
    token = bearer_token(authorization)

    if token:
        context = _context_from_token(token)
    elif caretaker_cookie:
        context = _context_from_cookie(session, caretaker_cookie)
        if context is None:
            raise AuthenticationRequired()
    else:
        raise AuthenticationRequired()

    if context.is_sys_admin:
        family_id = _sysadmin_family_id(session, query_family_id, path, referer)
        if family_id is not None:
            context.family_id = family_id
        return context

    if context.caretaker_id is not None:
        stmt = select(Caretaker.login_id).where(
            Caretaker.id == context.caretaker_id,
            Caretaker.deleted_at.is_(None),
        )
        if session.scalar(stmt) == SYSTEM_CARETAKER_LOGIN_ID:
            context.caretaker_id = None
            context.is_system_caretaker = True

    return context
