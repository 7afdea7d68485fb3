"""
FastAPI dependency injection providers.

Provides the client address, the authenticated caller and family-scoped
access checks.
"""

import logging
from typing import Optional

from fastapi import Cookie, Depends, Header, Query, Request
from sqlalchemy.orm import Session

from baby_tracker.auth import AuthContext, PermissionDenied, resolve_auth_context
from baby_tracker.database import get_db

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """
    Best guess at the caller's address for lockout tracking.

    Priority: X-Forwarded-For (first hop) > X-Real-IP > socket peer
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def get_auth_context(
    request: Request,
    authorization: Optional[str] = Header(None),
    referer: Optional[str] = Header(None),
    caretaker_id: Optional[str] = Cookie(None, alias="caretakerId"),
    family_id: Optional[str] = Query(None, alias="familyId"),
    db: Session = Depends(get_db),
) -> AuthContext:
    """
    Resolve the authenticated caller.

    Raises:
        AuthenticationRequired: No valid bearer token or cookie (401)
    """
    return resolve_auth_context(
        db,
        authorization=authorization,
        caretaker_cookie=caretaker_id,
        query_family_id=family_id,
        path=request.url.path,
        referer=referer,
    )


def require_family(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """
    Authenticated caller acting on a family.

    Raises:
        PermissionDenied: No family context (403)
    """
    if auth.family_id is None:
        raise PermissionDenied("User is not associated with a family.")
    return auth


def require_admin(auth: AuthContext = Depends(require_family)) -> AuthContext:
    """Family caller with the ADMIN role (or a system administrator)."""
    if not auth.is_admin:
        raise PermissionDenied("Administrator access required")
    return auth


def require_sysadmin(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """System administrator only."""
    if not auth.is_sys_admin:
        raise PermissionDenied("System administrator access required")
    return auth
