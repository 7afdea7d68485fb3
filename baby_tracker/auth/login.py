"""
Caretaker and system administrator login.

Caretakers log in with a two-character login id and a PIN. A family that
has no caretakers of its own logs in with the shared PIN from its settings,
acting as the family's system caretaker.
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from baby_tracker.auth.exceptions import AuthError, LockedOut
from baby_tracker.auth.lockout import IpLockout, ip_lockout
from baby_tracker.auth.tokens import issue_token
from baby_tracker.config import get_settings
from baby_tracker.models.family import (
    SYSTEM_CARETAKER_LOGIN_ID,
    Caretaker,
    Family,
    FamilySettings,
)
from baby_tracker.services.families import get_family_by_slug

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    """A successful login."""

    token: str
    caretaker_id: Optional[str]
    name: str
    type: Optional[str]
    role: str
    family_id: Optional[str]
    family_slug: Optional[str]
    is_sys_admin: bool = False

    def to_response(self) -> dict:
        data = {
            "id": self.caretaker_id,
            "name": self.name,
            "type": self.type,
            "role": self.role,
            "token": self.token,
            "familyId": self.family_id,
            "familySlug": self.family_slug,
        }
        if self.is_sys_admin:
            data["isSysAdmin"] = True
        return data


def count_caretakers(session: Session, family_id=None) -> int:
    """Count active caretakers other than the system caretaker."""
    conditions = [
        Caretaker.deleted_at.is_(None),
        Caretaker.login_id != SYSTEM_CARETAKER_LOGIN_ID,
    ]
    if family_id is not None:
        conditions.append(Caretaker.family_id == family_id)
    return session.scalar(select(func.count()).select_from(Caretaker).where(*conditions))


def _login_result(caretaker: Caretaker, default_role: str) -> LoginResult:
    family = caretaker.family
    family_id = str(caretaker.family_id) if caretaker.family_id else None
    family_slug = family.slug if family else None
    role = caretaker.role or default_role

    token = issue_token({
        "id": str(caretaker.id),
        "name": caretaker.name,
        "type": caretaker.type,
        "role": role,
        "familyId": family_id,
        "familySlug": family_slug,
    })
    return LoginResult(
        token=token,
        caretaker_id=str(caretaker.id),
        name=caretaker.name,
        type=caretaker.type,
        role=role,
        family_id=family_id,
        family_slug=family_slug,
    )


def _system_pin_login(
    session: Session,
    security_pin: str,
    family: Optional[Family],
) -> Optional[LoginResult]:
    settings_stmt = select(FamilySettings)
    if family is not None:
        settings_stmt = settings_stmt.where(FamilySettings.family_id == family.id)
    settings = session.scalar(settings_stmt.order_by(FamilySettings.created_at).limit(1))

    if settings is None:
        return None
    if not secrets.compare_digest(settings.security_pin.encode(), security_pin.encode()):
        return None

    stmt = (
        select(Caretaker)
        .options(joinedload(Caretaker.family))
        .where(
            Caretaker.login_id == SYSTEM_CARETAKER_LOGIN_ID,
            Caretaker.deleted_at.is_(None),
            Caretaker.family_id == settings.family_id,
        )
        .limit(1)
    )
    system_caretaker = session.scalar(stmt)
    if system_caretaker is None:
        raise AuthError("System caretaker not found. Please contact administrator.", 500)

    return _login_result(system_caretaker, default_role="ADMIN")


def _caretaker_login(
    session: Session,
    login_id: str,
    security_pin: str,
    family: Optional[Family],
) -> Optional[LoginResult]:
    conditions = [
        Caretaker.login_id == login_id,
        Caretaker.security_pin == security_pin,
        Caretaker.inactive.is_(False),
        Caretaker.deleted_at.is_(None),
    ]
    if family is not None:
        conditions.append(Caretaker.family_id == family.id)

    stmt = select(Caretaker).options(joinedload(Caretaker.family)).where(*conditions).limit(1)
    caretaker = session.scalar(stmt)
    if caretaker is None:
        return None
    return _login_result(caretaker, default_role="USER")


def authenticate(
    session: Session,
    ip: str,
    security_pin: Optional[str],
    login_id: Optional[str] = None,
    family_slug: Optional[str] = None,
    lockout: IpLockout = ip_lockout,
) -> LoginResult:
    """
    Log a caretaker in and issue a JWT.

    Args:
        session: Database session
        ip: Client address used for lockout tracking
        security_pin: PIN entered by the user
        login_id: Caretaker login id (ignored while a family has no caretakers)
        family_slug: Restrict the login to this family
        lockout: Failed attempt tracker

    Returns:
        LoginResult carrying the token and caretaker details

    Raises:
        LockedOut: Too many failed attempts from this address (429)
        AuthError: Missing PIN (400), unknown family (404), bad
            credentials (401)
    """
    status = lockout.check(ip)
    if status.locked:
        raise LockedOut(
            "You have been locked out due to too many failed attempts. "
            f"Please try again in {status.remaining_minutes} minutes."
        )

    if not security_pin:
        raise AuthError("Security PIN is required", 400)

    family = None
    if family_slug:
        family = get_family_by_slug(session, family_slug)
        if family is None:
            raise AuthError("Invalid family", 404)

    result = None
    if count_caretakers(session, family.id if family else None) == 0:
        result = _system_pin_login(session, security_pin, family)
    elif login_id:
        result = _caretaker_login(session, login_id, security_pin, family)

    if result is None:
        lockout.record_failure(ip)
        logger.info(f"Failed login from {ip}" + (f" for family {family_slug}" if family_slug else ""))
        if family is not None:
            raise AuthError("Invalid credentials or user does not have access to this family", 401)
        raise AuthError("Invalid credentials", 401)

    lockout.reset(ip)
    logger.info(f"Caretaker {result.caretaker_id} logged in")
    return result


def authenticate_sysadmin(
    ip: str,
    password: Optional[str],
    lockout: IpLockout = ip_lockout,
) -> LoginResult:
    """
    Log the system administrator in with ADMIN_PASSWORD.

    Raises:
        LockedOut: Too many failed attempts from this address (429)
        AuthError: Missing (400) or wrong (401) password
    """
    status = lockout.check(ip)
    if status.locked:
        raise LockedOut(
            "You have been locked out due to too many failed attempts. "
            f"Please try again in {status.remaining_minutes} minutes."
        )

    if not password:
        raise AuthError("Password is required", 400)

    if not secrets.compare_digest(password.encode(), get_settings().admin_password.encode()):
        lockout.record_failure(ip)
        raise AuthError("Invalid password", 401)

    lockout.reset(ip)
    token = issue_token({
        "id": "sysadmin",
        "name": "System Administrator",
        "type": "SYSADMIN",
        "role": "ADMIN",
        "familyId": None,
        "familySlug": None,
        "isSysAdmin": True,
    })
    logger.info("System administrator logged in")
    return LoginResult(
        token=token,
        caretaker_id=None,
        name="System Administrator",
        type="SYSADMIN",
        role="ADMIN",
        family_id=None,
        family_slug=None,
        is_sys_admin=True,
    )
