"""
Authentication for Baby Tracker.

Provides PIN and administrator login, JWT handling, per-IP lockout and
resolution of the calling caretaker and family.
"""

from baby_tracker.auth.context import AuthContext, resolve_auth_context
from baby_tracker.auth.exceptions import (
    AuthError,
    AuthenticationRequired,
    LockedOut,
    PermissionDenied,
)
from baby_tracker.auth.lockout import IpLockout, ip_lockout
from baby_tracker.auth.login import LoginResult, authenticate, authenticate_sysadmin
from baby_tracker.auth.tokens import (
    TokenError,
    decode_token,
    invalidate_token,
    issue_setup_token,
    issue_token,
    token_blacklist,
)

__all__ = [
    "AuthContext",
    "resolve_auth_context",
    "AuthError",
    "AuthenticationRequired",
    "LockedOut",
    "PermissionDenied",
    "IpLockout",
    "ip_lockout",
    "LoginResult",
    "authenticate",
    "authenticate_sysadmin",
    "TokenError",
    "decode_token",
    "invalidate_token",
    "issue_setup_token",
    "issue_token",
    "token_blacklist",
]
