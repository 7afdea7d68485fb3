"""
JWT issuing, verification and invalidation.

Tokens are signed with JWT_SECRET (HS256) and expire after AUTH_LIFE
seconds. Logged-out tokens are blacklisted in memory until their own
expiry.
"""

import logging
import threading
import time
from typing import Any, Optional

import jwt

from baby_tracker.config import get_settings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
SETUP_TOKEN_LIFETIME_SECONDS = 24 * 60 * 60


class TokenError(Exception):
    """A token was rejected."""


class TokenBlacklist:
    """Invalidated tokens mapped to the epoch second they expire."""

    def __init__(self):
        self._lock = threading.Lock()
        self._tokens: dict[str, float] = {}

    def add(self, token: str, expires_at: float) -> None:
        with self._lock:
            self._purge(time.time())
            self._tokens[token] = expires_at

    def __contains__(self, token: str) -> bool:
        with self._lock:
            expires_at = self._tokens.get(token)
            if expires_at is None:
                return False
            if expires_at < time.time():
                del self._tokens[token]
                return False
            return True

    def clear(self) -> None:
        with self._lock:
            self._tokens.clear()

    def _purge(self, now: float) -> None:
        for token, expires_at in list(self._tokens.items()):
            if expires_at < now:
                del self._tokens[token]


token_blacklist = TokenBlacklist()


def issue_token(claims: dict[str, Any], lifetime: Optional[int] = None) -> str:
    """
    Sign a JWT with the given claims.

    Args:
        claims: Payload claims; "exp" is added
        lifetime: Seconds until expiry (AUTH_LIFE by default)

    Returns:
        Encoded token
    """
    settings = get_settings()
    lifetime = lifetime if lifetime is not None else settings.auth_life
    payload = {**claims, "exp": int(time.time()) + lifetime}
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """
    Verify a token and return its claims.

    Raises:
        TokenError: If the token is blacklisted, expired or not valid
    """
    if token in token_blacklist:
        raise TokenError("Token has been invalidated")

    try:
        return jwt.decode(token, get_settings().jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.info(f"JWT verification failed: {e}")
        raise TokenError("Invalid or expired token") from e


def invalidate_token(token: str) -> bool:
    """
    Blacklist a token until it would have expired anyway.

    Returns:
        True if the token carried an expiry and was blacklisted
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        logger.warning("Cannot invalidate malformed token")
        return False

    expires_at = claims.get("exp")
    if not expires_at:
        return False

    token_blacklist.add(token, float(expires_at))
    return True


def issue_setup_token(setup_token: str) -> tuple[str, int]:
    """
    Sign a short-lived token authorizing the setup of one invitation.

    Returns:
        Encoded token and its expiry in epoch milliseconds
    """
    token = issue_token(
        {"setupToken": setup_token, "isSetupAuth": True},
        lifetime=SETUP_TOKEN_LIFETIME_SECONDS,
    )
    expires_at_ms = (int(time.time()) + SETUP_TOKEN_LIFETIME_SECONDS) * 1000
    return token, expires_at_ms
