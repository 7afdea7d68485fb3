"""
Authentication and authorization errors.
"""


class AuthError(Exception):
    """Base exception for authentication; carries the HTTP status to report."""

    status_code: int = 401

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AuthenticationRequired(AuthError):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class PermissionDenied(AuthError):
    status_code = 403


class LockedOut(AuthError):
    status_code = 429
