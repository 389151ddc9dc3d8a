"""
Landing CMS - Authentication Errors

Domain exceptions raised by the auth core. Routes translate them into
HTTP responses; messages here are for logs, never echoed verbatim.
"""


class AuthError(Exception):
    """Base class for authentication failures."""

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class InvalidCredentialsError(AuthError):
    """Invalid email or password."""


class AccountInactiveError(AuthError):
    """Account is inactive, suspended or deleted."""


class AccountLockedError(AuthError):
    """Account is temporarily locked after repeated failed logins."""


class InvalidTokenError(AuthError):
    """Token is malformed, expired, or signed with the wrong key."""


class TokenRevokedError(AuthError):
    """Refresh token record is revoked or expired."""


class PasswordHashingError(Exception):
    """Password could not be hashed (internal error, not a validation error)."""


class NotFoundError(Exception):
    """Requested record does not exist."""
