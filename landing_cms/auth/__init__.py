"""
Landing CMS - Authentication Package

Production-grade authentication with:
- JWT access tokens and rotating refresh tokens (separate secrets)
- Server-side refresh-token records keyed by fingerprint
- bcrypt password hashing
- Account lockout after repeated failed logins
"""

from landing_cms.auth.models import User, RefreshToken, Role, UserStatus
from landing_cms.auth.tokens import AuthTokens, TokenCodec, fingerprint_token

__all__ = [
    "User",
    "RefreshToken",
    "Role",
    "UserStatus",
    "AuthTokens",
    "TokenCodec",
    "fingerprint_token",
]
