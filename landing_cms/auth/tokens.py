"""
Landing CMS - JWT Token Management

Issues and verifies two classes of signed bearer tokens:
- Access tokens: short-lived (minutes), sent as Authorization: Bearer
- Refresh tokens: long-lived (days), exchanged for a new pair

Both carry the same claims (user id, email, role, issuer, subject, jti,
iat, exp) but are signed with independent secrets, so a token of one class
never verifies as the other.

Security:
- HS256 only; any other or missing algorithm is rejected
- Every token has a fresh random jti
- Refresh tokens are stored server-side by SHA-256 fingerprint only
"""

import hashlib
from datetime import datetime, timedelta
from typing import Optional, Tuple
from uuid import UUID, uuid4

from jose import jwt, JWTError
from pydantic import BaseModel, Field

from landing_cms.auth.errors import InvalidTokenError
from landing_cms.auth.models import Role, User, utcnow


ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


class TokenClaims(BaseModel):
    """
    Decoded token payload.

    Attributes:
        user_id: Account ID
        email: Account email at issuance
        role: Account role at issuance
        iss: Issuer
        sub: Subject (account ID)
        jti: Unique token ID
        iat: Issued-at timestamp
        exp: Expiration timestamp
        typ: Token class ("access" or "refresh")
    """
    user_id: UUID
    email: str
    role: Role
    iss: str
    sub: str
    jti: str
    iat: datetime
    exp: datetime
    typ: str


class AuthTokens(BaseModel):
    """Token pair returned by login and refresh."""
    access_token: str
    refresh_token: str
    expires_at: datetime = Field(..., description="Access token expiry")
    refresh_expires_at: datetime
    token_type: str = "Bearer"


class TokenCodec:
    """
    Signs and verifies access and refresh tokens.

    Args:
        access_secret: HMAC key for access tokens
        refresh_secret: HMAC key for refresh tokens (must differ)
        access_ttl: Access token lifetime
        refresh_ttl: Refresh token lifetime
        issuer: iss claim written and required on verification
        algorithm: JWS algorithm (the only one accepted on verification)
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        issuer: str = "landing-cms-api",
        algorithm: str = "HS256",
    ):
        if not access_secret or not refresh_secret:
            raise ValueError("token secrets must be non-empty")
        if access_secret == refresh_secret:
            raise ValueError("access and refresh secrets must be different")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.issuer = issuer
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings) -> "TokenCodec":
        return cls(
            access_secret=settings.JWT_ACCESS_SECRET,
            refresh_secret=settings.JWT_REFRESH_SECRET,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            issuer=settings.JWT_ISSUER,
            algorithm=settings.JWT_ALGORITHM,
        )

    def issue_access(self, user: User, now: Optional[datetime] = None) -> Tuple[str, datetime]:
        """
        Create a new access token.

        Returns:
            Tuple of (encoded JWT, expiry)

        Example:
            >>> token, expires_at = codec.issue_access(user)
            >>> codec.verify_access(token).user_id == user.id
            True
        """
        return self._issue(user, ACCESS_TOKEN, self._access_secret, self.access_ttl, now)

    def issue_refresh(self, user: User, now: Optional[datetime] = None) -> Tuple[str, datetime]:
        """Create a new refresh token. Returns (encoded JWT, expiry)."""
        return self._issue(user, REFRESH_TOKEN, self._refresh_secret, self.refresh_ttl, now)

    def verify_access(self, token: str) -> TokenClaims:
        """
        Verify and decode an access token.

        Raises:
            InvalidTokenError: bad signature, wrong or missing algorithm,
                expired, wrong issuer, or a refresh token
        """
        return self._verify(token, ACCESS_TOKEN, self._access_secret)

    def verify_refresh(self, token: str) -> TokenClaims:
        """Verify and decode a refresh token. Raises InvalidTokenError."""
        return self._verify(token, REFRESH_TOKEN, self._refresh_secret)

    def _issue(
        self,
        user: User,
        token_type: str,
        secret: str,
        ttl: timedelta,
        now: Optional[datetime],
    ) -> Tuple[str, datetime]:
        now = now or utcnow()
        expires_at = now + ttl

        payload = {
            "user_id": str(user.id),
            "email": user.email,
            "role": Role(user.role).value,
            "iss": self.issuer,
            "sub": str(user.id),
            "jti": str(uuid4()),
            "iat": now,
            "exp": expires_at,
            "typ": token_type,
        }

        encoded = jwt.encode(payload, secret, algorithm=self.algorithm)
        return encoded, expires_at

    def _verify(self, token: str, token_type: str, secret: str) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={
                    "require_exp": True,
                    "require_iat": True,
                    "require_iss": True,
                    "require_sub": True,
                    "require_jti": True,
                },
            )
            claims = TokenClaims(**payload)
        except (JWTError, ValueError, TypeError) as e:
            raise InvalidTokenError(f"Token validation failed: {e}") from e

        if claims.typ != token_type or claims.sub != str(claims.user_id):
            raise InvalidTokenError("Token class or subject mismatch")

        return claims


def fingerprint_token(token: str) -> str:
    """
    One-way fingerprint of a raw token for storage and lookup.

    Returns:
        Hex-encoded SHA-256 digest (64 characters)
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
