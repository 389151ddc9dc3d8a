"""
Landing CMS - Security Dependencies

FastAPI dependencies for request authentication and per-request wiring.

Usage:
    @router.get("/protected")
    async def protected_route(user: AuthenticatedUser = Depends(get_current_user)):
        ...

Security:
- Access tokens are verified statelessly (signature, algorithm, issuer, expiry)
- Missing, malformed and invalid tokens are all rejected before the handler
- The failure reason is never revealed to the caller
"""

from typing import Generator, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel
from sqlmodel import Session as DBSession

from landing_cms.auth.errors import InvalidTokenError
from landing_cms.auth.models import Role
from landing_cms.auth.repository import RefreshTokenRepository, UserRepository
from landing_cms.auth.service import AuthService
from landing_cms.logging import bind_request_context


class AuthenticatedUser(BaseModel):
    """
    Represents a validated, authenticated user.

    Available in route handlers via Depends(get_current_user) and on
    request.state.user once authentication has run.
    """
    user_id: UUID
    email: str
    role: Role
    token_id: str  # jti for audit correlation

    class Config:
        from_attributes = True


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Pull the token out of an "Authorization: Bearer <token>" header.

    The scheme is case-insensitive. Anything other than exactly a scheme
    and a token separated by one space counts as no token.

    Returns:
        The raw token, or None when absent or malformed
    """
    if not authorization:
        return None

    parts = authorization.split(" ")
    if len(parts) != 2:
        return None

    scheme, token = parts
    if scheme.lower() != "bearer" or not token:
        return None
    return token


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(request: Request) -> AuthenticatedUser:
    """
    Validate the bearer token and return the caller's identity.

    Raises:
        HTTPException 401: Missing, malformed, invalid or expired token
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise _unauthorized("authentication required")

    try:
        claims = request.app.state.token_codec.verify_access(token)
    except InvalidTokenError:
        raise _unauthorized("invalid or expired token")

    user = AuthenticatedUser(
        user_id=claims.user_id,
        email=claims.email,
        role=claims.role,
        token_id=claims.jti,
    )
    request.state.user = user
    bind_request_context(user_id=str(user.user_id))
    return user


def get_db(request: Request) -> Generator[DBSession, None, None]:
    """Database session for the duration of one request."""
    db = request.app.state.db_session_factory()
    try:
        yield db
    finally:
        db.close()


def get_auth_service(request: Request, db: DBSession = Depends(get_db)) -> AuthService:
    """Authentication service bound to this request's database session."""
    state = request.app.state
    return AuthService(
        users=UserRepository(db),
        token_store=RefreshTokenRepository(db),
        codec=state.token_codec,
        hasher=state.password_hasher,
        lockout=state.lockout_policy,
    )


def get_client_ip(request: Request) -> Optional[str]:
    """
    Client IP for bookkeeping and rate limiting.

    X-Forwarded-For is honored only when TRUST_PROXY_HEADERS is set.
    """
    if request.app.state.settings.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def get_user_agent(request: Request) -> Optional[str]:
    """Extract user agent from request."""
    agent = request.headers.get("User-Agent")
    return agent[:512] if agent else None
