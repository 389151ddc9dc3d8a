"""
Landing CMS - Authentication Routes

API endpoints for authentication:
- POST /auth/login           - Authenticate and issue a token pair
- POST /auth/refresh         - Rotate the refresh token, issue a new pair
- POST /auth/logout          - Revoke the presented refresh token
- GET  /auth/me              - Current identity from the access token
- POST /auth/change-password - Replace password, revoke every refresh token

The refresh token is carried in an HttpOnly cookie (a JSON body is accepted
as a fallback). All operations are submitted to the audit trail.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from landing_cms.audit.events import submit_audit_event
from landing_cms.audit.models import AuditAction
from landing_cms.auth.cookies import REFRESH_COOKIE_NAME, clear_refresh_cookie, set_refresh_cookie
from landing_cms.auth.dependencies import (
    AuthenticatedUser,
    get_auth_service,
    get_client_ip,
    get_current_user,
    get_user_agent,
)
from landing_cms.auth.errors import (
    AccountInactiveError,
    AccountLockedError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenRevokedError,
)
from landing_cms.auth.schemas import (
    ChangePasswordRequest,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    RefreshRequest,
    RefreshResponse,
    UserSummary,
)
from landing_cms.auth.service import AuthService
from landing_cms.gateway.rate_limit import limit_auth_requests
from landing_cms.logging import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])

INVALID_CREDENTIALS = "invalid email or password"
ACCOUNT_LOCKED = "account is temporarily locked due to too many failed attempts"
ACCOUNT_INACTIVE = "account is inactive"
INVALID_REFRESH_TOKEN = "invalid or expired refresh token"
REFRESH_TOKEN_REVOKED = "refresh token has been revoked"


def _presented_refresh_token(request: Request, body: Optional[RefreshRequest]) -> Optional[str]:
    """Cookie first, then the JSON body."""
    token = request.cookies.get(REFRESH_COOKIE_NAME)
    if not token and body is not None:
        token = body.refresh_token
    return token or None


def _reject_refresh(request: Request, status_code: int, detail: str) -> JSONResponse:
    """Error response that also clears the refresh cookie."""
    response = JSONResponse(
        status_code=status_code,
        content={"detail": detail},
        headers={"WWW-Authenticate": "Bearer"} if status_code == 401 else None,
    )
    clear_refresh_cookie(response, request.app.state.settings)
    return response


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
    dependencies=[Depends(limit_auth_requests)],
    summary="Authenticate and issue tokens",
)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    """
    Authenticate user with email and password.

    On success the access token is returned in the body and the refresh
    token is set as an HttpOnly cookie.

    Raises:
        401: Invalid credentials or temporarily locked account
        403: Inactive, suspended or deleted account
    """
    try:
        user, tokens = await service.login(
            credentials.email,
            credentials.password,
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
        )
    except InvalidCredentialsError:
        submit_audit_event(
            request, AuditAction.LOGIN_FAILED, "session",
            user_email=credentials.email, reason="invalid_credentials",
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
            headers={"WWW-Authenticate": "Bearer"},
        )
    except AccountLockedError:
        submit_audit_event(
            request, AuditAction.LOGIN_FAILED, "session",
            user_email=credentials.email, reason="account_locked",
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=ACCOUNT_LOCKED,
            headers={"WWW-Authenticate": "Bearer"},
        )
    except AccountInactiveError:
        submit_audit_event(
            request, AuditAction.LOGIN_FAILED, "session",
            user_email=credentials.email, reason="account_inactive",
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=ACCOUNT_INACTIVE,
        )

    set_refresh_cookie(response, tokens.refresh_token, tokens.refresh_expires_at, request.app.state.settings)

    submit_audit_event(
        request, AuditAction.LOGIN, "session",
        user_id=user.id, user_email=user.email, user_role=user.role.value,
    )

    return LoginResponse(
        access_token=tokens.access_token,
        token_type=tokens.token_type,
        expires_at=tokens.expires_at,
        user=UserSummary.model_validate(user),
    )


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
    dependencies=[Depends(limit_auth_requests)],
    summary="Rotate refresh token",
)
async def refresh(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = None,
    service: AuthService = Depends(get_auth_service),
):
    """
    Exchange the presented refresh token for a new pair.

    The presented token is revoked. Any failure clears the refresh cookie
    so the client falls back to a fresh login.
    """
    raw_token = _presented_refresh_token(request, body)
    if raw_token is None:
        return _reject_refresh(request, status.HTTP_401_UNAUTHORIZED, INVALID_REFRESH_TOKEN)

    try:
        user, tokens = await service.refresh_tokens(raw_token)
    except InvalidTokenError:
        return _reject_refresh(request, status.HTTP_401_UNAUTHORIZED, INVALID_REFRESH_TOKEN)
    except TokenRevokedError:
        logger.warning("revoked_refresh_token_presented", client_ip=get_client_ip(request))
        return _reject_refresh(request, status.HTTP_401_UNAUTHORIZED, REFRESH_TOKEN_REVOKED)
    except AccountInactiveError:
        return _reject_refresh(request, status.HTTP_403_FORBIDDEN, ACCOUNT_INACTIVE)

    set_refresh_cookie(response, tokens.refresh_token, tokens.refresh_expires_at, request.app.state.settings)

    submit_audit_event(
        request, AuditAction.TOKEN_REFRESH, "session",
        user_id=user.id, user_email=user.email, user_role=user.role.value,
    )

    return RefreshResponse(
        access_token=tokens.access_token,
        token_type=tokens.token_type,
        expires_at=tokens.expires_at,
    )


@router.post(
    "/logout",
    response_model=MessageResponse,
    dependencies=[Depends(limit_auth_requests)],
    summary="Revoke refresh token",
)
async def logout(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = None,
    service: AuthService = Depends(get_auth_service),
):
    """
    Revoke the presented refresh token and clear the cookie.

    Always succeeds from the caller's point of view: unknown tokens, a
    missing token and storage failures all return 200.
    """
    raw_token = _presented_refresh_token(request, body)
    if raw_token is not None:
        try:
            await service.logout(raw_token)
        except SQLAlchemyError:
            logger.exception("logout_revoke_failed")

    clear_refresh_cookie(response, request.app.state.settings)
    submit_audit_event(request, AuditAction.LOGOUT, "session")

    return MessageResponse(message="logged out")


@router.get(
    "/me",
    response_model=MeResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Get current identity",
)
async def get_me(user: AuthenticatedUser = Depends(get_current_user)):
    """Identity carried by the access token."""
    return MeResponse(id=user.user_id, email=user.email, role=user.role)


@router.post(
    "/change-password",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Change own password",
)
async def change_password(
    request: Request,
    response: Response,
    body: ChangePasswordRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """
    Replace the caller's password.

    Every refresh token of the account is revoked, so all devices must log
    in again; the refresh cookie is cleared on this one.
    """
    try:
        await service.change_password(user.user_id, body.current_password, body.new_password)
    except InvalidCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="current password is incorrect",
        )
    except AccountInactiveError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=ACCOUNT_INACTIVE,
        )

    clear_refresh_cookie(response, request.app.state.settings)
    submit_audit_event(
        request, AuditAction.PASSWORD_CHANGE, "user",
        resource_id=str(user.user_id),
        user_id=user.user_id, user_email=user.email, user_role=user.role.value,
    )

    return MessageResponse(message="password changed")
