"""
Landing CMS - Role-Based Access Control (RBAC)

Hierarchical role gate: editor < admin < super_admin. A caller satisfies
a route's requirement when their role is at or above the minimum.

Security:
- Runs after request authentication, never instead of it
- No identity: 401. Identity with too low a role: 403
- Denials are logged
"""

from typing import Optional

from fastapi import Depends, HTTPException, status

from landing_cms.auth.dependencies import AuthenticatedUser, get_current_user
from landing_cms.auth.models import Role
from landing_cms.logging import get_logger


logger = get_logger(__name__)


def role_satisfies(actual: Role, required: Role) -> bool:
    """True when actual is equal to or higher than required."""
    return Role(actual).level >= Role(required).level


def authorize(user: Optional[AuthenticatedUser], minimum: Role) -> AuthenticatedUser:
    """
    Check an identity against a minimum role.

    Raises:
        HTTPException 401: No authenticated identity
        HTTPException 403: Role below the minimum
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not role_satisfies(user.role, minimum):
        logger.warning(
            "authorization_denied",
            user_id=str(user.user_id),
            role=user.role.value,
            required=minimum.value,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="insufficient permissions",
        )

    return user


def require_role(minimum: Role):
    """
    Dependency factory enforcing a minimum role.

    Usage:
        @router.get("/users")
        async def list_users(user: AuthenticatedUser = Depends(require_role(Role.ADMIN))):
            ...
    """
    async def dependency(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        return authorize(user, minimum)

    return dependency
