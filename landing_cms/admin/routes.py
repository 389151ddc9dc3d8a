"""
Landing CMS - Admin User Management Routes

- GET    /admin/users           - List accounts (admin)
- GET    /admin/users/{id}      - Get one account (admin)
- POST   /admin/users           - Create account (admin)
- PUT    /admin/users/{id}      - Update name, role or status (admin)
- DELETE /admin/users/{id}      - Soft delete account (super_admin)

Only a super_admin may grant the super_admin role or modify a super_admin
account. Deactivating or deleting an account revokes its refresh tokens.
"""

import asyncio
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session as DBSession

from landing_cms.audit.events import submit_audit_event
from landing_cms.audit.models import AuditAction
from landing_cms.auth.dependencies import AuthenticatedUser, get_db
from landing_cms.auth.errors import NotFoundError
from landing_cms.auth.models import Role, User, UserStatus
from landing_cms.auth.repository import RefreshTokenRepository, UserRepository
from landing_cms.auth.schemas import (
    CreateUserRequest,
    ErrorResponse,
    UpdateUserRequest,
    UserListResponse,
    UserResponse,
)
from landing_cms.gateway.rbac import require_role, role_satisfies
from landing_cms.logging import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["admin-users"])


async def _load_user(users: UserRepository, user_id: UUID) -> User:
    try:
        user = await users.find_by_id(user_id)
    except NotFoundError:
        user = None
    if user is None or user.deleted_at is not None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="user not found")
    return user


def _require_super_admin_for(actor: AuthenticatedUser, role: Role) -> None:
    if role == Role.SUPER_ADMIN and not role_satisfies(actor.role, Role.SUPER_ADMIN):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="insufficient permissions")


async def _revoke_sessions(db: DBSession, user_id: UUID) -> None:
    try:
        await RefreshTokenRepository(db).revoke_all_for_user(user_id)
    except SQLAlchemyError:
        logger.exception("admin_revoke_sessions_failed", target_user_id=str(user_id))


@router.get("", response_model=UserListResponse, summary="List accounts")
async def list_users(
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    actor: AuthenticatedUser = Depends(require_role(Role.ADMIN)),
    db: DBSession = Depends(get_db),
):
    users = UserRepository(db)
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in await users.list(offset=offset, limit=limit)],
        total=await users.count(),
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get account",
)
async def get_user(
    user_id: UUID,
    actor: AuthenticatedUser = Depends(require_role(Role.ADMIN)),
    db: DBSession = Depends(get_db),
):
    return UserResponse.model_validate(await _load_user(UserRepository(db), user_id))


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
    summary="Create account",
)
async def create_user(
    request: Request,
    body: CreateUserRequest,
    actor: AuthenticatedUser = Depends(require_role(Role.ADMIN)),
    db: DBSession = Depends(get_db),
):
    """
    Create a new account. Password is hashed with bcrypt.

    Emails are unique across all accounts, including soft-deleted ones.
    """
    _require_super_admin_for(actor, body.role)

    users = UserRepository(db)
    try:
        await users.find_by_email(body.email)
    except NotFoundError:
        pass
    else:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="email already registered")

    password_hash = await asyncio.to_thread(request.app.state.password_hasher.hash, body.password)
    try:
        user = await users.create(User(
            email=body.email,
            password_hash=password_hash,
            full_name=body.full_name,
            role=body.role,
        ))
    except IntegrityError:
        # Same email inserted by another request after the lookup
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="email already registered")

    logger.info("user_created", target_user_id=str(user.id), role=user.role.value, by=str(actor.user_id))
    submit_audit_event(
        request, AuditAction.CREATE, "user",
        resource_id=str(user.id),
        user_id=actor.user_id, user_email=actor.email, user_role=actor.role.value,
        role=user.role.value,
    )
    return UserResponse.model_validate(user)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Update account",
)
async def update_user(
    request: Request,
    user_id: UUID,
    body: UpdateUserRequest,
    actor: AuthenticatedUser = Depends(require_role(Role.ADMIN)),
    db: DBSession = Depends(get_db),
):
    """Change full name, role or status. A status other than active revokes all sessions."""
    users = UserRepository(db)
    user = await _load_user(users, user_id)

    _require_super_admin_for(actor, user.role)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if "role" in changes:
        _require_super_admin_for(actor, changes["role"])

    for field, value in changes.items():
        setattr(user, field, value)
    user = await users.update(user)

    if user.status != UserStatus.ACTIVE:
        await _revoke_sessions(db, user.id)

    submit_audit_event(
        request, AuditAction.UPDATE, "user",
        resource_id=str(user.id),
        user_id=actor.user_id, user_email=actor.email, user_role=actor.role.value,
        changes={k: getattr(v, "value", v) for k, v in changes.items()},
    )
    return UserResponse.model_validate(user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Delete account",
)
async def delete_user(
    request: Request,
    user_id: UUID,
    actor: AuthenticatedUser = Depends(require_role(Role.SUPER_ADMIN)),
    db: DBSession = Depends(get_db),
):
    """Soft delete an account and revoke its refresh tokens."""
    if user_id == actor.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="cannot delete your own account")

    users = UserRepository(db)
    user = await _load_user(users, user_id)
    await users.soft_delete(user.id)
    await _revoke_sessions(db, user.id)

    logger.info("user_deleted", target_user_id=str(user.id), by=str(actor.user_id))
    submit_audit_event(
        request, AuditAction.DELETE, "user",
        resource_id=str(user.id),
        user_id=actor.user_id, user_email=actor.email, user_role=actor.role.value,
    )
