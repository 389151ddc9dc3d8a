"""
Landing CMS - Admin Audit Log Routes

- GET /admin/audit-logs - Filtered, paginated audit trail, newest first (admin)
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session as DBSession

from landing_cms.audit.models import AuditAction
from landing_cms.audit.repository import AuditLogRepository
from landing_cms.audit.schemas import AuditLogListResponse, AuditLogResponse
from landing_cms.auth.dependencies import AuthenticatedUser, get_db
from landing_cms.auth.models import Role
from landing_cms.gateway.rbac import require_role


router = APIRouter(prefix="/audit-logs", tags=["admin-audit"])


@router.get("", response_model=AuditLogListResponse, summary="List audit logs")
async def list_audit_logs(
    action: Optional[AuditAction] = None,
    user_id: Optional[UUID] = None,
    resource_type: Optional[str] = Query(None, max_length=64),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    actor: AuthenticatedUser = Depends(require_role(Role.ADMIN)),
    db: DBSession = Depends(get_db),
):
    """Audit rows matching every given filter."""
    rows, total = await AuditLogRepository(db).list(
        action=action.value if action else None,
        user_id=user_id,
        resource_type=resource_type,
        offset=offset,
        limit=limit,
    )
    return AuditLogListResponse(
        logs=[AuditLogResponse.model_validate(r) for r in rows],
        total=total,
        offset=offset,
        limit=limit,
    )
