"""
Landing CMS - Audit Log Queries

Read side of the audit trail. Rows are only ever written by the
AuditRecorder worker; this repository filters and pages them for the
admin API.
"""

from typing import List, Optional, Tuple
from uuid import UUID

from sqlmodel import Session as DBSession, select, func

from landing_cms.audit.models import AuditLog


class AuditLogRepository:
    """Filtered, paginated access to audit rows, newest first."""

    def __init__(self, db: DBSession):
        self.db = db

    async def list(
        self,
        action: Optional[str] = None,
        user_id: Optional[UUID] = None,
        resource_type: Optional[str] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> Tuple[List[AuditLog], int]:
        """
        Returns:
            Tuple of (rows on this page, total rows matching the filter)
        """
        conditions = []
        if action is not None:
            conditions.append(AuditLog.action == action)
        if user_id is not None:
            conditions.append(AuditLog.user_id == user_id)
        if resource_type is not None:
            conditions.append(AuditLog.resource_type == resource_type)

        statement = (
            select(AuditLog)
            .where(*conditions)
            .order_by(AuditLog.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        total = self.db.exec(select(func.count()).select_from(AuditLog).where(*conditions)).one()

        return list(self.db.exec(statement).all()), total
