"""
Landing CMS - Audit Models

AuditEvent is what callers submit; AuditLog is the persisted row.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field as PydanticField
from sqlalchemy import Column, String, DateTime, JSON
from sqlmodel import SQLModel, Field

from landing_cms.auth.models import utcnow


class AuditAction(str, Enum):
    """Auditable actions."""
    LOGIN = "login"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"
    TOKEN_REFRESH = "token_refresh"
    PASSWORD_CHANGE = "password_change"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AuditEvent(BaseModel):
    """
    A single auditable event as submitted by a route.

    details must not contain credentials; the recorder strips any key
    that looks like one before persisting.
    """
    action: AuditAction
    resource_type: str
    resource_id: Optional[str] = None
    user_id: Optional[UUID] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_id: Optional[str] = None
    details: Dict[str, Any] = PydanticField(default_factory=dict)
    occurred_at: datetime = PydanticField(default_factory=utcnow)


class AuditLog(SQLModel, table=True):
    """Append-only audit row."""
    __tablename__ = "audit_logs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    action: str = Field(sa_column=Column(String(32), nullable=False, index=True))
    resource_type: str = Field(sa_column=Column(String(64), nullable=False))
    resource_id: Optional[str] = Field(default=None, sa_column=Column(String(64), nullable=True))
    user_id: Optional[UUID] = Field(default=None, index=True)
    user_email: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    user_role: Optional[str] = Field(default=None, sa_column=Column(String(32), nullable=True))
    ip_address: Optional[str] = Field(default=None, sa_column=Column(String(45), nullable=True))
    user_agent: Optional[str] = Field(default=None, sa_column=Column(String(512), nullable=True))
    request_id: Optional[str] = Field(default=None, sa_column=Column(String(64), nullable=True))
    details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False, default=utcnow),
    )
