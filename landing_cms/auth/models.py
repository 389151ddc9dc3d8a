"""
Landing CMS - Authentication Database Models

SQLModel-based models for staff accounts and refresh-token records.
Uses PostgreSQL for production, SQLite for local development.

Security:
- Passwords stored as bcrypt hashes only
- Refresh tokens stored as SHA-256 fingerprints only, never the raw token
- All timestamps are naive UTC
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Enum as SQLEnum


def utcnow() -> datetime:
    """Current time as naive UTC, matching what the database stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Role(str, Enum):
    """
    Staff roles, ordered from least to most privileged.

    The order is a strict hierarchy: editor < admin < super_admin.
    """
    EDITOR = "editor"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def level(self) -> int:
        return _ROLE_LEVELS[self]


_ROLE_LEVELS = {
    Role.EDITOR: 0,
    Role.ADMIN: 1,
    Role.SUPER_ADMIN: 2,
}


class UserStatus(str, Enum):
    """Account status; only ACTIVE accounts may authenticate."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class User(SQLModel, table=True):
    """
    Staff account for authentication.

    Attributes:
        id: Unique identifier (UUIDv4)
        email: Login identifier (unique, case-sensitive as stored)
        password_hash: bcrypt hash (never store plaintext)
        role: Position in the role hierarchy
        status: active / inactive / suspended
        failed_attempts: Consecutive failed logins since the last success
        locked_until: Login refused until this instant, if set
        last_login_at / last_login_ip: Bookkeeping from the last success
        deleted_at: Soft-delete marker
    """
    __tablename__ = "users"

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        description="Unique user identifier"
    )
    email: str = Field(
        sa_column=Column(String(255), unique=True, index=True, nullable=False),
        description="User email address (login identifier)"
    )
    password_hash: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="bcrypt password hash"
    )
    full_name: str = Field(
        default="",
        sa_column=Column(String(255), nullable=False, default=""),
    )
    role: Role = Field(
        default=Role.EDITOR,
        sa_column=Column(SQLEnum(Role), nullable=False, default=Role.EDITOR),
        description="User role for RBAC"
    )
    status: UserStatus = Field(
        default=UserStatus.ACTIVE,
        sa_column=Column(SQLEnum(UserStatus), nullable=False, default=UserStatus.ACTIVE),
    )
    failed_attempts: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
    )
    locked_until: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
    )
    last_login_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
    )
    last_login_ip: Optional[str] = Field(
        default=None,
        sa_column=Column(String(45), nullable=True),
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False, default=utcnow),
        description="Account creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow),
        description="Last update timestamp"
    )
    deleted_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
    )

    @property
    def is_active(self) -> bool:
        """Active status and not soft-deleted."""
        return self.status == UserStatus.ACTIVE and self.deleted_at is None


class RefreshToken(SQLModel, table=True):
    """
    Server-side record of an issued refresh token.

    One record per issuance. The raw token is never stored; lookups go
    through its fingerprint.

    Attributes:
        id: Unique record identifier
        user_id: Owning account
        token_hash: SHA-256 fingerprint of the raw token
        expires_at: Same instant as the token's exp claim
        is_revoked: Set by logout, rotation or password change
        ip_address / user_agent: Client metadata captured at login
        created_at / revoked_at: Lifecycle timestamps
    """
    __tablename__ = "refresh_tokens"

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        description="Unique token record identifier"
    )
    user_id: UUID = Field(
        foreign_key="users.id",
        nullable=False,
        index=True,
        description="Reference to user"
    )
    token_hash: str = Field(
        sa_column=Column(String(64), unique=True, index=True, nullable=False),
        description="SHA-256 hash of refresh token"
    )
    expires_at: datetime = Field(
        sa_column=Column(DateTime, nullable=False),
        description="Token expiration timestamp"
    )
    is_revoked: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
        description="Whether token has been revoked"
    )
    ip_address: Optional[str] = Field(
        default=None,
        sa_column=Column(String(45), nullable=True),
        description="Client IP address"
    )
    user_agent: Optional[str] = Field(
        default=None,
        sa_column=Column(String(512), nullable=True),
        description="Client user-agent string"
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False, default=utcnow),
    )
    revoked_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
    )

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """Not revoked and not yet expired."""
        now = now or utcnow()
        return not self.is_revoked and now < self.expires_at
