"""
Landing CMS - Authentication Request/Response Schemas

Pydantic models for API request validation and response serialization.
Separates API contracts from database models.
"""

import re
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from landing_cms.auth.models import Role, UserStatus
from landing_cms.auth.password import MAX_PASSWORD_BYTES


EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")


def _check_email(v: str) -> str:
    """Basic email format validation (allows .local for development)."""
    if not EMAIL_PATTERN.match(v):
        raise ValueError("Invalid email format")
    return v


def _check_new_password(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters")
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return v


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""
    email: str = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")

    @field_validator("email")
    @classmethod
    def email_format(cls, v):
        return _check_email(v)


class UserSummary(BaseModel):
    """Account fields returned alongside tokens."""
    id: UUID
    email: str
    full_name: str
    role: Role

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    """Response body for successful login. The refresh token travels in a cookie."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_at: datetime = Field(..., description="Access token expiry (UTC)")
    user: UserSummary


class RefreshRequest(BaseModel):
    """Optional body for POST /auth/refresh and /auth/logout when no cookie is sent."""
    refresh_token: Optional[str] = Field(default=None, description="Refresh token")


class RefreshResponse(BaseModel):
    """Response body for token refresh."""
    access_token: str
    token_type: str = "Bearer"
    expires_at: datetime


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    message: str


class ChangePasswordRequest(BaseModel):
    """Request body for POST /auth/change-password."""
    current_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_strength(cls, v):
        return _check_new_password(v)


class MeResponse(BaseModel):
    """Response body for GET /auth/me."""
    id: UUID
    email: str
    role: Role


class UserResponse(BaseModel):
    """Account as seen by administrators."""
    id: UUID
    email: str
    full_name: str
    role: Role
    status: UserStatus
    last_login_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    users: list[UserResponse]
    total: int


class CreateUserRequest(BaseModel):
    """Request body for POST /admin/users."""
    email: str
    password: str
    full_name: str = Field(default="", max_length=255)
    role: Role = Field(default=Role.EDITOR)

    @field_validator("email")
    @classmethod
    def email_format(cls, v):
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v):
        return _check_new_password(v)


class UpdateUserRequest(BaseModel):
    """Request body for PUT /admin/users/{id}. Omitted fields are unchanged."""
    full_name: Optional[str] = Field(default=None, max_length=255)
    role: Optional[Role] = None
    status: Optional[UserStatus] = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str
