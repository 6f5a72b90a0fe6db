"""Pydantic schemas for authentication API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from src.modules.auth.roles import Role


class UserCreate(BaseModel):
    """Schema for creating a new user."""

    username: str = Field(min_length=4, max_length=28)
    name: str = Field(min_length=6, max_length=40)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    role: Role = Role.READER
    bio: str | None = None
    byline: str | None = None


class AccountUpdate(BaseModel):
    """Fields a user may change on their own account."""

    name: str | None = Field(default=None, min_length=6, max_length=40)
    email: EmailStr | None = None
    bio: str | None = None
    byline: str | None = None
    password: str | None = Field(default=None, min_length=8, max_length=128)
    current_password: str | None = None


class UserResponse(BaseModel):
    """Schema for user response (excludes sensitive data)."""

    id: UUID
    username: str
    name: str
    email: str
    role: Role
    is_active: bool
    created_at: datetime


class LoginRequest(BaseModel):
    """Schema for login request."""

    login: str = Field(description="Username or email")
    password: str


class LoginResponse(BaseModel):
    """Schema for login response with JWT token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until expiration
    user: UserResponse


class TokenPayload(BaseModel):
    """Schema for JWT token payload."""

    sub: str  # Subject (user ID)
    username: str
    role: Role
    exp: datetime  # Expiration time
    iat: datetime  # Issued at time


class UserAdminUpdate(BaseModel):
    """Fields changed on another user's record from the back-office."""

    name: str = Field(min_length=6, max_length=40)
    email: EmailStr
    role: Role | None = None
    bio: str | None = None
    byline: str | None = None
    is_active: bool = True
