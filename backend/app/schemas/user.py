"""
Quiz Platform - User Schemas
Pydantic schemas for user registration, authentication, and profiles
"""
import uuid
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.user import UserRole


# ============================================================================
# Registration & Authentication
# ============================================================================

class UserCreate(BaseModel):
    """Schema for user registration. Admin accounts are never self-registered."""
    email: EmailStr
    name: Annotated[str, Field(min_length=1, max_length=200)]
    password: Annotated[str, Field(min_length=8, max_length=72)]
    role: Literal["student", "teacher"] = "student"

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        if not any(c.isupper() for c in v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not any(c.islower() for c in v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not any(c.isdigit() for c in v):
            raise ValueError("Password must contain at least one digit")
        return v


class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Schema for authentication token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = 1800


class TokenRefresh(BaseModel):
    """Schema for token refresh / logout request."""
    refresh_token: str


# ============================================================================
# Responses
# ============================================================================

class UserResponse(BaseModel):
    """Public user data."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: EmailStr
    name: str
    role: UserRole
    avatar_url: str | None = None
    is_active: bool
    created_at: datetime | None = None
    last_login: datetime | None = None


class UserSummary(BaseModel):
    """Embedded reference to a user (populated foreign key)."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
