"""
Authentication schemas.

Request fields are optional at the schema level; blank or missing values are
rejected by the auth service as a 400 rather than a 422.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
    """Account registration request."""

    username: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = Field(None, max_length=128)
    avatar: Optional[str] = Field(None, max_length=1024)
    cover_image: Optional[str] = Field(None, max_length=1024)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class LoginRequest(BaseModel):
    """Login by username or email."""

    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshTokenRequest(BaseModel):
    """Token refresh request (the cookie takes precedence when both are sent)."""

    refresh_token: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    """Password change request."""

    old_password: Optional[str] = None
    new_password: Optional[str] = Field(None, max_length=128)


class IdentityResponse(BaseModel):
    """Outward-facing identity. Never includes the password hash or refresh token."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    email: str
    full_name: str
    avatar: Optional[str] = None
    cover_image: Optional[str] = None
    created_at: Optional[datetime] = None


class TokenResponse(BaseModel):
    """Authentication token response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: IdentityResponse
