"""
Pydantic schemas for API request/response validation.
"""

from sessionauth.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    RefreshTokenRequest,
    ChangePasswordRequest,
    IdentityResponse,
    TokenResponse,
)
from sessionauth.schemas.common import ErrorResponse, SuccessResponse, HealthResponse

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "RefreshTokenRequest",
    "ChangePasswordRequest",
    "IdentityResponse",
    "TokenResponse",
    "ErrorResponse",
    "SuccessResponse",
    "HealthResponse",
]
