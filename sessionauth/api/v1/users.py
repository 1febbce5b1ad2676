"""
Account and session endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Request, Response, status

from sessionauth.api.deps import AppSettings, Auth, CurrentIdentity
from sessionauth.config import Settings
from sessionauth.kernel.identity.tokens import TokenPair
from sessionauth.schemas.auth import (
    ChangePasswordRequest,
    IdentityResponse,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
)
from sessionauth.schemas.common import ErrorResponse, SuccessResponse

router = APIRouter(
    responses={
        400: {"model": ErrorResponse, "description": "Missing or blank input"},
        401: {"model": ErrorResponse, "description": "Bad credentials or session"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    }
)


def set_auth_cookies(response: Response, tokens: TokenPair, settings: Settings) -> None:
    """Hand both tokens to the browser as HttpOnly cookies."""
    response.set_cookie(
        settings.access_cookie_name,
        tokens.access_token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        path="/",
    )
    response.set_cookie(
        settings.refresh_cookie_name,
        tokens.refresh_token,
        max_age=settings.refresh_token_expire_days * 24 * 3600,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        path="/",
    )


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    for name in (settings.access_cookie_name, settings.refresh_cookie_name):
        response.delete_cookie(
            name,
            path="/",
            httponly=True,
            secure=settings.cookie_secure,
            samesite=settings.cookie_samesite,
        )


def _token_response(tokens: TokenPair, user: IdentityResponse) -> TokenResponse:
    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_type=tokens.token_type,
        expires_in=tokens.expires_in,
        user=user,
    )


@router.post(
    "/register",
    response_model=IdentityResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse, "description": "Username or email already taken"}},
)
async def register(data: RegisterRequest, auth: Auth):
    """Register a new account."""
    return await auth.register(
        username=data.username,
        email=data.email,
        full_name=data.full_name,
        password=data.password,
        avatar=data.avatar,
        cover_image=data.cover_image,
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={404: {"model": ErrorResponse, "description": "Unknown identifier, when revealing is enabled"}},
)
async def login(
    data: LoginRequest,
    response: Response,
    auth: Auth,
    settings: AppSettings,
):
    """
    Authenticate by username or email and return a token pair.

    Any earlier session for the same account stops being refreshable.
    """
    result = await auth.login(
        password=data.password,
        username=data.username,
        email=data.email,
    )
    set_auth_cookies(response, result.tokens, settings)
    return _token_response(result.tokens, result.identity)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    identity: CurrentIdentity,
    response: Response,
    auth: Auth,
    settings: AppSettings,
):
    """End the caller's session and clear both cookies."""
    await auth.logout(identity.id)
    clear_auth_cookies(response, settings)
    return SuccessResponse(message="User logged out")


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(
    request: Request,
    response: Response,
    auth: Auth,
    settings: AppSettings,
    data: Optional[RefreshTokenRequest] = None,
):
    """
    Exchange a refresh token for a new pair.

    Implements refresh token rotation - the presented token is invalidated.
    """
    presented = request.cookies.get(settings.refresh_cookie_name) or (
        data.refresh_token if data else None
    )
    result = await auth.refresh(presented)
    set_auth_cookies(response, result.tokens, settings)
    return _token_response(result.tokens, result.identity)


@router.post("/change-password", response_model=SuccessResponse)
async def change_password(
    data: ChangePasswordRequest,
    identity: CurrentIdentity,
    auth: Auth,
):
    """Change the caller's password. Existing sessions stay signed in."""
    await auth.change_password(
        identity_id=identity.id,
        old_password=data.old_password,
        new_password=data.new_password,
    )
    return SuccessResponse(message="Password changed successfully")


@router.get("/current-user", response_model=IdentityResponse)
async def current_user(identity: CurrentIdentity):
    """Get the caller's profile."""
    return identity
