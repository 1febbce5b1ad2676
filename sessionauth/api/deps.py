"""
FastAPI dependencies for authentication and database sessions.
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sessionauth.config import Settings, get_settings
from sessionauth.database import get_db
from sessionauth.kernel.identity.auth_service import AuthService
from sessionauth.kernel.identity.credential_store import CredentialStore
from sessionauth.kernel.identity.password import PasswordHasher
from sessionauth.kernel.identity.session_gate import SessionGate
from sessionauth.kernel.identity.tokens import TokenService
from sessionauth.schemas.auth import IdentityResponse


DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]


@lru_cache
def get_token_service() -> TokenService:
    """Token service built once from settings."""
    return TokenService.from_settings(get_settings())


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=get_settings().bcrypt_rounds)


Tokens = Annotated[TokenService, Depends(get_token_service)]
Hasher = Annotated[PasswordHasher, Depends(get_password_hasher)]


def get_auth_service(
    db: DbSession,
    tokens: Tokens,
    hasher: Hasher,
    settings: AppSettings,
) -> AuthService:
    return AuthService(
        store=CredentialStore(db),
        token_service=tokens,
        hasher=hasher,
        reveal_unknown_identifier=settings.login_reveal_unknown_identifier,
    )


Auth = Annotated[AuthService, Depends(get_auth_service)]


async def get_current_identity(
    request: Request,
    db: DbSession,
    tokens: Tokens,
    settings: AppSettings,
) -> IdentityResponse:
    """Run the session gate and attach the identity to the request, or raise 401."""
    gate = SessionGate(
        token_service=tokens,
        store=CredentialStore(db),
        cookie_name=settings.access_cookie_name,
    )
    identity = await gate.authenticate(
        request.cookies,
        request.headers.get("Authorization"),
    )
    request.state.identity = identity
    return identity


CurrentIdentity = Annotated[IdentityResponse, Depends(get_current_identity)]


def get_request_id(request: Request) -> Optional[str]:
    """Get request correlation ID (set by RequestIdMiddleware)."""
    return getattr(request.state, "request_id", None)
