"""
Identity Core - credentials, tokens and the session lifecycle.
"""

from sessionauth.kernel.identity.password import PasswordHasher
from sessionauth.kernel.identity.tokens import (
    TokenService,
    TokenPair,
    AccessTokenClaims,
    RefreshTokenClaims,
    InvalidToken,
)
from sessionauth.kernel.identity.credential_store import CredentialStore
from sessionauth.kernel.identity.session_gate import SessionGate
from sessionauth.kernel.identity.auth_service import AuthService, AuthResult

__all__ = [
    "PasswordHasher",
    "TokenService",
    "TokenPair",
    "AccessTokenClaims",
    "RefreshTokenClaims",
    "InvalidToken",
    "CredentialStore",
    "SessionGate",
    "AuthService",
    "AuthResult",
]
