"""
Auth service: login, logout, refresh and password-change use cases.
"""

import hmac
import uuid
from dataclasses import dataclass
from typing import Optional

from sessionauth.errors import (
    BadRequest,
    Conflict,
    InvalidCredentials,
    NotFound,
    Unauthorized,
)
from sessionauth.kernel.identity.credential_store import CredentialStore
from sessionauth.kernel.identity.password import PasswordHasher
from sessionauth.kernel.identity.tokens import InvalidToken, TokenPair, TokenService
from sessionauth.kernel.models.identity import Identity
from sessionauth.logging_config import get_logger
from sessionauth.schemas.auth import IdentityResponse

logger = get_logger(__name__)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


@dataclass
class AuthResult:
    """Tokens plus the sanitized identity they were issued for."""

    tokens: TokenPair
    identity: IdentityResponse


class AuthService:
    """
    Service for session lifecycle operations.

    Each operation checks every precondition before it writes anything, and
    reports failure through the ``sessionauth.errors`` taxonomy.
    """

    def __init__(
        self,
        store: CredentialStore,
        token_service: TokenService,
        hasher: PasswordHasher,
        reveal_unknown_identifier: bool = False,
    ):
        self.store = store
        self.token_service = token_service
        self.hasher = hasher
        self.reveal_unknown_identifier = reveal_unknown_identifier

    async def register(
        self,
        username: Optional[str],
        email: Optional[str],
        full_name: Optional[str],
        password: Optional[str],
        avatar: Optional[str] = None,
        cover_image: Optional[str] = None,
    ) -> IdentityResponse:
        """
        Create a new identity.

        Raises:
            BadRequest: if any required field is missing or blank
            Conflict: if the username or email is already registered
        """
        if any(_is_blank(v) for v in (username, email, full_name, password)):
            raise BadRequest("All fields are required")

        if await self.store.exists(username, email):
            raise Conflict("Username or email already exists")

        identity = await self.store.create(
            username=username,
            email=email,
            full_name=full_name,
            password_hash=self.hasher.hash(password),
            avatar=avatar,
            cover_image=cover_image,
        )
        logger.info("Identity registered", extra={"user_id": str(identity.id)})
        return IdentityResponse.model_validate(identity)

    async def login(
        self,
        password: Optional[str],
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> AuthResult:
        """
        Exchange credentials for a fresh token pair.

        Issuing the pair overwrites the stored refresh token, which ends any
        previous session for this identity.

        Raises:
            BadRequest: if no identifier or no password is given
            NotFound: unknown identifier, only when configured to reveal it
            InvalidCredentials: wrong password (or unknown identifier)
        """
        identifier = username if not _is_blank(username) else email
        if _is_blank(identifier):
            raise BadRequest("Username or email is required")
        if _is_blank(password):
            raise BadRequest("Password is required")

        identity = await self.store.find_by_identifier(identifier)
        if identity is None:
            logger.info("Login for unknown identifier")
            if self.reveal_unknown_identifier:
                raise NotFound("User does not exist")
            self.hasher.dummy_verify(password)
            raise InvalidCredentials()

        if not self.hasher.verify(password, identity.password_hash):
            logger.info("Login with wrong password", extra={"user_id": str(identity.id)})
            raise InvalidCredentials()

        if self.hasher.needs_rehash(identity.password_hash):
            await self.store.update_password_hash(identity.id, self.hasher.hash(password))

        tokens = self.token_service.issue_token_pair(identity)
        await self.store.update_refresh_token(identity.id, tokens.refresh_token)

        logger.info("Login succeeded", extra={"user_id": str(identity.id)})
        return AuthResult(tokens=tokens, identity=IdentityResponse.model_validate(identity))

    async def logout(self, identity_id: uuid.UUID) -> None:
        """Clear the caller's own stored refresh token."""
        await self.store.update_refresh_token(identity_id, None)
        logger.info("Logged out", extra={"user_id": str(identity_id)})

    async def refresh(self, refresh_token: Optional[str]) -> AuthResult:
        """
        Rotate a refresh token.

        The presented token must verify and must equal the identity's stored
        token. On success both tokens are replaced; the presented one can
        never be used again.

        Raises:
            BadRequest: if no token is presented
            Unauthorized: invalid, expired, revoked or already-rotated token
        """
        if _is_blank(refresh_token):
            raise BadRequest("Refresh token is required")

        try:
            claims = self.token_service.verify_refresh_token(refresh_token)
        except InvalidToken:
            raise Unauthorized("Invalid refresh token")

        identity = await self.store.find_by_id(claims.identity_id)
        if identity is None:
            raise Unauthorized("Invalid refresh token")

        if not self._matches_stored(refresh_token, identity):
            logger.warning(
                "Refresh token reuse or revoked session",
                extra={"user_id": str(identity.id)},
            )
            raise Unauthorized("Refresh token is expired or used")

        tokens = self.token_service.issue_token_pair(identity)
        swapped = await self.store.compare_and_set_refresh_token(
            identity.id, expected=refresh_token, new=tokens.refresh_token
        )
        if not swapped:
            logger.warning("Refresh lost rotation race", extra={"user_id": str(identity.id)})
            raise Unauthorized("Refresh token is expired or used")

        logger.info("Refresh token rotated", extra={"user_id": str(identity.id)})
        return AuthResult(tokens=tokens, identity=IdentityResponse.model_validate(identity))

    async def change_password(
        self,
        identity_id: uuid.UUID,
        old_password: Optional[str],
        new_password: Optional[str],
    ) -> None:
        """
        Replace the password after checking the current one.

        Existing sessions stay valid: the stored refresh token is not touched.

        Raises:
            BadRequest: if either password is missing or blank
            Unauthorized: if the identity no longer exists
            InvalidCredentials: if the old password does not match
        """
        if _is_blank(old_password) or _is_blank(new_password):
            raise BadRequest("Old and new passwords are required")

        identity = await self.store.find_by_id(identity_id)
        if identity is None:
            raise Unauthorized()

        if not self.hasher.verify(old_password, identity.password_hash):
            raise InvalidCredentials("Invalid old password")

        await self.store.update_password_hash(identity.id, self.hasher.hash(new_password))
        logger.info("Password changed", extra={"user_id": str(identity.id)})

    @staticmethod
    def _matches_stored(presented: str, identity: Identity) -> bool:
        stored = identity.refresh_token
        if not stored:
            return False
        return hmac.compare_digest(presented.encode("utf-8"), stored.encode("utf-8"))
