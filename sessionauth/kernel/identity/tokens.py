"""
JWT token management for authentication.

Access and refresh tokens are signed with independent secrets. Verification
is a pure function of the token, the secret and the clock; whether a refresh
token is still the live one for its identity is the credential store's call.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from sessionauth.config import Settings
from sessionauth.kernel.models.identity import Identity
from sessionauth.logging_config import get_logger

logger = get_logger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class InvalidToken(Exception):
    """Token failed verification. Deliberately carries no reason."""

    def __init__(self) -> None:
        super().__init__("Invalid token")


class AccessTokenClaims(BaseModel):
    """JWT access token payload."""

    sub: str  # Identity ID
    username: str
    email: str
    full_name: str
    exp: datetime
    iat: datetime
    jti: str
    type: Literal["access"] = ACCESS_TOKEN_TYPE

    @property
    def identity_id(self) -> uuid.UUID:
        return uuid.UUID(self.sub)


class RefreshTokenClaims(BaseModel):
    """JWT refresh token payload."""

    sub: str  # Identity ID
    exp: datetime
    iat: datetime
    jti: str
    type: Literal["refresh"] = REFRESH_TOKEN_TYPE

    @property
    def identity_id(self) -> uuid.UUID:
        return uuid.UUID(self.sub)


class TokenPair(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime
    token_type: str = "bearer"

    @property
    def expires_in(self) -> int:
        """Seconds until the access token expires."""
        remaining = self.access_expires_at - datetime.now(timezone.utc)
        return max(int(remaining.total_seconds()), 0)


class TokenService:
    """
    JWT token creation and verification.

    Handles access tokens (short-lived) and refresh tokens (long-lived).
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 15,
        refresh_token_expire_days: int = 10,
    ):
        if not access_secret or not refresh_secret:
            raise ValueError("Both access and refresh signing secrets are required")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.algorithm = algorithm
        self.access_token_expire_minutes = access_token_expire_minutes
        self.refresh_token_expire_days = refresh_token_expire_days

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            access_secret=settings.access_token_secret.get_secret_value(),
            refresh_secret=settings.refresh_token_secret.get_secret_value(),
            algorithm=settings.algorithm,
            access_token_expire_minutes=settings.access_token_expire_minutes,
            refresh_token_expire_days=settings.refresh_token_expire_days,
        )

    def __repr__(self) -> str:
        return f"<TokenService algorithm={self.algorithm}>"

    def issue_access_token(
        self,
        identity: Identity,
        expires_delta: Optional[timedelta] = None,
    ) -> tuple[str, datetime]:
        """
        Create a new access token.

        Args:
            identity: The identity the token vouches for
            expires_delta: Optional custom lifetime

        Returns:
            Tuple of (token, expiration_datetime)
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.access_token_expire_minutes))

        payload = {
            "sub": str(identity.id),
            "username": identity.username,
            "email": identity.email,
            "full_name": identity.full_name,
            "exp": expire,
            "iat": now,
            "jti": str(uuid.uuid4()),
            "type": ACCESS_TOKEN_TYPE,
        }

        token = jwt.encode(payload, self._access_secret, algorithm=self.algorithm)
        return token, expire

    def issue_refresh_token(
        self,
        identity: Identity,
        expires_delta: Optional[timedelta] = None,
    ) -> tuple[str, datetime]:
        """
        Create a new refresh token.

        Args:
            identity: The identity the token belongs to
            expires_delta: Optional custom lifetime

        Returns:
            Tuple of (token, expiration_datetime)
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(days=self.refresh_token_expire_days))

        payload = {
            "sub": str(identity.id),
            "exp": expire,
            "iat": now,
            "jti": str(uuid.uuid4()),
            "type": REFRESH_TOKEN_TYPE,
        }

        token = jwt.encode(payload, self._refresh_secret, algorithm=self.algorithm)
        return token, expire

    def issue_token_pair(self, identity: Identity) -> TokenPair:
        """Create both access and refresh tokens for an identity."""
        access_token, access_exp = self.issue_access_token(identity)
        refresh_token, refresh_exp = self.issue_refresh_token(identity)
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            access_expires_at=access_exp,
            refresh_expires_at=refresh_exp,
        )

    def verify_access_token(self, token: str) -> AccessTokenClaims:
        """
        Verify and decode an access token.

        Raises:
            InvalidToken: on any malformed, forged, wrong-kind or expired token
        """
        payload = self._decode(token, self._access_secret, ACCESS_TOKEN_TYPE)
        try:
            return AccessTokenClaims.model_validate(payload)
        except ValidationError:
            logger.debug("Access token claims incomplete")
            raise InvalidToken()

    def verify_refresh_token(self, token: str) -> RefreshTokenClaims:
        """
        Verify and decode a refresh token.

        Only signature and expiry are checked here; the caller compares the
        token against the identity's stored value.

        Raises:
            InvalidToken: on any malformed, forged, wrong-kind or expired token
        """
        payload = self._decode(token, self._refresh_secret, REFRESH_TOKEN_TYPE)
        try:
            return RefreshTokenClaims.model_validate(payload)
        except ValidationError:
            logger.debug("Refresh token claims incomplete")
            raise InvalidToken()

    def _decode(self, token: str, secret: str, expected_type: str) -> dict:
        if not token or not isinstance(token, str):
            raise InvalidToken()
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require_exp": True, "require_iat": True, "require_sub": True},
            )
        except JWTError as e:
            logger.debug("Token rejected: %s", type(e).__name__)
            raise InvalidToken()

        if payload.get("type") != expected_type:
            logger.debug("Token rejected: expected %s token", expected_type)
            raise InvalidToken()

        try:
            uuid.UUID(payload["sub"])
        except (TypeError, ValueError):
            raise InvalidToken()

        return payload
