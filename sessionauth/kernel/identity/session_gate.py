"""
Session gate: resolves the caller's identity from a presented access token.
"""

from typing import Mapping, Optional

from sessionauth.errors import Unauthorized
from sessionauth.kernel.identity.credential_store import CredentialStore
from sessionauth.kernel.identity.tokens import InvalidToken, TokenService
from sessionauth.logging_config import get_logger
from sessionauth.schemas.auth import IdentityResponse

logger = get_logger(__name__)

BEARER_PREFIX = "bearer "


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Pull the credential out of an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.lower().startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


class SessionGate:
    """
    Per-request authentication check.

    Steps, stopping at the first failure:
    1. Take the token from the access cookie, else the Bearer header
    2. Verify signature and expiry
    3. Load the identity named by the token, without secrets
    Every failure is the same ``Unauthorized``. Nothing is written.
    """

    def __init__(
        self,
        token_service: TokenService,
        store: CredentialStore,
        cookie_name: str = "accessToken",
    ):
        self.token_service = token_service
        self.store = store
        self.cookie_name = cookie_name

    def extract_token(
        self,
        cookies: Mapping[str, str],
        authorization: Optional[str],
    ) -> Optional[str]:
        """Cookie wins over the header when both are present."""
        cookie_token = cookies.get(self.cookie_name)
        if cookie_token:
            return cookie_token
        return extract_bearer_token(authorization)

    async def authenticate(
        self,
        cookies: Mapping[str, str],
        authorization: Optional[str],
    ) -> IdentityResponse:
        token = self.extract_token(cookies, authorization)
        if not token:
            raise Unauthorized("Unauthorized request")

        try:
            claims = self.token_service.verify_access_token(token)
        except InvalidToken:
            raise Unauthorized("Invalid access token")

        identity = await self.store.find_public_by_id(claims.identity_id)
        if identity is None:
            logger.info("Access token for unknown identity", extra={"user_id": claims.sub})
            raise Unauthorized("Invalid access token")

        return identity
