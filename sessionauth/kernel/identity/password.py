"""
Password hashing utilities using bcrypt.
"""

import base64
import hashlib
from typing import Optional

import bcrypt

from sessionauth.errors import Internal
from sessionauth.logging_config import get_logger

logger = get_logger(__name__)

# Number of rounds for bcrypt hashing (12 is secure default)
BCRYPT_ROUNDS = 12


class PasswordHasher:
    """
    Salted, adaptive-cost password hashing.

    Plaintexts are SHA-256 digested and base64 encoded before bcrypt sees
    them, so the whole password counts regardless of bcrypt's 72-byte input
    limit. ``verify`` delegates to ``bcrypt.checkpw``, whose digest
    comparison is constant-time.
    """

    def __init__(self, rounds: int = BCRYPT_ROUNDS):
        self.rounds = rounds
        self._dummy_hash: Optional[bytes] = None

    @staticmethod
    def _prehash(password: str) -> bytes:
        """Reduce a plaintext of any length to 44 bytes of bcrypt input."""
        digest = hashlib.sha256(password.encode("utf-8")).digest()
        return base64.b64encode(digest)

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password string
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(self._prehash(password), salt)
        return hashed.decode("utf-8")

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Args:
            plain_password: Plain text password to verify
            hashed_password: Stored hashed password

        Returns:
            True if password matches, False otherwise

        Raises:
            Internal: if the stored hash is not a bcrypt digest
        """
        try:
            return bcrypt.checkpw(
                self._prehash(plain_password),
                hashed_password.encode("utf-8"),
            )
        except (ValueError, TypeError, AttributeError) as e:
            logger.error("Stored password hash is malformed: %s", type(e).__name__)
            raise Internal() from e

    def dummy_verify(self, plain_password: str) -> None:
        """Burn one verify's worth of time when there is no stored hash to check."""
        if self._dummy_hash is None:
            self._dummy_hash = bcrypt.hashpw(
                self._prehash("dummy-password"), bcrypt.gensalt(rounds=self.rounds)
            )
        bcrypt.checkpw(self._prehash(plain_password), self._dummy_hash)

    def needs_rehash(self, hashed_password: str) -> bool:
        """
        Check if a password hash was produced with a different cost.

        Format: $2b$XX$... where XX is the rounds.
        """
        parts = hashed_password.split("$")
        if len(parts) < 4 or not parts[2].isdigit():
            return True
        return int(parts[2]) != self.rounds
