"""
Credential store: persistence for identity records.
"""

import uuid
from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sessionauth.errors import Conflict, Internal
from sessionauth.kernel.models.identity import Identity
from sessionauth.logging_config import get_logger
from sessionauth.schemas.auth import IdentityResponse

logger = get_logger(__name__)


def normalize_identifier(value: str) -> str:
    """Usernames and emails are stored and matched lowercase."""
    return value.strip().lower()


class CredentialStore:
    """
    SQLAlchemy-backed store for identity records.

    Every write goes through the caller's session; the request-scoped
    session dependency commits or rolls back. Driver failures surface as
    ``Internal``.

    Usage:
        store = CredentialStore(session)
        identity = await store.find_by_identifier("alice")
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_identifier(self, identifier: str) -> Optional[Identity]:
        """Find an identity whose username or email matches."""
        value = normalize_identifier(identifier)
        query = select(Identity).where(
            or_(Identity.username == value, Identity.email == value)
        ).limit(1)
        return await self._scalar(query)

    async def find_by_id(self, identity_id: uuid.UUID) -> Optional[Identity]:
        """Get an identity by ID."""
        query = select(Identity).where(Identity.id == identity_id)
        return await self._scalar(query)

    async def find_public_by_id(self, identity_id: uuid.UUID) -> Optional[IdentityResponse]:
        """Load an identity without its password hash or refresh token."""
        query = select(
            Identity.id,
            Identity.username,
            Identity.email,
            Identity.full_name,
            Identity.avatar,
            Identity.cover_image,
            Identity.created_at,
        ).where(Identity.id == identity_id)
        try:
            row = (await self.session.execute(query)).one_or_none()
        except SQLAlchemyError as e:
            logger.exception("Identity lookup failed")
            raise Internal() from e
        if row is None:
            return None
        return IdentityResponse.model_validate(row)

    async def exists(self, username: str, email: str) -> bool:
        """True if either the username or the email is already taken."""
        query = select(Identity.id).where(
            or_(
                Identity.username == normalize_identifier(username),
                Identity.email == normalize_identifier(email),
            )
        ).limit(1)
        return await self._scalar(query) is not None

    async def create(
        self,
        username: str,
        email: str,
        full_name: str,
        password_hash: str,
        avatar: Optional[str] = None,
        cover_image: Optional[str] = None,
    ) -> Identity:
        """
        Insert a new identity.

        Raises:
            Conflict: if the username or email is already taken
        """
        identity = Identity(
            username=normalize_identifier(username),
            email=normalize_identifier(email),
            full_name=full_name.strip(),
            password_hash=password_hash,
            avatar=avatar,
            cover_image=cover_image,
        )
        self.session.add(identity)
        try:
            await self.session.flush()
            await self.session.refresh(identity)
        except IntegrityError as e:
            await self.session.rollback()
            raise Conflict() from e
        except SQLAlchemyError as e:
            logger.exception("Identity insert failed")
            raise Internal() from e
        return identity

    async def update_password_hash(self, identity_id: uuid.UUID, password_hash: str) -> None:
        """Replace the stored password hash."""
        await self._update(
            update(Identity)
            .where(Identity.id == identity_id)
            .values(password_hash=password_hash)
        )

    async def update_refresh_token(self, identity_id: uuid.UUID, token: Optional[str]) -> None:
        """Unconditionally overwrite (or clear) the stored refresh token."""
        await self._update(
            update(Identity)
            .where(Identity.id == identity_id)
            .values(refresh_token=token)
        )

    async def compare_and_set_refresh_token(
        self,
        identity_id: uuid.UUID,
        expected: str,
        new: Optional[str],
    ) -> bool:
        """
        Swap the stored refresh token only if it still equals ``expected``.

        Runs as a single conditional UPDATE, so two rotations of the same
        token cannot both succeed.

        Returns:
            True if the swap happened
        """
        rowcount = await self._update(
            update(Identity)
            .where(Identity.id == identity_id, Identity.refresh_token == expected)
            .values(refresh_token=new)
        )
        return rowcount == 1

    async def _scalar(self, query) -> Optional[Identity]:
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as e:
            logger.exception("Identity lookup failed")
            raise Internal() from e
        return result.scalar_one_or_none()

    async def _update(self, statement) -> int:
        try:
            result = await self.session.execute(statement)
        except SQLAlchemyError as e:
            logger.exception("Identity update failed")
            raise Internal() from e
        return result.rowcount
