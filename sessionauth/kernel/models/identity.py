"""
Identity model: the persisted user record behind every session.
"""

import uuid
from typing import Optional

from sqlalchemy import String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sessionauth.kernel.models.base import Base, TimestampMixin, generate_uuid


class Identity(Base, TimestampMixin):
    """User account holding credentials and the single live refresh token."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    # NULL after logout; otherwise the most recently issued refresh token
    refresh_token: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    avatar: Mapped[Optional[str]] = mapped_column(
        String(1024),
        nullable=True,
    )
    cover_image: Mapped[Optional[str]] = mapped_column(
        String(1024),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Identity {self.username}>"
