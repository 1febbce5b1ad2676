"""
Kernel Data Models

SQLAlchemy models for the identity store.
"""

from sessionauth.kernel.models.base import Base, TimestampMixin, generate_uuid
from sessionauth.kernel.models.identity import Identity

__all__ = [
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "Identity",
]
