"""
Kernel Layer

- Identity store (user accounts, password hashes, the live refresh token)
- Identity core (hashing, token issuance, session gate, auth use cases)
"""

from sessionauth.kernel.models import Base, Identity

__all__ = [
    "Base",
    "Identity",
]
