"""
auth/models.py -- Domain dataclass for the user entity.

Pattern: Data class (pure data container, zero logic). The store owns
persistence; routes own the HTTP projection.

Layer rule: no imports from api/, core/, or client/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered identity.

    id and created_at are assigned by UserStore.create_user() and never change
    afterwards. password_hash is the bcrypt hash; it stays inside auth/ and the
    API response models have no field for it.
    """

    name: str
    email: str
    password_hash: str
    id: str | None = None
    created_at: str | None = None
