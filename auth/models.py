"""
auth/models.py -- Domain dataclasses for account entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; these only own the domain shape.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Account:
    """A persisted user identity.

    email is always stored normalized (trimmed, lowercased) and is the natural
    login key. hashed_password is the bcrypt output and must never leave the
    auth/ layer -- api/ response models have no field for it.

    id and created_at are assigned by AccountStore.create(); updated_at stays
    None until the first successful update.
    """

    first_name: str
    last_name: str
    email: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims extracted from a bearer token."""

    subject: str
    email: str
    given_name: str
    family_name: str
    token_id: str
    issuer: str
    audience: str
    issued_at: int
    expires_at: int

    @property
    def account_id(self) -> int:
        return int(self.subject)
