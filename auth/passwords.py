"""
auth/passwords.py -- bcrypt password hashing.

Passwords: bcrypt used directly (no passlib wrapper) with a fixed cost factor
of 12, i.e. 2^12 key-expansion rounds. Every call draws a fresh random salt, so
two hashes of the same password differ; hashes are therefore never compared by
equality -- always go through verify_password().

bcrypt only reads the first 72 bytes of its input, and bcrypt>=5 rejects longer
inputs outright. _encode() applies that limit explicitly on both the hash and
the verify path so the two stay consistent across bcrypt releases.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import bcrypt

BCRYPT_ROUNDS = 12
_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash (cost 12) of the plaintext password."""
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Constant-time check of plain against a bcrypt hash.

    A malformed or empty hash returns False instead of raising.
    """
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Timing equalization dummy hash.
# Computed once at module load. Login always runs verify_password(), against
# this hash when the email is unknown, so response time does not reveal
# whether an account exists.
DUMMY_HASH: str = hash_password("account-service-timing-dummy")
