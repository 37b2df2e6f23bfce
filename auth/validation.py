"""
auth/validation.py -- Registration input policy and email normalization.

Rules are evaluated in a fixed order so the error returned for a given input
is deterministic:
  1. email syntax (local@domain)      -> InvalidEmail
  2. password length >= 6             -> PasswordTooShort
  3. at least one uppercase letter    -> PasswordMissingUppercase
  4. at least one lowercase letter    -> PasswordMissingLowercase
Name checks (non-empty, <= 100 chars) run after the credential rules.

normalize_email() must be applied identically on register, login, create and
update so the same human email always maps to the same stored key.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import re

from core.errors import ValidationError, ValidationReason

# One "@", no whitespace, a non-empty local part and a dotted domain whose
# labels do not start or end with a hyphen.
EMAIL_PATTERN = r"^[^@\s]+@(?:[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?\.)+[A-Za-z]{2,}$"

_EMAIL_RE = re.compile(EMAIL_PATTERN)

MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 254


def normalize_email(raw: str) -> str:
    """Trim surrounding whitespace and lowercase."""
    return raw.strip().lower()


def is_valid_email(email: str) -> bool:
    return len(email) <= MAX_EMAIL_LENGTH and _EMAIL_RE.match(email) is not None


def validate_email(email: str) -> str:
    """Return the normalized email or raise ValidationError(InvalidEmail)."""
    normalized = normalize_email(email)
    if not is_valid_email(normalized):
        raise ValidationError(ValidationReason.invalid_email)
    return normalized


def validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(ValidationReason.password_too_short)
    if not any(ch.isupper() for ch in password):
        raise ValidationError(ValidationReason.password_missing_uppercase)
    if not any(ch.islower() for ch in password):
        raise ValidationError(ValidationReason.password_missing_lowercase)


def validate_credentials(email: str, password: str) -> str:
    """Apply the credential policy in order and return the normalized email.

    Raises:
        ValidationError: carrying the first ValidationReason that failed.
    """
    normalized = validate_email(email)
    validate_password(password)
    return normalized


def validate_names(first_name: str, last_name: str) -> tuple[str, str]:
    """Return (first, last) stripped, or raise ValidationError(InvalidName)."""
    first, last = first_name.strip(), last_name.strip()
    for name in (first, last):
        if not name or len(name) > MAX_NAME_LENGTH:
            raise ValidationError(ValidationReason.invalid_name)
    return first, last
