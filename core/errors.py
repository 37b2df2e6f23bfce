"""
core/errors.py -- Error taxonomy shared by every layer of the account service.

Domain code (auth/) raises these; the HTTP layer (api/) maps them onto status
codes and the ErrorResponse envelope. Each class carries a stable machine code
so API clients never have to parse messages.

Security: no error carries a plaintext password or a password hash. The
InvalidCredentialsError message is fixed so an unknown email and a wrong
password are textually indistinguishable.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

from __future__ import annotations

from enum import Enum


class ValidationReason(str, Enum):
    """Registration policy violations, in the order they are checked."""

    invalid_email = "InvalidEmail"
    password_too_short = "PasswordTooShort"
    password_missing_uppercase = "PasswordMissingUppercase"
    password_missing_lowercase = "PasswordMissingLowercase"
    invalid_name = "InvalidName"


_REASON_MESSAGES: dict[ValidationReason, str] = {
    ValidationReason.invalid_email: "Email address is not valid.",
    ValidationReason.password_too_short: "Password must be at least 6 characters long.",
    ValidationReason.password_missing_uppercase: "Password must contain at least one uppercase letter.",
    ValidationReason.password_missing_lowercase: "Password must contain at least one lowercase letter.",
    ValidationReason.invalid_name: "First and last name are required and must be at most 100 characters.",
}


class AccountServiceError(Exception):
    """Base class for every error the account service raises on purpose."""

    code = "account_service_error"
    message = "Account service error."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(AccountServiceError):
    """Registration input rejected by the credential policy."""

    def __init__(self, reason: ValidationReason) -> None:
        super().__init__(_REASON_MESSAGES[reason])
        self.reason = reason
        self.code = reason.value


class EmailInUseError(AccountServiceError):
    code = "email_in_use"
    message = "Email already in use."


class InvalidCredentialsError(AccountServiceError):
    code = "invalid_credentials"
    message = "Invalid email or password."

    def __init__(self) -> None:
        # Fixed message -- never parameterized.
        super().__init__()


class AccountNotFoundError(AccountServiceError):
    code = "not_found"
    message = "User not found."


class InvalidTokenError(AccountServiceError):
    code = "unauthorized"
    message = "Invalid or expired token."


class ConfigurationError(AccountServiceError):
    """Startup-fatal configuration problem (e.g. a short signing secret)."""

    code = "configuration_error"
    message = "Invalid configuration."
