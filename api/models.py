"""
API request and response models for the account service REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

JSON field names are camelCase (firstName, createdAt, ...) via the alias
generator; Python attributes stay snake_case. Request models only bound the
size of each field -- the credential policy itself (email syntax, password
strength, name rules) lives in auth/validation.py so every entry point,
including the CLI, reports the same ValidationReason codes.

Separation of concerns: auth/ models = domain truth; api/ models = API contract.
AccountSummary has no password field, so a hash can never be serialized.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from auth.models import Account

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register and POST /users."""

    model_config = _CAMEL

    first_name: str = Field(max_length=255)
    last_name: str = Field(max_length=255)
    email: str = Field(max_length=320)
    password: str = Field(max_length=255)


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    model_config = _CAMEL

    email: str = Field(max_length=320)
    password: str = Field(max_length=255)


class UpdateAccountRequest(BaseModel):
    """Request body for PUT /users/{id}.

    id is optional; when present it must match the path parameter.
    """

    model_config = _CAMEL

    id: Optional[int] = None
    first_name: str = Field(max_length=255)
    last_name: str = Field(max_length=255)
    email: str = Field(max_length=320)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class AccountSummary(BaseModel):
    """Externally visible account representation -- never includes the hash."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    first_name: str
    last_name: str
    email: str
    created_at: str
    updated_at: Optional[str] = None

    @classmethod
    def from_account(cls, account: Account) -> "AccountSummary":
        """Build a summary from the domain Account (Factory Method)."""
        return cls(
            id=account.id,
            first_name=account.first_name,
            last_name=account.last_name,
            email=account.email,
            created_at=account.created_at or "",
            updated_at=account.updated_at,
        )


class AuthResponse(BaseModel):
    """Response body for a successful register or login."""

    model_config = ConfigDict(frozen=True)

    message: str
    user: AccountSummary
    token: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
