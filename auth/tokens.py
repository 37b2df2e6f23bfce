"""
auth/tokens.py -- Bearer token issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with the configured secret
       and carry the account id (sub), email, given/family name, a random token
       id (jti), issued-at (iat, also nbf), issuer, audience and expiry
       (exp = iat + 24h by default).

  Secret: passed in explicitly at construction. TokenIssuer refuses secrets
       shorter than 32 bytes with ConfigurationError, so a misconfigured
       process fails at startup rather than on the first login.

  Verification: signature, algorithm, issuer and audience are checked by
       jose; the time window iat <= now <= exp is checked here against the
       injectable clock with zero leeway. Any failure raises
       InvalidTokenError -- there is no partial trust.

  Stateless: nothing is persisted. A leaked token stays valid until exp;
       there is no revocation list.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from jose import JWTError, jwt

from auth.models import Account, TokenClaims
from core.errors import ConfigurationError, InvalidTokenError

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("accountsvc.auth.tokens")

ALGORITHM = "HS256"
MIN_SECRET_BYTES = 32
DEFAULT_TTL_SECONDS = 24 * 60 * 60

_REQUIRED_CLAIMS = ("sub", "email", "given_name", "family_name", "jti", "iat", "exp", "iss", "aud")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """Signs and verifies account bearer tokens.

    Usage:
        issuer = TokenIssuer(secret, issuer="AccountService", audience="AccountServiceUsers")
        token = issuer.issue(account)
        claims = issuer.verify(token)   # raises InvalidTokenError
    """

    def __init__(
        self,
        secret: str,
        issuer: str,
        audience: str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not secret or len(secret.encode("utf-8")) < MIN_SECRET_BYTES:
            raise ConfigurationError(f"Token signing secret must be at least {MIN_SECRET_BYTES} bytes.")
        if ttl_seconds <= 0:
            raise ConfigurationError("Token lifetime must be positive.")
        self._secret = secret
        self.issuer = issuer
        self.audience = audience
        self.ttl_seconds = ttl_seconds
        self._clock = clock or _utcnow

    @classmethod
    def from_settings(cls, settings: Settings, clock: Callable[[], datetime] | None = None) -> TokenIssuer:
        return cls(
            settings.jwt_secret_key,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            ttl_seconds=settings.token_expire_seconds,
            clock=clock,
        )

    def issue(self, account: Account) -> str:
        """Encode a signed JWT for a persisted account."""
        if account.id is None:
            raise ValueError("Cannot issue a token for an account without an id.")
        issued_at = int(self._clock().timestamp())
        payload: dict[str, Any] = {
            "sub": str(account.id),
            "email": account.email,
            "given_name": account.first_name,
            "family_name": account.last_name,
            "jti": uuid.uuid4().hex,
            "iat": issued_at,
            "nbf": issued_at,
            "exp": issued_at + self.ttl_seconds,
            "iss": self.issuer,
            "aud": self.audience,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """Decode and fully verify a token, returning its claims.

        Raises:
            InvalidTokenError: bad signature, wrong algorithm, issuer or
                audience mismatch, missing claims, or outside [iat, exp].
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
                # Time window is enforced below against self._clock.
                options={"verify_exp": False, "verify_nbf": False, "leeway": 0},
            )
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            raise InvalidTokenError() from exc

        if any(claim not in payload for claim in _REQUIRED_CLAIMS):
            raise InvalidTokenError()

        try:
            issued_at = int(payload["iat"])
            expires_at = int(payload["exp"])
        except (TypeError, ValueError) as exc:
            raise InvalidTokenError() from exc

        now = self._clock().timestamp()
        if not issued_at <= now <= expires_at:
            raise InvalidTokenError()

        return TokenClaims(
            subject=str(payload["sub"]),
            email=payload["email"],
            given_name=payload["given_name"],
            family_name=payload["family_name"],
            token_id=payload["jti"],
            issuer=payload["iss"],
            audience=payload["aud"],
            issued_at=issued_at,
            expires_at=expires_at,
        )
