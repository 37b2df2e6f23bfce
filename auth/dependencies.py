"""
auth/dependencies.py -- FastAPI Depends() helpers for bearer authentication.

Tokens arrive as "Authorization: Bearer <jwt>" and are verified with the same
TokenIssuer the login flow signs with (app.state.token_issuer). Verification
covers signature, issuer, audience and the [iat, exp] window; any failure is
a uniform 401.

Tokens are stateless: a verified token is trusted until it expires, even if
the account has since been deleted.

try_get_current_claims() is the soft variant (returns None on failure).
get_current_claims() wraps it and raises HTTP 401 if unauthenticated.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import TokenClaims
from auth.tokens import TokenIssuer
from core.errors import InvalidTokenError

_BEARER_PREFIX = "bearer "


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header[: len(_BEARER_PREFIX)].lower() != _BEARER_PREFIX:
        return None
    token = auth_header[len(_BEARER_PREFIX) :].strip()
    return token or None


def try_get_current_claims(request: Request) -> TokenClaims | None:
    """Return verified token claims, or None. Never raises."""
    token = _bearer_token(request)
    if token is None:
        return None
    issuer: TokenIssuer = request.app.state.token_issuer
    try:
        return issuer.verify(token)
    except InvalidTokenError:
        return None


def get_current_claims(request: Request) -> TokenClaims:
    """Require a valid bearer token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(claims: TokenClaims = Depends(get_current_claims)): ...
    """
    claims = try_get_current_claims(request)
    if claims is None:
        raise HTTPException(
            status_code=401,
            detail={"code": InvalidTokenError.code, "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claims
