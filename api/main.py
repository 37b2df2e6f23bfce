"""
api/main.py -- FastAPI application entry point for the account service.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware     -- adds CORS headers for the configured browser origins
  2. log_requests       -- one access log line per request with latency

Lifespan builds the long-lived collaborators once and parks them on app.state:
  token_issuer  -- TokenIssuer built from Settings (refuses a short secret)
  account_store -- AccountStore on DATABASE_URL
  auth_service  -- AuthService(account_store, token_issuer)
Route handlers only ever read app.state; nothing is shared between requests
beyond these read-only objects and the database.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.users import router as users_router
from auth.service import AuthService
from auth.store import AccountStore
from auth.tokens import TokenIssuer
from core.config import get_settings
from core.errors import (
    AccountNotFoundError,
    AccountServiceError,
    EmailInUseError,
    InvalidCredentialsError,
    InvalidTokenError,
    ValidationError,
)

__version__ = "0.1.0"

settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("accountsvc.api")

# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the issuer, store and service on startup; dispose on shutdown.

    The issuer is built first: a short or missing signing secret raises
    ConfigurationError here and the server never starts accepting requests.
    """
    logger.info("Account service starting up")
    app.state.token_issuer = TokenIssuer.from_settings(settings)
    app.state.account_store = AccountStore(settings.database_url)
    app.state.auth_service = AuthService(app.state.account_store, app.state.token_issuer)
    logger.info("Account store initialized")

    yield

    app.state.account_store.close()
    logger.info("Account service shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Account Service API",
    description="User registration, login and account management with bearer tokens.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(users_router, prefix="/api/v1", tags=["Users"])

# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR: dict[type[AccountServiceError], int] = {
    ValidationError: 400,
    InvalidCredentialsError: 401,
    InvalidTokenError: 401,
    AccountNotFoundError: 404,
    EmailInUseError: 409,
}


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(
            exclude_none=True
        ),
    )


@app.exception_handler(AccountServiceError)
async def account_error_handler(request: Request, exc: AccountServiceError) -> JSONResponse:
    """Map domain errors onto HTTP status codes.

    Messages come from core.errors and never contain passwords or hashes.
    Anything not in _STATUS_BY_ERROR (e.g. ConfigurationError raised late)
    is a server fault.
    """
    status_code = next((s for cls, s in _STATUS_BY_ERROR.items() if isinstance(exc, cls)), 500)
    if status_code == 500:
        logger.error("Unmapped service error on %s %s: %s", request.method, request.url.path, exc.code)
    return _error_response(status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 when the request body or path params fail shape validation.

    Only field locations and error types are echoed back -- never the input
    values, which may include a password.
    """
    fields = ", ".join(".".join(str(p) for p in err["loc"]) + f" ({err['type']})" for err in exc.errors())
    return _error_response(422, "validation_error", "Request validation failed.", fields)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    When detail is already a structured dict, use it directly as the error
    field rather than stringifying it.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
    resp = _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))
    if exc.headers:
        resp.headers.update(exc.headers)
    return resp


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable and
# never requires a token.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version and a database round-trip check."""
    database = "ok" if request.app.state.account_store.ping() else "error"
    return HealthResponse(
        status="healthy" if database == "ok" else "degraded",
        version=__version__,
        components={"app": "ok", "database": database},
    )
