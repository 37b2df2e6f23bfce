"""
api/routes/v1/auth.py -- Self-service registration and login endpoints.

Routes:
  POST /api/v1/auth/register   -- create an account; returns summary + token (201)
  POST /api/v1/auth/login      -- password login; returns summary + token

Security:
  Both routes are public. Handlers are plain `def` so bcrypt's deliberate
  slowness runs in FastAPI's threadpool instead of blocking the event loop.
  Login returns one generic error ("invalid_credentials") for an unknown
  email and for a wrong password; AuthService.login() also equalizes timing.
  Cache-Control: no-store on every login response, success or failure.

Domain errors (ValidationError, EmailInUseError) propagate to the handlers in
api/main.py, which render the shared ErrorResponse envelope.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.models import AccountSummary, AuthResponse, ErrorDetail, ErrorResponse, LoginRequest, RegisterRequest
from auth.service import AuthResult, AuthService
from core.errors import InvalidCredentialsError

router = APIRouter()


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        message=result.message,
        user=AccountSummary.from_account(result.account),
        token=result.token,
    )


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> AuthResponse:
    """Register a new account and return it with a bearer token."""
    service: AuthService = request.app.state.auth_service
    result = service.register(body.first_name, body.last_name, body.email, body.password)
    return _auth_response(result)


@router.post("/auth/login", response_model=AuthResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password and return a bearer token."""
    service: AuthService = request.app.state.auth_service
    try:
        result = service.login(body.email, body.password)
    except InvalidCredentialsError as exc:
        resp = JSONResponse(
            status_code=401,
            content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(
                exclude_none=True
            ),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    resp = JSONResponse(status_code=200, content=_auth_response(result).model_dump(by_alias=True))
    resp.headers["Cache-Control"] = "no-store"
    return resp
