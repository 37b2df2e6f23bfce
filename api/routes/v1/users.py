"""
api/routes/v1/users.py -- Account CRUD endpoints.

Routes:
  GET    /api/v1/users        -- list account summaries
  GET    /api/v1/users/{id}   -- one account summary (404 if unknown)
  POST   /api/v1/users        -- administrative create; no token issued (201)
  PUT    /api/v1/users/{id}   -- replace names and email (204 / 404)
  DELETE /api/v1/users/{id}   -- delete (204 / 404)

Auth policy: every route requires a valid bearer token (get_current_claims).
There is no role model -- any authenticated caller may manage accounts.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import AccountSummary, RegisterRequest, UpdateAccountRequest
from auth.dependencies import get_current_claims
from auth.service import AuthService

router = APIRouter(dependencies=[Depends(get_current_claims)])


def _service(request: Request) -> AuthService:
    return request.app.state.auth_service


@router.get("/users", response_model=list[AccountSummary])
def list_users(request: Request) -> list[AccountSummary]:
    return [AccountSummary.from_account(a) for a in _service(request).list_accounts()]


@router.get("/users/{user_id}", response_model=AccountSummary)
def get_user(request: Request, user_id: int) -> AccountSummary:
    return AccountSummary.from_account(_service(request).get_account(user_id))


@router.post("/users", response_model=AccountSummary, status_code=201)
def create_user(request: Request, response: Response, body: RegisterRequest) -> AccountSummary:
    """Create an account on someone's behalf.

    Applies the same credential policy as /auth/register but returns no token.
    """
    account = _service(request).create_account(body.first_name, body.last_name, body.email, body.password)
    response.headers["Location"] = f"{request.url.path.rstrip('/')}/{account.id}"
    return AccountSummary.from_account(account)


@router.put("/users/{user_id}", status_code=204)
def update_user(
    request: Request,
    user_id: int,
    body: UpdateAccountRequest,
) -> Response:
    """Replace an account's first name, last name and email."""
    if body.id is not None and body.id != user_id:
        raise HTTPException(
            status_code=400,
            detail={"code": "id_mismatch", "message": "Body id does not match the URL."},
        )
    _service(request).update_account(user_id, body.first_name, body.last_name, body.email)
    return Response(status_code=204)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(request: Request, user_id: int) -> Response:
    _service(request).delete_account(user_id)
    return Response(status_code=204)
