"""
tests/test_api_routes.py -- Integration tests for the auth and users routes.

These tests exercise the full stack: FastAPI routing -> bearer dependency ->
AuthService -> AccountStore -> response model serialization. Unit testing
individual route functions would miss middleware, dependency injection, the
exception handlers and camelCase aliasing -- integration tests are the right
tool here.

Coverage:
  - Register: 201 with user + token, 400 reason codes, 409 duplicate, 422 shape
  - Login: 200 with token, identical 401 for unknown email / wrong password,
    Cache-Control: no-store on both
  - Users: 401 without or with a bad token; list/get/create/update/delete
    happy paths; 404 on unknown ids; 400 on body/path id mismatch
  - Responses never carry a password or hash

Fixtures used (from conftest.py):
  - api_client: (client, token, account_id) -- TestClient with the api_user token
  - auth_headers: {"Authorization": "Bearer <token>"}
  - api_user: registration body of the pre-created account

The database is shared by every test in this module, so each test uses its
own email addresses.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from auth.models import Account
from auth.tokens import TokenIssuer

ApiClient = tuple[TestClient, str, int]


def _register(client: TestClient, email: str, password: str = "Passw0rd", first: str = "Ann", last: str = "Lee"):
    body = {"firstName": first, "lastName": last, "email": email, "password": password}
    return client.post("/api/v1/auth/register", json=body)


class TestRegister:
    def test_register_returns_user_and_token(self, api_client: ApiClient) -> None:
        client, _token, _uid = api_client
        resp = _register(client, "Ann.Lee@EXAMPLE.com")
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["message"] == "Registration successful."
        assert data["token"]
        user = data["user"]
        assert user["email"] == "ann.lee@example.com"
        assert user["firstName"] == "Ann"
        assert user["lastName"] == "Lee"
        assert isinstance(user["id"], int)
        assert user["createdAt"]
        assert "password" not in resp.text.lower()

    def test_register_token_authenticates(self, api_client: ApiClient) -> None:
        client, _token, _uid = api_client
        token = _register(client, "token.user@example.com").json()["token"]
        resp = client.get("/api/v1/users", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200

    def test_register_duplicate_email_409(self, api_client: ApiClient) -> None:
        client, _token, _uid = api_client
        assert _register(client, "dup@example.com").status_code == 201
        resp = _register(client, "  DUP@example.com ", password="Other1x", first="x", last="y")
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "email_in_use"

    def test_register_weak_password_400(self, api_client: ApiClient) -> None:
        client, _token, _uid = api_client
        cases = {
            "Ab1": "PasswordTooShort",
            "abcdef1": "PasswordMissingUppercase",
            "ABCDEF1": "PasswordMissingLowercase",
        }
        for password, code in cases.items():
            resp = _register(client, "weak@example.com", password=password)
            assert resp.status_code == 400
            error = resp.json()["error"]
            assert error["code"] == code
            assert password not in error["message"]

    def test_register_invalid_email_400(self, api_client: ApiClient) -> None:
        client, _token, _uid = api_client
        resp = _register(client, "not-an-email", password="x")
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "InvalidEmail"

    def test_register_missing_field_422(self, api_client: ApiClient) -> None:
        client, _token, _uid = api_client
        resp = client.post("/api/v1/auth/register", json={"email": "x@example.com", "password": "SecretPw1"})
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "validation_error"
        assert "SecretPw1" not in resp.text


class TestLogin:
    def test_login_success(self, api_client: ApiClient, api_user: dict) -> None:
        client, _token, uid = api_client
        resp = client.post(
            "/api/v1/auth/login",
            json={"email": api_user["email"].upper(), "password": api_user["password"]},
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["message"] == "Login successful."
        assert data["user"]["id"] == uid
        assert data["user"]["firstName"] == api_user["firstName"]
        assert data["token"]
        assert resp.headers["cache-control"] == "no-store"

    def test_login_failures_are_identical(self, api_client: ApiClient, api_user: dict) -> None:
        client, _token, _uid = api_client
        unknown = client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": "Passw0rd"})
        wrong = client.post("/api/v1/auth/login", json={"email": api_user["email"], "password": "wrong"})
        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json()
        assert unknown.json()["error"]["code"] == "invalid_credentials"
        assert wrong.headers["cache-control"] == "no-store"


class TestUsersAuth:
    def test_list_requires_token(self, api_client: ApiClient) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/v1/users")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_every_users_route_requires_token(self, api_client: ApiClient) -> None:
        client, _token, uid = api_client
        body = {"firstName": "A", "lastName": "B", "email": "noauth@example.com", "password": "Passw0rd"}
        responses = [
            client.get(f"/api/v1/users/{uid}"),
            client.post("/api/v1/users", json=body),
            client.put(f"/api/v1/users/{uid}", json=body),
            client.delete(f"/api/v1/users/{uid}"),
        ]
        assert [r.status_code for r in responses] == [401, 401, 401, 401]

    def test_non_bearer_scheme_rejected(self, api_client: ApiClient) -> None:
        client, token, _uid = api_client
        resp = client.get("/api/v1/users", headers={"Authorization": f"Basic {token}"})
        assert resp.status_code == 401

    def test_garbage_token_rejected(self, api_client: ApiClient) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/v1/users", headers={"Authorization": "Bearer not.a.jwt"})
        assert resp.status_code == 401

    def test_token_from_other_secret_rejected(self, api_client: ApiClient) -> None:
        client, _token, uid = api_client
        forger = TokenIssuer("forged-secret-forged-secret-forged-secret", "AccountService", "AccountServiceUsers")
        forged = forger.issue(Account(id=uid, first_name="F", last_name="G", email="f@example.com", hashed_password=""))
        resp = client.get("/api/v1/users", headers={"Authorization": f"Bearer {forged}"})
        assert resp.status_code == 401

    def test_bearer_scheme_is_case_insensitive(self, api_client: ApiClient) -> None:
        client, token, _uid = api_client
        resp = client.get("/api/v1/users", headers={"Authorization": f"bearer {token}"})
        assert resp.status_code == 200


class TestUsersCrud:
    def test_list_includes_api_user(self, api_client: ApiClient, auth_headers: dict, api_user: dict) -> None:
        client, _token, uid = api_client
        resp = client.get("/api/v1/users", headers=auth_headers)
        assert resp.status_code == 200
        users = resp.json()
        assert any(u["id"] == uid and u["email"] == api_user["email"] for u in users)
        assert all("hashedPassword" not in u and "password" not in u for u in users)

    def test_get_user(self, api_client: ApiClient, auth_headers: dict, api_user: dict) -> None:
        client, _token, uid = api_client
        resp = client.get(f"/api/v1/users/{uid}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["email"] == api_user["email"]

    def test_get_unknown_user_404(self, api_client: ApiClient, auth_headers: dict) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/v1/users/999999", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_create_user(self, api_client: ApiClient, auth_headers: dict) -> None:
        client, _token, _uid = api_client
        body = {"firstName": "Bob", "lastName": "Ray", "email": "Bob.Ray@example.com", "password": "Passw0rd"}
        resp = client.post("/api/v1/users", json=body, headers=auth_headers)
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["email"] == "bob.ray@example.com"
        assert "token" not in data
        assert resp.headers["location"] == f"/api/v1/users/{data['id']}"
        # The new account can log in with the password it was created with.
        login = client.post("/api/v1/auth/login", json={"email": "bob.ray@example.com", "password": "Passw0rd"})
        assert login.status_code == 200

    def test_create_user_weak_password_400(self, api_client: ApiClient, auth_headers: dict) -> None:
        client, _token, _uid = api_client
        body = {"firstName": "Weak", "lastName": "Pw", "email": "weak.admin@example.com", "password": "abc"}
        resp = client.post("/api/v1/users", json=body, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "PasswordTooShort"

    def test_update_user(self, api_client: ApiClient, auth_headers: dict) -> None:
        client, _token, _uid = api_client
        created = _register(client, "carol@example.com", first="Carol", last="Kay").json()["user"]
        body = {"id": created["id"], "firstName": "Caroline", "lastName": "Kay", "email": "Caroline@Example.com"}
        resp = client.put(f"/api/v1/users/{created['id']}", json=body, headers=auth_headers)
        assert resp.status_code == 204
        assert resp.content == b""

        fetched = client.get(f"/api/v1/users/{created['id']}", headers=auth_headers).json()
        assert fetched["firstName"] == "Caroline"
        assert fetched["email"] == "caroline@example.com"
        assert fetched["updatedAt"] is not None

    def test_update_without_body_id(self, api_client: ApiClient, auth_headers: dict) -> None:
        client, _token, _uid = api_client
        created = _register(client, "dan@example.com", first="Dan", last="Oh").json()["user"]
        body = {"firstName": "Daniel", "lastName": "Oh", "email": "dan@example.com"}
        resp = client.put(f"/api/v1/users/{created['id']}", json=body, headers=auth_headers)
        assert resp.status_code == 204

    def test_update_id_mismatch_400(self, api_client: ApiClient, auth_headers: dict) -> None:
        client, _token, uid = api_client
        body = {"id": uid + 1, "firstName": "X", "lastName": "Y", "email": "mismatch@example.com"}
        resp = client.put(f"/api/v1/users/{uid}", json=body, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "id_mismatch"

    def test_update_unknown_user_404(self, api_client: ApiClient, auth_headers: dict) -> None:
        client, _token, _uid = api_client
        body = {"firstName": "X", "lastName": "Y", "email": "ghost.update@example.com"}
        resp = client.put("/api/v1/users/999999", json=body, headers=auth_headers)
        assert resp.status_code == 404

    def test_update_to_taken_email_409(self, api_client: ApiClient, auth_headers: dict, api_user: dict) -> None:
        client, _token, _uid = api_client
        created = _register(client, "erin@example.com", first="Erin", last="Fox").json()["user"]
        body = {"firstName": "Erin", "lastName": "Fox", "email": api_user["email"]}
        resp = client.put(f"/api/v1/users/{created['id']}", json=body, headers=auth_headers)
        assert resp.status_code == 409

    def test_delete_user(self, api_client: ApiClient, auth_headers: dict) -> None:
        client, _token, _uid = api_client
        created = _register(client, "frank@example.com", first="Frank", last="Gil").json()["user"]
        resp = client.delete(f"/api/v1/users/{created['id']}", headers=auth_headers)
        assert resp.status_code == 204
        assert client.get(f"/api/v1/users/{created['id']}", headers=auth_headers).status_code == 404
        assert client.delete(f"/api/v1/users/{created['id']}", headers=auth_headers).status_code == 404

    def test_deleted_accounts_token_still_verifies(self, api_client: ApiClient, auth_headers: dict) -> None:
        """Tokens are stateless: deleting the account does not revoke them."""
        client, _token, _uid = api_client
        registered = _register(client, "gone@example.com", first="Gone", last="Soon").json()
        client.delete(f"/api/v1/users/{registered['user']['id']}", headers=auth_headers)
        resp = client.get("/api/v1/users", headers={"Authorization": f"Bearer {registered['token']}"})
        assert resp.status_code == 200
