"""
tests/test_auth_routes.py -- Integration tests for /api/auth/*.

Each test uses its own email addresses because api_client is module scoped.
"""

from __future__ import annotations

from auth.models import STUDENT
from tests.conftest import auth_header


def _register_student(client, email, **overrides):
    body = {
        "name": "Ann",
        "email": email,
        "password": "secret1",
        "role": "student",
        "rollNo": "R1",
        "department": "CS",
        "course": "BTech",
    }
    body.update(overrides)
    return client.post("/api/auth/register", json=body)


# ---------------------------------------------------------------------------
# POST /auth/register
# ---------------------------------------------------------------------------


def test_register_student_returns_token_and_profile(api_client):
    client, store, _ = api_client
    resp = _register_student(client, "Reg1@X.com")
    assert resp.status_code == 201
    data = resp.json()
    assert data["token"]
    assert data["message"] == "Registration successful."
    assert data["user"]["email"] == "reg1@x.com"
    assert data["user"]["role"] == STUDENT
    assert "hashedPassword" not in data["user"]
    assert "password" not in data["user"]
    assert data["profile"]["role"] == "student"
    assert data["profile"]["rollNo"] == "R1"
    assert data["profile"]["userId"] == data["user"]["id"]
    assert resp.headers["cache-control"] == "no-store"
    assert store.get_user_by_email("reg1@x.com") is not None


def test_registered_token_opens_me(api_client):
    client, _, _ = api_client
    token = _register_student(client, "reg2@x.com").json()["token"]
    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["user"]["email"] == "reg2@x.com"


def test_register_duplicate_email(api_client):
    client, store, _ = api_client
    assert _register_student(client, "dup@x.com").status_code == 201
    before = len(store.list_accounts(STUDENT))
    resp = _register_student(client, "DUP@x.com", rollNo="R2")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Email already registered."
    assert len(store.list_accounts(STUDENT)) == before


def test_register_admin_refused(api_client):
    client, store, _ = api_client
    resp = client.post(
        "/api/auth/register",
        json={"name": "Eve", "email": "eve@x.com", "password": "secret1", "role": "admin"},
    )
    assert resp.status_code == 400
    assert store.get_user_by_email("eve@x.com") is None


def test_register_student_missing_fields(api_client):
    client, store, _ = api_client
    resp = client.post(
        "/api/auth/register",
        json={"name": "Ann", "email": "nofields@x.com", "password": "secret1", "role": "student"},
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "rollNo, department, course required for student."
    assert store.get_user_by_email("nofields@x.com") is None


def test_register_faculty_scalar_subject(api_client):
    client, _, _ = api_client
    resp = client.post(
        "/api/auth/register",
        json={
            "name": "Fay",
            "email": "fay@x.com",
            "password": "secret1",
            "role": "faculty",
            "employeeId": "E1",
            "subjects": "Math",
        },
    )
    assert resp.status_code == 201
    profile = resp.json()["profile"]
    assert profile["role"] == "faculty"
    assert profile["employeeId"] == "E1"
    assert profile["subjects"] == ["Math"]


def test_register_short_password_is_validation_error(api_client):
    client, _, _ = api_client
    resp = _register_student(client, "short@x.com", password="123")
    assert resp.status_code == 400
    data = resp.json()
    assert data["code"] == "validation_error"
    assert data["errors"][0]["field"] == "password"


def test_register_unknown_role_is_validation_error(api_client):
    client, _, _ = api_client
    resp = _register_student(client, "role@x.com", role="janitor")
    assert resp.status_code == 400


# ---------------------------------------------------------------------------
# GET /auth/check-email
# ---------------------------------------------------------------------------


def test_check_email(api_client):
    client, _, _ = api_client
    _register_student(client, "check@x.com")
    assert client.get("/api/auth/check-email", params={"email": " CHECK@x.com "}).json() == {"exists": True}
    assert client.get("/api/auth/check-email", params={"email": "nobody@x.com"}).json() == {"exists": False}


def test_check_email_requires_email(api_client):
    client, _, _ = api_client
    resp = client.get("/api/auth/check-email")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Email is required."


# ---------------------------------------------------------------------------
# POST /auth/login
# ---------------------------------------------------------------------------


def test_login_success(api_client):
    client, _, _ = api_client
    _register_student(client, "login@x.com")
    resp = client.post("/api/auth/login", json={"email": "LOGIN@x.com", "password": "secret1"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["token"]
    assert data["user"]["email"] == "login@x.com"
    assert data["profile"]["rollNo"] == "R1"


def test_login_unknown_email_reports_not_found(api_client):
    client, _, _ = api_client
    resp = client.post("/api/auth/login", json={"email": "z@x.com", "password": "whatever"})
    assert resp.status_code == 401
    data = resp.json()
    assert data["code"] == "EMAIL_NOT_FOUND"
    assert data["message"] == "Email not registered. Please register first."


def test_login_wrong_password(api_client):
    client, _, _ = api_client
    _register_student(client, "wrongpw@x.com")
    resp = client.post("/api/auth/login", json={"email": "wrongpw@x.com", "password": "nope!!"})
    assert resp.status_code == 401
    data = resp.json()
    assert data["message"] == "Invalid password."
    assert data["code"] != "EMAIL_NOT_FOUND"


# ---------------------------------------------------------------------------
# GET /auth/me
# ---------------------------------------------------------------------------


def test_me_without_token(api_client):
    client, _, _ = api_client
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["message"] == "No token, authorization denied."


def test_me_with_garbage_token(api_client):
    client, _, _ = api_client
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Token is not valid."


def test_me_for_deleted_user(api_client):
    client, _, _ = api_client
    resp = client.get("/api/auth/me", headers=auth_header(987654))
    assert resp.status_code == 401
    assert resp.json()["message"] == "User not found."


def test_me_admin_includes_admin_profile(api_client, admin_headers):
    client, _, admin = api_client
    resp = client.get("/api/auth/me", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["user"]["id"] == admin.user.id
    assert data["profile"]["role"] == "admin"
    assert data["profile"]["position"] == "Registrar"


def test_password_whitespace_is_part_of_the_secret(api_client):
    client, _, _ = api_client
    resp = _register_student(client, "padded@x.com", password="  secret1  ")
    assert resp.status_code == 201

    trimmed = client.post("/api/auth/login", json={"email": "padded@x.com", "password": "secret1"})
    assert trimmed.status_code == 401
    assert trimmed.json()["message"] == "Invalid password."

    exact = client.post("/api/auth/login", json={"email": "padded@x.com", "password": "  secret1  "})
    assert exact.status_code == 200


def test_trailing_spaces_count_toward_minimum_length(api_client):
    client, _, _ = api_client
    resp = client.post(
        "/api/auth/register",
        json={"name": "Pad", "email": "pad2@x.com", "password": "ab    ", "role": "faculty"},
    )
    assert resp.status_code == 201
    login = client.post("/api/auth/login", json={"email": "pad2@x.com", "password": "ab    "})
    assert login.status_code == 200
