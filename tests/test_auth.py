"""Auth: register, login, me, change password."""
import uuid

from fastapi.testclient import TestClient


def _unique(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def test_register_success(client: TestClient):
    name = _unique()
    r = client.post(
        "/auth/register",
        data={"email": f"{name.upper()}@Example.com", "username": name.upper(), "password": "secure123"},
    )
    assert r.status_code == 200
    j = r.json()
    assert j["email"] == f"{name}@example.com"
    assert j["username"] == name
    assert j["role"] == "USER"
    assert j["must_change_password"] is False


def test_register_validation(client: TestClient):
    r = client.post("/auth/register", data={"email": "bad", "username": "ok-name", "password": "secure123"})
    assert r.status_code == 400
    r = client.post("/auth/register", data={"email": "a@example.com", "username": "x", "password": "secure123"})
    assert r.status_code == 400
    r = client.post("/auth/register", data={"email": "a@example.com", "username": _unique(), "password": "123"})
    assert r.status_code == 400


def test_register_duplicate_email_and_username(client: TestClient):
    name = _unique()
    data = {"email": f"{name}@example.com", "username": name, "password": "secure123"}
    assert client.post("/auth/register", data=data).status_code == 200

    r = client.post("/auth/register", data={**data, "username": _unique()})
    assert r.status_code == 409
    assert r.json()["error"] == "This email is already registered."

    r = client.post("/auth/register", data={**data, "email": f"{_unique()}@example.com"})
    assert r.status_code == 409


def test_login_with_email_or_username(client: TestClient, make_owner):
    user = make_owner()
    r = client.post("/auth/login", data={"login": user["username"], "password": "secret123"})
    assert r.status_code == 200
    assert r.json()["token_type"] == "bearer"
    r = client.post("/auth/login", data={"email": user["email"], "password": "secret123"})
    assert r.status_code == 200
    assert "access_token" in r.json()


def test_login_wrong_password(client: TestClient, make_owner):
    user = make_owner()
    r = client.post("/auth/login", data={"login": user["email"], "password": "wrongpass"})
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid credentials."


def test_me_requires_auth(client: TestClient):
    assert client.get("/auth/me").status_code == 401
    r = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


def test_me_with_token(client: TestClient, owner: dict):
    r = client.get("/auth/me", headers=owner["headers"])
    assert r.status_code == 200
    assert r.json()["email"] == owner["email"]


def test_change_password(client: TestClient, owner: dict):
    r = client.post(
        "/auth/change-password",
        json={"current_password": "wrong-one", "new_password": "another123"},
        headers=owner["headers"],
    )
    assert r.status_code == 400

    r = client.post(
        "/auth/change-password",
        json={"current_password": "secret123", "new_password": "another123"},
        headers=owner["headers"],
    )
    assert r.status_code == 200
    r = client.post("/auth/login", data={"login": owner["email"], "password": "another123"})
    assert r.status_code == 200
