"""Pytest fixtures: test client, in-memory SQLite, registered owners and an admin."""
import os
import uuid

import pytest
from fastapi.testclient import TestClient

# In-memory SQLite for tests (must be set before the app is imported)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("PUBLIC_ORIGIN", "http://test.local")
os.environ["SMTP_HOST"] = ""
# High limits so the whole suite fits in one rate-limit window
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "10000")
os.environ.setdefault("RATE_LIMIT_LOGIN_PER_MINUTE", "10000")
os.environ.setdefault("RATE_LIMIT_REGISTER_PER_MINUTE", "10000")
os.environ.setdefault("RATE_LIMIT_CLAIM_PER_MINUTE", "10000")

from sqlmodel import Session

from tapreview.core.database import engine
from tapreview.core.security import hash_password
from tapreview.main import app
from tapreview.models import User, UserRole


@pytest.fixture(scope="function")
def client():
    """TestClient; the lifespan creates the tables."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    with Session(engine) as session:
        yield session


def register_and_login(client: TestClient, prefix: str = "shop") -> dict:
    suffix = uuid.uuid4().hex[:8]
    username = f"{prefix}-{suffix}"
    email = f"{username}@example.com"
    r = client.post(
        "/auth/register",
        data={"email": email, "username": username, "password": "secret123"},
    )
    assert r.status_code == 200, r.text
    r = client.post("/auth/login", data={"login": email, "password": "secret123"})
    assert r.status_code == 200, r.text
    token = r.json()["access_token"]
    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
    return {
        "id": me["id"],
        "username": username,
        "email": email,
        "headers": {"Authorization": f"Bearer {token}"},
    }


@pytest.fixture
def owner(client: TestClient) -> dict:
    """A freshly registered business user."""
    return register_and_login(client)


@pytest.fixture
def other_owner(client: TestClient) -> dict:
    return register_and_login(client, prefix="other")


@pytest.fixture
def admin_headers(client: TestClient) -> dict:
    suffix = uuid.uuid4().hex[:8]
    email = f"admin-{suffix}@example.com"
    with Session(engine) as session:
        session.add(
            User(
                email=email,
                username=f"admin-{suffix}",
                hashed_password=hash_password("admin-pass-123"),
                role=UserRole.ADMIN,
            )
        )
        session.commit()
    r = client.post("/auth/login", data={"login": email, "password": "admin-pass-123"})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


def create_promo(client: TestClient, headers: dict, **overrides) -> dict:
    body = {"title": "Free coffee", "description": "One espresso on us", "type": "gift"}
    body.update(overrides)
    r = client.post("/promos", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def activate(client: TestClient, headers: dict, promo_id: int, active: bool = True) -> None:
    r = client.patch(f"/promos/{promo_id}/active", json={"active": active}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json() == {"ok": True}


@pytest.fixture
def make_owner(client: TestClient):
    return lambda prefix="shop": register_and_login(client, prefix)


@pytest.fixture
def make_promo(client: TestClient):
    return lambda headers, **overrides: create_promo(client, headers, **overrides)


@pytest.fixture
def set_active(client: TestClient):
    return lambda headers, promo_id, active=True: activate(client, headers, promo_id, active)


@pytest.fixture
def active_promo(owner: dict, make_promo, set_active) -> dict:
    """An owner's promo, active, running from now for 7 days."""
    promo = make_promo(owner["headers"])
    set_active(owner["headers"], promo["id"])
    return promo
