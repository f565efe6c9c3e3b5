"""Tests for the auth / account REST API."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure server/ is importable
_server_dir = str(Path(__file__).resolve().parent.parent)
if _server_dir not in sys.path:
    sys.path.insert(0, _server_dir)

from auth import AUTH_COOKIE
from models.user import User, UserSession
from schemas.chat import ChatMessage
from services.chat import ChatService, get_chat_service
from services.transcripts import InMemoryTranscriptStore


# ---------------------------------------------------------------------------
# Override the database / chat dependencies for tests
# ---------------------------------------------------------------------------

@pytest.fixture
def store():
    return InMemoryTranscriptStore()


@pytest.fixture
def app(db, store, fake_llm):
    """Create a test FastAPI app with DB overridden to use test session."""
    from main import app as _app
    from database import get_db

    def _override_get_db():
        try:
            yield db
        finally:
            pass

    chat = ChatService(store, llm=fake_llm)
    _app.dependency_overrides[get_db] = _override_get_db
    _app.dependency_overrides[get_chat_service] = lambda: chat
    yield _app
    _app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


def _register(client, username="alice", email="a@x.com", password="Secret123!"):
    return client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": password},
    )


def _login(client, identifier="alice", password="Secret123!"):
    return client.post(
        "/api/auth/login",
        json={"usernameOrEmail": identifier, "password": password},
    )


# ── Register ──────────────────────────────────────────────────────────────────


class TestRegisterAPI:
    def test_register(self, client):
        resp = _register(client)
        assert resp.status_code == 201
        data = resp.json()
        assert data["message"] == "User registered successfully"
        assert data["user"]["username"] == "alice"
        assert data["user"]["email"] == "a@x.com"
        assert "password" not in str(data)

    def test_sets_http_only_cookie(self, client):
        resp = _register(client)
        set_cookie = resp.headers["set-cookie"]
        assert set_cookie.startswith(f"{AUTH_COOKIE}=")
        assert "HttpOnly" in set_cookie
        assert "Max-Age=86400" in set_cookie
        assert "Secure" not in set_cookie

    def test_cookie_secure_in_production(self, client, monkeypatch):
        from config import settings

        monkeypatch.setattr(settings, "ENVIRONMENT", "production")
        resp = _register(client)
        assert "Secure" in resp.headers["set-cookie"]

    def test_duplicate_is_400(self, client):
        _register(client)
        resp = _register(client, email="other@x.com")
        assert resp.status_code == 400
        assert resp.json() == {"message": "User with this username or email already exists"}

    def test_missing_fields_is_400(self, client):
        resp = client.post("/api/auth/register", json={"username": "alice"})
        assert resp.status_code == 400
        assert "email" in resp.json()["message"]
        assert "password" in resp.json()["message"]


# ── Login / profile / logout ──────────────────────────────────────────────────


class TestLoginLogoutAPI:
    def test_alice_scenario(self, client, store):
        user_id = _register(client).json()["user"]["id"]

        resp = _login(client)
        assert resp.status_code == 200
        assert resp.json()["message"] == "Login successful"
        assert resp.json()["user"]["id"] == user_id
        token = resp.cookies[AUTH_COOKIE]

        bad = _login(client, password="wrong")
        assert bad.status_code == 401
        assert bad.json() == {"message": "Invalid credentials"}

        store.append_message(user_id, ChatMessage(sender="user", text="hi", timestamp="t"))

        client.cookies.clear()
        headers = {"Authorization": f"Bearer {token}"}
        assert client.get("/api/profile", headers=headers).status_code == 200

        out = client.post("/api/auth/logout", headers=headers)
        assert out.status_code == 200
        assert out.json() == {"message": "Logged out successfully"}
        assert store.get_history(user_id) == []
        assert store.last_seen(user_id) is None

        again = client.get("/api/profile", headers=headers)
        assert again.status_code == 401
        assert again.json() == {"message": "Invalid or expired token"}

    def test_unknown_user_matches_wrong_password(self, client):
        _register(client)
        wrong_pw = _login(client, password="nope")
        no_user = _login(client, identifier="mallory")
        assert wrong_pw.status_code == no_user.status_code == 401
        assert wrong_pw.json() == no_user.json()

    def test_login_by_email(self, client):
        _register(client)
        assert _login(client, identifier="a@x.com").status_code == 200

    def test_login_missing_fields(self, client):
        resp = client.post("/api/auth/login", json={"password": "x"})
        assert resp.status_code == 400
        assert "usernameOrEmail" in resp.json()["message"]

    def test_cookie_session_and_logout_clears_cookie(self, client, db):
        _register(client)
        assert client.get("/api/profile").status_code == 200

        resp = client.post("/api/auth/logout")
        assert resp.status_code == 200
        assert "Max-Age=0" in resp.headers["set-cookie"]
        assert db.query(UserSession).filter(UserSession.is_revoked == True).count() == 1  # noqa: E712

    def test_logout_requires_auth(self, client):
        resp = client.post("/api/auth/logout")
        assert resp.status_code == 401
        assert resp.json() == {"message": "Authentication required"}

    def test_profile(self, client):
        user = _register(client).json()["user"]
        resp = client.get("/api/profile")
        assert resp.status_code == 200
        assert resp.json()["user"] == user

    def test_profile_unauthenticated(self, client):
        assert client.get("/api/profile").status_code == 401


# ── Public data (optional auth) ───────────────────────────────────────────────


class TestPublicDataAPI:
    def test_guest(self, client):
        resp = client.get("/api/public-data")
        assert resp.status_code == 200
        assert resp.json()["message"] == "Hello, guest!"

    def test_authenticated(self, client):
        _register(client)
        assert client.get("/api/public-data").json()["message"] == "Hello, alice!"

    def test_bad_token_still_served(self, client):
        resp = client.get("/api/public-data", headers={"Authorization": "Bearer junk"})
        assert resp.status_code == 200
        assert resp.json()["message"] == "Hello, guest!"


# ── Change password / delete account ──────────────────────────────────────────


class TestAccountAPI:
    def test_change_password(self, client):
        _register(client)
        resp = client.post(
            "/api/change-password",
            json={"oldPassword": "Secret123!", "newPassword": "Better456!"},
        )
        assert resp.status_code == 200
        assert resp.json() == {"message": "Password changed successfully"}

        client.cookies.clear()
        assert _login(client, password="Better456!").status_code == 200
        assert _login(client, password="Secret123!").status_code == 401

    def test_change_password_wrong_old(self, client):
        _register(client)
        resp = client.post(
            "/api/change-password",
            json={"oldPassword": "nope", "newPassword": "Better456!"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"message": "Current password is incorrect"}

    def test_change_password_missing_fields(self, client):
        _register(client)
        resp = client.post("/api/change-password", json={"oldPassword": "Secret123!"})
        assert resp.status_code == 400

    def test_delete_account(self, client, db, store):
        user_id = _register(client).json()["user"]["id"]
        token = client.cookies[AUTH_COOKIE]
        store.append_message(user_id, ChatMessage(sender="user", text="hi", timestamp="t"))

        resp = client.delete("/api/delete-account")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Account deleted successfully"}
        assert db.get(User, user_id) is None
        assert db.query(UserSession).count() == 0
        assert store.get_history(user_id) == []

        client.cookies.clear()
        resp = client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_delete_account_requires_auth(self, client):
        assert client.delete("/api/delete-account").status_code == 401
