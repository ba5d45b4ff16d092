"""
Tests for operator authentication: session tokens, login/logout routes,
and the admin_required dependency.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from security.admin_auth import (
    COOKIE_NAME,
    create_session_token,
    verify_admin_credentials,
    verify_session_token,
)

SECRET = "test-cookie-secret"


@pytest.fixture(autouse=True)
def admin_env(monkeypatch):
    monkeypatch.setenv("COOKIE_SECRET", SECRET)
    monkeypatch.setenv("ADMIN_USERNAME", "operator")
    monkeypatch.setenv("ADMIN_PASSWORD", "correct-horse")
    monkeypatch.delenv("ORBITJOBS_ENV", raising=False)


def _cookie_header(token):
    return {"Cookie": f"{COOKIE_NAME}={token}"}


class TestSessionToken:
    def test_round_trip_returns_username(self):
        token = create_session_token("operator", SECRET)
        assert verify_session_token(token, SECRET) == "operator"

    def test_wrong_secret_rejected(self):
        token = create_session_token("operator", SECRET)
        assert verify_session_token(token, "other-secret") is None

    def test_expired_token_rejected(self):
        issued = datetime.now(timezone.utc) - timedelta(hours=9)
        token = create_session_token("operator", SECRET, now=issued)
        assert verify_session_token(token, SECRET) is None

    def test_tampered_username_rejected(self):
        _, expiry, signature = create_session_token("operator", SECRET).split("|")
        assert verify_session_token(f"intruder|{expiry}|{signature}", SECRET) is None

    def test_malformed_token(self):
        assert verify_session_token("garbage", SECRET) is None
        assert verify_session_token("a|not-a-number|sig", SECRET) is None

    def test_extra_field_rejected(self):
        token = create_session_token("op|erator", SECRET)
        assert token.count("|") == 3
        assert verify_session_token(token, SECRET) is None

    def test_signature_covers_username_and_expiry(self):
        username, expiry, signature = create_session_token("operator", SECRET).split("|")
        later = str(int(expiry) + 3600)
        assert verify_session_token(f"{username}|{later}|{signature}", SECRET) is None


class TestVerifyCredentials:
    def test_password_only(self):
        assert verify_admin_credentials("correct-horse") is True
        assert verify_admin_credentials("wrong") is False

    def test_username_must_match_when_given(self):
        assert verify_admin_credentials("correct-horse", "operator") is True
        assert verify_admin_credentials("correct-horse", "someone") is False

    def test_no_password_configured(self, monkeypatch):
        monkeypatch.delenv("ADMIN_PASSWORD")
        assert verify_admin_credentials("anything") is False


class TestAuthRoutes:
    def test_login_sets_httponly_cookie(self, client):
        with patch("app.admin_auth_routes.log_login") as log_login:
            response = client.post("/api/admin/login", json={"password": "correct-horse"})

        assert response.status_code == 200
        assert response.json() == {"authenticated": True, "username": "operator"}
        set_cookie = response.headers["set-cookie"]
        assert COOKIE_NAME in set_cookie
        assert "HttpOnly" in set_cookie
        log_login.assert_called_once()
        assert log_login.call_args[0][0] == "operator"

    def test_login_bad_password(self, client):
        with patch("app.admin_auth_routes.log_login") as log_login:
            response = client.post("/api/admin/login", json={"password": "nope"})

        assert response.status_code == 401
        log_login.assert_not_called()

    def test_login_not_configured(self, client, monkeypatch):
        monkeypatch.delenv("ADMIN_PASSWORD")
        response = client.post("/api/admin/login", json={"password": "x"})
        assert response.status_code == 503

    def test_login_without_cookie_secret(self, client, monkeypatch):
        monkeypatch.delenv("COOKIE_SECRET")
        response = client.post("/api/admin/login", json={"password": "correct-horse"})
        assert response.status_code == 500

    def test_session_with_valid_cookie(self, client):
        token = create_session_token("operator", SECRET)
        response = client.get("/api/admin/session", headers=_cookie_header(token))
        assert response.json() == {"authenticated": True, "username": "operator"}

    def test_session_without_cookie(self, client):
        response = client.get("/api/admin/session")
        assert response.json() == {"authenticated": False, "username": None}

    def test_logout_logs_activity(self, client):
        token = create_session_token("operator", SECRET)
        with patch("app.admin_auth_routes.log_logout") as log_logout:
            response = client.post("/api/admin/logout", headers=_cookie_header(token))

        assert response.status_code == 200
        assert response.json() == {"authenticated": False}
        log_logout.assert_called_once_with("operator")

    def test_protected_route_requires_session(self, client):
        assert client.get("/api/ai/models").status_code == 401

    def test_protected_route_with_session(self, client):
        token = create_session_token("operator", SECRET)
        response = client.get("/api/ai/models", headers=_cookie_header(token))
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_dev_bypass_header(self, client, monkeypatch):
        monkeypatch.setenv("ORBITJOBS_ENV", "dev")
        response = client.get("/api/admin/session", headers={"X-Dev-Bypass": "1"})
        assert response.json()["username"] == "operator"

    def test_dev_bypass_ignored_in_production(self, client):
        response = client.get("/api/admin/session", headers={"X-Dev-Bypass": "1"})
        assert response.json()["authenticated"] is False
