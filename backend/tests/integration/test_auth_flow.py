"""Integration tests for the authentication flow

Tests the login flow end to end:
- Login with valid and invalid credentials
- Disabled accounts
- Token use on /auth/me with effective permissions
- Audit events for successful and failed logins
"""

import pytest

from auth.jwt import decode_token
from conftest import DEFAULT_PASSWORD
from models.audit_log import AuditLog


pytestmark = pytest.mark.integration


class TestLogin:

    def test_login_success(self, client, regular_user, db_session):
        response = client.post("/api/v1/auth/login", json={
            "email": regular_user.email,
            "password": DEFAULT_PASSWORD,
        })

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["expires_in"] == 3600

        payload = decode_token(body["access_token"])
        assert payload["sub"] == str(regular_user.id)
        assert payload["role"] == "user"

        db_session.refresh(regular_user)
        assert regular_user.last_login_at is not None
        assert db_session.query(AuditLog).filter(AuditLog.action == "LOGIN_SUCCESS").count() == 1

    def test_email_is_case_insensitive(self, client, regular_user):
        response = client.post("/api/v1/auth/login", json={
            "email": "READER@example.com",
            "password": DEFAULT_PASSWORD,
        })

        assert response.status_code == 200

    def test_wrong_password(self, client, regular_user, db_session):
        response = client.post("/api/v1/auth/login", json={
            "email": regular_user.email,
            "password": "not the password",
        })

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"
        entry = db_session.query(AuditLog).filter(AuditLog.action == "LOGIN_FAILED").one()
        assert entry.metadata_json["reason"] == "invalid_credentials"

    def test_unknown_email_gets_same_message(self, client):
        response = client.post("/api/v1/auth/login", json={
            "email": "nobody@example.com",
            "password": DEFAULT_PASSWORD,
        })

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_disabled_account(self, client, make_user, db_session):
        user = make_user("user", "former@example.com", status="DISABLED")

        response = client.post("/api/v1/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD})

        assert response.status_code == 401
        entry = db_session.query(AuditLog).filter(AuditLog.action == "LOGIN_FAILED").one()
        assert entry.metadata_json["reason"] == "account_disabled"


class TestMe:

    def test_token_from_login_works(self, client, librarian_user):
        token = client.post("/api/v1/auth/login", json={
            "email": librarian_user.email,
            "password": DEFAULT_PASSWORD,
        }).json()["access_token"]

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        body = response.json()
        assert body["email"] == librarian_user.email
        assert body["role"] == "librarian"
        assert body["roles"] == ["librarian"]
        assert body["is_reviewer"] is True
        assert body["is_admin"] is False
        assert "edit publications" in body["permissions"]
        assert "manage settings" not in body["permissions"]

    def test_admin_profile(self, admin_client):
        body = admin_client.get("/api/v1/auth/me").json()

        assert body["is_admin"] is True
        assert body["is_reviewer"] is True

    def test_regular_user_profile(self, user_client):
        body = user_client.get("/api/v1/auth/me").json()

        assert body["is_admin"] is False
        assert body["is_reviewer"] is False
        assert body["permissions"] == ["create publications", "view publications"]
