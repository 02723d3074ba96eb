"""Integration tests for the application settings API"""

import pytest

from app_settings.store import settings_store
from models.app_setting import AppSetting
from models.audit_log import AuditLog


pytestmark = pytest.mark.integration


class TestSettingsAPI:

    def test_get_defaults(self, admin_client):
        response = admin_client.get("/api/v1/settings")

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"app_name", "app_url", "timezone", "locale", "mail_from_name", "mail_from_address"}

    def test_update(self, admin_client, db_session):
        response = admin_client.put("/api/v1/settings", json={
            "app_name": "Town Archive",
            "timezone": "Europe/Vienna",
            "mail_from_address": "archive@example.com",
        })

        assert response.status_code == 200
        body = response.json()
        assert body["app_name"] == "Town Archive"
        assert body["timezone"] == "Europe/Vienna"
        assert admin_client.get("/api/v1/settings").json()["app_name"] == "Town Archive"

        entry = db_session.query(AuditLog).filter(AuditLog.action == "SETTINGS_UPDATED").one()
        assert entry.metadata_json["app_name"]["new"] == "Town Archive"

    def test_invalid_value_writes_nothing(self, admin_client, db_session):
        response = admin_client.put("/api/v1/settings", json={
            "app_name": "Town Archive",
            "timezone": "Atlantis/Capital",
        })

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert [error["field"] for error in body["details"]["errors"]] == ["timezone"]
        assert db_session.query(AppSetting).count() == 0

    def test_unknown_key_is_rejected(self, admin_client):
        response = admin_client.put("/api/v1/settings", json={"theme": "dark"})

        assert response.status_code == 422

    def test_reload_picks_up_database_edits(self, admin_client, db_session):
        admin_client.put("/api/v1/settings", json={"app_name": "Before"})
        row = db_session.query(AppSetting).filter(AppSetting.key == "app_name").one()
        row.value = "After"
        db_session.commit()

        assert admin_client.get("/api/v1/settings").json()["app_name"] == "Before"

        response = admin_client.post("/api/v1/settings/reload")
        assert response.status_code == 200
        assert response.json()["app_name"] == "After"
        assert settings_store.current().app_name == "After"

    def test_requires_manage_settings(self, librarian_client, user_client):
        assert librarian_client.get("/api/v1/settings").status_code == 403
        assert user_client.put("/api/v1/settings", json={"app_name": "Mine"}).status_code == 403
