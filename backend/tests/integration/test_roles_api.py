"""Integration tests for the role and permission API

Tests cover:
- Listing roles with user and permission counts
- Creating, updating and deleting roles
- Default role handling
- Grouped permission catalogue
"""

from uuid import uuid4

import pytest

from models.audit_log import AuditLog
from models.role import Permission, Role


pytestmark = pytest.mark.integration


def _permission_ids(db_session, *names):
    return [str(p.id) for p in db_session.query(Permission).filter(Permission.name.in_(names)).all()]


@pytest.fixture
def archivist(admin_client, db_session):
    response = admin_client.post("/api/v1/roles", json={
        "name": "Archivist",
        "description": "Keeps the archive tidy",
        "permission_ids": _permission_ids(db_session, "view publications", "delete publications"),
    })
    assert response.status_code == 201
    return response.json()


class TestListRoles:

    def test_builtin_roles(self, admin_client, librarian_user, regular_user):
        response = admin_client.get("/api/v1/roles")

        assert response.status_code == 200
        roles = {role["slug"]: role for role in response.json()["roles"]}
        assert set(roles) == {"admin", "librarian", "user"}
        assert roles["admin"]["name"] == "Administrator"
        assert roles["user"]["is_default"] is True
        assert roles["librarian"]["users_count"] == 1
        assert roles["librarian"]["permissions_count"] == 5

    def test_requires_view_roles(self, librarian_client, user_client):
        assert librarian_client.get("/api/v1/roles").status_code == 403
        assert user_client.get("/api/v1/roles").status_code == 403


class TestCreateRole:

    def test_create(self, archivist, db_session):
        assert archivist["slug"] == "archivist"
        assert archivist["permissions_count"] == 2
        assert {p["name"] for p in archivist["permissions"]} == {"view publications", "delete publications"}
        assert db_session.query(AuditLog).filter(AuditLog.action == "ROLE_CREATED").count() == 1

    def test_duplicate_name(self, archivist, admin_client):
        response = admin_client.post("/api/v1/roles", json={"name": "archivist"})

        assert response.status_code == 409

    def test_unknown_permission(self, admin_client):
        response = admin_client.post("/api/v1/roles", json={"name": "Curator", "permission_ids": [str(uuid4())]})

        assert response.status_code == 422

    def test_name_without_letters(self, admin_client):
        response = admin_client.post("/api/v1/roles", json={"name": "!!!"})

        assert response.status_code == 422

    def test_new_default_replaces_old(self, admin_client, db_session):
        response = admin_client.post("/api/v1/roles", json={"name": "Visitor", "is_default": True})

        assert response.status_code == 201
        defaults = db_session.query(Role).filter(Role.is_default.is_(True)).all()
        assert [role.slug for role in defaults] == ["visitor"]


class TestUpdateAndDeleteRole:

    def test_replace_permissions(self, archivist, admin_client, db_session):
        response = admin_client.patch(f"/api/v1/roles/{archivist['id']}", json={
            "name": "Senior Archivist",
            "permission_ids": _permission_ids(db_session, "view publications"),
        })

        assert response.status_code == 200
        body = response.json()
        assert body["slug"] == "senior-archivist"
        assert body["permissions_count"] == 1
        entry = db_session.query(AuditLog).filter(AuditLog.action == "ROLE_UPDATED").one()
        assert entry.metadata_json["permissions"]["new"] == ["view publications"]

    def test_granted_permissions_take_effect(self, archivist, admin_client, make_user, client_for):
        holder = make_user("archivist", "archivist@example.com")
        archivist_client = client_for(holder)

        assert archivist_client.get("/api/v1/publications/deleted").status_code == 200
        assert archivist_client.get("/api/v1/users").status_code == 403

    def test_delete_unused_role(self, archivist, admin_client, db_session):
        response = admin_client.delete(f"/api/v1/roles/{archivist['id']}")

        assert response.status_code == 204
        assert db_session.query(Role).filter(Role.slug == "archivist").first() is None

    def test_cannot_delete_role_in_use(self, admin_client, librarian_user):
        role_id = librarian_user.role_id

        response = admin_client.delete(f"/api/v1/roles/{role_id}")

        assert response.status_code == 409

    def test_cannot_delete_default_role(self, admin_client, db_session):
        role = db_session.query(Role).filter(Role.slug == "user").one()

        assert admin_client.delete(f"/api/v1/roles/{role.id}").status_code == 409

    def test_unknown_role(self, admin_client):
        assert admin_client.get(f"/api/v1/roles/{uuid4()}").status_code == 404


class TestPermissions:

    def test_grouped_catalogue(self, admin_client):
        response = admin_client.get("/api/v1/permissions")

        assert response.status_code == 200
        body = response.json()
        assert set(body["groups"]) >= {"user_management", "role_management", "publication_management"}
        names = {p["name"] for p in body["groups"]["publication_management"]}
        assert names == {"view publications", "create publications", "edit publications", "delete publications"}
        assert body["stats"]["total_roles"] == 3
        assert body["stats"]["total_permissions"] == 14
