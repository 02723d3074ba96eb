"""Security tests for privilege escalation, path traversal and SQL injection

Tests cover:
- Role-based access to every administrative surface
- Uploads whose filename tries to escape the storage area
- Injection payloads in search parameters
"""

import pytest

from models.pending_submission import PendingSubmission
from models.publication import Publication
from models.user import User


pytestmark = pytest.mark.security


class TestPrivilegeMatrix:
    """Each role reaches exactly the surfaces its permissions allow"""

    @pytest.mark.parametrize("client_name,method,endpoint,expected", [
        ("user_client", "GET", "/api/v1/publications", 200),
        ("user_client", "GET", "/api/v1/verification/pending", 403),
        ("user_client", "GET", "/api/v1/verification/history", 403),
        ("user_client", "GET", "/api/v1/publications/deleted", 403),
        ("user_client", "GET", "/api/v1/users", 403),
        ("user_client", "GET", "/api/v1/roles", 403),
        ("user_client", "GET", "/api/v1/settings", 403),
        ("user_client", "GET", "/api/v1/audit", 403),
        ("librarian_client", "GET", "/api/v1/verification/pending", 200),
        ("librarian_client", "GET", "/api/v1/publications/deleted", 200),
        ("librarian_client", "GET", "/api/v1/users", 200),
        ("librarian_client", "GET", "/api/v1/roles", 403),
        ("librarian_client", "GET", "/api/v1/permissions", 403),
        ("librarian_client", "GET", "/api/v1/settings", 403),
        ("librarian_client", "POST", "/api/v1/settings/reload", 403),
        ("admin_client", "GET", "/api/v1/roles", 200),
        ("admin_client", "GET", "/api/v1/permissions", 200),
        ("admin_client", "GET", "/api/v1/settings", 200),
        ("admin_client", "GET", "/api/v1/audit", 200),
    ])
    def test_access(self, request, client_name, method, endpoint, expected):
        client = request.getfixturevalue(client_name)

        assert client.request(method, endpoint).status_code == expected

    def test_regular_user_cannot_promote_self(self, user_client, regular_user, db_session):
        response = user_client.patch(f"/api/v1/users/{regular_user.id}", json={"role": "admin"})

        assert response.status_code == 403
        db_session.refresh(regular_user)
        assert regular_user.role.slug == "user"

    def test_regular_user_cannot_change_own_status(self, make_user, client_for):
        """A user cannot change their own status without 'edit users'"""
        user = make_user("user", "someone@example.com")
        client = client_for(user)

        response = client.patch(f"/api/v1/users/{user.id}", json={"status": "DISABLED"})

        assert response.status_code == 403

    def test_librarian_cannot_delete_admin(self, make_user, client_for, admin_user, db_session):
        """Even with 'delete users', only administrators remove administrators"""
        from models.role import Permission, Role

        role = db_session.query(Role).filter(Role.slug == "librarian").one()
        role.permissions.append(db_session.query(Permission).filter(Permission.name == "delete users").one())
        db_session.commit()
        librarian = make_user("librarian", "senior.librarian@example.com")

        response = client_for(librarian).delete(f"/api/v1/users/{admin_user.id}")

        assert response.status_code == 403
        assert db_session.get(User, admin_user.id) is not None


class TestPathTraversal:
    """Upload filenames are never used to escape the storage area"""

    @pytest.mark.parametrize("filename", [
        "../../etc/passwd-2024-01-01.pdf",
        "..\\..\\windows\\report-2024-01-01.pdf",
        "reports/../../report-2024-01-01.pdf",
        "report..-2024-01-01.pdf",
    ])
    def test_traversal_filename_is_rejected(self, user_client, upload_file, storage, db_session, tmp_path, filename):
        response = upload_file(user_client, filename)

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"
        assert db_session.query(PendingSubmission).count() == 0
        assert [p for p in tmp_path.rglob("*") if p.is_file()] == []

    def test_direct_upload_traversal(self, librarian_client, upload_file, db_session):
        response = upload_file(
            librarian_client, "../publications/evil-2024-01-01.pdf", endpoint="/api/v1/publications/upload"
        )

        assert response.status_code == 422
        assert db_session.query(Publication).count() == 0

    def test_check_endpoint_with_traversal(self, user_client):
        response = user_client.get("/api/v1/publications/check/..%2F..%2Fetc%2Fpasswd")

        assert response.status_code in (200, 404)
        if response.status_code == 200:
            assert response.json()["exists"] is False


class TestSqlInjection:
    """Search parameters are bound, never interpolated"""

    PAYLOADS = [
        "' OR '1'='1",
        "'; DROP TABLE publication; --",
        "\" OR 1=1 --",
        "%' UNION SELECT password_hash FROM \"user\" --",
    ]

    @pytest.mark.parametrize("payload", PAYLOADS)
    def test_publication_search(self, librarian_client, upload_file, db_session, payload):
        upload_file(librarian_client, "gazette-2024-01-09.pdf", endpoint="/api/v1/publications/upload")

        response = librarian_client.get("/api/v1/publications", params={"search": payload})

        assert response.status_code == 200
        assert response.json()["total"] == 0
        assert db_session.query(Publication).count() == 1

    @pytest.mark.parametrize("payload", PAYLOADS)
    def test_pending_search(self, librarian_client, payload):
        response = librarian_client.get("/api/v1/verification/pending", params={"search": payload})

        assert response.status_code == 200
        assert response.json()["total"] == 0

    @pytest.mark.parametrize("payload", PAYLOADS)
    def test_user_search(self, admin_client, db_session, payload):
        response = admin_client.get("/api/v1/users", params={"search": payload})

        assert response.status_code == 200
        assert response.json()["total"] == 0
        assert db_session.query(User).count() == 1

    def test_injection_in_audit_filter(self, admin_client):
        response = admin_client.get("/api/v1/audit", params={"action": "LOGIN_SUCCESS' OR '1'='1"})

        assert response.status_code == 200
        assert response.json()["total"] == 0

    def test_injection_in_path_parameter(self, admin_client):
        response = admin_client.get("/api/v1/publications/1 OR 1=1")

        assert response.status_code == 422
