"""Pytest fixtures for the publication library backend.

Provides reusable test fixtures for:
- Database session on an in-memory SQLite database (fresh schema per test)
- Seeded permission catalogue and built-in roles
- Test users with different roles (admin, librarian, user)
- Local blob storage rooted in a temporary directory
- Authenticated test clients with JWT tokens

Usage:
    def test_admin_endpoint(admin_client, admin_user):
        response = admin_client.get("/api/v1/users")
        assert response.status_code == 200
"""

import os
import sys
from pathlib import Path
from typing import Callable, Generator, Optional

# Set environment variables BEFORE any application imports so that the
# cached Settings pick them up
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("PASSWORD_PEPPER", "test-pepper-for-unit-tests")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from app_settings.store import settings_store  # noqa: E402
from auth.jwt import create_access_token  # noqa: E402
from auth.password import hash_password  # noqa: E402
from config import Settings, get_settings  # noqa: E402
from database import get_db as database_get_db  # noqa: E402
from infrastructure.storage import LocalStorageAdapter, get_storage  # noqa: E402
from models import Base, Role, User  # noqa: E402
from roles.seed import seed_roles_and_permissions  # noqa: E402


# One shared in-memory connection so that every session sees the same data
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"

DEFAULT_PASSWORD = "Library-Pass-123"


@pytest.fixture(autouse=True)
def reset_settings_store():
    """The settings store is process-wide; start every test from the defaults."""
    settings_store.clear()
    yield
    settings_store.clear()


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables and seeds the built-in roles before the test and
    drops everything after it.
    """
    Base.metadata.create_all(bind=test_engine)

    session = TestingSessionLocal()
    seed_roles_and_permissions(session)
    session.commit()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with strict approval (no degraded mode)."""
    return Settings(ALLOW_DEGRADED_APPROVAL=False)


@pytest.fixture
def storage(tmp_path) -> LocalStorageAdapter:
    return LocalStorageAdapter(str(tmp_path / "storage"), base_url="/storage")


@pytest.fixture
def pdf_bytes() -> bytes:
    return PDF_BYTES


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory creating an ACTIVE user holding the given role slug."""

    def _make_user(
        role_slug: str,
        email: str,
        name: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        status: str = "ACTIVE",
    ) -> User:
        role = db_session.query(Role).filter(Role.slug == role_slug).one()
        user = User(
            email=email,
            name=name or email.split("@")[0].title(),
            role_id=role.id,
            password_hash=hash_password(password),
            status=status,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture(scope="function")
def admin_user(make_user) -> User:
    """Create an administrator (wildcard permission)."""
    return make_user("admin", "admin@example.com", name="Admin User")


@pytest.fixture(scope="function")
def librarian_user(make_user) -> User:
    """Create a librarian (reviewer without admin rights)."""
    return make_user("librarian", "librarian@example.com", name="Libby Librarian")


@pytest.fixture(scope="function")
def regular_user(make_user) -> User:
    """Create a user holding the default role (browse and submit only)."""
    return make_user("user", "reader@example.com", name="Regular Reader")


@pytest.fixture(scope="function")
def app(db_session: Session, storage: LocalStorageAdapter, test_settings: Settings):
    """FastAPI app wired to the test database, storage and settings."""
    from main import app as fastapi_app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    fastapi_app.dependency_overrides[database_get_db] = override_get_db
    fastapi_app.dependency_overrides[get_storage] = lambda: storage
    fastapi_app.dependency_overrides[get_settings] = lambda: test_settings

    yield fastapi_app

    fastapi_app.dependency_overrides.clear()


def _client_for(app, user: Optional[User]) -> TestClient:
    client = TestClient(app)
    if user is not None:
        token = create_access_token(user_id=user.id, role=user.role.slug, email=user.email)
        client.headers = {"Authorization": f"Bearer {token}"}
    return client


@pytest.fixture(scope="function")
def client(app) -> TestClient:
    """Create an unauthenticated test client.

    Useful for testing public endpoints and the login flow.
    """
    return _client_for(app, None)


@pytest.fixture(scope="function")
def admin_client(app, admin_user: User) -> TestClient:
    """Create a test client authenticated as the administrator."""
    return _client_for(app, admin_user)


@pytest.fixture(scope="function")
def librarian_client(app, librarian_user: User) -> TestClient:
    """Create a test client authenticated as the librarian."""
    return _client_for(app, librarian_user)


@pytest.fixture(scope="function")
def user_client(app, regular_user: User) -> TestClient:
    """Create a test client authenticated as a regular user."""
    return _client_for(app, regular_user)


@pytest.fixture
def client_for(app) -> Callable[[User], TestClient]:
    """Factory for clients authenticated as an arbitrary user."""
    return lambda user: _client_for(app, user)


@pytest.fixture
def upload_file(pdf_bytes: bytes):
    """POST a PDF to an upload endpoint.

    Usage:
        response = upload_file(user_client, "report-2024-03-15.pdf")
    """

    def _upload(
        client: TestClient,
        filename: str,
        content: Optional[bytes] = None,
        endpoint: str = "/api/v1/publications/submissions",
        content_type: str = "application/pdf",
        **form,
    ):
        files = {"file": (filename, content if content is not None else pdf_bytes, content_type)}
        return client.post(endpoint, files=files, data=form)

    return _upload
