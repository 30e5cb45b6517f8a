"""Pytest configuration and fixtures."""

import os
import tempfile
from pathlib import Path

TEST_DB_PATH = Path(tempfile.mkdtemp(prefix="feedboard-db-")) / "test.db"
SQLALCHEMY_DATABASE_URL = f"sqlite:///{TEST_DB_PATH}"

# Settings are cached on first import, so test overrides must come first
os.environ.setdefault("DATABASE_URL", SQLALCHEMY_DATABASE_URL)
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("IMAGES_DIR", tempfile.mkdtemp(prefix="feedboard-images-"))
os.environ.setdefault("MAX_IMAGE_BYTES", "4096")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from feedboard import models  # noqa: E402, F401
from feedboard.database import Base, get_db  # noqa: E402
from feedboard.main import app  # noqa: E402
from feedboard.services.auth import create_user  # noqa: E402
from feedboard.services.context import SessionContext  # noqa: E402
from feedboard.services.feed_service import FeedService  # noqa: E402
from feedboard.services.images import ImageStore  # noqa: E402
from feedboard.services.store import DocumentStore  # noqa: E402


class AuthHeaders(dict):
    """Dict subclass that also stores user_id and email."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client, email: str, password: str = "testpass123", name: str = "Test User"):
    """Register a user through the API and return auth headers for it."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": password, "name": name},
    )
    assert response.status_code == 201
    data = response.json()
    return AuthHeaders(
        {"Authorization": f"Bearer {data['access_token']}"},
        user_id=data["user"]["id"],
        email=email,
    )


@pytest.fixture
def register_user(client):
    """Factory fixture: register a user and get its auth headers."""

    def _register(email: str, password: str = "testpass123", name: str = "Test User"):
        return register(client, email, password, name)

    return _register


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    return register(client, "test@example.com")


@pytest.fixture
def other_auth_headers(client):
    """A second user, for ownership checks."""
    return register(client, "other@example.com", name="Other User")


# --- Service-level fixtures ---


@pytest.fixture
def store(db):
    return DocumentStore(db)


@pytest.fixture
def image_store(tmp_path):
    return ImageStore(tmp_path / "images", max_bytes=1024)


@pytest.fixture
def feed_service(store, image_store):
    return FeedService(store, image_store, posts_per_page=2)


@pytest.fixture
def user(store):
    return create_user(store, "author@example.com", "secret123", "Author")


@pytest.fixture
def other_user(store):
    return create_user(store, "reader@example.com", "secret123", "Reader")


@pytest.fixture
def ctx(user):
    return SessionContext(user_id=str(user.id), email=user.email)


@pytest.fixture
def other_ctx(other_user):
    return SessionContext(user_id=str(other_user.id), email=other_user.email)
