import os

import pytest

# Configure the environment before importing application modules
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from cargomail.auth import create_access_token  # noqa: E402
from cargomail.config import settings  # noqa: E402
from cargomail.database import Base, get_db, make_engine, make_sessionmaker  # noqa: E402
from cargomail.main import app  # noqa: E402
from cargomail.models import AuthenticatedUser  # noqa: E402
from cargomail.services.user_service import UserService  # noqa: E402

# In-memory SQLite shared by every session of a test
test_engine = make_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = make_sessionmaker(test_engine)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=test_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(autouse=True)
def blob_storage(tmp_path, monkeypatch):
    path = tmp_path / "blobs"
    monkeypatch.setattr(settings, "BLOB_STORAGE_PATH", str(path))
    return path


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def user(db_session):
    return UserService(db_session).register(
        username="alice", email="alice@example.com", password="secret", full_name="Alice"
    )


@pytest.fixture
def other_user(db_session):
    return UserService(db_session).register(
        username="bob", email="bob@example.com", password="secret"
    )


@pytest.fixture
def as_device(user):
    """Authenticated caller for ``user`` on the given device."""

    def _as_device(device_id="D1"):
        return AuthenticatedUser(
            user_id=user.id, username=user.username, device_id=device_id
        )

    return _as_device


@pytest.fixture
def auth_headers(user):
    def _auth_headers(device_id="D1", username=None):
        token = create_access_token(username or user.username, device_id)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
