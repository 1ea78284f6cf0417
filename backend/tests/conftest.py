"""
Pytest configuration and fixtures for backend tests.
"""

import os
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment variables before importing config
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["ENVIRONMENT"] = "test"
os.environ["CORS_ORIGINS"] = '["http://localhost:3000"]'
os.environ["STORAGE_BACKEND"] = "local"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="osyris-uploads-")
os.environ["UPLOAD_BASE_URL"] = "http://testserver/uploads"
# libmagic is not guaranteed on CI machines; sniffing is tested with mocks
os.environ["UPLOAD_SNIFF_CONTENT"] = "false"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from authentication.auth import create_access_token, get_password_hash  # noqa: E402
from models.notification_types import UserRole  # noqa: E402
from repositories.database import Base, get_db  # noqa: E402
import repositories.db_models as db_models  # noqa: E402
from services.storage import LocalStorageBackend  # noqa: E402

# Test database engine (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# bcrypt is slow; every fixture user shares one hash
_PASSWORD_HASH = get_password_hash("testpassword123")


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh in-memory database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session."""
    return db_session


@pytest.fixture
def storage(tmp_path) -> LocalStorageBackend:
    """Local storage backend rooted in a per-test directory."""
    return LocalStorageBackend(tmp_path / "uploads", "http://testserver/uploads")


@pytest.fixture(scope="function")
def client(db_session, storage):
    """Create a test client with overridden database and storage."""
    from main import app
    from helpers.rate_limiter import limiter

    # Reset rate limiter storage before each test to prevent rate limit errors
    limiter.reset()

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    original_storage = app.state.storage
    app.state.storage = storage
    with TestClient(app) as test_client:
        yield test_client
    app.state.storage = original_storage
    app.dependency_overrides.clear()


def _make_user(
    db_session,
    email: str,
    first_name: str,
    role: UserRole,
    section: str | None = None,
    is_active: bool = True,
) -> db_models.User:
    user = db_models.User(
        email=email,
        first_name=first_name,
        last_name="Test",
        hashed_password=_PASSWORD_HASH,
        role=role,
        section=section,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def make_user(db_session):
    """Factory for extra users: make_user(email, role=..., section=...)."""

    def factory(
        email: str,
        role: UserRole = UserRole.FAMILY,
        section: str | None = None,
        first_name: str = "Extra",
        is_active: bool = True,
    ) -> db_models.User:
        return _make_user(db_session, email, first_name, role, section, is_active)

    return factory


@pytest.fixture
def family_user(db_session) -> db_models.User:
    """Family member linked to ``scout``."""
    return _make_user(db_session, "familia@example.com", "Marta", UserRole.FAMILY)


@pytest.fixture
def other_family_user(db_session) -> db_models.User:
    """Family member of another scout in the same section."""
    return _make_user(db_session, "otra@example.com", "Jorge", UserRole.FAMILY)


@pytest.fixture
def monitor_user(db_session) -> db_models.User:
    """Monitor in charge of the 'manada' section."""
    return _make_user(
        db_session, "monitor@example.com", "Lucia", UserRole.MONITOR, "manada"
    )


@pytest.fixture
def admin_user(db_session) -> db_models.User:
    """Group admin."""
    return _make_user(db_session, "admin@example.com", "Pablo", UserRole.ADMIN)


@pytest.fixture
def scout(db_session, family_user) -> db_models.Scout:
    """Active scout in 'manada' linked to ``family_user``."""
    scout = db_models.Scout(first_name="Hugo", last_name="Test", section="manada")
    db_session.add(scout)
    db_session.flush()
    db_session.execute(
        db_models.family_scouts.insert().values(
            user_id=family_user.id, scout_id=scout.id
        )
    )
    db_session.commit()
    db_session.refresh(scout)
    return scout


@pytest.fixture
def other_scout(db_session, other_family_user) -> db_models.Scout:
    """Second 'manada' scout linked to ``other_family_user``."""
    scout = db_models.Scout(first_name="Alba", last_name="Test", section="manada")
    db_session.add(scout)
    db_session.flush()
    db_session.execute(
        db_models.family_scouts.insert().values(
            user_id=other_family_user.id, scout_id=scout.id
        )
    )
    db_session.commit()
    db_session.refresh(scout)
    return scout


def _headers_for(user: db_models.User) -> dict:
    token = create_access_token(data={"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(family_user) -> dict:
    """Get authentication headers for the family member."""
    return _headers_for(family_user)


@pytest.fixture
def monitor_headers(monitor_user) -> dict:
    return _headers_for(monitor_user)


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return _headers_for(admin_user)


@pytest.fixture
def other_family_headers(other_family_user) -> dict:
    return _headers_for(other_family_user)


@pytest.fixture
def make_notification(db_session):
    """Factory persisting a FamilyNotification with sensible defaults."""
    from models.notification_types import (
        NotificationKind,
        NotificationPriority,
        NotificationState,
    )

    def factory(
        family_member: db_models.User,
        title: str = "Reunión de padres",
        scout: db_models.Scout | None = None,
        kind: NotificationKind = NotificationKind.INFORMATIVE,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        state: NotificationState = NotificationState.UNREAD,
        **fields,
    ) -> db_models.FamilyNotification:
        notification = db_models.FamilyNotification(
            family_member_id=family_member.id,
            scout_id=scout.id if scout is not None else None,
            title=title,
            message=fields.pop("message", "Mensaje de prueba"),
            kind=kind,
            priority=priority,
            priority_rank=priority.rank,
            state=state,
            **fields,
        )
        db_session.add(notification)
        db_session.commit()
        db_session.refresh(notification)
        return notification

    return factory
