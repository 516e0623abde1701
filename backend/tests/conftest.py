"""
Test configuration and fixtures for task tracker tests.

Provides:
- Test database with SQLite in-memory for speed (foreign keys enabled)
- FastAPI test client with database dependency override
- Authentication helpers (JWT token generation)
- Common fixtures and factories for users, projects, and tasks
"""

import os
import sys
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Generator, Dict, Optional

# Must be set before the application modules read them at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base, get_db, enable_sqlite_foreign_keys
from main import app
import models
from auth.identity import Identity
from auth.security import hash_password, create_access_token

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)

# SQLite in-memory database for fast testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

# Hashing is slow by design; hash once and reuse for every fixture user
TEST_PASSWORD = "password123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)

BASE_TIME = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """
    Create a fresh in-memory SQLite database for each test.

    This ensures test isolation and fast execution.
    """
    engine = create_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
        logger.debug("Test database cleaned up")


@pytest.fixture(scope="function")
def client(test_db: Session) -> TestClient:
    """
    Create FastAPI test client with database dependency override.
    """
    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def make_user(db: Session, username: str) -> models.User:
    user = models.User(username=username, password_hash=TEST_PASSWORD_HASH)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_project(db: Session, owner: models.User, name: str = "Launch", **kwargs) -> models.Project:
    project = models.Project(name=name, owner_id=owner.id, **kwargs)
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


def make_task(
    db: Session,
    owner: models.User,
    title: str,
    project: Optional[models.Project] = None,
    created_offset: Optional[int] = None,
    **kwargs
) -> models.Task:
    """
    Insert a task directly.

    created_offset pins created_at to BASE_TIME + N seconds so ordering
    tests do not depend on wall-clock resolution.
    """
    if created_offset is not None:
        kwargs["created_at"] = BASE_TIME + timedelta(seconds=created_offset)
    task = models.Task(
        title=title,
        owner_id=owner.id,
        project_id=project.id if project else None,
        **kwargs
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


@pytest.fixture(scope="function")
def user(test_db: Session) -> models.User:
    return make_user(test_db, "alice")


@pytest.fixture(scope="function")
def other_user(test_db: Session) -> models.User:
    """A second user for isolation scenarios."""
    return make_user(test_db, "bob")


@pytest.fixture(scope="function")
def identity(user: models.User) -> Identity:
    return Identity(user_id=user.id, username=user.username)


@pytest.fixture(scope="function")
def other_identity(other_user: models.User) -> Identity:
    return Identity(user_id=other_user.id, username=other_user.username)


def create_auth_token(user: models.User, expires_delta: timedelta = None) -> str:
    """
    Helper to create JWT access token for a user.

    Args:
        user: User to create token for
        expires_delta: Optional expiration time override (negative = already expired)

    Returns:
        JWT access token string
    """
    return create_access_token({"sub": str(user.id), "username": user.username}, expires_delta)


@pytest.fixture(scope="function")
def auth_headers(user: models.User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_auth_token(user)}"}


@pytest.fixture(scope="function")
def other_auth_headers(other_user: models.User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_auth_token(other_user)}"}


@pytest.fixture(scope="function")
def project(test_db: Session, user: models.User) -> models.Project:
    return make_project(test_db, user, "Launch")


@pytest.fixture(scope="function")
def other_project(test_db: Session, other_user: models.User) -> models.Project:
    return make_project(test_db, other_user, "Bob's Project", color="#ff0000")


@pytest.fixture(scope="function")
def other_task(test_db: Session, other_user: models.User, other_project: models.Project) -> models.Task:
    return make_task(test_db, other_user, "Bob's Task", other_project, due_date=date(2025, 3, 1))
