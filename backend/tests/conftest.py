"""
Test configuration and fixtures for project tracker tests.

Provides:
- Test database with SQLite in-memory for speed
- FastAPI test client with database dependency override
- Authentication helpers (JWT token generation)
- Common fixtures for users, projects, and tasks
"""

import os
import sys
import logging
from datetime import timedelta
from typing import Generator, Dict

# Must be set before the application modules read them at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base, get_db
from main import app
import models
from auth.security import hash_password, create_access_token

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)

# SQLite in-memory database for fast testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_PASSWORD = "123456"


@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """
    Create a fresh in-memory SQLite database for each test.

    This ensures test isolation and fast execution.
    """
    logger.debug("Creating test database")

    engine = create_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

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


def make_user(db: Session, first_name: str, last_name: str, email: str) -> models.User:
    user = models.User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created user {email} with ID: {user.id}")
    return user


@pytest.fixture(scope="function")
def alice(test_db: Session) -> models.User:
    return make_user(test_db, "Alice", "Anders", "alice@test.com")


@pytest.fixture(scope="function")
def bob(test_db: Session) -> models.User:
    return make_user(test_db, "Bob", "Baker", "bob@test.com")


@pytest.fixture(scope="function")
def carol(test_db: Session) -> models.User:
    return make_user(test_db, "Carol", "Chen", "carol@test.com")


def create_auth_token(user: models.User, expires_delta: timedelta = None) -> str:
    """
    Helper to create JWT access token for a user.

    Args:
        user: User to create token for
        expires_delta: Optional expiration time override

    Returns:
        JWT access token string
    """
    return create_access_token(user.id, expires_delta)


def auth_header(user: models.User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_auth_token(user)}"}


@pytest.fixture(scope="function")
def alice_headers(alice: models.User) -> Dict[str, str]:
    return auth_header(alice)


@pytest.fixture(scope="function")
def bob_headers(bob: models.User) -> Dict[str, str]:
    return auth_header(bob)


@pytest.fixture(scope="function")
def project(test_db: Session, alice: models.User) -> models.Project:
    """
    Create a project with alice as sole member and two unassigned tasks.
    """
    logger.debug("Creating test project")
    project = models.Project(title="Test Project 1", description="This is a test project")
    project.members.append(models.ProjectMember(user_id=alice.id))
    project.tasks.append(models.Task(title="test1", description="This is a test"))
    project.tasks.append(models.Task(title="test2", description="This is another test"))
    test_db.add(project)
    test_db.commit()
    test_db.refresh(project)
    logger.info(f"Created test project with ID: {project.id}")
    return project


@pytest.fixture(scope="function")
def shared_project(test_db: Session, alice: models.User, bob: models.User) -> models.Project:
    """
    Create a project with alice and bob as members and one task.
    """
    project = models.Project(title="Test Project 2", description="This is another test project")
    project.members.append(models.ProjectMember(user_id=alice.id))
    project.members.append(models.ProjectMember(user_id=bob.id))
    project.tasks.append(models.Task(title="test3", description="I am, once again, conducting a test"))
    test_db.add(project)
    test_db.commit()
    test_db.refresh(project)
    return project


def task_ids(project: models.Project):
    return [task.id for task in project.tasks]
