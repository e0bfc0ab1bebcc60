"""
Shared test fixtures.

Tests run against an in-memory SQLite database and fakeredis; background
tasks run eagerly in-process and no Firebase or Stripe credentials are
configured.
"""

import os
import sys
from typing import Generator

import fakeredis
import pytest

# Add the backend directory to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Configure the environment before any project module reads the settings
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["SECURITY_HEADERS_ENABLED"] = "true"
for _name in ("STRIPE_SECRET_KEY", "FIREBASE_SERVICE_ACCOUNT_KEY", "FIREBASE_PROJECT_ID"):
    os.environ.pop(_name, None)

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from grassroutes.db.base_class import Base
from grassroutes.db.database import engine, SessionLocal
from grassroutes import models  # noqa: F401
from grassroutes.core.auth import AuthenticatedUser, optional_user, require_user
from grassroutes.config import dependency_injection
from grassroutes.services.progress_store import LocalProgressCache
from grassroutes.services.quiz_engine import QuizSessionManager


TEST_USER = AuthenticatedUser(uid="user-123", email="learner@example.com", email_verified=True)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh tables for every test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def fake_redis() -> fakeredis.FakeRedis:
    # one server per test
    return fakeredis.FakeRedis(server=fakeredis.FakeServer())


@pytest.fixture(scope="function")
def local_cache(fake_redis: fakeredis.FakeRedis) -> LocalProgressCache:
    return LocalProgressCache(redis_client=fake_redis)


@pytest.fixture(scope="function")
def client(db: Session, local_cache: LocalProgressCache) -> Generator[TestClient, None, None]:
    """Test client of the full application, anonymous by default"""
    from grassroutes.main import app

    app.dependency_overrides[dependency_injection.get_local_progress_cache] = lambda: local_cache
    manager = QuizSessionManager()
    app.dependency_overrides[dependency_injection.get_quiz_session_manager] = lambda: manager
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def signed_in(client: TestClient) -> AuthenticatedUser:
    """Resolve every bearer token to TEST_USER"""
    from grassroutes.main import app

    app.dependency_overrides[require_user] = lambda: TEST_USER
    app.dependency_overrides[optional_user] = lambda: TEST_USER
    return TEST_USER
