"""
Pytest configuration and fixtures

All tests run against an in-memory sqlite database. The schema is created
fresh for each test and dropped afterwards, so nothing leaks between tests.
"""
import pytest
import sys
import os
from uuid import uuid4
from datetime import datetime, timedelta, timezone

# Must be set before core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-report-service-0123456789")

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.database import Base, SessionLocal, engine, get_db  # noqa: E402
from core.security import create_access_token  # noqa: E402
from models import Athlete  # noqa: E402


@pytest.fixture(scope="function")
def db_session():
    """
    Fresh schema per test.

    Application code commits freely; drop_all at teardown discards everything.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def test_athlete(db_session):
    """An athlete whose account is older than one report cycle."""
    athlete = Athlete(
        email=f"test_{uuid4()}@example.com",
        display_name="Test Athlete",
        role="athlete",
        created_at=datetime.now(timezone.utc) - timedelta(days=31),
    )
    db_session.add(athlete)
    db_session.commit()
    db_session.refresh(athlete)
    return athlete


@pytest.fixture
def client(db_session):
    """TestClient whose requests share the test session."""
    from fastapi.testclient import TestClient
    from main import app

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def auth_headers(test_athlete):
    token = create_access_token({"sub": str(test_athlete.id)})
    return {"Authorization": f"Bearer {token}"}
