import os
import tempfile
from pathlib import Path
from unittest.mock import Mock

# Settings are read at import time, so point them at a throwaway database first.
TEST_DB_PATH = Path(tempfile.gettempdir()) / "community_events_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["JWT_SECRET"] = "test-secret"

import fakeredis  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from events_api.database.db import Base, SessionLocal, engine, init_db  # noqa: E402
from events_api.main import app  # noqa: E402
from events_api.models.users import User  # noqa: E402
from events_api.services.payments import get_payment_gateway  # noqa: E402
from events_api.tests.factories import FakeGateway, add_user  # noqa: E402


@pytest.fixture(autouse=True)
def setup_database():
    """Fresh tables for every test."""
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch: pytest.MonkeyPatch):
    client = fakeredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr("events_api.services.joins.get_redis_client", lambda: client)
    yield client
    client.flushall()


@pytest.fixture(autouse=True)
def finalize_task(monkeypatch: pytest.MonkeyPatch) -> Mock:
    # No broker in tests; record enqueues instead.
    task = Mock()
    monkeypatch.setattr("events_api.routes.joins.finalize_join_task", task)
    return task


@pytest.fixture
def payment_gateway():
    gateway = FakeGateway()
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    yield gateway
    app.dependency_overrides.pop(get_payment_gateway, None)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def alice(db_session: Session) -> User:
    return add_user(db_session, "alice@example.com")


@pytest.fixture
def bob(db_session: Session) -> User:
    return add_user(db_session, "bob@example.com")


@pytest.fixture
def admin(db_session: Session) -> User:
    return add_user(db_session, "admin@example.com", role="admin")
