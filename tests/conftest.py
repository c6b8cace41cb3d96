"""
Shared pytest fixtures.

Uses a file-backed SQLite database so no Postgres is required for tests.
Each test gets its own user id, so tests never see each other's rows.
"""
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from habit_tracker.db.base import Base, get_db
from habit_tracker.main import app
from habit_tracker.services.log_feed import LogFeed
from habit_tracker.services.store import SqlAlchemyHabitStore

SQLITE_URL = "sqlite:///./test_habits.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def feed():
    return LogFeed()


@pytest.fixture()
def store(db, feed):
    return SqlAlchemyHabitStore(db, feed=feed)


@pytest.fixture()
def user_id():
    return f"user-{uuid.uuid4().hex[:12]}"


@pytest.fixture()
def client():
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def headers(user_id):
    return {"X-User-Id": user_id}


@pytest.fixture()
def second_store(feed):
    """Store of a concurrent request: its own session, the same log feed."""
    session = TestingSessionLocal()
    try:
        yield SqlAlchemyHabitStore(session, feed=feed)
    finally:
        session.close()
