"""
Pytest configuration and fixtures for ScheduleN tests.

Provides an in-memory database, a repository, sample events and an API
test client bound to the same database.
"""

from datetime import datetime, timezone
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from schedulen.api.main import create_app
from schedulen.config import Settings
from schedulen.database import Database
from schedulen.services.event_repository import EventRepository
from schedulen.services.records import DateOptionData, EventRecord, NewEvent

# Keep PBKDF2 cheap in tests
TEST_ITERATIONS = 1_000
TEST_SECRET = "test-session-secret"


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        python_env="development",
        database_url="sqlite:///:memory:",
        session_secret_key=TEST_SECRET,
        password_hash_iterations=TEST_ITERATIONS,
        untimed_export_start=None,
        auto_create_schema=True,
    )


@pytest.fixture(scope="function")
def database() -> Generator[Database, None, None]:
    """
    Open a fresh in-memory database with all tables.

    Yields:
        Database: Opened handle, closed after the test
    """
    db = Database("sqlite:///:memory:").open()
    db.create_all()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db_session(database: Database) -> Generator[Session, None, None]:
    """Raw ORM session for model-level tests."""
    session = database.session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def repository(database: Database) -> EventRepository:
    return EventRepository(database, password_iterations=TEST_ITERATIONS)


@pytest.fixture
def sample_event(repository: EventRepository) -> EventRecord:
    """
    An open event with a timed and an all-day option.

    Returns:
        EventRecord: The stored event
    """
    repository.create_event(
        NewEvent(
            id="evt-open",
            title="Team Dinner",
            description="Somewhere nice",
            date_options=[
                DateOptionData("2025-03-01", "Mar 1 (Sat) 19:00", start_time="19:00", end_time="21:00"),
                DateOptionData("2025-03-02", "Mar 2 (Sun)"),
            ],
            created_at=datetime(2025, 2, 1, 12, 0, tzinfo=timezone.utc),
        )
    )
    return repository.get_event("evt-open")


@pytest.fixture
def protected_event(repository: EventRepository) -> EventRecord:
    """A password-protected event (password "s3cret") with one option."""
    repository.create_event(
        NewEvent(
            id="evt-locked",
            title="Board Meeting",
            password="s3cret",
            date_options=[DateOptionData("2025-04-10", "Apr 10", start_time="09:00")],
        )
    )
    return repository.get_event("evt-locked")


@pytest.fixture
def client(settings: Settings, database: Database) -> Generator[TestClient, None, None]:
    """API client sharing the test database."""
    app = create_app(settings=settings, database=database)
    with TestClient(app) as test_client:
        yield test_client
