"""
Unit tests for schedulen/database.py

Tests the Database handle lifecycle and transaction semantics.
"""

import pytest
from sqlalchemy import func, select, text

from schedulen.database import Database
from schedulen.exceptions import StorageError
from schedulen.models.events import Event


class TestLifecycle:
    """Test open/close behavior."""

    def test_not_open_until_opened(self):
        db = Database("sqlite:///:memory:")

        assert db.is_open is False
        assert db.check_connection() is False
        with pytest.raises(RuntimeError):
            db.session()

    def test_open_is_idempotent(self):
        db = Database("sqlite:///:memory:")
        db.open()
        engine = db.engine
        db.open()

        assert db.engine is engine
        db.close()
        assert db.is_open is False

    def test_context_manager(self):
        with Database("sqlite:///:memory:") as db:
            assert db.check_connection() is True
        assert db.is_open is False

    def test_sqlite_file_directory_created(self, tmp_path):
        path = tmp_path / "nested" / "schedulen.db"
        with Database(f"sqlite:///{path}") as db:
            db.create_all()
        assert path.exists()

    def test_foreign_keys_enabled(self, database: Database):
        with database.engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1


class TestTransaction:
    """Test transaction() commit and rollback."""

    def test_commits_on_success(self, database: Database):
        with database.transaction() as session:
            session.add(Event(id="e1", title="Lunch"))

        with database.transaction() as session:
            assert session.get(Event, "e1") is not None

    def test_rolls_back_on_error(self, database: Database):
        with pytest.raises(ValueError):
            with database.transaction() as session:
                session.add(Event(id="e1", title="Lunch"))
                session.flush()
                raise ValueError("boom")

        with database.transaction() as session:
            assert session.scalar(select(func.count()).select_from(Event)) == 0

    def test_database_errors_become_storage_errors(self, database: Database):
        with database.transaction() as session:
            session.add(Event(id="e1", title="Lunch"))

        with pytest.raises(StorageError) as exc_info:
            with database.transaction() as session:
                session.add(Event(id="e1", title="Duplicate"))

        assert exc_info.value.retryable is True
        assert exc_info.value.original_error is not None
