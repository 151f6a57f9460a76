"""
Database handle and session management.

Provides:
- Database: explicitly constructed engine + session factory with open/close lifecycle
- transaction() context manager committing on success and rolling back on error
"""

import logging
import os
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event, make_url, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from schedulen.config import Settings
from schedulen.exceptions import StorageError

logger = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return url.lower().startswith("sqlite")


def _is_memory_sqlite(url: str) -> bool:
    return _is_sqlite(url) and (":memory:" in url or url.rstrip("/").endswith("sqlite:"))


def _set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints in SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _ensure_sqlite_directory(url: str) -> None:
    path = make_url(url).database
    if path:
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)


class Database:
    """
    Storage handle shared by repository operations.

    The engine (and its connection pool) is created by open() and disposed
    by close(). Each repository call checks out one session for the length
    of one transaction.
    """

    def __init__(
        self,
        url: str,
        pool_size: int = 5,
        pool_timeout: float = 30.0,
        pool_recycle: int = 3600,
        echo: bool = False,
    ):
        self.url = url
        self.pool_size = pool_size
        self.pool_timeout = pool_timeout
        self.pool_recycle = pool_recycle
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build an (unopened) handle from application settings."""
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            echo=settings.log_level == "DEBUG",
        )

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    def open(self) -> "Database":
        """Create the engine and session factory. Safe to call twice."""
        if self._engine is not None:
            return self

        if _is_sqlite(self.url):
            kwargs = {
                "connect_args": {"check_same_thread": False},
                "echo": self.echo,
            }
            if _is_memory_sqlite(self.url):
                # One shared connection, otherwise every checkout sees an empty database
                kwargs["poolclass"] = StaticPool
            else:
                _ensure_sqlite_directory(self.url)
            engine = create_engine(self.url, **kwargs)
            event.listen(engine, "connect", _set_sqlite_pragma)
        else:
            engine = create_engine(
                self.url,
                pool_size=self.pool_size,
                pool_timeout=self.pool_timeout,
                pool_recycle=self.pool_recycle,
                pool_pre_ping=True,
                echo=self.echo,
            )

        self._engine = engine
        self._sessionmaker = sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info(f"Database opened ({engine.dialect.name})")
        return self

    def close(self) -> None:
        """Dispose the engine and its pooled connections."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("Database closed")

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def session(self) -> Session:
        """
        Get a new database session.

        The caller owns the session and must close it.
        """
        if self._sessionmaker is None:
            raise RuntimeError("Database is not open")
        return self._sessionmaker()

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """
        Run a unit of work in one transaction.

        Commits on normal exit. Any exception rolls the whole transaction
        back; SQLAlchemy errors are re-raised as StorageError.

        Usage:
            with database.transaction() as session:
                session.add(obj)
        """
        session = self.session()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database transaction failed: {e}", exc_info=True)
            raise StorageError("Database operation failed", original_error=e) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all(self) -> None:
        """
        Create all tables.

        Useful for development and testing. In production, use Alembic migrations.
        """
        from schedulen.models.base import Base

        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        """
        Drop all tables.

        WARNING: This will delete all data.
        """
        from schedulen.models.base import Base

        logger.warning("Dropping all database tables...")
        Base.metadata.drop_all(bind=self.engine)

    def check_connection(self) -> bool:
        """
        Test database connection.

        Returns:
            bool: True if connection successful, False otherwise
        """
        if self._engine is None:
            return False
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database connection failed: {e}")
            return False

