"""
Base model definitions for SQLAlchemy.

Provides:
- Base declarative class shared by all tables
- utcnow() default for audit timestamps
"""

from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    """Timezone-aware current time (UTC)."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for all models."""
