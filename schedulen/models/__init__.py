"""
SQLAlchemy models for ScheduleN.

This module exports all database models for easy importing and
ensures Alembic can discover them for migrations.
"""

# Import base classes
from schedulen.models.base import Base, utcnow

# Import all models (must be imported for Alembic autogenerate)
from schedulen.models.events import (
    AvailabilityStatus,
    Event,
    DateOption,
    Participant,
    Availability,
    ConfirmedDate,
)

__all__ = [
    # Base classes
    "Base",
    "utcnow",
    # Event models
    "AvailabilityStatus",
    "Event",
    "DateOption",
    "Participant",
    "Availability",
    "ConfirmedDate",
]
