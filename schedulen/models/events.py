"""
Event, DateOption, Participant, Availability and ConfirmedDate models.

Entities:
- Event: A scheduling poll with a caller-chosen string id
- DateOption: One candidate date/time slot of an Event
- Participant: A named respondent of an Event
- Availability: A participant's answer for one DateOption
- ConfirmedDate: Membership of a DateOption in the Event's confirmed set

All child rows cascade on delete, both in the ORM and at the database level.
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schedulen.models.base import Base, utcnow


class AvailabilityStatus(str, enum.Enum):
    """Participant answer for one date option."""

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"
    # Legacy value: still stored, never produced; counted as unknown
    MAYBE = "maybe"

    @classmethod
    def parse(cls, value: "str | AvailabilityStatus") -> "AvailabilityStatus":
        """
        Convert a raw status string into an AvailabilityStatus.

        Raises:
            ValueError: If the value is not one of the enumerated statuses
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"Invalid availability '{value}'. Valid values: {valid}") from None

    def normalized(self) -> "AvailabilityStatus":
        """Status used for aggregation (maybe folds into unknown)."""
        if self is AvailabilityStatus.MAYBE:
            return AvailabilityStatus.UNKNOWN
        return self


class Event(Base):
    """
    A scheduling poll.

    The id is chosen by the caller. A password hash, when present, gates
    access to the full event; NULL means an open event.
    """

    __tablename__ = "events"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        doc="Caller-chosen event id"
    )

    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        doc="Event title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        doc="Free-form description"
    )

    password_hash: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Salted password hash (NULL for open events)"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        doc="Timestamp of event creation"
    )

    date_options: Mapped[list["DateOption"]] = relationship(
        "DateOption",
        back_populates="event",
        cascade="all, delete",
        passive_deletes=True,
        order_by="DateOption.id",
        doc="Candidate dates in creation order"
    )

    participants: Mapped[list["Participant"]] = relationship(
        "Participant",
        back_populates="event",
        cascade="all, delete",
        passive_deletes=True,
        order_by="Participant.id",
        doc="Respondents in submission order"
    )

    confirmed_dates: Mapped[list["ConfirmedDate"]] = relationship(
        "ConfirmedDate",
        back_populates="event",
        cascade="all, delete",
        passive_deletes=True,
        order_by="ConfirmedDate.id",
        doc="Confirmed date options"
    )

    __table_args__ = (
        Index("idx_event_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Event(id='{self.id}', title='{self.title}')>"


class DateOption(Base):
    """
    One candidate date/time slot of an Event.

    start_time absent means an all-day option. end_time requires start_time.
    The formatted label is generated by callers and stored verbatim.
    """

    __tablename__ = "date_options"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        doc="Owning event"
    )

    datetime: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        doc="Calendar date, YYYY-MM-DD (no timezone)"
    )

    formatted: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Human-readable label"
    )

    start_time: Mapped[Optional[str]] = mapped_column(
        String(5),
        nullable=True,
        doc="Local start time, HH:MM"
    )

    end_time: Mapped[Optional[str]] = mapped_column(
        String(5),
        nullable=True,
        doc="Local end time, HH:MM"
    )

    event: Mapped["Event"] = relationship("Event", back_populates="date_options")

    availabilities: Mapped[list["Availability"]] = relationship(
        "Availability",
        back_populates="date_option",
        cascade="all, delete",
        passive_deletes=True,
    )

    confirmations: Mapped[list["ConfirmedDate"]] = relationship(
        "ConfirmedDate",
        back_populates="date_option",
        cascade="all, delete",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_date_option_event", "event_id"),
    )

    def __repr__(self) -> str:
        return f"<DateOption(id={self.id}, event_id='{self.event_id}', datetime='{self.datetime}')>"


class Participant(Base):
    """
    A respondent of an Event.

    Names are not unique at the data layer; the client treats a repeated
    name as an edit.
    """

    __tablename__ = "participants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        doc="Owning event"
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Display name"
    )

    comment: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Optional free-form comment"
    )

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        doc="Timestamp of submission"
    )

    event: Mapped["Event"] = relationship("Event", back_populates="participants")

    availabilities: Mapped[list["Availability"]] = relationship(
        "Availability",
        back_populates="participant",
        cascade="all, delete",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_participant_event", "event_id"),
    )

    def __repr__(self) -> str:
        return f"<Participant(id={self.id}, name='{self.name}')>"


class Availability(Base):
    """A participant's answer for one date option."""

    __tablename__ = "availabilities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    participant_id: Mapped[int] = mapped_column(
        ForeignKey("participants.id", ondelete="CASCADE"),
        nullable=False,
    )

    date_option_id: Mapped[int] = mapped_column(
        ForeignKey("date_options.id", ondelete="CASCADE"),
        nullable=False,
    )

    availability: Mapped[AvailabilityStatus] = mapped_column(
        Enum(
            AvailabilityStatus,
            name="availability_status",
            native_enum=False,
            create_constraint=True,
            length=20,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        doc="available | unavailable | unknown | maybe (legacy)"
    )

    participant: Mapped["Participant"] = relationship("Participant", back_populates="availabilities")
    date_option: Mapped["DateOption"] = relationship("DateOption", back_populates="availabilities")

    __table_args__ = (
        UniqueConstraint("participant_id", "date_option_id", name="uq_availability_participant_option"),
        Index("idx_availability_date_option", "date_option_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Availability(participant_id={self.participant_id}, "
            f"date_option_id={self.date_option_id}, availability='{self.availability.value}')>"
        )


class ConfirmedDate(Base):
    """Membership of a DateOption in its Event's confirmed set."""

    __tablename__ = "confirmed_dates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )

    date_option_id: Mapped[int] = mapped_column(
        ForeignKey("date_options.id", ondelete="CASCADE"),
        nullable=False,
    )

    confirmed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    event: Mapped["Event"] = relationship("Event", back_populates="confirmed_dates")
    date_option: Mapped["DateOption"] = relationship("DateOption", back_populates="confirmations")

    __table_args__ = (
        UniqueConstraint("event_id", "date_option_id", name="uq_confirmed_date_event_option"),
    )

    def __repr__(self) -> str:
        return f"<ConfirmedDate(event_id='{self.event_id}', date_option_id={self.date_option_id})>"
