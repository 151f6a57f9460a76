"""
Unit tests for the scheduling models.

Tests:
- Event, DateOption, Participant, Availability, ConfirmedDate creation
- Uniqueness of answers and confirmations
- CHECK constraint on the availability column
- ON DELETE CASCADE from events to every child table
- AvailabilityStatus parsing
"""

import pytest
import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from schedulen.models.events import (
    Availability,
    AvailabilityStatus,
    ConfirmedDate,
    DateOption,
    Event,
    Participant,
)


def _seed(session: Session) -> tuple[Event, DateOption, Participant]:
    event = Event(id="evt-1", title="Picnic")
    option = DateOption(datetime="2025-05-05", formatted="May 5")
    event.date_options.append(option)
    participant = Participant(name="Alice")
    event.participants.append(participant)
    session.add(event)
    session.commit()
    return event, option, participant


def _count(session: Session, model) -> int:
    return session.scalar(sa.select(sa.func.count()).select_from(model))


class TestEvent:
    """Test Event model functionality."""

    def test_create_event_defaults(self, db_session: Session):
        event = Event(id="evt-1", title="Picnic")
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)

        assert event.description == ""
        assert event.password_hash is None
        assert event.created_at is not None

    def test_children_ordered_by_id(self, db_session: Session):
        event, _, _ = _seed(db_session)
        event.date_options.append(DateOption(datetime="2025-05-06", formatted="May 6"))
        db_session.commit()
        db_session.expire_all()

        reloaded = db_session.get(Event, "evt-1")
        assert [o.datetime for o in reloaded.date_options] == ["2025-05-05", "2025-05-06"]

    def test_delete_cascades_at_database_level(self, db_session: Session):
        event, option, participant = _seed(db_session)
        db_session.add(
            Availability(
                participant_id=participant.id,
                date_option_id=option.id,
                availability=AvailabilityStatus.AVAILABLE,
            )
        )
        db_session.add(ConfirmedDate(event_id=event.id, date_option_id=option.id))
        db_session.commit()

        db_session.execute(sa.delete(Event).where(Event.id == "evt-1"))
        db_session.commit()

        for model in (DateOption, Participant, Availability, ConfirmedDate):
            assert _count(db_session, model) == 0


class TestAvailability:
    """Test Availability model constraints."""

    def test_one_answer_per_participant_and_option(self, db_session: Session):
        _, option, participant = _seed(db_session)
        for status in (AvailabilityStatus.AVAILABLE, AvailabilityStatus.UNAVAILABLE):
            db_session.add(
                Availability(
                    participant_id=participant.id,
                    date_option_id=option.id,
                    availability=status,
                )
            )

        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_status_round_trips_as_enum(self, db_session: Session):
        _, option, participant = _seed(db_session)
        db_session.add(
            Availability(
                participant_id=participant.id,
                date_option_id=option.id,
                availability=AvailabilityStatus.MAYBE,
            )
        )
        db_session.commit()
        db_session.expire_all()

        stored = db_session.scalars(sa.select(Availability)).one()
        assert stored.availability is AvailabilityStatus.MAYBE

        raw = db_session.execute(sa.text("SELECT availability FROM availabilities")).scalar()
        assert raw == "maybe"

    def test_unknown_status_rejected_by_check_constraint(self, db_session: Session):
        _, option, participant = _seed(db_session)

        with pytest.raises(IntegrityError):
            db_session.execute(
                sa.text(
                    "INSERT INTO availabilities (participant_id, date_option_id, availability) "
                    "VALUES (:p, :d, 'perhaps')"
                ),
                {"p": participant.id, "d": option.id},
            )

    def test_foreign_keys_enforced(self, db_session: Session):
        _seed(db_session)
        db_session.add(
            Availability(
                participant_id=999,
                date_option_id=999,
                availability=AvailabilityStatus.AVAILABLE,
            )
        )

        with pytest.raises(IntegrityError):
            db_session.commit()


class TestConfirmedDate:
    """Test ConfirmedDate model constraints."""

    def test_one_row_per_event_and_option(self, db_session: Session):
        event, option, _ = _seed(db_session)
        db_session.add(ConfirmedDate(event_id=event.id, date_option_id=option.id))
        db_session.commit()

        db_session.add(ConfirmedDate(event_id=event.id, date_option_id=option.id))
        with pytest.raises(IntegrityError):
            db_session.commit()


class TestAvailabilityStatus:
    """Test AvailabilityStatus helpers."""

    @pytest.mark.parametrize("raw", ["available", "unavailable", "unknown", "maybe"])
    def test_parse_valid(self, raw):
        assert AvailabilityStatus.parse(raw).value == raw

    def test_parse_passes_enum_through(self):
        assert AvailabilityStatus.parse(AvailabilityStatus.UNKNOWN) is AvailabilityStatus.UNKNOWN

    def test_parse_invalid(self):
        with pytest.raises(ValueError, match="Valid values"):
            AvailabilityStatus.parse("Available")

    def test_maybe_normalizes_to_unknown(self):
        assert AvailabilityStatus.MAYBE.normalized() is AvailabilityStatus.UNKNOWN
        assert AvailabilityStatus.AVAILABLE.normalized() is AvailabilityStatus.AVAILABLE
