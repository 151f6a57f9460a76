"""
Event repository.

CRUD over the five scheduling tables. Every public method checks out one
session from the Database handle, does its work in a single transaction
and returns plain records (see records.py).

Multi-row writes are atomic: any failure rolls the transaction back, so a
half-created event or half-recorded participant is never visible.
"""

import logging
from collections import defaultdict, deque
from datetime import datetime, timezone
from typing import Mapping, Optional, Sequence, Union

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session, selectinload

from schedulen.auth.passwords import DEFAULT_ITERATIONS, hash_password, verify_password
from schedulen.database import Database
from schedulen.exceptions import (
    DateOptionNotFoundError,
    EventAlreadyExistsError,
    EventNotFoundError,
    InvalidAvailabilityError,
)
from schedulen.models.base import utcnow
from schedulen.models.events import (
    Availability,
    AvailabilityStatus,
    ConfirmedDate,
    DateOption,
    Event,
    Participant,
)
from schedulen.services.records import (
    DateOptionData,
    EventRecord,
    EventUpdate,
    NewEvent,
    ParticipantRecord,
    merge_key,
)

logger = logging.getLogger(__name__)

AvailabilityInput = Mapping[Union[int, str], Union[AvailabilityStatus, str, None]]


def _as_utc(value: datetime) -> datetime:
    """Convert to UTC; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _hydration_options():
    return (
        selectinload(Event.date_options),
        selectinload(Event.participants).selectinload(Participant.availabilities),
        selectinload(Event.confirmed_dates),
    )


def _bulk_delete(session: Session, stmt) -> None:
    session.execute(stmt.execution_options(synchronize_session=False))


def _date_option_record(option: DateOption) -> DateOptionData:
    return DateOptionData(
        id=option.id,
        datetime=option.datetime,
        formatted=option.formatted,
        start_time=option.start_time,
        end_time=option.end_time,
    )


def _participant_record(participant: Participant) -> ParticipantRecord:
    return ParticipantRecord(
        id=participant.id,
        name=participant.name,
        comment=participant.comment,
        submitted_at=participant.submitted_at,
        availabilities={
            a.date_option_id: a.availability for a in participant.availabilities
        },
    )


def _event_record(event: Event) -> EventRecord:
    return EventRecord(
        id=event.id,
        title=event.title,
        description=event.description or "",
        created_at=event.created_at,
        password_hash=event.password_hash,
        date_options=[_date_option_record(o) for o in event.date_options],
        participants=[_participant_record(p) for p in event.participants],
        confirmed_date_option_ids=[c.date_option_id for c in event.confirmed_dates],
    )


def parse_availabilities(availabilities: AvailabilityInput) -> dict[int, AvailabilityStatus]:
    """
    Validate a raw availability map.

    Entries with an empty value are dropped. Keys are converted to date
    option ids and values to AvailabilityStatus.

    Raises:
        InvalidAvailabilityError: For a non-integer key or unknown status
    """
    parsed: dict[int, AvailabilityStatus] = {}
    for raw_id, raw_status in availabilities.items():
        if raw_status is None or raw_status == "":
            continue
        try:
            option_id = int(raw_id)
        except (TypeError, ValueError):
            raise InvalidAvailabilityError(f"Invalid date option id '{raw_id}'") from None
        try:
            parsed[option_id] = AvailabilityStatus.parse(raw_status)
        except ValueError as e:
            raise InvalidAvailabilityError(str(e)) from None
    return parsed


class EventRepository:
    """
    Data access for events, date options, participants and answers.

    Usage:
        repository = EventRepository(database)
        event_id = repository.create_event(NewEvent(id="abc", title="Dinner"))
        event = repository.get_event(event_id)
    """

    def __init__(self, database: Database, password_iterations: int = DEFAULT_ITERATIONS):
        self._database = database
        self._password_iterations = password_iterations

    @property
    def database(self) -> Database:
        return self._database

    def _hash(self, password: Optional[str]) -> Optional[str]:
        if not password:
            return None
        return hash_password(password, self._password_iterations)

    # =========================================================================
    # Events
    # =========================================================================

    def create_event(self, new_event: NewEvent) -> str:
        """
        Insert an event and all of its date options atomically.

        Returns:
            The event id

        Raises:
            EventAlreadyExistsError: If the id is taken
            StorageError: If any insert fails (nothing is persisted)
        """
        with self._database.transaction() as session:
            if session.scalar(select(Event.id).where(Event.id == new_event.id)) is not None:
                raise EventAlreadyExistsError(new_event.id)

            event = Event(
                id=new_event.id,
                title=new_event.title,
                description=new_event.description or "",
                password_hash=self._hash(new_event.password),
                created_at=_as_utc(new_event.created_at) if new_event.created_at else utcnow(),
            )
            event.date_options = [
                DateOption(
                    datetime=option.datetime,
                    formatted=option.formatted,
                    start_time=option.start_time,
                    end_time=option.end_time,
                )
                for option in new_event.date_options
            ]
            session.add(event)

        logger.info(
            f"Created event {new_event.id} with {len(new_event.date_options)} date options"
            f"{' (password protected)' if new_event.password else ''}"
        )
        return new_event.id

    def get_event(self, event_id: str) -> Optional[EventRecord]:
        """
        Load a fully hydrated event.

        Date options and participants come back in creation order; each
        participant carries its answers keyed by date option id.

        Returns:
            EventRecord, or None if no such event exists
        """
        with self._database.transaction() as session:
            stmt = select(Event).where(Event.id == event_id).options(*_hydration_options())
            event = session.scalars(stmt).one_or_none()
            if event is None:
                logger.debug(f"Event {event_id} not found")
                return None
            return _event_record(event)

    def get_all_events(self) -> list[EventRecord]:
        """Every event, fully hydrated, newest first."""
        with self._database.transaction() as session:
            stmt = (
                select(Event)
                .options(*_hydration_options())
                .order_by(Event.created_at.desc(), Event.id)
            )
            return [_event_record(event) for event in session.scalars(stmt).all()]

    def update_event(self, event_id: str, update: EventUpdate) -> None:
        """
        Apply a partial update.

        Only supplied fields change. Supplying date_options replaces the
        whole set while keeping answers for options whose merge key (see
        records.merge_key) is unchanged. Confirmations of replaced options
        are dropped.

        Raises:
            EventNotFoundError: If the event does not exist
            StorageError: On database failure (the event is left untouched)
        """
        with self._database.transaction() as session:
            event = session.get(Event, event_id)
            if event is None:
                raise EventNotFoundError(event_id)

            if update.title is not None:
                event.title = update.title
            if update.description is not None:
                event.description = update.description
            if update.password is not None:
                event.password_hash = self._hash(update.password)

            if update.date_options is not None:
                restored = self._replace_date_options(session, event_id, update.date_options)
                logger.info(
                    f"Replaced date options of event {event_id}: "
                    f"{len(update.date_options)} options, {restored} answers kept"
                )

        logger.info(f"Updated event {event_id}")

    def _replace_date_options(
        self,
        session: Session,
        event_id: str,
        new_options: Sequence[DateOptionData],
    ) -> int:
        """
        Rewrite an event's date options inside the caller's transaction.

        Old options sharing a merge key pair with new options of that key in
        creation order. Returns the number of answers carried over.
        """
        old_options = session.execute(
            select(DateOption.id, DateOption.datetime)
            .where(DateOption.event_id == event_id)
            .order_by(DateOption.id)
        ).all()
        old_ids = [row.id for row in old_options]

        answers_by_option: dict[int, list[tuple[int, AvailabilityStatus]]] = defaultdict(list)
        if old_ids:
            rows = session.execute(
                select(
                    Availability.date_option_id,
                    Availability.participant_id,
                    Availability.availability,
                )
                .where(Availability.date_option_id.in_(old_ids))
                .order_by(Availability.id)
            ).all()
            for row in rows:
                answers_by_option[row.date_option_id].append((row.participant_id, row.availability))

        snapshot: dict[str, deque] = defaultdict(deque)
        for row in old_options:
            snapshot[merge_key(row.datetime)].append(answers_by_option.get(row.id, []))

        new_keys = {option.merge_key for option in new_options}
        dropped = [row.id for row in old_options if merge_key(row.datetime) not in new_keys]
        if dropped:
            logger.debug(f"Dropping answers for {len(dropped)} removed date options of event {event_id}")

        if old_ids:
            # Answers for kept keys live on in the snapshot
            _bulk_delete(session, delete(Availability).where(Availability.date_option_id.in_(old_ids)))
            _bulk_delete(session, delete(ConfirmedDate).where(ConfirmedDate.date_option_id.in_(old_ids)))
            _bulk_delete(session, delete(DateOption).where(DateOption.event_id == event_id))

        restored = 0
        for data in new_options:
            option = DateOption(
                event_id=event_id,
                datetime=data.datetime,
                formatted=data.formatted,
                start_time=data.start_time,
                end_time=data.end_time,
            )
            session.add(option)
            session.flush()

            pending = snapshot.get(data.merge_key)
            if not pending:
                continue
            for participant_id, status in pending.popleft():
                session.add(
                    Availability(
                        participant_id=participant_id,
                        date_option_id=option.id,
                        availability=status,
                    )
                )
                restored += 1

        session.flush()
        return restored

    def delete_event(self, event_id: str) -> bool:
        """
        Delete an event and everything it owns.

        Idempotent: deleting a missing event is not an error.

        Returns:
            True if an event was deleted, False if none existed
        """
        with self._database.transaction() as session:
            if session.scalar(select(Event.id).where(Event.id == event_id)) is None:
                logger.debug(f"Delete of missing event {event_id} ignored")
                return False

            participant_ids = select(Participant.id).where(Participant.event_id == event_id)
            option_ids = select(DateOption.id).where(DateOption.event_id == event_id)

            _bulk_delete(
                session,
                delete(Availability).where(
                    or_(
                        Availability.participant_id.in_(participant_ids),
                        Availability.date_option_id.in_(option_ids),
                    )
                ),
            )
            _bulk_delete(session, delete(ConfirmedDate).where(ConfirmedDate.event_id == event_id))
            _bulk_delete(session, delete(Participant).where(Participant.event_id == event_id))
            _bulk_delete(session, delete(DateOption).where(DateOption.event_id == event_id))
            _bulk_delete(session, delete(Event).where(Event.id == event_id))

        logger.info(f"Deleted event {event_id}")
        return True

    # =========================================================================
    # Participants
    # =========================================================================

    def add_participant(
        self,
        event_id: str,
        name: str,
        availabilities: AvailabilityInput,
        comment: Optional[str] = None,
    ) -> ParticipantRecord:
        """
        Record one participant and their answers atomically.

        Args:
            event_id: Event being answered
            name: Participant name (duplicates are allowed)
            availabilities: Date option id -> status; empty values are skipped
            comment: Optional comment

        Raises:
            EventNotFoundError: If the event does not exist
            DateOptionNotFoundError: If an answer references an option the
                event does not own (nothing is written)
            InvalidAvailabilityError: For an unrecognized status
        """
        answers = parse_availabilities(availabilities)

        with self._database.transaction() as session:
            if session.scalar(select(Event.id).where(Event.id == event_id)) is None:
                raise EventNotFoundError(event_id)

            owned = set(
                session.scalars(select(DateOption.id).where(DateOption.event_id == event_id)).all()
            )
            unknown = sorted(set(answers) - owned)
            if unknown:
                raise DateOptionNotFoundError(event_id, unknown)

            participant = Participant(
                event_id=event_id,
                name=name,
                comment=comment or None,
                submitted_at=utcnow(),
            )
            participant.availabilities = [
                Availability(date_option_id=option_id, availability=status)
                for option_id, status in answers.items()
            ]
            session.add(participant)
            session.flush()
            record = _participant_record(participant)

        logger.info(f"Added participant {record.id} to event {event_id} with {len(answers)} answers")
        return record

    # =========================================================================
    # Passwords
    # =========================================================================

    def validate_event_password(self, event_id: str, supplied_password: Optional[str]) -> bool:
        """
        Check a supplied password.

        Returns:
            True for an open event or an exact match; False on mismatch or
            when the event does not exist
        """
        with self._database.transaction() as session:
            row = session.execute(
                select(Event.password_hash).where(Event.id == event_id)
            ).one_or_none()

        if row is None:
            return False
        valid = verify_password(supplied_password, row.password_hash)
        if not valid:
            logger.info(f"Rejected password for event {event_id}")
        return valid

    def is_event_password_protected(self, event_id: str) -> bool:
        """True if the event exists and has a password."""
        with self._database.transaction() as session:
            password_hash = session.scalar(
                select(Event.password_hash).where(Event.id == event_id)
            )
        return bool(password_hash)
