"""
Date confirmation.

An event's confirmed set is a set of date option ids; several options of
the same event may be confirmed at once. Toggling flips one option's
membership.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from schedulen.database import Database
from schedulen.models.events import ConfirmedDate

logger = logging.getLogger(__name__)


@dataclass
class ConfirmationResult:
    """Outcome of a toggle."""

    event_id: str
    date_option_id: int
    confirmed: bool


def _find(session: Session, event_id: str, date_option_id: int):
    return session.scalars(
        select(ConfirmedDate).where(
            ConfirmedDate.event_id == event_id,
            ConfirmedDate.date_option_id == date_option_id,
        )
    ).first()


def toggle_confirmation(database: Database, event_id: str, date_option_id: int) -> ConfirmationResult:
    """
    Flip one date option's membership in the event's confirmed set.

    Does not check that the option belongs to the event; callers enforce
    that. Two concurrent toggles may both try to insert; the loser hits the
    (event_id, date_option_id) uniqueness constraint and reports the option
    as confirmed.

    Raises:
        StorageError: On database failure, including an insert rejected
            for any reason other than the row already existing
    """
    with database.transaction() as session:
        existing = _find(session, event_id, date_option_id)
        if existing is not None:
            session.delete(existing)
            logger.info(f"Unconfirmed date option {date_option_id} of event {event_id}")
            return ConfirmationResult(event_id, date_option_id, confirmed=False)

        session.add(ConfirmedDate(event_id=event_id, date_option_id=date_option_id))
        try:
            session.flush()
        except IntegrityError:
            session.rollback()
            if _find(session, event_id, date_option_id) is None:
                raise
            logger.info(
                f"Date option {date_option_id} of event {event_id} was confirmed concurrently"
            )
            return ConfirmationResult(event_id, date_option_id, confirmed=True)

        logger.info(f"Confirmed date option {date_option_id} of event {event_id}")
        return ConfirmationResult(event_id, date_option_id, confirmed=True)


def get_confirmed_date_option_ids(database: Database, event_id: str) -> list[int]:
    """Confirmed date option ids of an event, in confirmation order."""
    with database.transaction() as session:
        return list(
            session.scalars(
                select(ConfirmedDate.date_option_id)
                .where(ConfirmedDate.event_id == event_id)
                .order_by(ConfirmedDate.id)
            ).all()
        )
