"""
Unit tests for date confirmation toggling.
"""

import pytest
import sqlalchemy as sa

from schedulen.database import Database
from schedulen.exceptions import StorageError
from schedulen.models.events import ConfirmedDate
from schedulen.services import confirmation
from schedulen.services.confirmation import get_confirmed_date_option_ids, toggle_confirmation
from schedulen.services.records import EventRecord


def _rows(database: Database, event_id: str) -> int:
    with database.transaction() as session:
        return session.scalar(
            sa.select(sa.func.count())
            .select_from(ConfirmedDate)
            .where(ConfirmedDate.event_id == event_id)
        )


class TestToggleConfirmation:

    def test_toggle_twice(self, database: Database, sample_event: EventRecord):
        option_id = sample_event.date_options[0].id

        first = toggle_confirmation(database, sample_event.id, option_id)
        assert first.confirmed is True
        assert get_confirmed_date_option_ids(database, sample_event.id) == [option_id]

        second = toggle_confirmation(database, sample_event.id, option_id)
        assert second.confirmed is False
        assert get_confirmed_date_option_ids(database, sample_event.id) == []
        assert _rows(database, sample_event.id) == 0

    def test_several_dates_can_be_confirmed(self, database: Database, sample_event: EventRecord):
        ids = [o.id for o in sample_event.date_options]
        for option_id in ids:
            toggle_confirmation(database, sample_event.id, option_id)

        assert get_confirmed_date_option_ids(database, sample_event.id) == ids

    def test_repository_sees_confirmations(self, database, repository, sample_event: EventRecord):
        option_id = sample_event.date_options[1].id
        toggle_confirmation(database, sample_event.id, option_id)

        event = repository.get_event(sample_event.id)
        assert event.confirmed_date_option_ids == [option_id]
        assert event.is_confirmed(option_id) is True

    def test_concurrent_insert_is_benign(self, database: Database, sample_event: EventRecord, monkeypatch):
        """A toggle that loses the insert race reports the date as confirmed."""
        option_id = sample_event.date_options[0].id
        toggle_confirmation(database, sample_event.id, option_id)

        real_find = confirmation._find
        calls = []

        def stale_find(session, event_id, date_option_id):
            calls.append(date_option_id)
            if len(calls) == 1:
                # Simulate reading before the other writer committed
                return None
            return real_find(session, event_id, date_option_id)

        monkeypatch.setattr(confirmation, "_find", stale_find)

        result = toggle_confirmation(database, sample_event.id, option_id)

        assert result.confirmed is True
        assert len(calls) == 2
        assert _rows(database, sample_event.id) == 1

    def test_other_integrity_errors_surface(self, database: Database, sample_event: EventRecord):
        with pytest.raises(StorageError):
            toggle_confirmation(database, sample_event.id, 999_999)
