"""
Unit tests for schedulen/services/records.py
"""

from datetime import date, datetime

import pytest

from schedulen.models.events import AvailabilityStatus
from schedulen.services.records import (
    DateOptionData,
    EventRecord,
    EventUpdate,
    ParticipantRecord,
    merge_key,
    option_date,
)


class TestMergeKey:
    """Test the key used to carry answers across date option rewrites."""

    def test_date_and_midnight_datetime_match(self):
        assert merge_key("2025-03-01") == merge_key("2025-03-01T00:00:00")

    def test_seconds_optional(self):
        assert merge_key("2025-03-01T10:00") == merge_key("2025-03-01T10:00:00")

    def test_timezone_suffix_ignored(self):
        assert merge_key("2025-03-01T10:00:00Z") == "2025-03-01T10:00:00"
        assert merge_key("2025-03-01T10:00:00+09:00") == "2025-03-01T10:00:00"

    def test_different_days_differ(self):
        assert merge_key("2025-03-01") != merge_key("2025-03-02")

    def test_unparsable_falls_back_to_stripped_text(self):
        assert merge_key("  next friday ") == "next friday"


class TestOptionDate:

    def test_plain_and_legacy_forms(self):
        assert option_date("2025-03-01") == date(2025, 3, 1)
        assert option_date("2025-03-01T14:00:00") == date(2025, 3, 1)

    def test_invalid(self):
        with pytest.raises(ValueError):
            option_date("March 1st")


class TestDateOptionData:

    def test_empty_times_mean_unset(self):
        option = DateOptionData("2025-03-01", "Mar 1", start_time="", end_time="")
        assert option.start_time is None
        assert option.end_time is None
        assert option.is_all_day is True

    def test_end_requires_start(self):
        with pytest.raises(ValueError):
            DateOptionData("2025-03-01", "Mar 1", end_time="10:00")

    def test_timed(self):
        option = DateOptionData("2025-03-01", "Mar 1", start_time="10:00")
        assert option.is_all_day is False
        assert option.merge_key == "2025-03-01T00:00:00"


class TestEventRecord:

    @pytest.fixture
    def event(self) -> EventRecord:
        return EventRecord(
            id="e1",
            title="Trip",
            description="",
            created_at=datetime(2025, 1, 1),
            date_options=[DateOptionData("2025-03-01", "Mar 1", id=7)],
            participants=[
                ParticipantRecord(
                    id=1,
                    name="Ann",
                    submitted_at=datetime(2025, 1, 2),
                    availabilities={7: AvailabilityStatus.AVAILABLE},
                )
            ],
            confirmed_date_option_ids=[7],
            password_hash="$pbkdf2-sha256$1000$c2FsdA$Y2hlY2tzdW0",
        )

    def test_lookup(self, event: EventRecord):
        assert event.get_date_option(7).formatted == "Mar 1"
        assert event.get_date_option(8) is None
        assert event.owns_date_option(7) is True
        assert event.is_confirmed(7) is True

    def test_password_hash_hidden_from_repr(self, event: EventRecord):
        assert event.password_protected is True
        assert "pbkdf2" not in repr(event)

    def test_missing_answer_is_unknown(self, event: EventRecord):
        participant = event.participants[0]
        assert participant.status_for(7) is AvailabilityStatus.AVAILABLE
        assert participant.status_for(99) is AvailabilityStatus.UNKNOWN


class TestEventUpdate:

    def test_is_empty(self):
        assert EventUpdate().is_empty is True
        assert EventUpdate(password="").is_empty is False
        assert EventUpdate(date_options=[]).is_empty is False
