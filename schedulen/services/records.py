"""
Plain data records exchanged with the event repository.

The repository hydrates ORM rows into these dataclasses so callers never
hold a live session.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from dateutil.parser import ParserError, isoparse

from schedulen.models.events import AvailabilityStatus


def merge_key(value: str) -> str:
    """
    Key used to match old and new date options during replacement.

    Options whose keys are equal keep their participants' answers when the
    event's date options are rewritten. The key is the `datetime` string
    normalized to a canonical ISO-8601 local datetime, so "2025-03-01" and
    "2025-03-01T00:00:00" match. Values that do not parse fall back to the
    stripped raw string.
    """
    raw = value.strip()
    try:
        parsed = isoparse(raw)
    except (ParserError, ValueError, OverflowError):
        return raw
    return parsed.replace(tzinfo=None).isoformat()


def option_date(value: str) -> date:
    """
    Calendar date of a date option's `datetime` string.

    Raises:
        ValueError: If the value does not start with an ISO date
    """
    return date.fromisoformat(value.strip()[:10])


@dataclass
class DateOptionData:
    """
    One candidate date/time slot.

    `id` is None for options that have not been stored yet.
    """

    datetime: str
    formatted: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    id: Optional[int] = None

    def __post_init__(self):
        # Empty strings from form posts mean "not set"
        self.start_time = self.start_time or None
        self.end_time = self.end_time or None
        if self.end_time is not None and self.start_time is None:
            raise ValueError("end_time requires start_time")

    @property
    def is_all_day(self) -> bool:
        return self.start_time is None

    @property
    def merge_key(self) -> str:
        return merge_key(self.datetime)


@dataclass
class ParticipantRecord:
    """A respondent with their answers keyed by date option id."""

    id: int
    name: str
    submitted_at: datetime
    availabilities: dict[int, AvailabilityStatus] = field(default_factory=dict)
    comment: Optional[str] = None

    def status_for(self, date_option_id: int) -> AvailabilityStatus:
        """Answer for one option; a missing entry means unknown."""
        return self.availabilities.get(date_option_id, AvailabilityStatus.UNKNOWN)


@dataclass
class EventRecord:
    """A fully hydrated event."""

    id: str
    title: str
    description: str
    created_at: datetime
    date_options: list[DateOptionData] = field(default_factory=list)
    participants: list[ParticipantRecord] = field(default_factory=list)
    confirmed_date_option_ids: list[int] = field(default_factory=list)
    password_hash: Optional[str] = field(default=None, repr=False)

    @property
    def password_protected(self) -> bool:
        return bool(self.password_hash)

    def get_date_option(self, date_option_id: int) -> Optional[DateOptionData]:
        for option in self.date_options:
            if option.id == date_option_id:
                return option
        return None

    def owns_date_option(self, date_option_id: int) -> bool:
        return self.get_date_option(date_option_id) is not None

    def is_confirmed(self, date_option_id: int) -> bool:
        return date_option_id in self.confirmed_date_option_ids


@dataclass
class NewEvent:
    """Input for EventRepository.create_event()."""

    id: str
    title: str
    description: str = ""
    password: Optional[str] = None
    date_options: list[DateOptionData] = field(default_factory=list)
    created_at: Optional[datetime] = None


@dataclass
class EventUpdate:
    """
    Partial update for EventRepository.update_event().

    None means "leave unchanged". An empty password removes password
    protection; an empty date_options list removes every option.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    password: Optional[str] = None
    date_options: Optional[list[DateOptionData]] = None

    @property
    def is_empty(self) -> bool:
        return (
            self.title is None
            and self.description is None
            and self.password is None
            and self.date_options is None
        )
