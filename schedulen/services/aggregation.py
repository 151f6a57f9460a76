"""
Availability aggregation.

Tallies participant answers per date option and ranks options by
participation rate (available answers / total participants).
"""

from dataclasses import dataclass
from typing import Literal

from schedulen.models.events import AvailabilityStatus
from schedulen.services.records import DateOptionData, EventRecord

HIGH_PARTICIPATION = 0.7
MEDIUM_PARTICIPATION = 0.4

ParticipationTier = Literal["high", "medium", "low"]


def participation_tier(rate: float) -> ParticipationTier:
    """Bucket a participation rate: high >= 0.7, medium >= 0.4, else low."""
    if rate >= HIGH_PARTICIPATION:
        return "high"
    if rate >= MEDIUM_PARTICIPATION:
        return "medium"
    return "low"


@dataclass
class DateOptionSummary:
    """Answer tally for one date option."""

    date_option_id: int
    datetime: str
    formatted: str
    available: int
    unavailable: int
    unknown: int
    total: int
    confirmed: bool

    @property
    def participation_rate(self) -> float:
        return self.available / self.total if self.total else 0.0

    @property
    def label(self) -> str:
        """Compact "available/total" label."""
        return f"{self.available}/{self.total}"

    @property
    def tier(self) -> ParticipationTier:
        return participation_tier(self.participation_rate)


def summarize_date_option(event: EventRecord, option: DateOptionData) -> DateOptionSummary:
    """
    Tally answers for one option.

    Missing answers and the legacy "maybe" count as unknown.
    """
    counts = {
        AvailabilityStatus.AVAILABLE: 0,
        AvailabilityStatus.UNAVAILABLE: 0,
        AvailabilityStatus.UNKNOWN: 0,
    }
    for participant in event.participants:
        counts[participant.status_for(option.id).normalized()] += 1

    return DateOptionSummary(
        date_option_id=option.id,
        datetime=option.datetime,
        formatted=option.formatted,
        available=counts[AvailabilityStatus.AVAILABLE],
        unavailable=counts[AvailabilityStatus.UNAVAILABLE],
        unknown=counts[AvailabilityStatus.UNKNOWN],
        total=len(event.participants),
        confirmed=event.is_confirmed(option.id),
    )


def summarize_event(event: EventRecord) -> list[DateOptionSummary]:
    """Summaries for every date option, in option order."""
    return [summarize_date_option(event, option) for option in event.date_options]


def best_date_options(event: EventRecord) -> list[DateOptionSummary]:
    """
    Options sharing the highest participation rate.

    Empty when nobody has marked any option available.
    """
    summaries = summarize_event(event)
    top = max((s.participation_rate for s in summaries), default=0.0)
    if top <= 0:
        return []
    return [s for s in summaries if s.participation_rate == top]
