"""
Calendar export for confirmed dates.

Converts confirmed date options into:
- iCalendar text (one VEVENT per option, RFC 5545 flavored)
- Google Calendar "render?action=TEMPLATE" deep links

All times are naive local wall-clock times. Timed options are written as
floating DTSTART/DTEND values without a "Z" suffix; options without a start
time are written as all-day VALUE=DATE ranges with an exclusive end date.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Iterable, Optional
from urllib.parse import urlencode

from schedulen.config import Settings
from schedulen.exceptions import NoConfirmedDatesError
from schedulen.models.events import AvailabilityStatus
from schedulen.services.records import DateOptionData, EventRecord, option_date

logger = logging.getLogger(__name__)

GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/render"
DEFAULT_DURATION = timedelta(minutes=60)
MAX_LINE_OCTETS = 75


@dataclass(frozen=True)
class ExportOptions:
    """
    Knobs for generated calendars.

    untimed_start: When set ("HH:MM"), options without a time export as a
        one-hour event at that time instead of an all-day event.
    """

    product_id: str = "-//ScheduleN//ScheduleN App//EN"
    uid_domain: str = "schedulen.app"
    attendees_label: str = "Attendees"
    untimed_start: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExportOptions":
        return cls(
            product_id=settings.ical_product_id,
            uid_domain=settings.ical_uid_domain,
            attendees_label=settings.attendees_label,
            untimed_start=settings.untimed_export_start,
        )


@dataclass(frozen=True)
class ExportWindow:
    """Resolved start/end of one exported option."""

    start: datetime
    end: datetime
    all_day: bool


@dataclass(frozen=True)
class CalendarLink:
    date_option_id: int
    url: str


# =============================================================================
# Formatting helpers
# =============================================================================


def escape_ical_text(text: str) -> str:
    """
    Escape a TEXT property value.

    Backslash, semicolon and comma get a backslash; newlines become the
    two characters "\\n"; carriage returns are dropped.
    """
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\n")
        .replace("\r", "")
        .replace("\n", "\\n")
    )


def fold_line(line: str, limit: int = MAX_LINE_OCTETS) -> str:
    """Fold a content line at `limit` octets without splitting UTF-8 characters."""
    if len(line.encode("utf-8")) <= limit:
        return line

    parts: list[str] = []
    current = ""
    size = 0
    for char in line:
        width = len(char.encode("utf-8"))
        # Continuation lines start with a space that counts toward the limit
        budget = limit if not parts else limit - 1
        if size + width > budget:
            parts.append(current)
            current, size = char, width
        else:
            current += char
            size += width
    parts.append(current)
    return "\r\n ".join(parts)


def format_ical_datetime(value: datetime) -> str:
    """Floating local date-time, YYYYMMDDTHHMMSS."""
    return value.strftime("%Y%m%dT%H%M%S")


def format_ical_date(value: datetime) -> str:
    """Date only, YYYYMMDD."""
    return value.strftime("%Y%m%d")


def format_utc_stamp(value: datetime) -> str:
    """UTC timestamp, YYYYMMDDTHHMMSSZ (naive values are taken as UTC)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y%m%dT%H%M%SZ")


def _parse_clock(value: str) -> time:
    hours, _, minutes = value.partition(":")
    return time(int(hours), int(minutes or 0))


def resolve_time_window(option: DateOptionData, untimed_start: Optional[str] = None) -> ExportWindow:
    """
    Work out the exported start and end of an option.

    - start and end: used as given; an end at or before the start is taken
      to be on the following day
    - start only: end = start + 60 minutes
    - neither: all-day (end is the next day, exclusive), or a one-hour event
      at `untimed_start` when that is given
    """
    day = option_date(option.datetime)

    if option.start_time:
        start = datetime.combine(day, _parse_clock(option.start_time))
        if option.end_time:
            end = datetime.combine(day, _parse_clock(option.end_time))
            if end <= start:
                end += timedelta(days=1)
        else:
            end = start + DEFAULT_DURATION
        return ExportWindow(start, end, all_day=False)

    if untimed_start:
        start = datetime.combine(day, _parse_clock(untimed_start))
        return ExportWindow(start, start + DEFAULT_DURATION, all_day=False)

    start = datetime.combine(day, time.min)
    return ExportWindow(start, start + timedelta(days=1), all_day=True)


def attendees_for(event: EventRecord, date_option_id: int) -> list[str]:
    """Names of participants marked available for an option, in submission order."""
    return [
        participant.name
        for participant in event.participants
        if participant.status_for(date_option_id) is AvailabilityStatus.AVAILABLE
    ]


def build_description(description: str, attendees: list[str], label: str = "Attendees") -> str:
    """Event description, followed by an attendee line when there are attendees."""
    parts = [description] if description else []
    if attendees:
        parts.append(f"{label}: {', '.join(attendees)}")
    return "\n\n".join(parts)


def ical_filename(title: str) -> str:
    """Download filename: non-alphanumerics replaced with underscores."""
    stem = re.sub(r"[^a-zA-Z0-9]", "_", title)
    return f"{stem or 'event'}.ics"


# =============================================================================
# iCalendar
# =============================================================================


def build_vevent(
    event: EventRecord,
    option: DateOptionData,
    now: datetime,
    options: ExportOptions = ExportOptions(),
) -> list[str]:
    """Unfolded content lines of one VEVENT."""
    window = resolve_time_window(option, options.untimed_start)
    millis = int(now.timestamp() * 1000)

    lines = [
        "BEGIN:VEVENT",
        f"UID:{event.id}-{option.id}-{millis}@{options.uid_domain}",
        f"DTSTAMP:{format_utc_stamp(now)}",
    ]
    if window.all_day:
        lines.append(f"DTSTART;VALUE=DATE:{format_ical_date(window.start)}")
        lines.append(f"DTEND;VALUE=DATE:{format_ical_date(window.end)}")
    else:
        lines.append(f"DTSTART:{format_ical_datetime(window.start)}")
        lines.append(f"DTEND:{format_ical_datetime(window.end)}")

    lines.append(f"SUMMARY:{escape_ical_text(event.title)}")

    description = build_description(
        event.description,
        attendees_for(event, option.id),
        options.attendees_label,
    )
    if description:
        lines.append(f"DESCRIPTION:{escape_ical_text(description)}")

    lines.extend(["STATUS:CONFIRMED", "END:VEVENT"])
    return lines


def generate_ical(
    event: EventRecord,
    date_option_ids: Optional[Iterable[int]] = None,
    now: Optional[datetime] = None,
    options: ExportOptions = ExportOptions(),
) -> str:
    """
    Render a VCALENDAR with one VEVENT per date option.

    Args:
        event: Hydrated event
        date_option_ids: Options to export (defaults to the confirmed set)
        now: Generation time for DTSTAMP/UID (defaults to current UTC time)
        options: Export knobs

    Returns:
        iCalendar text with CRLF line endings

    Raises:
        NoConfirmedDatesError: If there are no ids to export. Ids that do not
            resolve to one of the event's options are skipped.
    """
    ids = list(event.confirmed_date_option_ids if date_option_ids is None else date_option_ids)
    if not ids:
        raise NoConfirmedDatesError(event.id)

    now = now or datetime.now(timezone.utc)
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{options.product_id}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]

    exported = 0
    for date_option_id in ids:
        option = event.get_date_option(date_option_id)
        if option is None:
            logger.debug(f"Skipping unknown date option {date_option_id} of event {event.id}")
            continue
        lines.extend(build_vevent(event, option, now, options))
        exported += 1

    lines.append("END:VCALENDAR")
    logger.info(f"Generated iCal for event {event.id} with {exported} events")
    return "\r\n".join(fold_line(line) for line in lines) + "\r\n"


# =============================================================================
# Google Calendar
# =============================================================================


def google_calendar_url(
    event: EventRecord,
    option: DateOptionData,
    options: ExportOptions = ExportOptions(),
) -> str:
    """Deep link that opens Google Calendar's "new event" form prefilled."""
    window = resolve_time_window(option, options.untimed_start)
    fmt = format_ical_date if window.all_day else format_ical_datetime

    params = {
        "action": "TEMPLATE",
        "text": event.title,
        "dates": f"{fmt(window.start)}/{fmt(window.end)}",
        "details": build_description(
            event.description,
            attendees_for(event, option.id),
            options.attendees_label,
        ),
    }
    return f"{GOOGLE_CALENDAR_URL}?{urlencode(params)}"


def google_calendar_links(
    event: EventRecord,
    options: ExportOptions = ExportOptions(),
) -> list[CalendarLink]:
    """
    Google Calendar links for every confirmed option.

    Raises:
        NoConfirmedDatesError: If the event has no confirmed dates
    """
    if not event.confirmed_date_option_ids:
        raise NoConfirmedDatesError(event.id)

    links = []
    for date_option_id in event.confirmed_date_option_ids:
        option = event.get_date_option(date_option_id)
        if option is None:
            continue
        links.append(CalendarLink(date_option_id, google_calendar_url(event, option, options)))
    return links
