"""
Service layer for ScheduleN.

Provides business logic and data access for:
- Event storage (events, date options, participants, answers)
- Date confirmation toggling
- Availability aggregation
- Calendar export (iCal text and Google Calendar links)
"""

from schedulen.services.records import (
    DateOptionData,
    EventRecord,
    EventUpdate,
    NewEvent,
    ParticipantRecord,
    merge_key,
    option_date,
)

from schedulen.services.event_repository import (
    EventRepository,
    parse_availabilities,
)

from schedulen.services.confirmation import (
    ConfirmationResult,
    toggle_confirmation,
    get_confirmed_date_option_ids,
)

from schedulen.services.aggregation import (
    DateOptionSummary,
    participation_tier,
    summarize_date_option,
    summarize_event,
    best_date_options,
)

from schedulen.services.calendar_export import (
    CalendarLink,
    ExportOptions,
    ExportWindow,
    escape_ical_text,
    resolve_time_window,
    generate_ical,
    google_calendar_url,
    google_calendar_links,
    ical_filename,
)

__all__ = [
    # Records
    "DateOptionData",
    "EventRecord",
    "EventUpdate",
    "NewEvent",
    "ParticipantRecord",
    "merge_key",
    "option_date",
    # Repository
    "EventRepository",
    "parse_availabilities",
    # Confirmation
    "ConfirmationResult",
    "toggle_confirmation",
    "get_confirmed_date_option_ids",
    # Aggregation
    "DateOptionSummary",
    "participation_tier",
    "summarize_date_option",
    "summarize_event",
    "best_date_options",
    # Calendar export
    "CalendarLink",
    "ExportOptions",
    "ExportWindow",
    "escape_ical_text",
    "resolve_time_window",
    "generate_ical",
    "google_calendar_url",
    "google_calendar_links",
    "ical_filename",
]
