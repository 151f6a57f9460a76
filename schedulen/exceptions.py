"""
Exceptions raised by the scheduling services and storage layer.

Provides structured error handling with retryable flags.
"""


class SchedulerError(Exception):
    """Base exception for scheduling operations."""

    retryable: bool = False

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class EventNotFoundError(SchedulerError):
    """No event exists with the requested id."""

    retryable = False

    def __init__(self, event_id: str):
        super().__init__(f"Event {event_id} not found")
        self.event_id = event_id


class DateOptionNotFoundError(SchedulerError):
    """
    A date option id does not exist or belongs to another event.

    Causes:
    - Participant answers referencing a stale option id
    - Confirming an option of a different event
    """

    retryable = False

    def __init__(self, event_id: str, date_option_ids: list[int]):
        ids = ", ".join(str(i) for i in date_option_ids)
        super().__init__(f"Date option(s) {ids} not found for event {event_id}")
        self.event_id = event_id
        self.date_option_ids = date_option_ids


class EventAlreadyExistsError(SchedulerError):
    """An event with the caller-supplied id already exists."""

    retryable = False

    def __init__(self, event_id: str):
        super().__init__(f"Event {event_id} already exists")
        self.event_id = event_id


class InvalidAvailabilityError(SchedulerError):
    """An availability value outside the enumerated set."""

    retryable = False


class NoConfirmedDatesError(SchedulerError):
    """Export requested for an event with no confirmed dates."""

    retryable = False

    def __init__(self, event_id: str):
        super().__init__(f"No dates confirmed yet for event {event_id}")
        self.event_id = event_id


class StorageError(SchedulerError):
    """
    Database failure.

    The surrounding transaction has been rolled back. Callers may retry
    the whole operation.
    """

    retryable = True
