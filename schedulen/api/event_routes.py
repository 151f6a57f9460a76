"""
Event API routes.

CRUD for events, participant answers, password sessions, date
confirmation and calendar export. Handlers are plain `def` functions so
FastAPI runs their blocking database work in its threadpool.

Mutations and exports on a password-protected event require the session
cookie issued by POST /events/{event_id}/validate-password.
"""

import logging
import secrets
from typing import Union

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from schedulen.api.dependencies import (
    clear_session_cookie,
    get_app_settings,
    get_event_or_404,
    get_export_options,
    get_repository,
    has_event_session,
    require_event_access,
    set_session_cookie,
)
from schedulen.api.models import (
    AddParticipantRequest,
    CalendarLinkResponse,
    ConfirmDateRequest,
    ConfirmDateResponse,
    CreateEventRequest,
    CreateEventResponse,
    DateOptionSummaryResponse,
    ErrorResponse,
    EventResponse,
    EventSummaryResponse,
    LimitedEventResponse,
    ParticipantCreatedResponse,
    SuccessResponse,
    UpdateEventRequest,
    ValidatePasswordRequest,
    ValidatePasswordResponse,
)
from schedulen.config import Settings
from schedulen.services.aggregation import best_date_options, summarize_event
from schedulen.services.calendar_export import (
    ExportOptions,
    generate_ical,
    google_calendar_links,
    ical_filename,
)
from schedulen.services.confirmation import toggle_confirmation
from schedulen.services.event_repository import EventRepository
from schedulen.services.records import EventRecord, EventUpdate, NewEvent

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/events",
    tags=["events"],
    responses={
        401: {"model": ErrorResponse, "description": "Password required"},
        404: {"model": ErrorResponse, "description": "Event not found"},
        500: {"model": ErrorResponse, "description": "Storage failure"},
    },
)


def _generate_event_id() -> str:
    return secrets.token_urlsafe(9)


# =============================================================================
# Events
# =============================================================================


@router.post("", response_model=CreateEventResponse, status_code=201)
def create_event(
    request: CreateEventRequest,
    repository: EventRepository = Depends(get_repository),
) -> CreateEventResponse:
    """
    Create an event with its candidate dates.

    The id is client-chosen when supplied (409 if taken) and generated
    otherwise. Participants in the body are ignored.
    """
    event_id = repository.create_event(
        NewEvent(
            id=request.id or _generate_event_id(),
            title=request.title,
            description=request.description,
            password=request.password,
            date_options=[option.to_data() for option in request.date_options],
            created_at=request.created_at,
        )
    )
    return CreateEventResponse(id=event_id)


@router.get("", response_model=list[EventResponse])
def list_events(
    repository: EventRepository = Depends(get_repository),
) -> list[EventResponse]:
    """All events, newest first, password hashes stripped."""
    return [EventResponse.from_record(event) for event in repository.get_all_events()]


@router.get("/{event_id}", response_model=Union[EventResponse, LimitedEventResponse])
def get_event(
    request: Request,
    event: EventRecord = Depends(get_event_or_404),
    settings: Settings = Depends(get_app_settings),
):
    """
    Get an event.

    Callers without a session for a protected event get only its id,
    title, description, creation time and the passwordProtected flag.
    """
    if not has_event_session(request, event, settings):
        return LimitedEventResponse.from_record(event)
    return EventResponse.from_record(event)


@router.put("/{event_id}", response_model=SuccessResponse)
def update_event(
    request: UpdateEventRequest,
    response: Response,
    event: EventRecord = Depends(require_event_access),
    repository: EventRepository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> SuccessResponse:
    """
    Partially update an event.

    Supplying dateOptions replaces the whole set; answers survive for
    options whose date is unchanged. Changing the password invalidates
    every other session, so the caller gets a fresh cookie.
    """
    update = EventUpdate(
        title=request.title,
        description=request.description,
        password=request.password,
        date_options=(
            [option.to_data() for option in request.date_options]
            if request.date_options is not None
            else None
        ),
    )
    if update.is_empty:
        return SuccessResponse()

    repository.update_event(event.id, update)

    if update.password is not None:
        updated = repository.get_event(event.id)
        if updated is not None and updated.password_protected:
            set_session_cookie(response, event.id, updated.password_hash, settings)
        else:
            clear_session_cookie(response, event.id)
    return SuccessResponse()


@router.delete("/{event_id}", response_model=SuccessResponse)
def delete_event(
    event_id: str,
    request: Request,
    response: Response,
    repository: EventRepository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> SuccessResponse:
    """Delete an event. Deleting a missing event succeeds."""
    event = repository.get_event(event_id)
    if event is None:
        return SuccessResponse()
    if not has_event_session(request, event, settings):
        raise HTTPException(status_code=401, detail="Password required")

    repository.delete_event(event_id)
    clear_session_cookie(response, event_id)
    return SuccessResponse()


# =============================================================================
# Participants & Passwords
# =============================================================================


@router.post(
    "/{event_id}/participants",
    response_model=ParticipantCreatedResponse,
    status_code=201,
)
def add_participant(
    request: AddParticipantRequest,
    event: EventRecord = Depends(require_event_access),
    repository: EventRepository = Depends(get_repository),
) -> ParticipantCreatedResponse:
    """Record a participant's answers. Unknown date option ids are rejected."""
    participant = repository.add_participant(
        event.id,
        request.name,
        request.availabilities,
        comment=request.comment,
    )
    return ParticipantCreatedResponse(participant_id=participant.id)


@router.post("/{event_id}/validate-password", response_model=ValidatePasswordResponse)
def validate_password(
    event_id: str,
    request: ValidatePasswordRequest,
    response: Response,
    repository: EventRepository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> ValidatePasswordResponse:
    """
    Check an event password.

    On success the response sets the event's session cookie. An unknown
    event is reported as an invalid password.
    """
    if request.password is None:
        raise HTTPException(status_code=400, detail="Password is required")

    if not repository.validate_event_password(event_id, request.password):
        return ValidatePasswordResponse(valid=False)

    event = repository.get_event(event_id)
    if event is not None:
        set_session_cookie(response, event_id, event.password_hash, settings)
    return ValidatePasswordResponse(valid=True)


# =============================================================================
# Confirmation
# =============================================================================


@router.post("/{event_id}/confirm", response_model=ConfirmDateResponse)
def confirm_date(
    event_id: str,
    request: ConfirmDateRequest,
    http_request: Request,
    repository: EventRepository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> ConfirmDateResponse:
    """
    Toggle one date option in the event's confirmed set.

    A missing dateOptionId is rejected before the event is looked up.
    """
    if request.date_option_id is None:
        raise HTTPException(status_code=400, detail="dateOptionId is required")

    event = get_event_or_404(event_id, repository)
    if not has_event_session(http_request, event, settings):
        raise HTTPException(status_code=401, detail="Password required")
    if not event.owns_date_option(request.date_option_id):
        raise HTTPException(
            status_code=404,
            detail=f"Date option {request.date_option_id} not found for event {event.id}",
        )

    result = toggle_confirmation(repository.database, event.id, request.date_option_id)
    return ConfirmDateResponse(confirmed=result.confirmed)


# =============================================================================
# Export & Summary
# =============================================================================


@router.get("/{event_id}/ical")
def export_ical(
    event: EventRecord = Depends(require_event_access),
    options: ExportOptions = Depends(get_export_options),
) -> Response:
    """Download the confirmed dates as an .ics file."""
    content = generate_ical(event, options=options)
    return Response(
        content=content,
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{ical_filename(event.title)}"'},
    )


@router.get("/{event_id}/calendar-links", response_model=list[CalendarLinkResponse])
def calendar_links(
    event: EventRecord = Depends(require_event_access),
    options: ExportOptions = Depends(get_export_options),
) -> list[CalendarLinkResponse]:
    """Google Calendar links for each confirmed date."""
    return [
        CalendarLinkResponse(date_option_id=link.date_option_id, url=link.url)
        for link in google_calendar_links(event, options)
    ]


@router.get("/{event_id}/summary", response_model=EventSummaryResponse)
def event_summary(
    event: EventRecord = Depends(require_event_access),
) -> EventSummaryResponse:
    """Per-option answer tallies and the best-attended options."""
    return EventSummaryResponse(
        event_id=event.id,
        participant_count=len(event.participants),
        date_options=[DateOptionSummaryResponse.from_summary(s) for s in summarize_event(event)],
        best_date_option_ids=[s.date_option_id for s in best_date_options(event)],
    )
