"""
FastAPI dependency injection providers.

Provides the database handle, settings, repository and per-event session
checks. The Database and Settings live on app.state (see main.create_app).
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response

from schedulen.auth.sessions import (
    create_session_token,
    session_cookie_name,
    verify_session_token,
)
from schedulen.config import Settings
from schedulen.database import Database
from schedulen.exceptions import EventNotFoundError
from schedulen.services.calendar_export import ExportOptions
from schedulen.services.event_repository import EventRepository
from schedulen.services.records import EventRecord

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Settings the application was built with."""
    return request.app.state.settings


def get_database(request: Request) -> Database:
    """
    Dependency injection for the database handle.

    Raises:
        HTTPException: If the database has not been opened
    """
    database: Database = request.app.state.database
    if not database.is_open:
        logger.error("Database not open")
        raise HTTPException(
            status_code=503,
            detail="Service temporarily unavailable - database not open",
        )
    return database


def get_repository(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
) -> EventRepository:
    return EventRepository(database, password_iterations=settings.password_hash_iterations)


def get_export_options(settings: Settings = Depends(get_app_settings)) -> ExportOptions:
    return ExportOptions.from_settings(settings)


def get_event_or_404(
    event_id: str,
    repository: EventRepository = Depends(get_repository),
) -> EventRecord:
    """Load the event named in the path, or fail with 404."""
    event = repository.get_event(event_id)
    if event is None:
        raise EventNotFoundError(event_id)
    return event


def has_event_session(request: Request, event: EventRecord, settings: Settings) -> bool:
    """
    Check whether the caller may act on an event.

    Open events need no session. For protected events the request must
    carry a valid session cookie for the event's current password.
    """
    if not event.password_protected:
        return True
    token = request.cookies.get(session_cookie_name(event.id))
    return verify_session_token(
        token,
        event.id,
        event.password_hash,
        settings.session_secret_key,
    )


def require_event_access(
    request: Request,
    event: EventRecord = Depends(get_event_or_404),
    settings: Settings = Depends(get_app_settings),
) -> EventRecord:
    """
    Load the event and require a session when it is password protected.

    Raises:
        HTTPException: 401 if a session is required and missing or invalid
    """
    if not has_event_session(request, event, settings):
        logger.info(f"Rejected unauthenticated request for protected event {event.id}")
        raise HTTPException(status_code=401, detail="Password required")
    return event


def set_session_cookie(
    response: Response,
    event_id: str,
    password_hash: Optional[str],
    settings: Settings,
) -> None:
    """Issue the per-event session cookie."""
    token = create_session_token(
        event_id,
        password_hash,
        settings.session_secret_key,
        settings.session_max_age_seconds,
    )
    response.set_cookie(
        key=session_cookie_name(event_id),
        value=token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


def clear_session_cookie(response: Response, event_id: str) -> None:
    response.delete_cookie(key=session_cookie_name(event_id))
