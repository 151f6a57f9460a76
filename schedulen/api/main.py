"""
FastAPI application for ScheduleN.

This is the main entry point for the HTTP API, providing:
- Event endpoints (create, read, update, delete)
- Participant answers and password sessions
- Date confirmation, iCal export and Google Calendar links
- Health endpoint
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from schedulen import __version__
from schedulen.api.event_routes import router as event_router
from schedulen.api.middleware import RequestLoggingMiddleware, get_request_id
from schedulen.api.models import HealthResponse
from schedulen.config import Settings, get_settings
from schedulen.database import Database
from schedulen.exceptions import (
    DateOptionNotFoundError,
    EventAlreadyExistsError,
    EventNotFoundError,
    InvalidAvailabilityError,
    NoConfirmedDatesError,
    SchedulerError,
    StorageError,
)

logger = logging.getLogger(__name__)

# Exception type -> (status code, error_type)
ERROR_RESPONSES: dict[type[SchedulerError], tuple[int, str]] = {
    EventNotFoundError: (404, "not_found"),
    DateOptionNotFoundError: (400, "unknown_date_option"),
    EventAlreadyExistsError: (409, "conflict"),
    InvalidAvailabilityError: (422, "invalid_availability"),
    NoConfirmedDatesError: (400, "no_confirmed_dates"),
    StorageError: (500, "storage_error"),
}


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the API process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _error_response(exc: SchedulerError) -> tuple[int, str]:
    for cls in type(exc).__mro__:
        if cls in ERROR_RESPONSES:
            return ERROR_RESPONSES[cls]
    return 500, "scheduler_error"


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain and HTTP errors onto the standard error body."""

    @app.exception_handler(SchedulerError)
    async def scheduler_exception_handler(request: Request, exc: SchedulerError):
        status_code, error_type = _error_response(exc)
        if status_code >= 500:
            logger.error(f"[{get_request_id()}] {error_type}: {exc.message}", exc_info=exc.original_error)
        else:
            logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")

        message = "A storage error occurred" if isinstance(exc, StorageError) else exc.message
        return JSONResponse(
            status_code=status_code,
            content={
                "error_type": error_type,
                "message": message,
                "retryable": exc.retryable,
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions with consistent format."""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error_type": "http_error",
                "message": exc.detail,
                "retryable": exc.status_code >= 500,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(f"[{get_request_id()}] Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error_type": "internal_error",
                "message": "An unexpected error occurred",
                "retryable": True,
            },
        )


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Application settings (defaults to get_settings())
        database: Storage handle (defaults to one built from settings).
            It is opened at startup and closed at shutdown.

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    settings.validate_production_config()
    database = database or Database.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting ScheduleN API")
        database.open()
        if settings.auto_create_schema:
            database.create_all()
        logger.info("ScheduleN API started")

        yield

        logger.info("Shutting down ScheduleN API")
        database.close()

    app = FastAPI(
        title="ScheduleN API",
        description="""
# ScheduleN API

Scheduling polls: propose dates, collect availability, confirm and export.

## Workflow
1. **POST /events** - Create an event with candidate dates
2. **POST /events/{event_id}/participants** - Each participant submits answers
3. **GET /events/{event_id}/summary** - See which dates work best
4. **POST /events/{event_id}/confirm** - Toggle confirmed dates
5. **GET /events/{event_id}/ical** or **/calendar-links** - Export

## Password protection
Protected events require **POST /events/{event_id}/validate-password**
first; the response sets a session cookie valid for 24 hours.

## Error Handling
- **400** - Missing field, unknown date option, nothing confirmed
- **401** - Password required
- **404** - Event or date option not found
- **409** - Event id already taken
- **422** - Validation error
- **500** - Storage failure
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(event_router)
    register_exception_handlers(app)

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health check",
        tags=["System"],
    )
    def health_check(request: Request):
        """Report API and database status."""
        database_connected = request.app.state.database.check_connection()
        return HealthResponse(
            status="healthy" if database_connected else "unhealthy",
            version=__version__,
            database_connected=database_connected,
        )

    return app


# =============================================================================
# Run with Uvicorn
# =============================================================================


def run_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False):
    """Run the API server with Uvicorn."""
    import uvicorn

    uvicorn.run(
        "schedulen.app:app",
        host=host,
        port=port,
        reload=reload,
    )
