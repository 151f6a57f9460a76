"""
Pydantic request and response models for the ScheduleN API.

All bodies use camelCase keys on the wire. Models accept snake_case field
names too, so tests and internal callers can construct them directly.
"""

import re
from datetime import date, datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from schedulen.services.aggregation import DateOptionSummary
from schedulen.services.records import DateOptionData, EventRecord

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}(?:T(?:[01]\d|2[0-3]):[0-5]\d(?::[0-5]\d)?)?$")
TIME_RE = re.compile(r"^(?:[01]\d|2[0-3]):[0-5]\d$")
EVENT_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

# Statuses accepted from clients; the legacy "maybe" is read-only
ACCEPTED_STATUSES = ("available", "unavailable", "unknown")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Request Models
# =============================================================================


class DateOptionInput(CamelModel):
    """One candidate slot as submitted by the organizer."""

    id: Optional[int] = Field(None, description="Ignored; ids are assigned on save")
    datetime: str = Field(..., examples=["2025-03-01"])
    formatted: str = Field("", max_length=200, description="Display label, stored verbatim")
    start_time: Optional[str] = Field(None, examples=["14:00"])
    end_time: Optional[str] = Field(None, examples=["15:00"])

    @field_validator("datetime")
    @classmethod
    def validate_datetime(cls, v: str) -> str:
        v = v.strip()
        if not DATE_RE.match(v):
            raise ValueError(f"invalid date format: {v}")
        try:
            date.fromisoformat(v[:10])
        except ValueError:
            raise ValueError(f"invalid calendar date: {v}") from None
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if not TIME_RE.match(v):
            raise ValueError(f"invalid time format: {v}")
        return v

    @model_validator(mode="after")
    def validate_end_requires_start(self) -> "DateOptionInput":
        if self.end_time is not None and self.start_time is None:
            raise ValueError("endTime requires startTime")
        return self

    def to_data(self) -> DateOptionData:
        return DateOptionData(
            datetime=self.datetime,
            formatted=self.formatted or self.datetime,
            start_time=self.start_time,
            end_time=self.end_time,
        )


class CreateEventRequest(CamelModel):
    """Request to create an event."""

    id: Optional[str] = Field(
        None,
        description="Client-chosen id (generated when omitted)",
    )
    title: str = Field(..., max_length=200)
    description: str = Field("", max_length=5000)
    password: Optional[str] = Field(None, max_length=200)
    date_options: list[DateOptionInput] = Field(default_factory=list)
    participants: list[Any] = Field(
        default_factory=list,
        description="Accepted for compatibility; participants are added separately",
    )
    created_at: Optional[datetime] = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not EVENT_ID_RE.match(v):
            raise ValueError("id must be 1-64 letters, digits, '-' or '_'")
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be empty")
        return v


class UpdateEventRequest(CamelModel):
    """Partial update; omitted fields are left unchanged."""

    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    password: Optional[str] = Field(
        None,
        max_length=200,
        description="New password; an empty string removes protection",
    )
    date_options: Optional[list[DateOptionInput]] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("title must not be empty")
        return v


class AddParticipantRequest(CamelModel):
    """A participant's answers, keyed by date option id."""

    name: str
    availabilities: dict[int, Optional[str]] = Field(default_factory=dict)
    comment: Optional[str] = Field(None, max_length=1000)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v or len(v) > 100:
            raise ValueError("name must be 1-100 characters")
        return v

    @field_validator("availabilities")
    @classmethod
    def validate_availabilities(cls, v: dict[int, Optional[str]]) -> dict[int, Optional[str]]:
        for option_id, status in v.items():
            if status in (None, ""):
                continue
            if status not in ACCEPTED_STATUSES:
                raise ValueError(
                    f"invalid availability '{status}' for date option {option_id}. "
                    f"Valid values: {', '.join(ACCEPTED_STATUSES)}"
                )
        return v


class ValidatePasswordRequest(CamelModel):
    password: Optional[str] = None


class ConfirmDateRequest(CamelModel):
    date_option_id: Optional[int] = None


# =============================================================================
# Response Models
# =============================================================================


class DateOptionResponse(CamelModel):
    id: int
    datetime: str
    formatted: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class ParticipantResponse(CamelModel):
    id: int
    name: str
    availabilities: dict[int, str]
    comment: Optional[str] = None
    submitted_at: datetime


class EventResponse(CamelModel):
    """Full event, password hash stripped."""

    id: str
    title: str
    description: str
    password_protected: bool
    created_at: datetime
    date_options: list[DateOptionResponse]
    participants: list[ParticipantResponse]
    confirmed_date_option_ids: list[int]

    @classmethod
    def from_record(cls, event: EventRecord) -> "EventResponse":
        return cls(
            id=event.id,
            title=event.title,
            description=event.description,
            password_protected=event.password_protected,
            created_at=event.created_at,
            date_options=[
                DateOptionResponse(
                    id=o.id,
                    datetime=o.datetime,
                    formatted=o.formatted,
                    start_time=o.start_time,
                    end_time=o.end_time,
                )
                for o in event.date_options
            ],
            participants=[
                ParticipantResponse(
                    id=p.id,
                    name=p.name,
                    availabilities={k: v.value for k, v in p.availabilities.items()},
                    comment=p.comment,
                    submitted_at=p.submitted_at,
                )
                for p in event.participants
            ],
            confirmed_date_option_ids=list(event.confirmed_date_option_ids),
        )


class LimitedEventResponse(CamelModel):
    """What a caller without a session sees of a protected event."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    id: str
    title: str
    description: str
    password_protected: bool
    created_at: datetime

    @classmethod
    def from_record(cls, event: EventRecord) -> "LimitedEventResponse":
        return cls(
            id=event.id,
            title=event.title,
            description=event.description,
            password_protected=event.password_protected,
            created_at=event.created_at,
        )


class CreateEventResponse(CamelModel):
    id: str


class SuccessResponse(CamelModel):
    success: bool = True


class ParticipantCreatedResponse(SuccessResponse):
    participant_id: int


class ValidatePasswordResponse(CamelModel):
    valid: bool


class ConfirmDateResponse(CamelModel):
    success: bool = True
    confirmed: bool


class CalendarLinkResponse(CamelModel):
    date_option_id: int
    url: str


class DateOptionSummaryResponse(CamelModel):
    """Answer tally for one date option."""

    date_option_id: int
    datetime: str
    formatted: str
    available: int
    unavailable: int
    unknown: int
    total: int
    participation_rate: float
    label: str
    tier: Literal["high", "medium", "low"]
    confirmed: bool

    @classmethod
    def from_summary(cls, summary: DateOptionSummary) -> "DateOptionSummaryResponse":
        return cls(
            date_option_id=summary.date_option_id,
            datetime=summary.datetime,
            formatted=summary.formatted,
            available=summary.available,
            unavailable=summary.unavailable,
            unknown=summary.unknown,
            total=summary.total,
            participation_rate=summary.participation_rate,
            label=summary.label,
            tier=summary.tier,
            confirmed=summary.confirmed,
        )


class EventSummaryResponse(CamelModel):
    event_id: str
    participant_count: int
    date_options: list[DateOptionSummaryResponse]
    best_date_option_ids: list[int]


class HealthResponse(CamelModel):
    """Health check response."""

    status: Literal["healthy", "unhealthy"]
    version: str
    database_connected: bool


class ErrorResponse(BaseModel):
    """Standard error response."""

    error_type: str = Field(..., description="Error category")
    message: str = Field(..., description="Human-readable error message")
    retryable: bool = Field(default=False, description="Whether retry might succeed")
