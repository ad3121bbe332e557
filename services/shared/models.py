"""
Shared Pydantic models for REST API serialization.

The planner engine works on frozen dataclasses; these models mirror them for
JSON responses (built with ``model_validate`` from attributes) and describe
the request bodies accepted by the planner service.
"""
from __future__ import annotations

import typing as t
from datetime import date, datetime

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field


class _FromDomain(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ScheduledTaskModel(_FromDomain):
    """A study block on the calendar."""
    id: str
    assignment_id: str
    title: str
    start_time: datetime
    end_time: datetime
    status: t.Literal["pending", "completed"] = "pending"


class AssignmentModel(_FromDomain):
    """An assignment in triage or scheduled."""
    id: str
    title: str
    course: str
    due_date: datetime
    description: str = ""
    estimated_minutes: t.Optional[int] = None
    type: t.Optional[str] = None
    progress: int = 0
    sub_tasks: list[ScheduledTaskModel] = Field(default_factory=list)
    source: t.Literal["manual", "google_classroom"] = "manual"
    course_id: t.Optional[str] = None


class CalendarEventModel(_FromDomain):
    """A calendar commitment."""
    id: str
    title: str
    start_time: datetime
    end_time: datetime
    source: t.Literal["manual", "google_calendar"] = "google_calendar"
    description: t.Optional[str] = None


class NoticeModel(_FromDomain):
    """A user-visible notification."""
    level: t.Literal["info", "error"]
    title: str
    message: str


class FreeWindowModel(BaseModel):
    start: datetime
    end: datetime


class DayAvailabilityModel(BaseModel):
    day: date
    windows: list[FreeWindowModel] = Field(default_factory=list)


class AvailabilityResponse(BaseModel):
    """Free time over the planning horizon."""
    timezone: str
    availability_text: str
    days: list[DayAvailabilityModel] = Field(default_factory=list)


class StateSummary(BaseModel):
    """Counts describing the session after a refresh."""
    refresh_generation: int
    triage: int
    scheduled: int
    tasks: int
    events: int
    courses: int


# Request/Response Models for API endpoints
class ScheduleTriageRequest(BaseModel):
    """Metadata that moves a triaged assignment to scheduling."""
    type: str = Field(min_length=1)
    estimated_minutes: int = Field(ge=5)


class ManualAssignmentRequest(BaseModel):
    """Request model for adding and scheduling homework by hand."""
    title: str = Field(min_length=3)
    course: str = Field(min_length=1)
    due_date: AwareDatetime
    description: str = Field(min_length=10)
    type: str = Field(min_length=1)
    estimated_minutes: int = Field(ge=5)


class ScheduleResponse(BaseModel):
    """Study blocks created for one assignment."""
    assignment_id: str
    tasks: list[ScheduledTaskModel] = Field(default_factory=list)


class CreateEventRequest(BaseModel):
    """Request model for adding a manual calendar event."""
    title: str = Field(min_length=1)
    start_time: AwareDatetime
    end_time: AwareDatetime
