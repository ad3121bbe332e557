"""
Data models for the study block planner.

This module contains the dataclasses used to represent calendar commitments,
assignments, scheduled study blocks and the oracle request/response items
that flow through the availability-and-allocation engine.
"""
from __future__ import annotations

import typing as t
from dataclasses import dataclass, field
from datetime import date, datetime


# Type literals for commonly used values
EventSource = t.Literal["manual", "google_calendar"]
AssignmentSource = t.Literal["manual", "google_classroom"]
TaskStatus = t.Literal["pending", "completed"]
NoticeLevel = t.Literal["info", "error"]

ASSIGNMENT_TYPES = ("Homework", "Project", "Essay", "Quiz", "Test", "Reading")


@dataclass(frozen=True)
class TimeInterval:
    """A half-open time range ``[start, end)`` with aware datetimes."""
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(f"Interval start {self.start} must be before end {self.end}")

    @property
    def minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60

    def contains(self, other: TimeInterval) -> bool:
        return self.start <= other.start and other.end <= self.end


@dataclass(frozen=True)
class CalendarEvent:
    """A calendar entry, treated by the engine as a read-only busy interval."""
    id: str
    title: str
    start_time: datetime
    end_time: datetime
    source: EventSource = "google_calendar"
    description: t.Optional[str] = None


@dataclass(frozen=True)
class EventDraft:
    """An event that has not been created on the calendar yet."""
    title: str
    start_time: datetime
    end_time: datetime
    description: str = ""


@dataclass(frozen=True)
class Course:
    """A course the student is enrolled in."""
    id: str
    name: str


@dataclass(frozen=True)
class ScheduledTask:
    """A study block created on the calendar for one assignment."""
    id: str  # id of the calendar event backing this task
    assignment_id: str
    title: str
    start_time: datetime
    end_time: datetime
    status: TaskStatus = "pending"


@dataclass(frozen=True)
class Assignment:
    """
    A homework item waiting for study time.

    An assignment sits in triage until both ``type`` and
    ``estimated_minutes`` are known.
    """
    id: str
    title: str
    course: str
    due_date: datetime
    description: str = ""
    estimated_minutes: t.Optional[int] = None
    type: t.Optional[str] = None
    progress: int = 0
    sub_tasks: tuple[ScheduledTask, ...] = ()
    source: AssignmentSource = "manual"
    course_id: t.Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return bool(self.type) and (self.estimated_minutes or 0) > 0


@dataclass(frozen=True)
class DayAvailability:
    """Free windows for a single calendar day."""
    day: date
    windows: tuple[TimeInterval, ...]


@dataclass(frozen=True)
class Horizon:
    """Availability over the rolling planning horizon."""
    timezone: str
    timezone_abbreviation: str
    days: tuple[DayAvailability, ...] = ()

    def windows_for(self, day: date) -> tuple[TimeInterval, ...]:
        for availability in self.days:
            if availability.day == day:
                return availability.windows
        return ()

    @property
    def total_minutes(self) -> float:
        return sum(w.minutes for d in self.days for w in d.windows)


@dataclass(frozen=True)
class AllocationRequest:
    """Everything the allocation oracle needs to place one assignment."""
    task_description: str
    total_minutes_required: int
    availability_text: str
    # Structured form of availability_text, kept for validation only
    horizon: t.Optional[Horizon] = field(default=None, repr=False, compare=False)

    def to_oracle_payload(self) -> dict[str, t.Any]:
        return {
            "task_description": self.task_description,
            "total_minutes_required": self.total_minutes_required,
            "availability_text": self.availability_text,
        }


@dataclass(frozen=True)
class AllocationItem:
    """One validated study block proposed by the oracle."""
    task: str
    start_time: datetime
    end_time: datetime

    @property
    def minutes(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 60


@dataclass(frozen=True)
class Notice:
    """A user-visible notification."""
    level: NoticeLevel
    title: str
    message: str
