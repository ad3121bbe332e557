"""
Planner session: ties the engine to its external collaborators.

A PlannerSession owns one SessionState and is the only place that swaps it.
It runs the refresh cycle against the calendar and coursework
collaborators, drives an assignment through horizon -> request -> oracle ->
validation -> calendar, and turns every failure into a user-visible notice.
"""
from __future__ import annotations

import asyncio
import logging
import typing as t
import uuid
from dataclasses import replace
from datetime import datetime, timezone

from planner_engine.applier import apply_allocation
from planner_engine.availability import build_horizon, serialize_horizon
from planner_engine.config import PlannerSettings, load_settings
from planner_engine.coursework import map_coursework
from planner_engine.errors import (EventCreationError, PartialApplicationFailure, SchedulingError,
                                   UnknownItemError)
from planner_engine.models import (ASSIGNMENT_TYPES, Assignment, CalendarEvent, Course, EventDraft, Horizon, Notice,
                                   ScheduledTask)
from planner_engine.oracle import AllocationOracle, invoke_oracle
from planner_engine.request_builder import build_allocation_request
from planner_engine.state import (SessionState, add_event, add_notice, apply_refresh, begin_refresh,
                                  promote_to_scheduled, record_tasks, return_to_triage, toggle_task)
from planner_engine.validator import validate_allocation

logger = logging.getLogger(__name__)

FETCH_ERROR_TITLE = "Could not read your calendar/coursework"
SCHEDULE_ERROR_TITLE = "Could not schedule this task"


class CalendarCollaborator(t.Protocol):
    async def fetch_events(self, window_days: t.Optional[int] = None) -> list[CalendarEvent]: ...

    async def create_event(self, draft: EventDraft) -> t.Optional[CalendarEvent]: ...


class CourseworkCollaborator(t.Protocol):
    async def fetch_courses(self) -> list[Course]: ...

    async def fetch_course_work(self, course_id: str) -> list[dict[str, t.Any]]: ...


class PlannerSession:
    """One student's planning session."""

    def __init__(
            self,
            calendar: CalendarCollaborator,
            coursework: CourseworkCollaborator,
            oracle: AllocationOracle,
            settings: t.Optional[PlannerSettings] = None,
            clock: t.Optional[t.Callable[[], datetime]] = None,
    ) -> None:
        self.calendar = calendar
        self.coursework = coursework
        self.oracle = oracle
        self.settings = settings or load_settings()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.state = SessionState()
        self._active_refresh: t.Optional[int] = None

    # -----------------------------
    # Refresh
    # -----------------------------

    async def refresh(self, force: bool = False) -> SessionState:
        """Reloads calendar events, courses and coursework.

        A non-forced refresh while another one is running does nothing. A
        forced refresh always starts over; the superseded refresh's results
        are discarded when they arrive.
        """
        if self._active_refresh is not None and not force:
            return self.state

        self.state, generation = begin_refresh(self.state)
        self._active_refresh = generation
        failures: list[str] = []
        try:
            events, courses = await asyncio.gather(self._fetch_events(failures), self._fetch_courses(failures))
            # Courses must be known before their work can be fetched
            per_course = await asyncio.gather(*(self._fetch_course_assignments(c, failures) for c in courses))
            fetched = [assignment for batch in per_course for assignment in batch]
            if generation != self.state.refresh_generation:
                logger.info("Discarding results of superseded refresh %d", generation)
                return self.state
            for message in failures:
                self._notify("error", FETCH_ERROR_TITLE, message)
            self.state = apply_refresh(self.state, generation, events, courses, fetched)
        finally:
            if self._active_refresh == generation:
                self._active_refresh = None
        return self.state

    async def _fetch_events(self, failures: list[str]) -> list[CalendarEvent]:
        try:
            return list(await self.calendar.fetch_events())
        except Exception as e:
            logger.error("Fetching calendar events failed: %s", e)
            failures.append(f"Failed to fetch your calendar events: {e}")
            return []

    async def _fetch_courses(self, failures: list[str]) -> list[Course]:
        try:
            return list(await self.coursework.fetch_courses())
        except Exception as e:
            logger.error("Fetching courses failed: %s", e)
            failures.append(f"Failed to fetch your courses: {e}")
            return []

    async def _fetch_course_assignments(self, course: Course, failures: list[str]) -> list[Assignment]:
        try:
            works = await self.coursework.fetch_course_work(course.id)
        except Exception as e:
            logger.error("Fetching assignments for course %s failed: %s", course.id, e)
            failures.append(f"Failed to fetch assignments for {course.name}: {e}")
            return []
        return map_coursework(works, course.name, self.settings.timezone, self.clock())

    # -----------------------------
    # Availability
    # -----------------------------

    def horizon(self) -> Horizon:
        """Free time over the planning horizon, as of now."""
        return build_horizon(
            self.state.events,
            self.clock(),
            self.settings.timezone,
            days=self.settings.horizon_days,
            workday_start=self.settings.workday_start,
            workday_end=self.settings.workday_end,
        )

    def availability_text(self) -> str:
        return serialize_horizon(self.horizon())

    # -----------------------------
    # Scheduling
    # -----------------------------

    async def schedule_assignment(self, assignment: Assignment) -> list[ScheduledTask]:
        """Plans study blocks for an assignment and writes them to the calendar.

        :param assignment: An assignment with type and estimated minutes.
        :return: The created study blocks.
        :raises ValueError: If the assignment lacks a known type or a positive estimate.
        :raises SchedulingError: If no allocation could be obtained. The
            assignment is back in triage.
        :raises PartialApplicationFailure: If only some blocks were created.
            Created blocks are kept and the assignment stays scheduled.
        """
        if not assignment.is_ready:
            raise ValueError(f"Assignment {assignment.id} needs a type and an estimated time before scheduling")
        if assignment.type not in ASSIGNMENT_TYPES:
            raise ValueError(
                f"Unknown assignment type {assignment.type!r}, expected one of {', '.join(ASSIGNMENT_TYPES)}"
            )

        self.state = promote_to_scheduled(self.state, assignment)
        try:
            request = build_allocation_request(assignment, assignment.estimated_minutes, self.horizon())
            raw = await invoke_oracle(self.oracle, request)
            items = validate_allocation(raw, request, self.settings.min_block_minutes)
        except SchedulingError as e:
            logger.warning("Scheduling %s failed: %s", assignment.id, e)
            self.state = return_to_triage(self.state, assignment.id)
            self._notify("error", SCHEDULE_ERROR_TITLE, str(e))
            raise

        try:
            tasks = await apply_allocation(items, assignment, self.calendar.create_event)
        except PartialApplicationFailure as e:
            if e.created_tasks:
                self.state = record_tasks(self.state, assignment.id, e.created_tasks)
            else:
                # Nothing reached the calendar, so the assignment can be retried from triage
                self.state = return_to_triage(self.state, assignment.id)
            self._notify("error", SCHEDULE_ERROR_TITLE, str(e))
            raise

        self.state = record_tasks(self.state, assignment.id, tasks)
        self._notify("info", "Scheduling complete!", f"We've added {len(tasks)} task(s) to your calendar.")
        await self.refresh(force=True)
        return tasks

    async def schedule_from_triage(self, assignment_id: str, type: str, estimated_minutes: int) -> list[ScheduledTask]:
        """Completes a triaged assignment's metadata and schedules it."""
        assignment = next((a for a in self.state.triage if a.id == assignment_id), None)
        if assignment is None:
            raise UnknownItemError(f"Assignment not in triage: {assignment_id}")
        updated = replace(assignment, type=type, estimated_minutes=estimated_minutes)
        return await self.schedule_assignment(updated)

    async def add_manual_assignment(
            self,
            title: str,
            course: str,
            due_date: datetime,
            description: str,
            type: str,
            estimated_minutes: int,
    ) -> tuple[Assignment, list[ScheduledTask]]:
        """Creates an assignment by hand and schedules it right away."""
        assignment = Assignment(
            id=f"manual-{uuid.uuid4().hex}",
            title=title,
            course=course,
            due_date=due_date,
            description=description,
            type=type,
            estimated_minutes=estimated_minutes,
            source="manual",
        )
        tasks = await self.schedule_assignment(assignment)
        return assignment, tasks

    # -----------------------------
    # Tasks and events
    # -----------------------------

    def toggle_task(self, task_id: str) -> ScheduledTask:
        """Flips a study block between pending and completed."""
        self.state = toggle_task(self.state, task_id)
        return next(task for task in self.state.tasks if task.id == task_id)

    async def add_event(self, title: str, start_time: datetime, end_time: datetime) -> CalendarEvent:
        """Adds a manual commitment to the calendar."""
        if start_time.tzinfo is None or end_time.tzinfo is None:
            raise ValueError("Event start and end must carry a timezone offset")
        draft = EventDraft(title=title, start_time=start_time, end_time=end_time,
                           description="Manually added event.")
        try:
            event = await self.calendar.create_event(draft)
        except Exception as e:
            self._notify("error", "Error", f"Failed to create event in your calendar: {e}")
            raise EventCreationError(f"Failed to create event {title!r}: {e}") from e
        if event is None:
            self._notify("error", "Error", "Failed to create event in your calendar.")
            raise EventCreationError(f"Failed to create event {title!r}")

        self.state = add_event(self.state, event)
        self._notify("info", "Event Added", f"{title} has been added to your calendar.")
        await self.refresh(force=True)
        return event

    def _notify(self, level: t.Literal["info", "error"], title: str, message: str) -> None:
        self.state = add_notice(self.state, Notice(level=level, title=title, message=message))
