"""
Session state and the transforms that change it.

SessionState is immutable. Every mutation is a plain function returning a
new state, so the planner session only ever swaps one state object for
another and each change can be tested on its own.
"""
from __future__ import annotations

import typing as t
from dataclasses import dataclass, field, replace

from planner_engine.errors import UnknownItemError
from planner_engine.models import Assignment, CalendarEvent, Course, Notice, ScheduledTask
from planner_engine.reconciliation import admit_coursework, recompute_progress, toggle_task_status


@dataclass(frozen=True)
class SessionState:
    """Everything the planner knows during one session."""
    triage: tuple[Assignment, ...] = ()
    scheduled: tuple[Assignment, ...] = ()
    tasks: tuple[ScheduledTask, ...] = ()
    events: tuple[CalendarEvent, ...] = ()
    courses: tuple[Course, ...] = ()
    # assignment id -> ids of the calendar events created for it
    task_links: t.Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    notices: tuple[Notice, ...] = ()
    refresh_generation: int = 0

    def find_assignment(self, assignment_id: str) -> t.Optional[Assignment]:
        for assignment in (*self.triage, *self.scheduled):
            if assignment.id == assignment_id:
                return assignment
        return None

    def tasks_for(self, assignment_id: str) -> list[ScheduledTask]:
        return [task for task in self.tasks if task.assignment_id == assignment_id]


def begin_refresh(state: SessionState) -> tuple[SessionState, int]:
    """Starts a new refresh generation; older in-flight refreshes become stale."""
    generation = state.refresh_generation + 1
    return replace(state, refresh_generation=generation), generation


def apply_refresh(
        state: SessionState,
        generation: int,
        events: t.Sequence[CalendarEvent],
        courses: t.Sequence[Course],
        fetched: t.Sequence[Assignment],
) -> SessionState:
    """Merges the result of a refresh into the state.

    Results from a superseded generation are dropped so a slow refresh never
    overwrites newer data.
    """
    if generation != state.refresh_generation:
        return state
    triage = admit_coursework(
        state.triage,
        state.scheduled,
        fetched,
        events,
        known_ids=state.task_links.keys(),
    )
    return replace(state, events=tuple(events), courses=tuple(courses), triage=tuple(triage))


def add_to_triage(state: SessionState, assignment: Assignment) -> SessionState:
    if state.find_assignment(assignment.id) is not None:
        return state
    return replace(state, triage=state.triage + (assignment,))


def promote_to_scheduled(state: SessionState, assignment: Assignment) -> SessionState:
    """Moves an assignment out of triage into the scheduled set.

    ``assignment`` replaces any earlier copy, so updated type and estimate
    values win.
    """
    triage = tuple(a for a in state.triage if a.id != assignment.id)
    scheduled = tuple(a for a in state.scheduled if a.id != assignment.id) + (assignment,)
    return replace(state, triage=triage, scheduled=scheduled)


def return_to_triage(state: SessionState, assignment_id: str) -> SessionState:
    """Sends a scheduled assignment back to triage after a failed allocation."""
    assignment = next((a for a in state.scheduled if a.id == assignment_id), None)
    if assignment is None:
        return state
    scheduled = tuple(a for a in state.scheduled if a.id != assignment_id)
    triage = tuple(a for a in state.triage if a.id != assignment_id) + (assignment,)
    return replace(state, triage=triage, scheduled=scheduled)


def record_tasks(state: SessionState, assignment_id: str, new_tasks: t.Sequence[ScheduledTask]) -> SessionState:
    """Stores freshly created study blocks and links them to their assignment."""
    tasks = state.tasks + tuple(new_tasks)
    links = dict(state.task_links)
    links[assignment_id] = links.get(assignment_id, ()) + tuple(task.id for task in new_tasks)
    scheduled = tuple(
        recompute_progress(a, tasks) if a.id == assignment_id else a
        for a in state.scheduled
    )
    return replace(state, tasks=tasks, task_links=links, scheduled=scheduled)


def toggle_task(state: SessionState, task_id: str) -> SessionState:
    """Flips a task's status and recomputes the owning assignment's progress.

    :raises UnknownItemError: If no task has ``task_id``.
    """
    tasks, toggled = toggle_task_status(state.tasks, task_id)
    if toggled is None:
        raise UnknownItemError(f"Task not found: {task_id}")
    scheduled = tuple(
        recompute_progress(a, tasks) if a.id == toggled.assignment_id else a
        for a in state.scheduled
    )
    return replace(state, tasks=tuple(tasks), scheduled=scheduled)


def add_event(state: SessionState, event: CalendarEvent) -> SessionState:
    if any(e.id == event.id for e in state.events):
        return state
    return replace(state, events=state.events + (event,))


def add_notice(state: SessionState, notice: Notice) -> SessionState:
    return replace(state, notices=state.notices + (notice,))
