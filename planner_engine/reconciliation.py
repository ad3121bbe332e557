"""
Reconciliation of freshly fetched data with the planner state.

Identity of previously scheduled work is carried by assignment ids: the
session keeps an explicit assignment-to-task mapping and every study block
carries an ``Assignment ID:`` marker. The older ``Original Assignment:``
title marker is still honoured, but a title match alone is only a
best-effort signal and is logged for review.
"""
from __future__ import annotations

import logging
import re
import typing as t
from dataclasses import replace

from planner_engine.applier import ASSIGNMENT_ID_MARKER, ASSIGNMENT_MARKER
from planner_engine.models import Assignment, CalendarEvent, ScheduledTask

logger = logging.getLogger(__name__)

_TITLE_MARKER = re.compile(rf"{ASSIGNMENT_MARKER}: (.*)")
_ID_MARKER = re.compile(rf"{ASSIGNMENT_ID_MARKER}: (.*)")


def _extract(events: t.Iterable[CalendarEvent], pattern: re.Pattern) -> set[str]:
    found: set[str] = set()
    for event in events:
        if not event.description:
            continue
        match = pattern.search(event.description)
        if match and match.group(1).strip():
            found.add(match.group(1).strip())
    return found


def extract_scheduled_titles(events: t.Iterable[CalendarEvent]) -> set[str]:
    """Assignment titles referenced by study blocks already on the calendar."""
    return _extract(events, _TITLE_MARKER)


def extract_scheduled_assignment_ids(events: t.Iterable[CalendarEvent]) -> set[str]:
    """Assignment ids referenced by study blocks already on the calendar."""
    return _extract(events, _ID_MARKER)


def admit_coursework(
        triage: t.Sequence[Assignment],
        scheduled: t.Sequence[Assignment],
        fetched: t.Iterable[Assignment],
        events: t.Iterable[CalendarEvent],
        known_ids: t.Iterable[str] = (),
) -> list[Assignment]:
    """Merges fetched coursework into the triage queue.

    An item is admitted only if its id is neither scheduled, already in
    triage, in ``known_ids`` nor referenced by an id marker, and its title is
    not referenced by a title marker. Applying the same input twice gives the
    same result.

    :param triage: Current triage queue.
    :param scheduled: Assignments already handed to the scheduler.
    :param fetched: Assignments mapped from the latest coursework fetch.
    :param events: The latest calendar events.
    :param known_ids: Further assignment ids that count as scheduled.
    :return: The new triage queue; existing entries keep their order.
    """
    events = list(events)
    marker_titles = extract_scheduled_titles(events)
    taken = {a.id for a in scheduled} | {a.id for a in triage}
    taken |= set(known_ids) | extract_scheduled_assignment_ids(events)

    admitted = list(triage)
    for assignment in fetched:
        if assignment.id in taken:
            continue
        if assignment.title in marker_titles:
            logger.warning(
                "Skipping %s (%r): title matches an already scheduled study block but its id does not",
                assignment.id, assignment.title,
            )
            continue
        admitted.append(assignment)
        taken.add(assignment.id)
    return admitted


def calculate_progress(tasks: t.Iterable[ScheduledTask]) -> int:
    """Percentage of completed tasks rounded half up, 0 when there are none."""
    tasks = list(tasks)
    if not tasks:
        return 0
    completed = sum(1 for task in tasks if task.status == "completed")
    return (200 * completed + len(tasks)) // (2 * len(tasks))


def recompute_progress(assignment: Assignment, tasks: t.Iterable[ScheduledTask]) -> Assignment:
    """Returns ``assignment`` with progress and sub-tasks taken from its own tasks."""
    own = tuple(task for task in tasks if task.assignment_id == assignment.id)
    return replace(assignment, sub_tasks=own, progress=calculate_progress(own))


def toggle_task_status(tasks: t.Sequence[ScheduledTask], task_id: str) -> tuple[list[ScheduledTask], t.Optional[ScheduledTask]]:
    """Flips one task between pending and completed.

    :param tasks: All scheduled tasks.
    :param task_id: Id of the task to toggle.
    :return: The new task list and the toggled task, or ``None`` if no task matched.
    """
    toggled: t.Optional[ScheduledTask] = None
    updated: list[ScheduledTask] = []
    for task in tasks:
        if task.id == task_id:
            task = replace(task, status="completed" if task.status == "pending" else "pending")
            toggled = task
        updated.append(task)
    return updated, toggled
