"""
Writes a validated allocation to the calendar.

Blocks are created one at a time in allocation order. When a creation fails
the loop stops and the blocks created so far are reported alongside the
failure; they are never deleted again.
"""
from __future__ import annotations

import logging
import typing as t

from planner_engine.errors import PartialApplicationFailure
from planner_engine.models import AllocationItem, Assignment, CalendarEvent, EventDraft, ScheduledTask

logger = logging.getLogger(__name__)

CreateEvent = t.Callable[[EventDraft], t.Awaitable[t.Optional[CalendarEvent]]]

ASSIGNMENT_MARKER = "Original Assignment"
ASSIGNMENT_ID_MARKER = "Assignment ID"


def build_event_description(assignment: Assignment) -> str:
    """Description for a study block, with markers reconciliation reads back."""
    return "\n".join([
        "AI-generated study block for:",
        f"{ASSIGNMENT_MARKER}: {assignment.title}",
        f"{ASSIGNMENT_ID_MARKER}: {assignment.id}",
        f"Type: {assignment.type}",
        f"Total Estimated Time: {assignment.estimated_minutes} minutes",
        f"Class: {assignment.course}",
    ])


async def apply_allocation(
        items: t.Sequence[AllocationItem],
        assignment: Assignment,
        create_event: CreateEvent,
) -> list[ScheduledTask]:
    """Creates one calendar event per allocation item.

    :param items: Validated allocation items.
    :param assignment: The assignment the items belong to.
    :param create_event: Calendar-write collaborator.
    :return: One pending ScheduledTask per created event, in allocation order.
    :raises PartialApplicationFailure: If an event could not be created. The
        exception carries the tasks created before the failure.
    """
    description = build_event_description(assignment)
    created: list[ScheduledTask] = []

    for position, item in enumerate(items, 1):
        draft = EventDraft(
            title=item.task,
            start_time=item.start_time,
            end_time=item.end_time,
            description=description,
        )
        try:
            event = await create_event(draft)
        except Exception as e:
            logger.error("Creating block %d of %d for %s failed: %s", position, len(items), assignment.id, e)
            raise PartialApplicationFailure(created, position, len(items), cause=e) from e

        if event is None or not event.id:
            logger.error("Calendar returned no event for block %d of %d of %s", position, len(items), assignment.id)
            raise PartialApplicationFailure(created, position, len(items))

        created.append(ScheduledTask(
            id=event.id,
            assignment_id=assignment.id,
            title=item.task,
            start_time=item.start_time,
            end_time=item.end_time,
            status="pending",
        ))
        logger.info("Scheduled %r for %s at %s", item.task, assignment.id, item.start_time.isoformat())

    return created
