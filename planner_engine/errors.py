"""Exceptions raised by the planner engine and its collaborators."""
from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:
    from planner_engine.models import ScheduledTask


class PlannerError(Exception):
    """Base class for all planner errors."""


class ExternalFetchError(PlannerError):
    """A calendar or coursework fetch failed or returned a non-success status."""


class EventCreationError(PlannerError):
    """A calendar event could not be created."""


class UnknownItemError(PlannerError):
    """An assignment or task id is not known to the session."""


class SchedulingError(PlannerError):
    """Scheduling an assignment failed before anything was written to the calendar."""


class OracleInvocationError(SchedulingError):
    """The allocation oracle could not be reached or did not answer."""


class InvalidAllocation(SchedulingError):
    """The oracle answered with an allocation that breaks a structural rule."""


class NoAvailableTime(SchedulingError):
    """There is no free time left in the planning horizon."""


class PartialApplicationFailure(PlannerError):
    """Only a prefix of the allocation could be written to the calendar."""

    def __init__(
            self,
            created_tasks: t.Sequence[ScheduledTask],
            failed_index: int,
            total: int,
            cause: t.Optional[BaseException] = None,
    ) -> None:
        self.created_tasks = tuple(created_tasks)
        self.failed_index = failed_index
        self.total = total
        self.cause = cause
        super().__init__(
            f"Created {len(self.created_tasks)} of {total} study blocks; "
            f"block {failed_index} of {total} could not be added to the calendar"
        )

    @property
    def created_count(self) -> int:
        return len(self.created_tasks)
