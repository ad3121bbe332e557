# -*- coding: utf-8 -*-
from planner_engine.availability import serialize_horizon
from planner_engine.errors import NoAvailableTime
from planner_engine.models import AllocationRequest, Assignment, Horizon


def describe_assignment(assignment: Assignment) -> str:
    """Builds the human-readable task description handed to the oracle.

    :param assignment: The assignment to describe.
    :return: One ``Label: value`` line per assignment field.
    """
    return "\n".join([
        f"Course: {assignment.course}",
        f"Title: {assignment.title}",
        f"Type: {assignment.type or 'Unspecified'}",
        f"Description: {assignment.description or 'No description provided.'}",
    ])


def build_allocation_request(
        assignment: Assignment,
        total_minutes: int,
        horizon: Horizon,
) -> AllocationRequest:
    """Assembles the request for the allocation oracle.

    :param assignment: The assignment to schedule.
    :param total_minutes: Total study time the allocation must add up to.
    :param horizon: Free time over the planning horizon.
    :return: An AllocationRequest carrying the serialized availability.
    :raises ValueError: If ``total_minutes`` is not positive.
    :raises NoAvailableTime: If the horizon has less free time than ``total_minutes``.
    """
    if total_minutes <= 0:
        raise ValueError(f"Total minutes must be positive, got {total_minutes}")
    available = horizon.total_minutes
    if not available:
        raise NoAvailableTime(
            "Could not find any free time slots in your schedule for the planning horizon."
        )
    if total_minutes > available:
        raise NoAvailableTime(
            f"Only {available:g} free minutes left in the planning horizon, {total_minutes} needed."
        )

    return AllocationRequest(
        task_description=describe_assignment(assignment),
        total_minutes_required=total_minutes,
        availability_text=serialize_horizon(horizon),
        horizon=horizon,
    )
