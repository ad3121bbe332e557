"""
Structural validation of oracle allocations.

The oracle's planning quality is not checked here, only that its answer can
be written to the calendar as-is: every block is well formed, long enough,
inside time the student actually has free, and the blocks add up to exactly
the requested study time. Any violation raises InvalidAllocation; nothing is
repaired.
"""
from __future__ import annotations

import typing as t
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from planner_engine.errors import InvalidAllocation
from planner_engine.models import AllocationItem, AllocationRequest, TimeInterval
from planner_engine.schemas import OracleResponse

MIN_BLOCK_MINUTES = 15


def parse_timestamp(value: str) -> datetime:
    """Parses an absolute ISO-8601 timestamp.

    :param value: Timestamp text, ``Z`` or an explicit UTC offset is required.
    :return: An aware datetime.
    :raises InvalidAllocation: If the text is not ISO-8601 or has no offset.
    """
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except (ValueError, AttributeError) as e:
        raise InvalidAllocation(f"Unparseable timestamp {value!r}") from e
    if parsed.tzinfo is None or parsed.utcoffset() is None:
        raise InvalidAllocation(f"Timestamp {value!r} has no timezone offset")
    return parsed


def validate_allocation(
        raw: t.Any,
        request: AllocationRequest,
        min_block_minutes: int = MIN_BLOCK_MINUTES,
) -> list[AllocationItem]:
    """Checks an oracle response against the request it answers.

    :param raw: The decoded oracle response.
    :param request: The request sent to the oracle; its horizon declares the free windows.
    :param min_block_minutes: Shortest acceptable study block.
    :return: The allocation items ordered by start time.
    :raises InvalidAllocation: If any structural rule is broken.
    """
    if request.horizon is None:
        raise ValueError("AllocationRequest has no horizon to validate against")

    try:
        response = OracleResponse.model_validate(raw)
    except ValidationError as e:
        raise InvalidAllocation(f"Oracle returned an invalid schedule format: {e}") from e

    if not response.schedule:
        raise InvalidAllocation("Oracle returned an empty schedule")

    tz = ZoneInfo(request.horizon.timezone)
    min_block = timedelta(minutes=min_block_minutes)
    items: list[AllocationItem] = []

    for position, entry in enumerate(response.schedule, 1):
        start = parse_timestamp(entry.start_time)
        end = parse_timestamp(entry.end_time)
        if start >= end:
            raise InvalidAllocation(f"Block {position} ({entry.task!r}) ends before it starts")

        if end - start < min_block:
            raise InvalidAllocation(
                f"Block {position} ({entry.task!r}) is shorter than {min_block_minutes} minutes"
            )

        block = TimeInterval(start, end)
        windows = request.horizon.windows_for(start.astimezone(tz).date())
        if not any(window.contains(block) for window in windows):
            raise InvalidAllocation(
                f"Block {position} ({entry.task!r}) from {entry.start_time} to {entry.end_time} "
                f"is outside the available time slots"
            )

        items.append(AllocationItem(task=entry.task, start_time=start, end_time=end))

    items.sort(key=lambda item: item.start_time)
    for previous, current in zip(items, items[1:]):
        if current.start_time < previous.end_time:
            raise InvalidAllocation(
                f"Blocks {previous.task!r} and {current.task!r} overlap"
            )

    allocated = sum((item.end_time - item.start_time for item in items), timedelta())
    required = timedelta(minutes=request.total_minutes_required)
    if allocated != required:
        raise InvalidAllocation(
            f"Schedule totals {allocated.total_seconds() / 60:g} minutes, "
            f"expected exactly {request.total_minutes_required}"
        )

    return items
