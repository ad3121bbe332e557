# -*- coding: utf-8 -*-
import typing as t
from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo

from planner_engine.models import Assignment


def is_schedulable_work(work: dict[str, t.Any]) -> bool:
    """Whether a raw course-work item still needs study time.

    Only graded assignments count, and work that was returned with a grade
    is finished.

    :param work: Raw course-work item with its submission state attached.
    :return: True if the item belongs in the planner.
    """
    if work.get("workType") != "ASSIGNMENT":
        return False
    if not (work.get("maxPoints") or 0) > 0:
        return False
    if work.get("submissionState") == "RETURNED" and work.get("assignedGrade") is not None:
        return False
    return True


def parse_due_date(work: dict[str, t.Any], tz: ZoneInfo, now: datetime) -> datetime:
    """Due date of a course-work item.

    Classroom reports ``dueDate``/``dueTime`` in UTC. A date without a time
    is taken as local midnight; no date at all falls back to ``now``.
    """
    due = work.get("dueDate")
    if not due:
        return now
    day = datetime(due["year"], due["month"], due["day"]).date()
    due_time = work.get("dueTime")
    if due_time:
        clock = time(due_time.get("hours", 0), due_time.get("minutes", 0))
        return datetime.combine(day, clock, tzinfo=timezone.utc)
    return datetime.combine(day, time.min, tzinfo=tz)


def to_assignment(
        work: dict[str, t.Any],
        course_name: str,
        tz: ZoneInfo,
        now: datetime,
) -> Assignment:
    """Maps a raw course-work item onto a triage Assignment.

    :param work: Raw course-work item.
    :param course_name: Name of the course the work belongs to.
    :param tz: The planner timezone.
    :param now: Fallback due date.
    :return: An Assignment without type or estimate.
    """
    return Assignment(
        id=str(work["id"]),
        title=work.get("title", "") or "Untitled assignment",
        course=course_name or "Unknown Course",
        course_id=work.get("courseId"),
        due_date=parse_due_date(work, tz, now),
        description=work.get("description", "") or "No description provided.",
        source="google_classroom",
    )


def map_coursework(
        works: t.Iterable[dict[str, t.Any]],
        course_name: str,
        tz: ZoneInfo,
        now: datetime,
) -> list[Assignment]:
    """Filters and maps one course's raw work items."""
    return [to_assignment(w, course_name, tz, now) for w in works if is_schedulable_work(w)]
