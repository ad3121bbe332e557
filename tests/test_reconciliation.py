"""Tests for coursework admission, progress tracking and course-work mapping."""
from datetime import datetime, timezone

import pytest

from planner_engine.coursework import is_schedulable_work, map_coursework, parse_due_date
from planner_engine.errors import UnknownItemError
from planner_engine.models import Assignment, Course, ScheduledTask
from planner_engine.reconciliation import (admit_coursework, calculate_progress, extract_scheduled_assignment_ids,
                                           extract_scheduled_titles)
from planner_engine.state import (SessionState, apply_refresh, begin_refresh, promote_to_scheduled, record_tasks,
                                  return_to_triage, toggle_task)
from stubs import NOW, TZ, event, local, raw_work


def assignment(assignment_id: str, title: str = "Problem set") -> Assignment:
    return Assignment(id=assignment_id, title=title, course="Math", due_date=NOW)


def task(task_id: str, assignment_id: str = "a1", status: str = "pending") -> ScheduledTask:
    return ScheduledTask(id=task_id, assignment_id=assignment_id, title=f"Block {task_id}",
                         start_time=local(15), end_time=local(16), status=status)


def study_block(assignment_id: str, title: str):
    return event(f"blk-{assignment_id}", local(9), local(10),
                 description=f"AI-generated study block for:\nOriginal Assignment: {title}\n"
                             f"Assignment ID: {assignment_id}\nType: Homework")


# -----------------------------
# Admission
# -----------------------------

def test_admission_is_idempotent() -> None:
    """Admitting the same fetch twice does not duplicate anything."""
    fetched = [assignment("a1"), assignment("a2", "Essay")]
    once = admit_coursework([], [], fetched, [])
    twice = admit_coursework(once, [], fetched, [])
    assert [a.id for a in once] == ["a1", "a2"]
    assert twice == once


def test_scheduled_assignments_are_not_admitted() -> None:
    admitted = admit_coursework([], [assignment("a1")], [assignment("a1"), assignment("a2", "Essay")], [])
    assert [a.id for a in admitted] == ["a2"]


def test_assignment_id_marker_blocks_admission() -> None:
    events = [study_block("a1", "Problem set")]
    assert extract_scheduled_assignment_ids(events) == {"a1"}
    assert admit_coursework([], [], [assignment("a1", "Renamed problem set")], events) == []


def test_title_marker_is_a_fallback() -> None:
    """A block without an id marker still keeps its assignment out of triage."""
    legacy = event("old", local(9), local(10), description="Original Assignment: Problem set\nType: Homework")
    assert extract_scheduled_titles([legacy]) == {"Problem set"}
    assert admit_coursework([], [], [assignment("a1")], [legacy]) == []


def test_known_ids_block_admission() -> None:
    assert admit_coursework([], [], [assignment("a1")], [], known_ids={"a1"}) == []


def test_duplicate_items_within_a_fetch_are_admitted_once() -> None:
    admitted = admit_coursework([], [], [assignment("a1"), assignment("a1")], [])
    assert len(admitted) == 1


def test_existing_triage_order_is_kept() -> None:
    triage = [assignment("b"), assignment("a", "Essay")]
    admitted = admit_coursework(triage, [], [assignment("c", "Quiz prep"), assignment("a", "Essay")], [])
    assert [a.id for a in admitted] == ["b", "a", "c"]


# -----------------------------
# Progress
# -----------------------------

def test_progress_counts_completed_tasks() -> None:
    tasks = [task("t1", status="completed"), task("t2"), task("t3"), task("t4")]
    assert calculate_progress(tasks) == 25


@pytest.mark.parametrize("completed, total, expected", [
    (1, 8, 13),
    (3, 8, 38),
    (5, 8, 63),
    (1, 40, 3),
    (2, 3, 67),
    (4, 4, 100),
])
def test_progress_rounds_halves_up(completed: int, total: int, expected: int) -> None:
    tasks = [task(f"t{n}", status="completed" if n < completed else "pending") for n in range(total)]
    assert calculate_progress(tasks) == expected


def test_progress_without_tasks_is_zero() -> None:
    assert calculate_progress([]) == 0


def test_toggling_updates_owner_progress_only() -> None:
    state = SessionState()
    state = promote_to_scheduled(state, assignment("a1"))
    state = promote_to_scheduled(state, assignment("a2", "Essay"))
    state = record_tasks(state, "a1", [task("t1"), task("t2"), task("t3"), task("t4")])
    state = record_tasks(state, "a2", [task("t5", assignment_id="a2")])

    state = toggle_task(state, "t1")
    a1, a2 = state.scheduled
    assert a1.progress == 25
    assert len(a1.sub_tasks) == 4
    assert a2.progress == 0

    state = toggle_task(state, "t1")
    assert state.scheduled[0].progress == 0


def test_toggling_unknown_task_fails() -> None:
    with pytest.raises(UnknownItemError):
        toggle_task(SessionState(), "nope")


def test_record_tasks_links_event_ids() -> None:
    state = promote_to_scheduled(SessionState(), assignment("a1"))
    state = record_tasks(state, "a1", [task("t1"), task("t2")])
    assert state.task_links == {"a1": ("t1", "t2")}
    assert [t.id for t in state.tasks_for("a1")] == ["t1", "t2"]


def test_return_to_triage_moves_assignment_back() -> None:
    state = promote_to_scheduled(SessionState(triage=(assignment("a1"),)), assignment("a1"))
    assert state.triage == ()
    state = return_to_triage(state, "a1")
    assert [a.id for a in state.triage] == ["a1"]
    assert state.scheduled == ()


# -----------------------------
# Refresh generations
# -----------------------------

def test_stale_refresh_result_is_discarded() -> None:
    state, first = begin_refresh(SessionState())
    state, second = begin_refresh(state)

    stale = apply_refresh(state, first, [event("old", local(9), local(10))], [], [assignment("a1")])
    assert stale is state

    fresh = apply_refresh(state, second, [event("new", local(9), local(10))], [Course("c1", "Math")], [])
    assert [e.id for e in fresh.events] == ["new"]
    assert fresh.courses == (Course("c1", "Math"),)


def test_refresh_skips_assignments_linked_to_tasks() -> None:
    state, generation = begin_refresh(SessionState(task_links={"a1": ("t1",)}))
    state = apply_refresh(state, generation, [], [], [assignment("a1")])
    assert state.triage == ()


# -----------------------------
# Course work
# -----------------------------

@pytest.mark.parametrize("overrides, expected", [
    ({}, True),
    ({"workType": "SHORT_ANSWER_QUESTION"}, False),
    ({"maxPoints": 0}, False),
    ({"maxPoints": None}, False),
    ({"submissionState": "RETURNED", "assignedGrade": 87}, False),
    ({"submissionState": "RETURNED", "assignedGrade": 0}, False),
    ({"submissionState": "RETURNED", "assignedGrade": None}, True),
    ({"submissionState": "TURNED_IN"}, True),
])
def test_schedulable_work_filter(overrides: dict, expected: bool) -> None:
    assert is_schedulable_work(raw_work("w1", "Essay", **overrides)) is expected


def test_due_date_with_time_is_utc() -> None:
    work = raw_work("w1", "Essay", dueDate={"year": 2026, "month": 10, "day": 30},
                    dueTime={"hours": 3, "minutes": 59})
    assert parse_due_date(work, TZ, NOW) == datetime(2026, 10, 30, 3, 59, tzinfo=timezone.utc)


def test_due_date_without_time_is_local_midnight() -> None:
    assert parse_due_date(raw_work("w1", "Essay"), TZ, NOW) == datetime(2026, 10, 30, tzinfo=TZ)


def test_missing_due_date_falls_back_to_now() -> None:
    assert parse_due_date(raw_work("w1", "Essay", dueDate=None), TZ, NOW) == NOW


def test_map_coursework_builds_triage_assignments() -> None:
    works = [
        raw_work("w1", "Essay", courseId="c1"),
        raw_work("w2", "Graded quiz", submissionState="RETURNED", assignedGrade=9),
        raw_work("w3", "", description=""),
    ]
    mapped = map_coursework(works, "History", TZ, NOW)

    assert [a.id for a in mapped] == ["w1", "w3"]
    assert mapped[0].course == "History"
    assert mapped[0].course_id == "c1"
    assert mapped[0].source == "google_classroom"
    assert not mapped[0].is_ready
    assert mapped[1].title == "Untitled assignment"
    assert mapped[1].description == "No description provided."
