"""Tests for the MCP server's text formatting."""
from planner_engine.models import Assignment, ScheduledTask
from planner_server.server import format_assignments, format_tasks
from stubs import local


def test_format_assignments_sorts_by_due_date() -> None:
    assignments = [
        Assignment(id="w2", title="Lab report", course="Chemistry", due_date=local(23, 59), progress=50),
        Assignment(id="w1", title="Essay draft", course="History", due_date=local(9)),
    ]
    text = format_assignments(assignments, "TRIAGE QUEUE")
    lines = text.splitlines()

    assert lines[0] == "📚 TRIAGE QUEUE"
    assert "Essay draft" in lines[4]
    assert "Lab report" in lines[5]
    assert lines[5].endswith(" 50%")
    assert lines[-1] == "Total: 2 assignment(s)"


def test_format_empty_lists() -> None:
    assert format_assignments([], "TRIAGE QUEUE") == "📚 TRIAGE QUEUE: nothing here."
    assert format_tasks([]) == "📅 No study blocks scheduled."


def test_format_tasks_marks_completed_blocks() -> None:
    tasks = [
        ScheduledTask("t1", "w1", "Outline", local(15), local(16), status="completed"),
        ScheduledTask("t2", "w1", "Draft", local(17), local(18)),
    ]
    lines = format_tasks(tasks).splitlines()

    assert "Tue 10/20 3:00 PM" in lines[4]
    assert lines[4].endswith("✅ completed")
    assert lines[5].endswith("⏳ pending")
    assert lines[-1] == "Total: 2 block(s)"
