# -*- coding: utf-8 -*-
import typing as t
from datetime import datetime

from fastmcp import FastMCP

from planner_engine.errors import PartialApplicationFailure, PlannerError
from planner_engine.models import Assignment, ScheduledTask
from planner_engine.session import PlannerSession
from services.shared.session_factory import build_default_session

mcp = FastMCP("StudyPlannerServer")

_session: t.Optional[PlannerSession] = None


def get_session() -> PlannerSession:
    """Returns the planner session, creating it on first use."""
    global _session
    if _session is None:
        _session = build_default_session()
    return _session


def _format_datetime(moment: datetime) -> str:
    """Formats a datetime as 'Mon 1/15 2:30 PM'."""
    return moment.strftime("%a %-m/%-d %-I:%M %p")


def format_assignments(assignments: t.Sequence[Assignment], heading: str) -> str:
    """Formats assignments as a clean table.

    :param assignments: The assignments to show.
    :param heading: Table heading.
    :return: Formatted table string.
    """
    if not assignments:
        return f"📚 {heading}: nothing here."

    lines = [f"📚 {heading}", "=" * 110]
    lines.append(f"{'#':<4} {'Id':<20} {'Course':<15} {'Title':<40} {'Due':<18} {'Progress':<8}")
    lines.append("-" * 110)
    for idx, assignment in enumerate(sorted(assignments, key=lambda a: a.due_date), 1):
        lines.append(
            f"{idx:<4} {assignment.id[:19]:<20} {assignment.course[:14]:<15} {assignment.title[:39]:<40} "
            f"{_format_datetime(assignment.due_date):<18} {assignment.progress:>3}%"
        )
    lines.append("=" * 110)
    lines.append(f"Total: {len(assignments)} assignment(s)")
    return "\n".join(lines)


def format_tasks(tasks: t.Sequence[ScheduledTask]) -> str:
    """Formats study blocks as a clean table."""
    if not tasks:
        return "📅 No study blocks scheduled."

    lines = ["📅 STUDY BLOCKS", "=" * 100]
    lines.append(f"{'#':<4} {'Title':<35} {'Start':<18} {'End':<18} {'Status':<10}")
    lines.append("-" * 100)
    for idx, task in enumerate(sorted(tasks, key=lambda x: x.start_time), 1):
        mark = "✅" if task.status == "completed" else "⏳"
        lines.append(
            f"{idx:<4} {task.title[:34]:<35} {_format_datetime(task.start_time):<18} "
            f"{_format_datetime(task.end_time):<18} {mark} {task.status}"
        )
    lines.append("=" * 100)
    lines.append(f"Total: {len(tasks)} block(s)")
    return "\n".join(lines)


def _schedule_result(tasks: t.Sequence[ScheduledTask]) -> str:
    return f"✅ Added {len(tasks)} study block(s) to your calendar.\n\n{format_tasks(tasks)}"


def _schedule_failure(error: Exception) -> str:
    if isinstance(error, PartialApplicationFailure):
        return f"⚠️ {error}\n\n{format_tasks(error.created_tasks)}"
    return f"❌ Could not schedule this task: {error}"


@mcp.tool()
async def refresh_planner(force: bool = True) -> str:
    """Reloads calendar events and Classroom coursework.

    :param force: Start a new refresh even if one is already running.
    :return: A short summary of what the planner knows.
    """
    state = await get_session().refresh(force=force)
    errors = [n for n in state.notices if n.level == "error"]
    summary = (
        f"🔄 {len(state.events)} event(s), {len(state.courses)} course(s), "
        f"{len(state.triage)} assignment(s) in triage, {len(state.scheduled)} scheduled."
    )
    if errors:
        summary += "\n" + "\n".join(f"⚠️ {n.title}: {n.message}" for n in errors[-3:])
    return summary


@mcp.tool()
def show_free_time() -> str:
    """Shows the free time over the planning horizon, as the scheduler sees it.

    :return: Timezone header followed by one line per day with free time.
    """
    return get_session().availability_text()


@mcp.tool()
def list_triage() -> str:
    """Lists assignments that still need a type and time estimate.

    :return: Formatted table of triaged assignments.
    """
    return format_assignments(get_session().state.triage, "TRIAGE QUEUE")


@mcp.tool()
async def schedule_assignment(assignment_id: str, assignment_type: str, estimated_minutes: int) -> str:
    """Schedules a triaged assignment into study blocks on the calendar.

    :param assignment_id: Id of the assignment in triage.
    :param assignment_type: One of Homework, Project, Essay, Quiz, Test or Reading.
    :param estimated_minutes: Total study time to schedule.
    :return: The created study blocks, or why scheduling failed.
    """
    try:
        tasks = await get_session().schedule_from_triage(assignment_id, assignment_type, estimated_minutes)
    except (PlannerError, ValueError) as e:
        return _schedule_failure(e)
    return _schedule_result(tasks)


@mcp.tool()
async def add_manual_task(
        title: str,
        course: str,
        due: str,
        description: str,
        assignment_type: str,
        estimated_minutes: int,
) -> str:
    """Adds homework by hand and schedules it right away.

    :param title: Title of the homework.
    :param course: Course name.
    :param due: Due date in ISO format.
    :param description: What the homework involves.
    :param assignment_type: One of Homework, Project, Essay, Quiz, Test or Reading.
    :param estimated_minutes: Total study time to schedule.
    :return: The created study blocks, or why scheduling failed.
    """
    planner = get_session()
    try:
        due_date = datetime.fromisoformat(due.replace("Z", "+00:00"))
    except ValueError:
        return f"❌ Due date {due!r} is not an ISO date."
    if due_date.tzinfo is None:
        due_date = due_date.replace(tzinfo=planner.settings.timezone)
    try:
        _, tasks = await planner.add_manual_assignment(
            title=title,
            course=course,
            due_date=due_date,
            description=description,
            type=assignment_type,
            estimated_minutes=estimated_minutes,
        )
    except (PlannerError, ValueError) as e:
        return _schedule_failure(e)
    return _schedule_result(tasks)


@mcp.tool()
def toggle_task(task_id: str) -> str:
    """Marks a study block completed, or pending again.

    :param task_id: Id of the study block.
    :return: The block's new status and its assignment's progress.
    """
    planner = get_session()
    try:
        task = planner.toggle_task(task_id)
    except PlannerError as e:
        return f"❌ {e}"
    assignment = planner.state.find_assignment(task.assignment_id)
    blocks = planner.state.tasks_for(task.assignment_id)
    done = sum(1 for block in blocks if block.status == "completed")
    progress = ""
    if assignment:
        progress = f" ({assignment.title}: {done} of {len(blocks)} blocks, {assignment.progress}% done)"
    return f"'{task.title}' is now {task.status}{progress}"


@mcp.tool()
def show_schedule() -> str:
    """Displays all study blocks created in this session.

    :return: Formatted table of study blocks.
    """
    return format_tasks(get_session().state.tasks)


if __name__ == "__main__":
    mcp.run()
