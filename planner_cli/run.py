"""Command line entry point for the study block planner.

Loads the student's calendar and Classroom coursework, shows the free time
the scheduler would offer and the triage queue, and optionally schedules
one triaged assignment.
"""
import asyncio
import logging
import typing as t
from zoneinfo import ZoneInfo

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from planner_engine.availability import format_window
from planner_engine.errors import PartialApplicationFailure, PlannerError
from planner_engine.models import ASSIGNMENT_TYPES, Horizon, ScheduledTask
from planner_engine.session import PlannerSession
from services.shared.session_factory import build_default_session

console = Console()


def availability_table(horizon: Horizon) -> Table:
    """Create a table with one row per day that has free time."""
    tz = ZoneInfo(horizon.timezone)
    table = Table(
        title=f"🕒 Free time ({horizon.timezone}, {horizon.timezone_abbreviation})",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Day", style="cyan")
    table.add_column("Free windows", style="white")
    table.add_column("Minutes", style="green", justify="right")
    table.caption = f"{int(horizon.total_minutes)} free minutes in total"

    for day in horizon.days:
        table.add_row(
            f"{day.day:%a %Y-%m-%d}",
            ", ".join(format_window(w, tz) for w in day.windows),
            str(int(sum(w.minutes for w in day.windows))),
        )
    return table


def tasks_table(tasks: t.Sequence[ScheduledTask]) -> Table:
    """Create a table of study blocks."""
    table = Table(title="📅 Study blocks", show_header=True, header_style="bold magenta")
    table.add_column("Task", style="white")
    table.add_column("Start", style="yellow")
    table.add_column("End", style="yellow")
    for task in tasks:
        table.add_row(task.title, task.start_time.isoformat(), task.end_time.isoformat())
    return table


async def async_main(
        schedule_id: t.Optional[str],
        assignment_type: t.Optional[str],
        minutes: t.Optional[int],
) -> None:
    try:
        planner: PlannerSession = build_default_session()
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    with console.status("[bold green]Loading calendar and coursework..."):
        state = await planner.refresh(force=True)

    for notice in state.notices:
        if notice.level == "error":
            console.print(f"[yellow]⚠️ {notice.title}:[/yellow] {notice.message}")

    console.print(availability_table(planner.horizon()))

    triage = Table(title="📚 Triage queue", show_header=True, header_style="bold cyan")
    triage.add_column("Id", style="cyan")
    triage.add_column("Course", style="green")
    triage.add_column("Title", style="white")
    triage.add_column("Due", style="yellow")
    for assignment in state.triage:
        triage.add_row(assignment.id, assignment.course, assignment.title, f"{assignment.due_date:%m/%d %H:%M}")
    console.print(triage)

    if not schedule_id:
        return

    if not assignment_type or not minutes:
        console.print("[red]Error:[/red] --type and --minutes are required with --schedule.")
        raise SystemExit(1)

    console.print(Panel.fit(
        f"[bold blue]🤖 Scheduling[/bold blue] {schedule_id}\n"
        f"Type: [cyan]{assignment_type}[/cyan]  Time: [cyan]{minutes}[/cyan] minutes",
        border_style="blue",
    ))
    try:
        with console.status("[bold green]AI is scheduling..."):
            tasks = await planner.schedule_from_triage(schedule_id, assignment_type, minutes)
    except PartialApplicationFailure as e:
        console.print(f"[yellow]⚠️ {e}[/yellow]")
        console.print(tasks_table(e.created_tasks))
        raise SystemExit(1)
    except PlannerError as e:
        console.print(f"[red]❌ Could not schedule this task:[/red] {e}")
        raise SystemExit(1)

    console.print(f"[green]✓ Added {len(tasks)} study block(s) to your calendar[/green]")
    console.print(tasks_table(tasks))


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--schedule", "schedule_id", help="Id of a triaged assignment to schedule.")
@click.option("--type", "assignment_type", type=click.Choice(ASSIGNMENT_TYPES), help="Assignment type.")
@click.option("--minutes", type=click.IntRange(min=5), help="Total study time to schedule.")
@click.option("--verbose", is_flag=True, help="Show log output from the planner.")
def main(
        schedule_id: t.Optional[str],
        assignment_type: t.Optional[str],
        minutes: t.Optional[int],
        verbose: bool,
) -> None:
    """Turn homework into calendar study blocks.

    Examples:
        # Show free time and the triage queue
        python -m planner_cli.run

        # Schedule a triaged assignment
        python -m planner_cli.run --schedule 123456 --type Essay --minutes 180
    """
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING)
    asyncio.run(async_main(schedule_id, assignment_type, minutes))


if __name__ == "__main__":
    main()
