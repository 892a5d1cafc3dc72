"""Developer CLI for the home exercise program tracker.

Runs the same service code paths as the HTTP API against the configured
record store, and can seed a local SQL store with demo data.
"""

import asyncio
import os
from collections.abc import Awaitable, Callable
from datetime import date
from typing import TypeVar

import typer
import uvicorn
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from hep_tracker.config.settings import settings
from hep_tracker.core.errors import GatewayUnavailable, PartialSaveFailure, UnknownAssignmentError
from hep_tracker.core.logger import setup_logger
from hep_tracker.gateway import create_gateway
from hep_tracker.gateway.sql import SqlRecordGateway
from hep_tracker.progress.normalize import normalize_link_id, require_day
from hep_tracker.services.program_service import ClientProgramService
from hep_tracker.services.views import DailyChecklist

console = Console()

app = typer.Typer(
    name="hep-tracker",
    help="Home exercise program tracker - local tooling",
    add_completion=False,
)

DEFAULT_HOST = os.getenv("SERVER_HOST", "127.0.0.1")
DEMO_EXERCISES = [
    ("Bridge", "Glute bridge, hold two seconds at the top", "Hip"),
    ("Clamshell", "Side-lying clamshell with band", "Hip"),
    ("Heel raise", "Double-leg heel raise, slow lowering", "Ankle"),
]

T = TypeVar("T")


def _parse_day(value: str | None) -> str | None:
    """Option callback: canonicalize a --day/--week-of value or reject it."""
    if value is None:
        return None
    try:
        return require_day(value)
    except ValueError as e:
        raise typer.BadParameter(f"{value!r} is not a calendar day (expected YYYY-MM-DD)") from e


def _run_with_service(action: Callable[[ClientProgramService], Awaitable[T]]) -> T:
    """Run one service coroutine with a gateway that is closed afterwards."""

    async def runner() -> T:
        gateway = create_gateway()
        try:
            return await action(ClientProgramService(gateway))
        finally:
            await gateway.aclose()

    return asyncio.run(runner())


def _print_checklist(checklist: DailyChecklist) -> None:
    if checklist.read_only:
        console.print(Panel(Text(checklist.error or "Records unavailable", style="bold red"), border_style="red"))
        return

    table = Table(title=f"{checklist.client_email} - {checklist.day}")
    table.add_column("Done", justify="center")
    table.add_column("Assignment")
    table.add_column("Exercise")
    table.add_column("Sets x Reps", justify="right")
    for item in checklist.items:
        table.add_row(
            "[green]x[/green]" if item.done else " ",
            item.assignment_id,
            item.exercise_name,
            f"{item.sets}x{item.reps}",
        )
    console.print(table)
    console.print(f"{checklist.completed}/{checklist.total} done")


@app.command()
def serve(
    host: str = typer.Option(DEFAULT_HOST, "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
) -> None:
    """Run the FastAPI server."""
    logger.info(f"Starting API server on {host}:{port} (reload={reload})")
    uvicorn.run("hep_tracker.main:app", host=host, port=port, reload=reload)


@app.command()
def init_db() -> None:
    """Create the SQL record store tables."""
    if settings.record_store != "sql":
        console.print("[red]Error:[/red] init-db only applies to RECORD_STORE=sql")
        raise typer.Exit(1)
    from hep_tracker.db.session import init_db as create_tables

    create_tables()
    console.print(f"[green]Tables ready[/green] at {settings.database_url}")


async def _seed_demo(gateway: SqlRecordGateway, email: str, name: str) -> tuple[str, int]:
    """Create the demo client, exercises and assignments that do not exist yet.

    Returns:
        The client id and the number of assignments created
    """
    client = await gateway.find_client_by_email(email)
    if client is None:
        client = await gateway.create_client(name, email, status="Active", date_joined=date.today().isoformat())

    service = ClientProgramService(gateway)
    exercises = {exercise.name: exercise for exercise in await service.list_exercises()}
    assigned = {normalize_link_id(a.exercise) for a in await gateway.list_assignments_for_client(email)}

    created = 0
    for exercise_name, description, category in DEMO_EXERCISES:
        exercise = exercises.get(exercise_name) or await service.add_exercise(exercise_name, description, category)
        if exercise.id in assigned:
            continue
        await service.assign_exercise(client.id, exercise.id, sets=3, reps=10)
        created += 1
    return client.id, created


@app.command()
def seed_demo(
    email: str = typer.Option("client@example.com", "--email", help="Demo client email"),
    name: str = typer.Option("Demo Client", "--name", help="Demo client name"),
) -> None:
    """Create a demo client with three assigned exercises in the SQL store."""
    if settings.record_store != "sql":
        console.print("[red]Error:[/red] seed-demo only applies to RECORD_STORE=sql")
        raise typer.Exit(1)

    from hep_tracker.db.session import init_db as create_tables

    create_tables()
    client_id, created = asyncio.run(_seed_demo(SqlRecordGateway(), email, name))
    console.print(f"[green]Seeded[/green] {email} ({client_id}) with {created} new assignment(s)")


@app.command()
def today(
    email: str = typer.Argument(..., help="Client email"),
    day: str | None = typer.Option(None, "--day", callback=_parse_day, help="Day to show (YYYY-MM-DD), defaults to today"),
) -> None:
    """Show a client's checklist for one day."""
    _print_checklist(_run_with_service(lambda service: service.daily_checklist(email, day)))


@app.command()
def check(
    email: str = typer.Argument(..., help="Client email"),
    assignment_id: str = typer.Argument(..., help="Assignment to toggle"),
    day: str | None = typer.Option(None, "--day", callback=_parse_day, help="Day to edit (YYYY-MM-DD), defaults to today"),
) -> None:
    """Toggle one assignment done/not done and show the reloaded checklist."""
    try:
        checklist = _run_with_service(lambda service: service.toggle_completion(email, assignment_id, day))
    except UnknownAssignmentError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except PartialSaveFailure as e:
        for failed in e.failed:
            console.print(f"[red]Failed[/red] {failed.edit.action} {failed.edit.target_id}: {failed.error}")
        raise typer.Exit(2) from e
    except GatewayUnavailable as e:
        console.print(f"[red]Record store unavailable:[/red] {e}")
        raise typer.Exit(2) from e
    _print_checklist(checklist)


@app.command()
def progress(
    email: str = typer.Argument(..., help="Client email"),
    week_of: str | None = typer.Option(None, "--week-of", callback=_parse_day, help="Any day in the week to show"),
) -> None:
    """Show weekly completions, daily goal and streak."""
    view = _run_with_service(lambda service: service.weekly_progress(email, week_of))
    if view.read_only:
        console.print(Panel(Text(view.error or "Records unavailable", style="bold red"), border_style="red"))
        return

    table = Table(title=f"Weekly Progress - {view.title}")
    table.add_column("Day")
    table.add_column("Date")
    table.add_column("Completed", justify="right")
    table.add_column("")
    for bucket in view.buckets:
        table.add_row(bucket.weekday, bucket.short_date, str(bucket.completed), "#" * bucket.completed)
    console.print(table)

    goal = f"{view.daily_goal} per day" if view.daily_goal else "none"
    color = {"high": "green", "medium": "yellow", "low": "dim"}[view.streak_level]
    console.print(f"Daily goal: {goal}")
    console.print(f"Streak: [{color}]{view.streak}[/{color}] days")


@app.command()
def summary(
    week_of: str | None = typer.Option(None, "--week-of", callback=_parse_day, help="Any day in the week to summarize"),
) -> None:
    """Show the physiotherapist's per-client summary for one week."""
    view = _run_with_service(lambda service: service.therapist_summary(week_of))
    if view.read_only:
        console.print(Panel(Text(view.error or "Records unavailable", style="bold red"), border_style="red"))
        return

    table = Table(title=f"Client Summary ({view.title})")
    table.add_column("Client")
    table.add_column("Email")
    table.add_column("Assigned", justify="right")
    table.add_column("Completed", justify="right")
    for row in view.clients:
        table.add_row(row.name, row.email, str(row.assigned), str(row.completed_this_week))
    console.print(table)


def main() -> None:
    setup_logger(level=settings.log_level, log_file=settings.log_file)
    app()


if __name__ == "__main__":
    main()
