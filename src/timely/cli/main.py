"""Main CLI application."""

import asyncio
import json
import logging
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from timely import __version__
from timely.cli.config_commands import config
from timely.core.clock import date_key, format_date, format_datetime, format_duration, now
from timely.core.collection import EntryCollection
from timely.core.config import ConfigManager
from timely.core.errors import TimelyError
from timely.core.models import TimeEntry
from timely.core.tracker import TimeTracker
from timely.remote.base import RemoteStore
from timely.remote.http_store import HttpRemoteStore

console = Console()
error_console = Console(stderr=True)

T = TypeVar("T")


def setup_logging(level: str) -> None:
    """Send log records to stderr at the given level."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )


def build_remote(config_mgr: ConfigManager) -> RemoteStore:
    """Create the remote store described by the configuration."""
    return HttpRemoteStore(
        base_url=config_mgr.get("api.base_url"),
        api_key=config_mgr.api_key(),
        timeout=float(config_mgr.get("api.timeout", 30)),
    )


def build_tracker(config_mgr: ConfigManager, remote: RemoteStore) -> TimeTracker:
    """Create a tracker with an empty collection bound to the configured zone."""
    return TimeTracker(
        remote,
        EntryCollection(tz=config_mgr.timezone()),
        refetch_after_update=config_mgr.get("tracking.refetch_after_update", True),
        guard_in_flight=config_mgr.get("tracking.guard_in_flight", False),
    )


def run(ctx: click.Context, action: Callable[[TimeTracker], Awaitable[T]]) -> T:
    """Run an async action against a fresh tracker, exiting on failure."""
    config_mgr: ConfigManager = ctx.obj["config"]

    async def main() -> T:
        async with build_remote(config_mgr) as remote:
            return await action(build_tracker(config_mgr, remote))

    try:
        return asyncio.run(main())
    except (TimelyError, ValueError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


def describe(relation: Optional[dict[str, Any]], ref_id: Any) -> str:
    """Display name of a related project/activity, falling back to its id."""
    if relation and relation.get("name"):
        return str(relation["name"])
    return "-" if ref_id is None else str(ref_id)


def parse_day(value: Optional[str], today: date) -> date:
    """Parse 'today', 'yesterday' or YYYY-MM-DD."""
    if not value or value.lower() == "today":
        return today
    if value.lower() == "yesterday":
        return today - timedelta(days=1)
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"Invalid date: {value}. Use YYYY-MM-DD, 'today' or 'yesterday'")


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: ~/.timely/config.yml)",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool, no_color: bool) -> None:
    """Timely - track time against projects from the command line.

    Entries live on the Timely server; set your API key with
    'timely config set api.key <key>' or $TIMELY_API_KEY.
    """
    ctx.ensure_object(dict)
    try:
        config_mgr = ConfigManager(config_path)
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    ctx.obj["config"] = config_mgr

    setup_logging("DEBUG" if verbose else config_mgr.get("advanced.log_level", "WARNING"))

    if no_color:
        console.no_color = True


cli.add_command(config)


@cli.command()
@click.argument("project_id", type=int)
@click.argument("activity_id", type=int)
@click.option("-c", "--comment", default="", help="Comment for the entry")
@click.pass_context
def start(ctx: click.Context, project_id: int, activity_id: int, comment: str) -> None:
    """Start tracking time on a project activity.

    Example:
        timely start 12 3 -c "Sprint planning"
    """
    tz = ctx.obj["config"].timezone()
    entry = run(ctx, lambda tracker: tracker.start(project_id, activity_id, comment))

    console.print(f"[green]✓[/green] Started tracking (entry {entry.id})")
    console.print(f"  Project: {describe(entry.project, entry.project_id)}")
    console.print(f"  Activity: {describe(entry.activity, entry.activity_id)}")
    console.print(f"  Started: {format_datetime(entry.start, tz)}")


@cli.command()
@click.option("-c", "--comment", help="Comment to save with the stopped entry")
@click.pass_context
def stop(ctx: click.Context, comment: Optional[str]) -> None:
    """Stop the running entry.

    Example:
        timely stop
        timely stop -c "Reviewed the API changes"
    """

    async def stop_active(tracker: TimeTracker) -> TimeEntry:
        await tracker.fetch()
        active = tracker.active_entry
        if active is None:
            raise ValueError("No entry is currently running")
        if comment is not None:
            tracker.set_active_comment(comment)
        return await tracker.stop(active.id)

    entry = run(ctx, stop_active)

    console.print(f"[green]✓[/green] Stopped tracking (entry {entry.id})")
    console.print(f"  Duration: {format_duration(entry.duration_seconds)}")
    if entry.comment:
        console.print(f"  Comment: {entry.comment}")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the running entry."""
    tz = ctx.obj["config"].timezone()

    async def load(tracker: TimeTracker) -> tuple[Optional[TimeEntry], int, int]:
        await tracker.fetch()
        return (
            tracker.active_entry,
            tracker.current_active_duration(),
            tracker.total_today_seconds(),
        )

    entry, running_for, today_total = run(ctx, load)

    if entry is None:
        console.print("[yellow]No entry currently running[/yellow]")
        console.print("\nStart tracking with: [cyan]timely start PROJECT_ID ACTIVITY_ID[/cyan]")
        return

    content = f"""[bold]{describe(entry.project, entry.project_id)}[/bold] / {describe(entry.activity, entry.activity_id)}

[dim]Started:[/dim] {format_datetime(entry.start, tz)}
[dim]Duration:[/dim] {format_duration(running_for)}
[dim]Finished today:[/dim] {format_duration(today_total)}"""
    if entry.comment:
        content += f"\n[dim]Comment:[/dim] {entry.comment}"
    content += f"\n[dim]Entry ID:[/dim] {entry.id}"

    console.print(Panel(content, title="Currently Tracking", border_style="green"))


@cli.command()
@click.option("-d", "--date", "day", help="Day to show (YYYY-MM-DD, 'today', 'yesterday')")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def log(ctx: click.Context, day: Optional[str], as_json: bool) -> None:
    """List the entries of a day.

    Example:
        timely log
        timely log -d yesterday
    """
    tz = ctx.obj["config"].timezone()
    try:
        target = parse_day(day, date_key(now(), tz))
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    async def load(tracker: TimeTracker) -> tuple[list[TimeEntry], int]:
        await tracker.fetch()
        return tracker.entries_on_day(target), tracker.total_duration_on_day(target)

    entries, total = run(ctx, load)

    if as_json:
        print(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return

    if not entries:
        console.print(f"[yellow]No entries on {target.isoformat()}[/yellow]")
        return

    date_format = ctx.obj["config"].get("general.date_format", "%d/%m/%Y")
    table = Table(title=f"Time Entries for {format_date(target, fmt=date_format)}")
    table.add_column("ID", style="dim")
    table.add_column("Start", style="cyan")
    table.add_column("Duration", style="magenta")
    table.add_column("Project", style="blue")
    table.add_column("Activity", style="green")
    table.add_column("Comment")

    for entry in entries:
        status_icon = "▶" if entry.is_running else "■"
        table.add_row(
            str(entry.id),
            f"{status_icon} {format_datetime(entry.start, tz)}",
            "running" if entry.is_running else format_duration(entry.duration_seconds),
            describe(entry.project, entry.project_id),
            describe(entry.activity, entry.activity_id),
            entry.comment or "",
        )

    console.print(table)
    console.print(f"Total (finished entries): {format_duration(total)}")


@cli.command()
@click.argument("project_id", type=int)
@click.argument("activity_id", type=int)
@click.option("--start", required=True, help="Start time (YYYY-MM-DD HH:MM, local time)")
@click.option("--end", required=True, help="End time (YYYY-MM-DD HH:MM, local time)")
@click.option("-c", "--comment", default="", help="Comment for the entry")
@click.pass_context
def add(
    ctx: click.Context,
    project_id: int,
    activity_id: int,
    start: str,
    end: str,
    comment: str,
) -> None:
    """Add a finished entry after the fact.

    Example:
        timely add 12 3 --start "2026-10-19 09:00" --end "2026-10-19 10:30"
    """
    entry = run(
        ctx, lambda tracker: tracker.create_past(project_id, activity_id, start, end, comment)
    )

    console.print(f"[green]✓[/green] Added entry {entry.id}")
    console.print(f"  Duration: {format_duration(entry.duration_seconds)}")


@cli.command()
@click.argument("entry_id", type=int)
@click.option("-p", "--project", "project_id", type=int, help="New project id")
@click.option("-a", "--activity", "activity_id", type=int, help="New activity id")
@click.option("--start", help="New start time")
@click.option("--end", help="New end time")
@click.option("-c", "--comment", help="New comment")
@click.pass_context
def edit(
    ctx: click.Context,
    entry_id: int,
    project_id: Optional[int],
    activity_id: Optional[int],
    start: Optional[str],
    end: Optional[str],
    comment: Optional[str],
) -> None:
    """Edit an entry. Fields not given keep their current value.

    Example:
        timely edit 42 -c "Pairing session"
    """

    async def update(tracker: TimeTracker) -> TimeEntry:
        await tracker.fetch()
        entry = tracker.entries.get(entry_id)
        if entry is None:
            raise ValueError(f"Entry not found: {entry_id}")
        return await tracker.update(
            entry_id,
            project_id if project_id is not None else entry.project_id,
            activity_id if activity_id is not None else entry.activity_id,
            start or entry.start,
            end or entry.end,
            comment if comment is not None else entry.comment,
        )

    entry = run(ctx, update)
    console.print(f"[green]✓[/green] Updated entry {entry.id}")


@cli.command()
@click.argument("entry_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete(ctx: click.Context, entry_id: int, yes: bool) -> None:
    """Delete an entry."""
    if not yes and not click.confirm(f"Delete entry {entry_id}?"):
        console.print("Cancelled")
        return

    run(ctx, lambda tracker: tracker.delete(entry_id))
    console.print(f"[yellow]✓[/yellow] Deleted entry {entry_id}")


if __name__ == "__main__":
    cli(obj={})
