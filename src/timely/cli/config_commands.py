"""CLI commands for configuration management."""

import json
import shutil
import sys
from typing import Any

import click  # type: ignore[import-not-found]
from rich.console import Console  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]

from timely.core.config import ConfigManager

console = Console()
error_console = Console(stderr=True)


def parse_value(value: str) -> Any:
    """Convert a command-line string to bool, null, int, float or str."""
    lowered = value.lower()
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False
    if lowered == "null":
        return None
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            continue
    return value


@click.group()  # type: ignore[misc]
def config() -> None:
    """Manage Timely configuration.

    Configuration is stored in ~/.timely/config.yml
    """


@config.command("show")  # type: ignore[misc]
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Show all configuration settings.

    The API key is masked.
    """
    config_mgr: ConfigManager = ctx.obj["config"]
    settings = config_mgr.to_dict()
    if settings.get("api", {}).get("key"):
        settings["api"]["key"] = "********"

    if as_json:
        print(json.dumps(settings, indent=2))
        return

    table = Table(title="Timely Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key in config_mgr.get_all_keys():
        value: Any = settings
        for part in key.split("."):
            value = value[part]
        table.add_row(key, str(value))

    console.print(table)
    console.print(f"\nConfig file: {config_mgr.config_path}")


@config.command("get")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_get(ctx: click.Context, key: str) -> None:
    """Get a configuration value.

    Example:
        timely config get api.base_url
    """
    value = ctx.obj["config"].get(key)
    if value is None:
        error_console.print(f"[red]Error:[/red] Configuration key '{key}' not found")
        sys.exit(1)

    if isinstance(value, dict):
        console.print(json.dumps(value, indent=2))
    else:
        console.print(str(value))


@config.command("set")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.argument("value")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set a configuration value.

    Use 'true'/'false' for booleans and 'null' to clear a value.

    Example:
        timely config set api.key 3f9c...
        timely config set general.timezone Europe/Paris
    """
    converted = parse_value(value)
    try:
        ctx.obj["config"].set(key, converted)
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    shown = "********" if key == "api.key" and converted else converted
    console.print(f"[green]✓[/green] Set {key} = {shown}")


@config.command("reset")  # type: ignore[misc]
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_reset(ctx: click.Context, yes: bool) -> None:
    """Reset configuration to defaults, keeping a backup of the current file."""
    config_mgr: ConfigManager = ctx.obj["config"]

    if not yes:
        console.print("[yellow]Warning:[/yellow] This will reset all configuration to defaults.")
        if not click.confirm("Continue?"):
            console.print("Cancelled")
            return

    if config_mgr.config_path.exists():
        backup_path = config_mgr.config_path.with_suffix(".yml.backup")
        shutil.copy(config_mgr.config_path, backup_path)
        console.print(f"Backed up current config to {backup_path}")

    config_mgr.reset()
    console.print("[green]✓[/green] Configuration reset to defaults")


@config.command("validate")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_validate(ctx: click.Context) -> None:
    """Validate configuration file."""
    try:
        ctx.obj["config"].validate()
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    console.print("[green]✓[/green] Configuration is valid")


@config.command("path")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_path(ctx: click.Context) -> None:
    """Show path to configuration file."""
    console.print(str(ctx.obj["config"].config_path))
