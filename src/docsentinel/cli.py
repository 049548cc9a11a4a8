import typer
from pathlib import Path
from typing import Annotated, Optional
from rich.console import Console
from rich.table import Table
from dotenv import load_dotenv

from docsentinel import __version__
from docsentinel.config import (
    SENTINEL_RESOURCE,
    Configurator,
    SentinelSettings,
    get_config_dir,
)
from docsentinel.errors import ConfigurationError
from docsentinel.sentinel.actions import list_actions
from docsentinel.sentinel.protocols.agent import DEFAULT_RULE
from docsentinel.sentinel.protocols.base import DEFAULT_ACTION
from docsentinel.sentinel.protocols.factory import DEFAULT_PROTOCOL
from docsentinel.sentinel.rules import list_rules

# Load existing environment variables
load_dotenv()

app = typer.Typer(
    help="docsentinel: watchdog for mobile agent pipelines",
    add_completion=False,
)

console = Console()


@app.command()
def version():
    """Show the version"""
    console.print(f"docsentinel {__version__}")


@app.command()
def show(
    config_dir: Annotated[
        Optional[Path], typer.Option("--config-dir", "-c", help="Directory holding sentinel.yaml")
    ] = None,
):
    """Show the Sentinel configuration and the rules of each protocol"""
    config_dir = config_dir or get_config_dir()
    try:
        settings = SentinelSettings.from_config(
            Configurator.from_resource(SENTINEL_RESOURCE, config_dir, env_override=True)
        )
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    state = "[green]enabled[/green]" if settings.enabled else "[yellow]disabled[/yellow]"
    console.print(f"Sentinel {state}, polling every {settings.polling_interval_minutes} minutes")

    for resource in settings.protocols:
        try:
            config = Configurator.from_resource(resource, config_dir)
        except ConfigurationError as e:
            console.print(f"[red]Protocol {resource} unreadable:[/red] {e}")
            continue

        enabled = config.find_boolean_entry("ENABLED", False)
        table = Table(
            title=(
                f"{resource} ({config.find_string_entry('PROTOCOL', DEFAULT_PROTOCOL)}, "
                f"{'enabled' if enabled else 'disabled'}, "
                f"action={config.find_string_entry('ACTION', DEFAULT_ACTION)})"
            )
        )
        table.add_column("Rule ID", style="cyan")
        table.add_column("Rule")
        table.add_column("Place Matcher")
        table.add_column("Time Limit", justify="right")
        table.add_column("Threshold", justify="right")

        for rule_id in config.find_entries("RULE_ID"):
            settings_map = config.find_string_match_map(f"{rule_id}_")
            table.add_row(
                rule_id,
                settings_map.get("RULE") or settings_map.get("RULE_CLASS") or DEFAULT_RULE,
                settings_map.get("PLACE_MATCHER", "[red]missing[/red]"),
                settings_map.get("TIME_LIMIT_MINUTES", "60"),
                settings_map.get("PLACE_THRESHOLD", "1.0"),
            )
        console.print(table)


@app.command()
def plugins():
    """List the available rules and actions"""
    console.print(f"Rules: {', '.join(list_rules())}")
    console.print(f"Actions: {', '.join(list_actions())}")


def main():
    app()


if __name__ == "__main__":
    main()
