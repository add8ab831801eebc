"""
netdock CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import json
from pathlib import Path

import typer
from rich.console import Console

from netdock import __version__
from netdock.cli import certs, debugger, doctor, launch
from netdock.cli.common import (
    build_launcher,
    resolve_workspace,
    run_command,
    setup_logging,
)
from netdock.core.config.env import load_layered_env

# Help panel names for command grouping
PANEL_DEBUG = "Debug"
PANEL_SETUP = "Set Up Your Machine"

LAUNCH_JSON_VERSION = "0.2.0"

app = typer.Typer(
    name="netdock",
    help="Debug .NET Core applications running in Docker containers",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console(stderr=True)


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    netdock - build, run and debug .NET Core apps in Docker.

    Quick Start:
        1. netdock init --write      # Add a docker-coreclr configuration
        2. netdock doctor            # Check Docker and the .NET SDK
        3. netdock launch            # Build, run and print the launch descriptor

    Documentation:
        netdock --help               # This message
        netdock <command> --help     # Help for specific command
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()
    setup_logging(debug)

    ctx.obj = {"debug": debug}


# =============================================================================
# Debug
# =============================================================================

app.command(name="launch", rich_help_panel=PANEL_DEBUG)(launch.launch)


@app.command(rich_help_panel=PANEL_DEBUG)
def cleanup(
    ctx: typer.Context,
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Workspace folder (defaults to the current directory)",
    ),
) -> None:
    """Remove the debug containers started from this workspace."""
    workspace_folder = resolve_workspace(workspace)

    async def _cleanup() -> None:
        launcher = build_launcher(workspace_folder)
        await launcher.docker_manager.cleanup_after_launch()

    run_command(ctx, _cleanup)
    console.print("[green]✓[/green] Debug containers removed")


@app.command(rich_help_panel=PANEL_DEBUG)
def init(
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Workspace folder (defaults to the current directory)",
    ),
    write: bool = typer.Option(
        False,
        "--write",
        help="Write .vscode/launch.json instead of printing it",
    ),
) -> None:
    """
    Print a launch.json holding the default docker-coreclr configuration.

    Examples:
        netdock init                 # print to stdout
        netdock init --write         # create .vscode/launch.json
    """
    workspace_folder = resolve_workspace(workspace)
    provider = build_launcher(workspace_folder).configuration_provider
    launch_json = {
        "version": LAUNCH_JSON_VERSION,
        "configurations": [
            configuration.model_dump(by_alias=True, exclude_none=True)
            for configuration in provider.provide_debug_configurations()
        ],
    }
    text = json.dumps(launch_json, indent=4)

    if not write:
        typer.echo(text)
        return

    launch_file = workspace_folder / ".vscode" / "launch.json"
    if launch_file.exists():
        console.print(f"[yellow]{launch_file} already exists, not overwriting[/yellow]")
        raise typer.Exit(1)
    launch_file.parent.mkdir(parents=True, exist_ok=True)
    launch_file.write_text(text + "\n", encoding="utf-8")
    console.print(f"[green]✓[/green] Created {launch_file}")


# =============================================================================
# Set Up Your Machine
# =============================================================================

app.command(name="doctor", rich_help_panel=PANEL_SETUP)(doctor.doctor)
app.add_typer(debugger.app, name="debugger", rich_help_panel=PANEL_SETUP)
app.add_typer(certs.app, name="certs", rich_help_panel=PANEL_SETUP)


@app.command(rich_help_panel=PANEL_SETUP)
def version() -> None:
    """Show netdock version and exit."""
    console.print(f"netdock version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
