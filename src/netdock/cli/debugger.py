"""
netdock CLI - Debugger commands.

Acquire the remote debugger ahead of a launch.
"""

from pathlib import Path

import typer

from netdock.cli.common import build_launcher, console, resolve_workspace, run_command
from netdock.core.config import load_config

app = typer.Typer(
    name="debugger",
    help="Manage the remote .NET Core debugger (vsdbg)",
    no_args_is_help=True,
)


@app.command()
def acquire(
    ctx: typer.Context,
    version: str | None = typer.Option(
        None,
        "--version",
        help="vsdbg version (defaults to the configured version)",
    ),
    runtime: str = typer.Option(
        "linux-x64",
        "--runtime",
        "-r",
        help="Runtime id of the container (linux-x64, linux-musl-x64, win7-x64)",
    ),
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Workspace folder (defaults to the current directory)",
    ),
) -> None:
    """
    Download vsdbg unless a copy acquired within the last day exists.

    Examples:
        netdock debugger acquire
        netdock debugger acquire --runtime linux-musl-x64
    """
    workspace_folder = resolve_workspace(workspace)
    wanted = version or load_config(workspace_folder).debugger.version

    async def _acquire() -> str:
        launcher = build_launcher(workspace_folder)
        return await launcher.vsdbg_client.get_vsdbg_version(wanted, runtime)

    folder = run_command(ctx, _acquire)
    console.print(f"vsdbg {wanted} ({runtime}): [cyan]{folder}[/cyan]")
