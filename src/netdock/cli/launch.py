"""
netdock CLI - Launch command.

Resolve a docker-coreclr configuration, start its debug container and print
the coreclr launch descriptor a debugger front end can attach with.
"""

import asyncio
import json
from pathlib import Path

import typer

from netdock.cli.common import build_launcher, console, resolve_workspace, run_command
from netdock.core.debugging.launcher import load_launch_configuration
from netdock.core.debugging.models import DebugSessionDescriptor
from netdock.core.errors import PrerequisiteError


def launch(
    ctx: typer.Context,
    launch_file: Path = typer.Option(
        Path(".vscode/launch.json"),
        "--launch-file",
        "-f",
        help="launch.json holding the docker-coreclr configuration (relative to the workspace)",
    ),
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Configuration name (defaults to the first docker-coreclr entry)",
    ),
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Workspace folder (defaults to the current directory)",
    ),
    wait: bool = typer.Option(
        True,
        "--wait/--no-wait",
        help="Keep running until Ctrl+C, then remove the debug container",
    ),
) -> None:
    """
    Prepare a debug container and print the launch descriptor.

    Examples:
        netdock launch                       # first docker-coreclr configuration
        netdock launch --name "Docker: API"  # a named configuration
        netdock launch --no-wait             # leave the container running
    """
    workspace_folder = resolve_workspace(workspace)
    launch_path = launch_file if launch_file.is_absolute() else workspace_folder / launch_file

    async def _launch() -> DebugSessionDescriptor:
        configuration = load_launch_configuration(launch_path, name)
        launcher = build_launcher(workspace_folder)
        try:
            descriptor = await launcher.launch(configuration)
            if descriptor is None:
                raise PrerequisiteError()

            typer.echo(json.dumps(descriptor.to_launch_json(), indent=2))

            if wait:
                console.print(
                    "[dim]Debug container is ready. Press Ctrl+C to end the session.[/dim]"
                )
                try:
                    await asyncio.Event().wait()
                except asyncio.CancelledError:
                    if launcher.session_manager.is_listening:
                        launcher.end_session(configuration.name)
                        await launcher.session_manager.wait_for_cleanup()
                    raise
            return descriptor
        finally:
            await launcher.dispose()

    run_command(ctx, _launch)
