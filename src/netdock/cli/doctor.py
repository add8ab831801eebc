"""
netdock CLI - Doctor command.

Run the launch prerequisite checks and report which ones fail.
"""

import asyncio
from pathlib import Path

import typer
from rich.table import Table

from netdock.cli.common import build_launcher, console, resolve_workspace, run_command
from netdock.core.debugging.prereqs import AggregatePrerequisite, Prerequisite
from netdock.core.errors import PrerequisiteError


def _describe(prerequisite: Prerequisite) -> str:
    # DockerDaemonIsLinuxPrerequisite -> Docker daemon is linux
    name = type(prerequisite).__name__.removesuffix("Prerequisite")
    words = "".join(f" {c}" if c.isupper() else c for c in name).split()
    return " ".join([words[0], *(w.lower() for w in words[1:])]) if words else name


def doctor(
    ctx: typer.Context,
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Workspace folder (defaults to the current directory)",
    ),
) -> None:
    """
    Check that Docker, the .NET SDK and the host are ready for debugging.

    Examples:
        netdock doctor
        netdock --debug doctor
    """
    workspace_folder = resolve_workspace(workspace)

    async def _check() -> None:
        launcher = build_launcher(workspace_folder)
        prerequisite = launcher.prerequisite
        children = (
            prerequisite.prerequisites
            if isinstance(prerequisite, AggregatePrerequisite)
            else [prerequisite]
        )
        results = await asyncio.gather(*(child.check_prerequisite() for child in children))

        table = Table(title="Debug prerequisites", show_header=True)
        table.add_column("Check")
        table.add_column("Status")
        for child, ok in zip(children, results):
            status = "[green]✓ ok[/green]" if ok else "[red]✗ failed[/red]"
            table.add_row(_describe(child), status)
        console.print(table)

        if not all(results):
            raise PrerequisiteError()

    run_command(ctx, _check)
