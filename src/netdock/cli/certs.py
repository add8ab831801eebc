"""
netdock CLI - Certificate commands.

Trust and export the ASP.NET Core HTTPS development certificate the same
way a launch with configureSsl does.
"""

from pathlib import Path

import typer

from netdock.cli.common import build_launcher, console, resolve_workspace, run_command

app = typer.Typer(
    name="certs",
    help="Manage the ASP.NET Core HTTPS development certificate",
    no_args_is_help=True,
)


@app.command()
def trust(ctx: typer.Context) -> None:
    """
    Check that the development certificate is trusted, offering to trust it.

    Examples:
        netdock certs trust
    """
    workspace_folder = resolve_workspace(None)

    async def _trust() -> None:
        launcher = build_launcher(workspace_folder)
        await launcher.ssl_manager.trust_certificate_if_necessary()

    run_command(ctx, _trust)


@app.command()
def export(
    ctx: typer.Context,
    project: Path = typer.Argument(
        ..., help="The .csproj or .fsproj to export the certificate for"
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Destination .pfx (defaults to the host certificate folder)",
    ),
) -> None:
    """
    Export the development certificate and store its password in user secrets.

    Examples:
        netdock certs export src/Api/Api.csproj
        netdock certs export Api.csproj -o ./certs/Api.pfx
    """
    project_file = project.resolve()
    if not project_file.is_file():
        console.print(f"[red]Project file not found: {project}[/red]")
        raise typer.Exit(2)

    workspace_folder = resolve_workspace(None)

    async def _export() -> None:
        launcher = build_launcher(workspace_folder)
        await launcher.ssl_manager.export_certificate_if_necessary(
            str(project_file),
            str(output.resolve()) if output else None,
        )

    run_command(ctx, _export)
    console.print(f"[green]✓[/green] Certificate exported for {project_file.name}")
