"""
Helpers shared by netdock CLI commands.
"""

import asyncio
import logging
import sys
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any, TypeVar

import typer
from rich.console import Console

from netdock.cli.errors import ExitCode, handle_error
from netdock.core.config import load_config
from netdock.core.debugging.launcher import DebugLauncher, create_launcher

T = TypeVar("T")

console = Console(stderr=True)


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for netdock commands.

    Args:
        debug: If True, enable DEBUG level logging and full tracebacks
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def is_debug(ctx: typer.Context) -> bool:
    return bool(ctx.obj.get("debug", False)) if ctx.obj else False


def resolve_workspace(workspace: Path | None) -> Path:
    """Absolute workspace folder; the current directory by default."""
    return (workspace or Path.cwd()).resolve()


def build_launcher(workspace: Path) -> DebugLauncher:
    config = load_config(workspace)
    return create_launcher(workspace, config, console=console)


def run_command(ctx: typer.Context, command: Callable[[], Coroutine[Any, Any, T]]) -> T:
    """
    Run an async command body, turning netdock errors into exit codes.

    Raises:
        typer.Exit: With the code matching the error, or SIGINT on Ctrl+C
    """
    debug = is_debug(ctx)
    try:
        return asyncio.run(command())
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(ExitCode.SIGINT)
    except typer.Exit:
        raise
    except Exception as e:
        raise typer.Exit(handle_error(e, debug))
