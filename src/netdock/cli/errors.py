"""
Standardized error handling and exit codes for the netdock CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

import traceback
from enum import IntEnum

from rich.console import Console

from netdock.core.errors import (
    ConfigurationError,
    DebuggerAcquisitionError,
    NetdockError,
    PrerequisiteError,
    ProcessExecutionError,
)

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for netdock CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, e.g. a docker or dotnet command failed."""

    USER_ERROR = 2
    """Configuration or input error (actionable by user)."""

    PREREQUISITES_NOT_MET = 3
    """A prerequisite check failed; the user was told what to fix."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
    doc_url: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it
        doc_url: Optional documentation URL for more help

    Example:
        >>> print_error(
        ...     "Docker is not running",
        ...     solution="Start Docker Desktop",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")

    if doc_url:
        console.print(f"[dim]Docs: {doc_url}[/dim]")


def handle_error(error: Exception, debug: bool = False) -> ExitCode:
    """
    Print an error raised by a command and pick its exit code.

    Args:
        error: The exception raised by the command
        debug: If True, also print the full traceback

    Returns:
        The exit code the command should terminate with
    """
    if isinstance(error, ConfigurationError):
        print_error(
            str(error),
            solution="Edit the docker-coreclr configuration in .vscode/launch.json",
        )
        code = ExitCode.USER_ERROR
    elif isinstance(error, PrerequisiteError):
        print_error(str(error), solution="netdock doctor")
        code = ExitCode.PREREQUISITES_NOT_MET
    elif isinstance(error, ProcessExecutionError):
        print_error(str(error), reason=f"Command failed: {error.command}")
        code = ExitCode.GENERAL_ERROR
    elif isinstance(error, DebuggerAcquisitionError):
        print_error(
            str(error),
            solution="netdock debugger acquire --debug",
            doc_url="https://aka.ms/getvsdbgsh",
        )
        code = ExitCode.GENERAL_ERROR
    elif isinstance(error, NetdockError):
        print_error(str(error))
        code = ExitCode.GENERAL_ERROR
    else:
        print_error(f"Unexpected error: {error}", reason=type(error).__name__)
        code = ExitCode.GENERAL_ERROR

    if debug:
        console.print(f"[dim]{traceback.format_exc()}[/dim]")

    return code


__all__ = [
    "ExitCode",
    "handle_error",
    "print_error",
]
