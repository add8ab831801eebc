"""Progress reporting for long-running launch steps."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar, runtime_checkable

from rich.console import Console

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class OutputManager(Protocol):
    async def perform_operation(
        self,
        start_message: str,
        operation: Callable[[], Awaitable[T]],
        end_message: str | None = None,
        error_message: str | None = None,
    ) -> T: ...


class ConsoleOutputManager:
    """
    Shows a spinner while an operation runs, then a success or failure line.

    Failures are reported and re-raised unchanged.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    async def perform_operation(
        self,
        start_message: str,
        operation: Callable[[], Awaitable[T]],
        end_message: str | None = None,
        error_message: str | None = None,
    ) -> T:
        logger.info(start_message)
        try:
            with self.console.status(start_message):
                result = await operation()
        except Exception as e:
            self.console.print(f"[red]{error_message or 'Operation failed.'}[/red] {e}")
            raise

        if end_message:
            self.console.print(f"[green]{end_message}[/green]")
        return result
