"""
User interaction surface.

The launch pipeline never prints directly; it shows messages with optional
action buttons through a UserInteraction and gets back the chosen action (or
None when the message was dismissed). ConsoleUserInteraction renders these on
a Rich console and, when attached to a terminal, asks for the action with
typer.prompt.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import typer
from rich.console import Console

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MessageItem:
    """An action button attached to a message."""

    title: str


@runtime_checkable
class UserInteraction(Protocol):
    """Protocol for user-facing messages and actions."""

    async def show_error_message(
        self, message: str, *items: MessageItem
    ) -> MessageItem | None: ...

    async def show_warning_message(
        self,
        message: str,
        *items: MessageItem,
        learn_more_link: str | None = None,
    ) -> MessageItem | None: ...

    async def show_information_message(self, message: str) -> None: ...

    async def open_external(self, url: str) -> None: ...


class ConsoleUserInteraction:
    """
    UserInteraction printing to a Rich console.

    Prerequisite checks run concurrently, so prompts are serialized with a
    lock to keep one question on screen at a time.
    """

    def __init__(self, console: Console | None = None, interactive: bool | None = None) -> None:
        self.console = console or Console(stderr=True)
        self.interactive = self.console.is_terminal if interactive is None else interactive
        self._prompt_lock = asyncio.Lock()

    async def show_error_message(self, message: str, *items: MessageItem) -> MessageItem | None:
        self.console.print(f"[red]Error:[/red] {message}")
        return await self._choose(items)

    async def show_warning_message(
        self,
        message: str,
        *items: MessageItem,
        learn_more_link: str | None = None,
    ) -> MessageItem | None:
        self.console.print(f"[yellow]Warning:[/yellow] {message}")
        if learn_more_link:
            self.console.print(f"[dim]Learn more: {learn_more_link}[/dim]")
        return await self._choose(items)

    async def show_information_message(self, message: str) -> None:
        self.console.print(message)

    async def open_external(self, url: str) -> None:
        logger.debug(f"Opening {url}")
        opened = await asyncio.to_thread(webbrowser.open, url)
        if not opened:
            self.console.print(f"Open [cyan]{url}[/cyan] in your browser.")

    async def _choose(self, items: tuple[MessageItem, ...]) -> MessageItem | None:
        if not items or not self.interactive:
            return None

        async with self._prompt_lock:
            for index, item in enumerate(items, start=1):
                self.console.print(f"  [cyan]{index}[/cyan]. {item.title}")
            self.console.print("  [cyan]0[/cyan]. Dismiss")
            choice = await asyncio.to_thread(typer.prompt, "Select an action", default=0, type=int)

        if 1 <= choice <= len(items):
            return items[choice - 1]
        return None
