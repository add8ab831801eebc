"""
Debug session lifetime tracking.

The debugger front end reports "session terminated" on a DebugSessionEvents
channel. DebugSessionManager turns the next such event into a cleanup of the
containers started for debugging. The cleanup runs in a detached task that
is independent of the launch that started listening, and is cancelled when
the manager is disposed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DebugSessionEnded:
    """Event payload: the name of the debug session that terminated."""

    name: str | None = None


SessionListener = Callable[[DebugSessionEnded], None]


class Disposable:
    """Handle returned by subscriptions; dispose() unsubscribes."""

    def __init__(self, on_dispose: Callable[[], None]) -> None:
        self._on_dispose: Callable[[], None] | None = on_dispose

    def dispose(self) -> None:
        if self._on_dispose is not None:
            self._on_dispose()
            self._on_dispose = None


class DebugSessionEvents:
    """In-process event channel for debug session termination."""

    def __init__(self) -> None:
        self._listeners: list[SessionListener] = []

    def subscribe(self, listener: SessionListener) -> Disposable:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Disposable(remove)

    def fire(self, event: DebugSessionEnded | None = None) -> None:
        event = event or DebugSessionEnded()
        for listener in list(self._listeners):
            listener(event)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


class ContainerCleaner(Protocol):
    async def cleanup_after_launch(self) -> None: ...


class DebugSessionManager:
    """
    Removes debug containers when the next debug session ends.

    Calling start_listening() while already listening is a no-op, so
    repeated launches never stack listeners. Listening stops as soon as the
    session ends, before the cleanup runs, so a launch made during a cleanup
    gets a listener of its own.
    """

    def __init__(self, events: DebugSessionEvents, cleaner: ContainerCleaner) -> None:
        self.events = events
        self.cleaner = cleaner
        self._subscription: Disposable | None = None
        # Each task waits for the end of one session, then cleans up
        self._tasks: dict[asyncio.Task[None], asyncio.Future[DebugSessionEnded]] = {}

    @property
    def is_listening(self) -> bool:
        return self._subscription is not None

    def start_listening(self) -> None:
        if self.is_listening:
            return

        ended: asyncio.Future[DebugSessionEnded] = asyncio.get_running_loop().create_future()

        def on_ended(event: DebugSessionEnded) -> None:
            if not ended.done():
                ended.set_result(event)
            self._stop_listening(subscription)

        subscription = self.events.subscribe(on_ended)
        self._subscription = subscription
        task = asyncio.create_task(self._cleanup_when_ended(ended, subscription))
        self._tasks[task] = ended
        task.add_done_callback(self._forget)

    async def _cleanup_when_ended(
        self, ended: asyncio.Future[DebugSessionEnded], subscription: Disposable
    ) -> None:
        try:
            event = await ended
        finally:
            self._stop_listening(subscription)

        logger.info(f"Debug session {event.name or ''} ended, removing debug containers")
        try:
            await self.cleaner.cleanup_after_launch()
        except Exception as e:
            # Cleanup is best-effort
            logger.warning(f"Failed to clean up after debug session: {e}")

    def _stop_listening(self, subscription: Disposable | None = None) -> None:
        if subscription is None:
            subscription = self._subscription
        if subscription is not None:
            subscription.dispose()
        if self._subscription is subscription:
            self._subscription = None

    def _forget(self, task: asyncio.Task[None]) -> None:
        self._tasks.pop(task, None)

    async def wait_for_cleanup(self) -> None:
        """Wait until the cleanups of ended sessions have finished."""
        cleanups = [task for task, ended in self._tasks.items() if ended.done()]
        if cleanups:
            await asyncio.shield(asyncio.gather(*cleanups))

    async def dispose(self) -> None:
        self._stop_listening()
        tasks = [task for task in self._tasks if not task.done()]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()
