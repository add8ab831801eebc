"""Tests for debug session cleanup."""

import asyncio

import pytest

from netdock.core.debugging.session import (
    DebugSessionEnded,
    DebugSessionEvents,
    DebugSessionManager,
)


class RecordingCleaner:
    def __init__(self, error: Exception | None = None) -> None:
        self.cleanups = 0
        self.error = error

    async def cleanup_after_launch(self) -> None:
        self.cleanups += 1
        if self.error:
            raise self.error


class BlockingCleaner:
    """Cleaner that holds each cleanup open until released."""

    def __init__(self) -> None:
        self.cleanups = 0
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def cleanup_after_launch(self) -> None:
        self.cleanups += 1
        self.started.set()
        await self.release.wait()


class TestDebugSessionEvents:
    """Test the session ended channel."""

    def test_subscribe_and_dispose(self):
        events = DebugSessionEvents()
        received: list[DebugSessionEnded] = []

        subscription = events.subscribe(received.append)
        events.fire(DebugSessionEnded("Docker: Foo"))
        subscription.dispose()
        subscription.dispose()
        events.fire(DebugSessionEnded("Docker: Bar"))

        assert received == [DebugSessionEnded("Docker: Foo")]
        assert events.listener_count == 0


class TestDebugSessionManager:
    """Test cleanup after the debug session ends."""

    @pytest.mark.asyncio
    async def test_cleanup_runs_once_session_ends(self):
        events = DebugSessionEvents()
        cleaner = RecordingCleaner()
        manager = DebugSessionManager(events, cleaner)

        manager.start_listening()
        await asyncio.sleep(0)
        assert cleaner.cleanups == 0

        events.fire(DebugSessionEnded("Docker: Foo"))
        await manager.wait_for_cleanup()

        assert cleaner.cleanups == 1
        assert manager.is_listening is False
        assert events.listener_count == 0

    @pytest.mark.asyncio
    async def test_listening_twice_does_not_stack(self):
        events = DebugSessionEvents()
        cleaner = RecordingCleaner()
        manager = DebugSessionManager(events, cleaner)

        manager.start_listening()
        manager.start_listening()

        assert events.listener_count == 1

        events.fire()
        await manager.wait_for_cleanup()
        assert cleaner.cleanups == 1

    @pytest.mark.asyncio
    async def test_listens_again_after_cleanup(self):
        events = DebugSessionEvents()
        cleaner = RecordingCleaner()
        manager = DebugSessionManager(events, cleaner)

        for _ in range(2):
            manager.start_listening()
            events.fire()
            await manager.wait_for_cleanup()

        assert cleaner.cleanups == 2

    @pytest.mark.asyncio
    async def test_cleanup_failure_is_logged(self, caplog):
        events = DebugSessionEvents()
        manager = DebugSessionManager(events, RecordingCleaner(error=RuntimeError("daemon gone")))

        manager.start_listening()
        events.fire()
        await manager.wait_for_cleanup()

        assert "daemon gone" in caplog.text
        assert manager.is_listening is False

    @pytest.mark.asyncio
    async def test_dispose_cancels_pending_cleanup(self):
        events = DebugSessionEvents()
        cleaner = RecordingCleaner()
        manager = DebugSessionManager(events, cleaner)

        manager.start_listening()
        await manager.dispose()
        events.fire()
        await asyncio.sleep(0)

        assert cleaner.cleanups == 0
        assert events.listener_count == 0
        assert manager.is_listening is False

    @pytest.mark.asyncio
    async def test_launch_during_cleanup_gets_a_listener(self):
        events = DebugSessionEvents()
        cleaner = BlockingCleaner()
        manager = DebugSessionManager(events, cleaner)

        manager.start_listening()
        events.fire(DebugSessionEnded("Docker: Foo"))
        await cleaner.started.wait()

        manager.start_listening()
        assert manager.is_listening is True
        assert events.listener_count == 1

        cleaner.release.set()
        await manager.wait_for_cleanup()
        events.fire(DebugSessionEnded("Docker: Foo"))
        await manager.wait_for_cleanup()

        assert cleaner.cleanups == 2
        assert manager.is_listening is False
