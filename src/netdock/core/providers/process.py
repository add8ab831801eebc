"""
Process execution utilities.

This module provides:
- run_process: spawn a command (argv list or shell string) with timeout
  support and process-group cleanup
- ChildProcessProvider: the ``exec(command, cwd, env)`` interface used by the
  launch pipeline, raising ProcessExecutionError on non-zero exit
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from netdock.core.errors import ProcessExecutionError

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = sys.platform == "win32"
IS_UNIX = not IS_WINDOWS


class ProcessResult(BaseModel):
    """Structured result from process execution."""

    success: bool
    """Whether the process completed successfully (exit code 0)."""

    exit_code: int | None
    """Process exit code, or None if killed/timed out."""

    stdout: str
    """Standard output from the process."""

    stderr: str
    """Standard error from the process."""

    duration_ms: int
    """Execution duration in milliseconds."""

    timed_out: bool = False
    """Whether the process was terminated due to timeout."""

    error: str | None = None
    """Error message if the process could not be run."""


class ProcessOutput(BaseModel):
    """Output of a successful ``ProcessProvider.exec`` call."""

    stdout: str
    stderr: str


def _elapsed_ms(started_at: datetime) -> int:
    return int((datetime.now(timezone.utc) - started_at).total_seconds() * 1000)


def _format_command(command: list[str] | str) -> str:
    return command if isinstance(command, str) else " ".join(command)


async def run_process(
    command: list[str] | str,
    *,
    timeout: float | None = None,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    input_data: str | None = None,
) -> ProcessResult:
    """
    Run a subprocess with timeout and automatic cleanup.

    A list is executed directly; a string is handed to the system shell.

    Args:
        command: Command and arguments as a list, or a shell command line
        timeout: Optional timeout in seconds. None means no timeout.
        env: Optional environment variables. Merged with os.environ if provided.
        cwd: Optional working directory for the process.
        input_data: Optional string to send to stdin.

    Returns:
        ProcessResult with output, exit code, and timing information.

    Example:
        >>> result = await run_process(["docker", "ps", "-a"], timeout=30.0)
        >>> if result.success:
        ...     print(result.stdout)
    """
    started_at = datetime.now(timezone.utc)
    process: asyncio.subprocess.Process | None = None

    process_env = None
    if env is not None:
        process_env = os.environ.copy()
        process_env.update(env)

    try:
        kwargs: dict[str, Any] = {
            "stdout": asyncio.subprocess.PIPE,
            "stderr": asyncio.subprocess.PIPE,
            "cwd": cwd,
            "env": process_env,
        }

        if input_data is not None:
            kwargs["stdin"] = asyncio.subprocess.PIPE

        # New session on Unix so the whole process group can be killed
        if IS_UNIX:
            kwargs["start_new_session"] = True

        logger.debug(f"Running process: {_format_command(command)}")
        if isinstance(command, str):
            process = await asyncio.create_subprocess_shell(command, **kwargs)
        else:
            process = await asyncio.create_subprocess_exec(*command, **kwargs)

        try:
            input_bytes = input_data.encode("utf-8") if input_data else None

            if timeout is not None:
                stdout_bytes, stderr_bytes = await asyncio.wait_for(
                    process.communicate(input_bytes),
                    timeout=timeout,
                )
            else:
                stdout_bytes, stderr_bytes = await process.communicate(input_bytes)

            stdout = stdout_bytes.decode("utf-8", errors="replace") if stdout_bytes else ""
            stderr = stderr_bytes.decode("utf-8", errors="replace") if stderr_bytes else ""

            return ProcessResult(
                success=process.returncode == 0,
                exit_code=process.returncode,
                stdout=stdout,
                stderr=stderr,
                duration_ms=_elapsed_ms(started_at),
            )

        except asyncio.TimeoutError:
            await _kill(process)
            return ProcessResult(
                success=False,
                exit_code=None,
                stdout="",
                stderr="",
                duration_ms=_elapsed_ms(started_at),
                timed_out=True,
                error=f"Process timed out after {timeout}s",
            )

    except FileNotFoundError:
        name = command.split()[0] if isinstance(command, str) else command[0]
        return ProcessResult(
            success=False,
            exit_code=None,
            stdout="",
            stderr="",
            duration_ms=_elapsed_ms(started_at),
            error=f"Command not found: {name}. Ensure it is installed and in PATH.",
        )

    finally:
        if process is not None:
            await _kill(process)


async def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill a process that is still running, with its process group on Unix."""
    if process.returncode is not None:
        return

    try:
        if IS_UNIX:
            # start_new_session makes the child the leader of its own group
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()
    except ProcessLookupError:
        return
    await process.wait()
    logger.debug(f"Killed process {process.pid}")


@runtime_checkable
class ProcessProvider(Protocol):
    """Protocol for running shell commands from the launch pipeline."""

    @property
    def env(self) -> Mapping[str, str]: ...

    @property
    def pid(self) -> int: ...

    async def exec(
        self,
        command: str,
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessOutput: ...


class ChildProcessProvider:
    """ProcessProvider that runs commands through the system shell."""

    @property
    def env(self) -> Mapping[str, str]:
        return os.environ

    @property
    def pid(self) -> int:
        return os.getpid()

    async def exec(
        self,
        command: str,
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessOutput:
        """
        Run a shell command and return its output.

        Args:
            command: Shell command line
            cwd: Working directory
            env: Extra environment variables merged over os.environ

        Returns:
            ProcessOutput with stdout and stderr

        Raises:
            ProcessExecutionError: If the command fails or cannot be started
        """
        result = await run_process(command, cwd=cwd, env=env)
        if not result.success:
            raise ProcessExecutionError(
                command,
                result.exit_code,
                stdout=result.stdout,
                stderr=result.stderr,
                error=result.error,
            )
        return ProcessOutput(stdout=result.stdout, stderr=result.stderr)
