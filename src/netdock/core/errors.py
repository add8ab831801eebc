"""
Custom exceptions for netdock.

Exception Hierarchy:
    NetdockError (base)
    ├── ConfigurationError (invalid or missing debug configuration properties)
    ├── PrerequisiteError (launch aborted because a prerequisite failed)
    ├── ProcessExecutionError (an external tool exited with an error)
    └── DebuggerAcquisitionError (the remote debugger could not be acquired)

Prerequisite checks do not raise for expected failures; they return False
after showing a message. PrerequisiteError only exists so that callers
outside the resolver (the CLI) can abort with a typed error.
"""


class NetdockError(Exception):
    """
    Base exception for all netdock errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class ConfigurationError(NetdockError):
    """
    Raised while resolving a debug configuration.

    The message names the configuration property the user has to fix and is
    shown to the user verbatim.
    """


class PrerequisiteError(NetdockError):
    """Raised when a launch is aborted because prerequisites are not met."""

    def __init__(self, message: str = "Prerequisites for debugging are not met.") -> None:
        super().__init__(message)


class ProcessExecutionError(NetdockError):
    """
    Raised when an external command exits with a non-zero status.

    The message is the tool's own error output so callers can surface it
    unmodified.

    Attributes:
        command: The command line that failed
        exit_code: Process exit code (None if the process never ran)
        stdout: Captured standard output
        stderr: Captured standard error
    """

    def __init__(
        self,
        command: str,
        exit_code: int | None,
        stdout: str = "",
        stderr: str = "",
        error: str | None = None,
    ) -> None:
        message = (stderr or "").strip() or error or (
            f"Process '{command}' exited with code {exit_code}."
        )
        super().__init__(message, command=command, exit_code=exit_code)
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


class DebuggerAcquisitionError(NetdockError):
    """Raised when the remote debugger or its acquisition script is unavailable."""
