"""
netdock - Debug .NET Core applications running in Docker containers.

Builds the image, starts the container, injects the remote debugger and
hands a pipe-transport launch descriptor to a native debugger front end.
"""

__version__ = "0.4.0"

# Re-export core models for convenience
from netdock.core.config.models import NetdockConfig
from netdock.core.debugging.models import (
    DebugConfiguration,
    DebugSessionDescriptor,
    LaunchOptions,
    LaunchResult,
)

__all__ = [
    "DebugConfiguration",
    "DebugSessionDescriptor",
    "LaunchOptions",
    "LaunchResult",
    "NetdockConfig",
    "__version__",
]
