"""
Platform enums and per-platform lookup tables.

Two closed sets are used throughout netdock:

- HostPlatform: where netdock itself runs (Windows, Mac, Linux). Decides how
  the debugger acquisition script is run, where host secrets live and which
  command opens a browser.
- PlatformOS: the operating system of the container (Windows or Linux).
  Decides in-container paths and path separators.

Tables are keyed by these enums so that a new member fails loudly with a
KeyError instead of falling through an if/else chain.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum


class HostPlatform(str, Enum):
    """Operating system of the machine running netdock."""

    WINDOWS = "Windows"
    MAC = "Mac"
    LINUX = "Linux"

    @classmethod
    def current(cls) -> HostPlatform:
        """Detect the host platform from sys.platform."""
        if sys.platform == "win32":
            return cls.WINDOWS
        if sys.platform == "darwin":
            return cls.MAC
        return cls.LINUX


class PlatformOS(str, Enum):
    """Operating system of the debug container."""

    WINDOWS = "Windows"
    LINUX = "Linux"


@dataclass(frozen=True)
class ContainerPaths:
    """
    Well-known locations inside a debug container.

    Attributes:
        app_folder: Where the application folder is mounted
        debugger_folder: Where the remote debugger is copied to
        debugger_path: Full path of the debugger executable
        keep_alive: Entrypoint that keeps an idle container running
        separator: Path separator used by the container OS
    """

    app_folder: str
    debugger_folder: str
    debugger_path: str
    keep_alive: tuple[str, ...]
    separator: str


CONTAINER_PATHS: dict[PlatformOS, ContainerPaths] = {
    PlatformOS.LINUX: ContainerPaths(
        app_folder="/app",
        debugger_folder="/remote_debugger",
        debugger_path="/remote_debugger/vsdbg",
        keep_alive=("tail", "-f", "/dev/null"),
        separator="/",
    ),
    PlatformOS.WINDOWS: ContainerPaths(
        app_folder="C:\\app",
        debugger_folder="C:\\remote_debugger",
        debugger_path="C:\\remote_debugger\\vsdbg.exe",
        keep_alive=("cmd", "/c", "ping -t localhost > NUL"),
        separator="\\",
    ),
}


@dataclass(frozen=True)
class BrowserCommand:
    """How a host platform opens a URL, as consumed by a debugger front end."""

    descriptor_key: str
    command: str
    args_template: str | None = None

    def args(self, url: str) -> str | None:
        if self.args_template is None:
            return None
        return self.args_template.format(url=url)


BROWSER_COMMANDS: dict[HostPlatform, BrowserCommand] = {
    HostPlatform.WINDOWS: BrowserCommand("windows", "cmd.exe", "/C start {url}"),
    HostPlatform.MAC: BrowserCommand("osx", "open"),
    HostPlatform.LINUX: BrowserCommand("linux", "xdg-open"),
}


def normalize_path(target_os: PlatformOS, path: str) -> str:
    """
    Rewrite path separators for the target container OS.

    Args:
        target_os: Operating system the path will be used on
        path: Relative or absolute path using either separator

    Returns:
        Path using only the target OS separator
    """
    separator = CONTAINER_PATHS[target_os].separator
    if separator == "/":
        return path.replace("\\", "/")
    return path.replace("/", "\\")
