"""Operating system facts for the host running netdock."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from netdock.core.platform import HostPlatform, PlatformOS, normalize_path


@runtime_checkable
class OSProvider(Protocol):
    """Protocol describing the host operating system."""

    @property
    def os(self) -> HostPlatform: ...

    @property
    def is_mac(self) -> bool: ...

    @property
    def homedir(self) -> str: ...

    @property
    def tmpdir(self) -> str: ...

    def path_normalize(self, target_os: PlatformOS, path: str) -> str: ...


class LocalOSProvider:
    """
    OSProvider for the current machine.

    The platform is detected once on construction; pass ``platform`` to
    pretend to be another host.
    """

    def __init__(
        self,
        platform: HostPlatform | None = None,
        homedir: str | None = None,
    ) -> None:
        self._platform = platform or HostPlatform.current()
        self._homedir = homedir or str(Path.home())

    @property
    def os(self) -> HostPlatform:
        return self._platform

    @property
    def is_mac(self) -> bool:
        return self._platform == HostPlatform.MAC

    @property
    def homedir(self) -> str:
        return self._homedir

    @property
    def tmpdir(self) -> str:
        return tempfile.gettempdir()

    def path_normalize(self, target_os: PlatformOS, path: str) -> str:
        return normalize_path(target_os, path)
