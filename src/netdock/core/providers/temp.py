"""Temporary file names that do not collide between concurrent launches."""

from __future__ import annotations

import itertools
import os
import time
from typing import Protocol, runtime_checkable

from .os import OSProvider
from .process import ProcessProvider


@runtime_checkable
class TempFileProvider(Protocol):
    def get_temp_filename(self, prefix: str = "temp") -> str: ...


class OSTempFileProvider:
    """Builds ``<tmpdir>/<prefix>_<millis>_<pid>_<n>.tmp`` names."""

    def __init__(self, os_provider: OSProvider, process_provider: ProcessProvider) -> None:
        self.os_provider = os_provider
        self.process_provider = process_provider
        self._counter = itertools.count(1)

    def get_temp_filename(self, prefix: str = "temp") -> str:
        millis = int(time.time() * 1000)
        name = f"{prefix}_{millis}_{self.process_provider.pid}_{next(self._counter)}.tmp"
        return os.path.join(self.os_provider.tmpdir, name)
