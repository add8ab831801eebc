"""
Host abstractions used by the debug launch pipeline.

Each provider wraps one piece of the host (filesystem, processes, operating
system, persisted state, user interaction) behind a small async interface so
that the pipeline can be exercised with in-memory fakes.
"""

from .fs import FileSystemProvider, LocalFileSystemProvider
from .os import LocalOSProvider, OSProvider
from .process import ChildProcessProvider, ProcessOutput, ProcessProvider, run_process
from .state import JsonFileMemento, Memento
from .temp import OSTempFileProvider, TempFileProvider
from .ui import ConsoleUserInteraction, MessageItem, UserInteraction

__all__ = [
    "ChildProcessProvider",
    "ConsoleUserInteraction",
    "FileSystemProvider",
    "JsonFileMemento",
    "LocalFileSystemProvider",
    "LocalOSProvider",
    "Memento",
    "MessageItem",
    "OSProvider",
    "OSTempFileProvider",
    "ProcessOutput",
    "ProcessProvider",
    "TempFileProvider",
    "UserInteraction",
    "run_process",
]
