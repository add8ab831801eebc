"""
Pytest configuration and shared fixtures.

Provides in-memory fakes for the providers and clients the launch pipeline
depends on, so tests never touch Docker, dotnet or the network.
"""

from __future__ import annotations

import hashlib
import os
import posixpath
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, TypeVar

import pytest

from netdock.core.config import clear_cache
from netdock.core.docker.models import BuildImageOptions, RunContainerOptions
from netdock.core.errors import ProcessExecutionError
from netdock.core.platform import HostPlatform
from netdock.core.providers.os import LocalOSProvider
from netdock.core.providers.process import ProcessOutput
from netdock.core.providers.ui import MessageItem

T = TypeVar("T")


# ==============================================================================
# Fakes
# ==============================================================================


class FakeFileSystem:
    """In-memory FileSystemProvider using posix paths."""

    def __init__(self) -> None:
        self.files: dict[str, str | bytes] = {}
        self.dirs: set[str] = set()
        self.unlinked: list[str] = []

    def add_file(self, path: str, content: str | bytes = "") -> None:
        self.files[path] = content
        self.add_dir(posixpath.dirname(path))

    def add_dir(self, path: str) -> None:
        while path and path not in self.dirs:
            self.dirs.add(path)
            parent = posixpath.dirname(path)
            if parent == path:
                break
            path = parent

    async def dir_exists(self, path: str) -> bool:
        return path in self.dirs

    async def file_exists(self, path: str) -> bool:
        return path in self.files

    async def hash_file(self, path: str) -> str:
        content = self.files[path]
        data = content.encode("utf-8") if isinstance(content, str) else content
        return hashlib.sha256(data).hexdigest()

    async def make_dir(self, path: str) -> None:
        self.add_dir(path)

    async def read_dir(self, path: str) -> list[str]:
        names = {p[len(path) + 1 :].split("/")[0] for p in [*self.files, *self.dirs] if p.startswith(path + "/")}
        return list(names)

    async def read_file(self, filename: str, encoding: str = "utf-8") -> str:
        if filename not in self.files:
            raise FileNotFoundError(filename)
        content = self.files[filename]
        return content.decode(encoding) if isinstance(content, bytes) else content

    async def unlink_file(self, filename: str) -> None:
        self.files.pop(filename, None)
        self.unlinked.append(filename)

    async def write_file(self, filename: str, data: str | bytes) -> None:
        self.add_file(filename, data)


ProcessHandler = Callable[[str], "ProcessOutput | Exception | str"]


class FakeProcessProvider:
    """
    Records commands and answers them from registered handlers.

    Handlers are matched by command prefix; the first match wins. Unmatched
    commands succeed with empty output.
    """

    def __init__(self, env: Mapping[str, str] | None = None, pid: int = 4242) -> None:
        self.commands: list[str] = []
        self.cwds: list[str | None] = []
        self._env = dict(env or {})
        self._pid = pid
        self._handlers: list[tuple[str, Any]] = []

    @property
    def env(self) -> Mapping[str, str]:
        return self._env

    @property
    def pid(self) -> int:
        return self._pid

    def on(self, prefix: str, result: Any) -> None:
        """Answer commands starting with prefix with stdout, an exception or a callable."""
        self._handlers.append((prefix, result))

    async def exec(
        self,
        command: str,
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessOutput:
        self.commands.append(command)
        self.cwds.append(cwd)
        for prefix, result in self._handlers:
            if command.startswith(prefix):
                if callable(result):
                    result = result(command)
                if isinstance(result, Exception):
                    raise result
                if isinstance(result, ProcessOutput):
                    return result
                return ProcessOutput(stdout=str(result), stderr="")
        return ProcessOutput(stdout="", stderr="")


class FakeUserInteraction:
    """Records messages and answers with queued selections (by title)."""

    def __init__(self, selections: Sequence[str | None] = ()) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.infos: list[str] = []
        self.opened: list[str] = []
        self.learn_more_links: list[str | None] = []
        self._selections = list(selections)

    def _select(self, items: tuple[MessageItem, ...]) -> MessageItem | None:
        if not self._selections:
            return None
        title = self._selections.pop(0)
        return next((item for item in items if item.title == title), None)

    async def show_error_message(self, message: str, *items: MessageItem) -> MessageItem | None:
        self.errors.append(message)
        return self._select(items)

    async def show_warning_message(
        self,
        message: str,
        *items: MessageItem,
        learn_more_link: str | None = None,
    ) -> MessageItem | None:
        self.warnings.append(message)
        self.learn_more_links.append(learn_more_link)
        return self._select(items)

    async def show_information_message(self, message: str) -> None:
        self.infos.append(message)

    async def open_external(self, url: str) -> None:
        self.opened.append(url)


class InMemoryMemento:
    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = dict(data or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    async def update(self, key: str, value: Any) -> None:
        if value is None:
            self.data.pop(key, None)
        else:
            self.data[key] = value


class RecordingOutputManager:
    """OutputManager that runs operations inline and records their messages."""

    def __init__(self) -> None:
        self.operations: list[str] = []

    async def perform_operation(
        self,
        start_message: str,
        operation: Callable[[], Awaitable[T]],
        end_message: str | None = None,
        error_message: str | None = None,
    ) -> T:
        self.operations.append(start_message)
        return await operation()


class FakeDockerClient:
    """DockerClient double with scriptable inspect results."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.server_os = "linux"
        self.objects: dict[tuple[str, str | None], dict[str, Any]] = {}
        self.image_id = "sha256:built"
        self.container_id = "c0ffee0000000000"
        self.runtime_output = "linux-x64\n"
        self.web_endpoint: str | None = None
        self.remove_error: Exception | None = None
        self.build_error: Exception | None = None

    async def get_version(self, format: str | None = None) -> str:
        self.calls.append(("get_version", (format,)))
        return f'"{self.server_os}"\n'

    async def build_image(self, options: BuildImageOptions) -> str:
        self.calls.append(("build_image", (options,)))
        if self.build_error:
            raise self.build_error
        return self.image_id

    async def run_container(self, image: str, options: RunContainerOptions) -> str:
        self.calls.append(("run_container", (image, options)))
        return self.container_id

    async def exec_container(self, container: str, command: Sequence[str]) -> str:
        self.calls.append(("exec_container", (container, list(command))))
        return self.runtime_output

    async def copy_to_container(self, container: str, local_path: str, container_path: str) -> None:
        self.calls.append(("copy_to_container", (container, local_path, container_path)))

    async def remove_container(self, container: str, force: bool = False) -> None:
        self.calls.append(("remove_container", (container, force)))
        if self.remove_error:
            raise self.remove_error

    async def inspect_object(self, ref: str, object_type: str | None = None) -> dict[str, Any] | None:
        self.calls.append(("inspect_object", (ref, object_type)))
        return self.objects.get((ref, object_type))

    async def get_container_web_endpoint(self, container: str) -> str | None:
        self.calls.append(("get_container_web_endpoint", (container,)))
        return self.web_endpoint

    def called(self, name: str) -> list[tuple[Any, ...]]:
        return [args for call, args in self.calls if call == name]


class StaticPrerequisite:
    def __init__(self, result: bool) -> None:
        self.result = result
        self.checked = 0

    async def check_prerequisite(self) -> bool:
        self.checked += 1
        return self.result


def process_error(command: str = "cmd", exit_code: int = 1, stderr: str = "failed") -> ProcessExecutionError:
    return ProcessExecutionError(command, exit_code, stderr=stderr)


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch, tmp_path):
    """Keep user config, state and env overrides of the developer machine out of tests."""
    for key in list(os.environ):
        if key.startswith("NETDOCK_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def fs():
    return FakeFileSystem()


@pytest.fixture
def process():
    return FakeProcessProvider()


@pytest.fixture
def ui():
    return FakeUserInteraction()


@pytest.fixture
def linux_host():
    return LocalOSProvider(platform=HostPlatform.LINUX, homedir="/home/dev")


@pytest.fixture
def mac_host():
    return LocalOSProvider(platform=HostPlatform.MAC, homedir="/Users/dev")


@pytest.fixture
def windows_host():
    return LocalOSProvider(platform=HostPlatform.WINDOWS, homedir="C:\\Users\\dev")


@pytest.fixture
def docker():
    return FakeDockerClient()


@pytest.fixture
def output():
    return RecordingOutputManager()
