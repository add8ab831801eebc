"""
Remote debugger (vsdbg) acquisition.

The debugger is installed by Microsoft's acquisition script into
``~/.vsdbg/<runtime>/<version>``. Both the script and each installed
version are refreshed at most once a day: the time of the last successful
acquisition is kept in global state and an acquisition counts as fresh while
``now <= last + 1 day``.

Example:
    >>> client = RemoteVsDbgClient(output, fs, global_state, os_provider, process)
    >>> path = await client.get_vsdbg_version("latest", "linux-x64")
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol, runtime_checkable

import httpx

from netdock.core.errors import DebuggerAcquisitionError
from netdock.core.platform import HostPlatform
from netdock.core.providers.fs import FileSystemProvider
from netdock.core.providers.os import OSProvider
from netdock.core.providers.process import ProcessProvider
from netdock.core.providers.state import Memento

from .output import OutputManager

logger = logging.getLogger(__name__)

ACQUISITION_TTL = timedelta(days=1)
STATE_KEY = "RemoteVsDbgClient"


def is_fresh(last_acquired: datetime, now: datetime) -> bool:
    """Whether an acquisition made at ``last_acquired`` is still valid at ``now``."""
    return now <= last_acquired + ACQUISITION_TTL


def _powershell_command(
    script_path: str, version: str, runtime: str, install_path: str, env: Mapping[str, str]
) -> str:
    windir = env.get("WINDIR", "C:\\Windows")
    powershell = f"{windir}\\System32\\WindowsPowerShell\\v1.0\\powershell.exe"
    return (
        f"{powershell} -NonInteractive -NoProfile -WindowStyle Hidden "
        f'-ExecutionPolicy RemoteSigned -File "{script_path}" '
        f'-Version {version} -RuntimeID {runtime} -InstallPath "{install_path}"'
    )


def _shell_command(
    script_path: str, version: str, runtime: str, install_path: str, env: Mapping[str, str]
) -> str:
    return f'"{script_path}" -v {version} -r {runtime} -l "{install_path}"'


@dataclass(frozen=True)
class VsDbgScriptPlatformOptions:
    """
    How the acquisition script is fetched and run on a host platform.

    Attributes:
        name: File name of the cached script
        url: Download location
        acquisition_command: Builds the command line from (script, version,
            runtime, install path, environment)
        make_executable: Whether to ``chmod +x`` the script after download
    """

    name: str
    url: str
    acquisition_command: Callable[[str, str, str, str, Mapping[str, str]], str]
    make_executable: bool


_POWERSHELL_SCRIPT = VsDbgScriptPlatformOptions(
    name="GetVsDbg.ps1",
    url="https://aka.ms/getvsdbgps1",
    acquisition_command=_powershell_command,
    make_executable=False,
)
_SHELL_SCRIPT = VsDbgScriptPlatformOptions(
    name="getvsdbg.sh",
    url="https://aka.ms/getvsdbgsh",
    acquisition_command=_shell_command,
    make_executable=True,
)

ACQUISITION_SCRIPTS: dict[HostPlatform, VsDbgScriptPlatformOptions] = {
    HostPlatform.WINDOWS: _POWERSHELL_SCRIPT,
    HostPlatform.MAC: _SHELL_SCRIPT,
    HostPlatform.LINUX: _SHELL_SCRIPT,
}


@runtime_checkable
class VsDbgClient(Protocol):
    async def get_vsdbg_version(self, version: str, runtime: str) -> str: ...


class RemoteVsDbgClient:
    """VsDbgClient that downloads and runs the vsdbg acquisition script."""

    def __init__(
        self,
        output_manager: OutputManager,
        fs_provider: FileSystemProvider,
        global_state: Memento,
        os_provider: OSProvider,
        process_provider: ProcessProvider,
        *,
        vsdbg_root: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.output_manager = output_manager
        self.fs_provider = fs_provider
        self.global_state = global_state
        self.process_provider = process_provider
        self.vsdbg_path = vsdbg_root or os.path.join(os_provider.homedir, ".vsdbg")
        self.options = ACQUISITION_SCRIPTS[os_provider.os]
        self._http_client = http_client
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def script_path(self) -> str:
        return os.path.join(self.vsdbg_path, self.options.name)

    async def get_vsdbg_version(self, version: str, runtime: str) -> str:
        """
        Ensure a debugger version is installed and fresh.

        Args:
            version: vsdbg version (``latest`` or a specific version)
            runtime: Runtime id of the container (e.g. ``linux-x64``)

        Returns:
            Local directory holding the debugger

        Raises:
            httpx.HTTPError: If the acquisition script cannot be downloaded
            ProcessExecutionError: If the acquisition script fails
        """
        vsdbg_version_path = os.path.join(self.vsdbg_path, runtime, version)
        debugger_key = self.last_debugger_acquisition_key(version, runtime)

        installed = await self.fs_provider.dir_exists(vsdbg_version_path)
        if installed and self._is_up_to_date(debugger_key):
            logger.debug(f"Debugger {version}/{runtime} is up to date at {vsdbg_version_path}")
            return vsdbg_version_path

        async def acquire() -> str:
            await self._get_vsdbg_acquisition_script()

            command = self.options.acquisition_command(
                self.script_path, version, runtime, vsdbg_version_path, self.process_provider.env
            )
            await self.process_provider.exec(command, cwd=self.vsdbg_path)

            if not await self.fs_provider.dir_exists(vsdbg_version_path):
                raise DebuggerAcquisitionError(
                    f"The debugger acquisition script did not install '{vsdbg_version_path}'.",
                    version=version,
                    runtime=runtime,
                )

            await self._update_date(debugger_key, self._clock())
            return vsdbg_version_path

        return await self.output_manager.perform_operation(
            "Acquiring the latest .NET Core debugger...",
            acquire,
            "Debugger acquired.",
            "Unable to acquire the .NET Core debugger.",
        )

    async def _get_vsdbg_acquisition_script(self) -> None:
        if await self.fs_provider.file_exists(self.script_path) and self._is_up_to_date(
            self.last_script_acquisition_key
        ):
            return

        if not await self.fs_provider.dir_exists(self.vsdbg_path):
            await self.fs_provider.make_dir(self.vsdbg_path)

        logger.info(f"Downloading {self.options.url}")
        script = await self._download(self.options.url)
        await self.fs_provider.write_file(self.script_path, script)

        if self.options.make_executable:
            await self.process_provider.exec(f'chmod +x "{self.script_path}"', cwd=self.vsdbg_path)

        await self._update_date(self.last_script_acquisition_key, self._clock())

    async def _download(self, url: str) -> str:
        if self._http_client is not None:
            response = await self._http_client.get(url)
        else:
            async with httpx.AsyncClient(follow_redirects=True, timeout=60.0) as client:
                response = await client.get(url)
        response.raise_for_status()
        return response.text

    def _is_up_to_date(self, key: str) -> bool:
        last_acquired = self._get_date(key)
        return last_acquired is not None and is_fresh(last_acquired, self._clock())

    @property
    def last_script_acquisition_key(self) -> str:
        return f"{STATE_KEY}.lastScriptAcquisition"

    @staticmethod
    def last_debugger_acquisition_key(version: str, runtime: str) -> str:
        return f"{STATE_KEY}.lastDebuggerAcquisition({version}, {runtime})"

    def _get_date(self, key: str) -> datetime | None:
        value = self.global_state.get(key)
        if not value:
            return None
        try:
            timestamp = datetime.fromisoformat(value)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring malformed timestamp for {key}: {value!r}")
            return None
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return timestamp

    async def _update_date(self, key: str, timestamp: datetime) -> None:
        await self.global_state.update(key, timestamp.isoformat())
