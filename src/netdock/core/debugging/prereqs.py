"""
Prerequisite checks that gate a debug launch.

Each prerequisite returns True when satisfied. An expected failure shows a
message through the UserInteraction and returns False; only unexpected
conditions raise. AggregatePrerequisite runs all of its children
concurrently so the user sees every failing message, not just the first.
"""

from __future__ import annotations

import asyncio
import json
import logging
import posixpath
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from netdock.core.docker.client import DockerClient
from netdock.core.dotnet.client import DotNetClient
from netdock.core.errors import ProcessExecutionError
from netdock.core.platform import HostPlatform
from netdock.core.providers.fs import FileSystemProvider
from netdock.core.providers.os import OSProvider
from netdock.core.providers.process import ProcessProvider
from netdock.core.providers.ui import MessageItem, UserInteraction

logger = logging.getLogger(__name__)

CSHARP_EXTENSION_ID = "ms-vscode.csharp"
CSHARP_EXTENSION_GALLERY_URL = (
    "https://marketplace.visualstudio.com/items?itemName=ms-vscode.csharp"
)
MAC_NUGET_FALLBACK_FOLDER = "/usr/local/share/dotnet/sdk/NuGetFallbackFolder"
MAC_DOCKER_SETTINGS_PATH = "Library/Group Containers/group.com.docker/settings.json"

ExtensionLookup = Callable[[str], Awaitable[bool]]


@runtime_checkable
class Prerequisite(Protocol):
    """A check that must pass before a launch proceeds."""

    async def check_prerequisite(self) -> bool: ...


class DockerDaemonIsLinuxPrerequisite:
    """The Docker daemon must be running Linux containers."""

    def __init__(self, docker_client: DockerClient, ui: UserInteraction) -> None:
        self.docker_client = docker_client
        self.ui = ui

    async def check_prerequisite(self) -> bool:
        daemon_os_json = await self.docker_client.get_version(format="{{json .Server.Os}}")
        daemon_os = json.loads(daemon_os_json.strip())

        if daemon_os == "linux":
            return True

        await self.ui.show_error_message(
            "The Docker daemon is not configured to run Linux containers. "
            "Only Linux containers can be used for .NET Core debugging."
        )
        return False


class DotNetExtensionInstalledPrerequisite:
    """
    The C# extension must be installed in the debugger front end.

    Only checked when debugging .NET Core in containers, so Docker support in
    general does not depend on the extension.
    """

    def __init__(self, is_extension_installed: ExtensionLookup, ui: UserInteraction) -> None:
        self.is_extension_installed = is_extension_installed
        self.ui = ui

    async def check_prerequisite(self) -> bool:
        if await self.is_extension_installed(CSHARP_EXTENSION_ID):
            return True

        open_in_gallery = MessageItem("View extension in gallery")
        selection = await self.ui.show_error_message(
            "To debug .NET Core in Docker containers, install the C# extension for VS Code.",
            open_in_gallery,
        )
        if selection == open_in_gallery:
            await self.ui.open_external(CSHARP_EXTENSION_GALLERY_URL)

        return False


class DotNetSdkInstalledPrerequisite:
    def __init__(self, dotnet_client: DotNetClient, ui: UserInteraction) -> None:
        self.dotnet_client = dotnet_client
        self.ui = ui

    async def check_prerequisite(self) -> bool:
        if await self.dotnet_client.get_version():
            return True

        await self.ui.show_error_message(
            "The .NET Core SDK must be installed to debug .NET Core applications "
            "running within Docker containers."
        )
        return False


class LinuxUserInDockerGroupPrerequisite:
    """On Linux the current user must be able to talk to the daemon without sudo."""

    def __init__(
        self,
        os_provider: OSProvider,
        process_provider: ProcessProvider,
        ui: UserInteraction,
    ) -> None:
        self.os_provider = os_provider
        self.process_provider = process_provider
        self.ui = ui

    async def check_prerequisite(self) -> bool:
        if self.os_provider.os != HostPlatform.LINUX:
            return True

        result = await self.process_provider.exec("id -Gn")
        groups = result.stdout.strip().split()

        if "docker" in groups:
            return True

        await self.ui.show_error_message(
            'The current user is not a member of the "docker" group. '
            'Add it using the command "sudo usermod -a -G docker $USER".'
        )
        return False


class MacNuGetFallbackFolderSharedPrerequisite:
    """
    On macOS the NuGet fallback folder must be shared with Docker.

    Older Docker for Mac releases have no settings file or no
    ``filesharingDirectories`` property; both count as satisfied.
    """

    def __init__(
        self,
        fs_provider: FileSystemProvider,
        os_provider: OSProvider,
        ui: UserInteraction,
    ) -> None:
        self.fs_provider = fs_provider
        self.os_provider = os_provider
        self.ui = ui

    async def check_prerequisite(self) -> bool:
        if not self.os_provider.is_mac:
            return True

        settings_path = posixpath.join(self.os_provider.homedir, MAC_DOCKER_SETTINGS_PATH)

        if not await self.fs_provider.file_exists(settings_path):
            return True

        settings = json.loads(await self.fs_provider.read_file(settings_path))
        shared = settings.get("filesharingDirectories") if isinstance(settings, dict) else None

        if shared is None:
            return True

        if MAC_NUGET_FALLBACK_FOLDER in shared:
            return True

        await self.ui.show_error_message(
            f'To debug .NET Core in Docker containers, add "{MAC_NUGET_FALLBACK_FOLDER}" '
            "as a shared folder in your Docker preferences."
        )
        return False


class AggregatePrerequisite:
    """Satisfied only when every child is; all children always run."""

    def __init__(self, *prerequisites: Prerequisite) -> None:
        self.prerequisites = list(prerequisites)

    async def check_prerequisite(self) -> bool:
        results = await asyncio.gather(
            *(prerequisite.check_prerequisite() for prerequisite in self.prerequisites)
        )
        logger.debug(f"Prerequisite results: {results}")
        return all(results)


def command_extension_lookup(
    process_provider: ProcessProvider,
    list_command: str = "code --list-extensions",
) -> ExtensionLookup:
    """
    Build an extension lookup backed by an editor CLI.

    Args:
        process_provider: Runs the listing command
        list_command: Command printing one extension id per line

    Returns:
        Async callable answering "is this extension installed?"; a missing
        or failing editor CLI counts as not installed
    """

    async def is_installed(extension_id: str) -> bool:
        try:
            result = await process_provider.exec(list_command)
        except ProcessExecutionError as e:
            logger.debug(f"Extension lookup failed: {e}")
            return False
        installed = {line.strip().lower() for line in result.stdout.splitlines()}
        return extension_id.lower() in installed

    return is_installed
