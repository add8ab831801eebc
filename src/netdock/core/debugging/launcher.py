"""
Wiring of the debug launch pipeline.

create_launcher builds every provider, client and coordinator from a
NetdockConfig. The returned DebugLauncher is long-lived: it owns the SSL
state and the session manager, so launches made through the same instance
share "already trusted/exported" memoization and cleanup listeners.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from netdock.core.config.models import NetdockConfig
from netdock.core.docker.client import CliDockerClient
from netdock.core.dotnet.client import CommandLineDotNetClient
from netdock.core.dotnet.project import MsBuildNetCoreProjectProvider
from netdock.core.errors import ConfigurationError
from netdock.core.providers.fs import LocalFileSystemProvider
from netdock.core.providers.os import LocalOSProvider, OSProvider
from netdock.core.providers.process import ChildProcessProvider
from netdock.core.providers.state import (
    JsonFileMemento,
    get_global_state_path,
    get_workspace_state_path,
)
from netdock.core.providers.temp import OSTempFileProvider
from netdock.core.providers.ui import ConsoleUserInteraction, UserInteraction

from .manager import DockerManager
from .models import DEBUG_CONFIGURATION_TYPE, DebugConfiguration, DebugSessionDescriptor
from .output import ConsoleOutputManager
from .prereqs import (
    AggregatePrerequisite,
    DockerDaemonIsLinuxPrerequisite,
    DotNetExtensionInstalledPrerequisite,
    DotNetSdkInstalledPrerequisite,
    LinuxUserInDockerGroupPrerequisite,
    MacNuGetFallbackFolderSharedPrerequisite,
    Prerequisite,
    command_extension_lookup,
)
from .resolver import DockerDebugConfigurationProvider
from .session import DebugSessionEnded, DebugSessionEvents, DebugSessionManager
from .ssl import LocalAspNetCoreSslManager
from .vsdbg import RemoteVsDbgClient

logger = logging.getLogger(__name__)


@dataclass
class DebugLauncher:
    """Long-lived owner of the launch pipeline for one workspace."""

    workspace_folder: str
    prerequisite: Prerequisite
    docker_manager: DockerManager
    ssl_manager: LocalAspNetCoreSslManager
    vsdbg_client: RemoteVsDbgClient
    session_events: DebugSessionEvents
    session_manager: DebugSessionManager
    configuration_provider: DockerDebugConfigurationProvider

    async def launch(self, configuration: DebugConfiguration) -> DebugSessionDescriptor | None:
        return await self.configuration_provider.resolve_debug_configuration(
            self.workspace_folder, configuration
        )

    def end_session(self, name: str | None = None) -> None:
        """Report that the debug session started by a launch has ended."""
        self.session_events.fire(DebugSessionEnded(name))

    async def dispose(self) -> None:
        await self.session_manager.dispose()


def create_launcher(
    workspace_folder: Path,
    config: NetdockConfig,
    *,
    ui: UserInteraction | None = None,
    console: Console | None = None,
    os_provider: OSProvider | None = None,
) -> DebugLauncher:
    """
    Build a DebugLauncher backed by the local docker and dotnet CLIs.

    Args:
        workspace_folder: Workspace root (holds .netdock/state.json)
        config: Loaded configuration
        ui: User interaction surface (defaults to the console)
        console: Console for progress output
        os_provider: Host description (defaults to the current machine)

    Returns:
        A wired DebugLauncher
    """
    console = console or Console(stderr=True)
    ui = ui or ConsoleUserInteraction(console)
    os_provider = os_provider or LocalOSProvider()

    fs_provider = LocalFileSystemProvider()
    process_provider = ChildProcessProvider()
    temp_file_provider = OSTempFileProvider(os_provider, process_provider)
    output_manager = ConsoleOutputManager(console)

    global_state_path = (
        Path(config.state.global_state_path).expanduser()
        if config.state.global_state_path
        else get_global_state_path()
    )
    global_state = JsonFileMemento(global_state_path)
    workspace_state = JsonFileMemento(get_workspace_state_path(workspace_folder))

    docker_client = CliDockerClient(config.docker.executable)
    dotnet_client = CommandLineDotNetClient(
        process_provider, fs_provider, os_provider, config.dotnet.executable
    )
    project_provider = MsBuildNetCoreProjectProvider(
        fs_provider, process_provider, temp_file_provider, config.dotnet.executable
    )

    prerequisites: list[Prerequisite] = [
        DockerDaemonIsLinuxPrerequisite(docker_client, ui),
        DotNetSdkInstalledPrerequisite(dotnet_client, ui),
        LinuxUserInDockerGroupPrerequisite(os_provider, process_provider, ui),
        MacNuGetFallbackFolderSharedPrerequisite(fs_provider, os_provider, ui),
    ]
    if config.prerequisites.require_csharp_extension:
        lookup = command_extension_lookup(
            process_provider, config.prerequisites.extension_lookup_command
        )
        prerequisites.append(DotNetExtensionInstalledPrerequisite(lookup, ui))
    prerequisite = AggregatePrerequisite(*prerequisites)

    ssl_manager = LocalAspNetCoreSslManager(
        dotnet_client, project_provider, process_provider, os_provider, ui
    )
    vsdbg_client = RemoteVsDbgClient(
        output_manager,
        fs_provider,
        global_state,
        os_provider,
        process_provider,
        vsdbg_root=(
            str(Path(config.debugger.install_root).expanduser())
            if config.debugger.install_root
            else None
        ),
    )
    docker_manager = DockerManager(
        docker_client,
        fs_provider,
        os_provider,
        vsdbg_client,
        workspace_state,
        output_manager,
        ssl_manager,
        debugger_version=config.debugger.version,
        debugger_runtime=config.debugger.runtime,
        pipe_program=config.docker.executable,
    )

    session_events = DebugSessionEvents()
    session_manager = DebugSessionManager(session_events, docker_manager)
    configuration_provider = DockerDebugConfigurationProvider(
        session_manager,
        docker_manager,
        fs_provider,
        os_provider,
        project_provider,
        prerequisite,
        default_labels=config.docker.labels,
    )

    return DebugLauncher(
        workspace_folder=str(workspace_folder),
        prerequisite=prerequisite,
        docker_manager=docker_manager,
        ssl_manager=ssl_manager,
        vsdbg_client=vsdbg_client,
        session_events=session_events,
        session_manager=session_manager,
        configuration_provider=configuration_provider,
    )


def _strip_line_comments(text: str) -> str:
    # launch.json allows whole-line // comments
    return "\n".join(line for line in text.splitlines() if not line.lstrip().startswith("//"))


def load_launch_configuration(launch_file: Path, name: str | None = None) -> DebugConfiguration:
    """
    Read a ``docker-coreclr`` configuration from a launch.json file.

    Args:
        launch_file: Path to launch.json
        name: Configuration name; the first docker-coreclr entry if None

    Returns:
        The parsed DebugConfiguration

    Raises:
        ConfigurationError: If the file is missing, malformed or has no match
    """
    if not launch_file.exists():
        raise ConfigurationError(f"The launch file '{launch_file}' does not exist.")

    try:
        data = json.loads(_strip_line_comments(launch_file.read_text(encoding="utf-8")))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"The launch file '{launch_file}' is not valid JSON: {e}") from e

    entries = data.get("configurations", []) if isinstance(data, dict) else []
    for entry in entries:
        if not isinstance(entry, dict) or entry.get("type") != DEBUG_CONFIGURATION_TYPE:
            continue
        if name is None or entry.get("name") == name:
            return DebugConfiguration.model_validate(entry)

    wanted = f"named '{name}'" if name else f"of type '{DEBUG_CONFIGURATION_TYPE}'"
    raise ConfigurationError(f"No debug configuration {wanted} was found in '{launch_file}'.")
