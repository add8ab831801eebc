"""
Debug launch pipeline for .NET Core applications in Docker containers.

Example usage:
    from netdock.core.config import load_config
    from netdock.core.debugging import create_launcher, load_launch_configuration

    launcher = create_launcher(workspace, load_config())
    configuration = load_launch_configuration(workspace / ".vscode" / "launch.json")
    descriptor = await launcher.launch(configuration)

    # ... hand descriptor.to_launch_json() to the debugger front end ...

    launcher.end_session()  # removes the debug container
"""

from .launcher import DebugLauncher, create_launcher, load_launch_configuration
from .manager import DockerManager
from .models import (
    DebugConfiguration,
    DebugSessionDescriptor,
    DockerDebugBuildOptions,
    DockerDebugRunOptions,
    LaunchBuildOptions,
    LaunchOptions,
    LaunchResult,
    LaunchRunOptions,
)
from .prereqs import (
    AggregatePrerequisite,
    DockerDaemonIsLinuxPrerequisite,
    DotNetExtensionInstalledPrerequisite,
    DotNetSdkInstalledPrerequisite,
    LinuxUserInDockerGroupPrerequisite,
    MacNuGetFallbackFolderSharedPrerequisite,
    Prerequisite,
)
from .resolver import DockerDebugConfigurationProvider, resolve_folder_path
from .session import DebugSessionEnded, DebugSessionEvents, DebugSessionManager
from .ssl import LocalAspNetCoreSslManager, SecretsFolders, SslState
from .vsdbg import RemoteVsDbgClient, is_fresh

__all__ = [
    # Wiring
    "DebugLauncher",
    "create_launcher",
    "load_launch_configuration",
    # Models
    "DebugConfiguration",
    "DebugSessionDescriptor",
    "DockerDebugBuildOptions",
    "DockerDebugRunOptions",
    "LaunchBuildOptions",
    "LaunchOptions",
    "LaunchResult",
    "LaunchRunOptions",
    # Prerequisites
    "AggregatePrerequisite",
    "DockerDaemonIsLinuxPrerequisite",
    "DotNetExtensionInstalledPrerequisite",
    "DotNetSdkInstalledPrerequisite",
    "LinuxUserInDockerGroupPrerequisite",
    "MacNuGetFallbackFolderSharedPrerequisite",
    "Prerequisite",
    # Pipeline
    "DockerDebugConfigurationProvider",
    "DockerManager",
    "RemoteVsDbgClient",
    "LocalAspNetCoreSslManager",
    "SecretsFolders",
    "SslState",
    "DebugSessionEnded",
    "DebugSessionEvents",
    "DebugSessionManager",
    "is_fresh",
    "resolve_folder_path",
]
