"""
Resolution of Docker debug configurations.

DockerDebugConfigurationProvider fills in everything a user left out of a
``docker-coreclr`` configuration by looking at the workspace:

    appFolder   explicit -> folder of appProject -> workspace folder
    appProject  explicit -> first .csproj/.fsproj in appFolder
    appOutput   explicit -> MSBuild target path relative to the project
    context     explicit -> appFolder if it is the workspace folder,
                otherwise its parent (solution folder layout)
    dockerfile  explicit -> <appFolder>/Dockerfile
    container   explicit -> <appName>-dev
    tag         explicit -> <appname>:dev
    target      explicit -> base

Folder properties may contain ``${workspaceFolder}`` (any case). Missing
folders and files raise ConfigurationError naming the property to fix.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Protocol

from netdock.core.dotnet.project import NetCoreProjectProvider
from netdock.core.errors import ConfigurationError
from netdock.core.platform import BROWSER_COMMANDS, PlatformOS
from netdock.core.providers.fs import FileSystemProvider
from netdock.core.providers.os import OSProvider

from .models import (
    BrowserBaseOptions,
    DebugConfiguration,
    DebugSessionDescriptor,
    LaunchBrowserOptions,
    LaunchBuildOptions,
    LaunchOptions,
    LaunchResult,
    LaunchRunOptions,
    PipeTransport,
)
from .prereqs import Prerequisite
from .session import DebugSessionManager

logger = logging.getLogger(__name__)

PROJECT_FILE_EXTENSIONS = (".csproj", ".fsproj")
DEFAULT_LABELS: dict[str, str] = {"com.microsoft.created-by": "visual-studio-code"}
DEFAULT_TARGET = "base"

_WORKSPACE_FOLDER_PATTERN = re.compile(r"\$\{workspaceFolder\}", re.IGNORECASE)


class LaunchPreparer(Protocol):
    async def prepare_for_launch(self, options: LaunchOptions) -> LaunchResult: ...


def resolve_folder_path(folder_path: str, workspace_folder: str) -> str:
    """Substitute ``${workspaceFolder}`` (case-insensitive) with the workspace path."""
    return _WORKSPACE_FOLDER_PATTERN.sub(lambda _: workspace_folder, folder_path)


class DockerDebugConfigurationProvider:
    """Resolves ``docker-coreclr`` configurations into ``coreclr`` launch descriptors."""

    def __init__(
        self,
        session_manager: DebugSessionManager,
        docker_manager: LaunchPreparer,
        fs_provider: FileSystemProvider,
        os_provider: OSProvider,
        project_provider: NetCoreProjectProvider,
        prerequisite: Prerequisite,
        default_labels: dict[str, str] | None = None,
    ) -> None:
        self.session_manager = session_manager
        self.docker_manager = docker_manager
        self.fs_provider = fs_provider
        self.os_provider = os_provider
        self.project_provider = project_provider
        self.prerequisite = prerequisite
        self.default_labels = default_labels if default_labels is not None else dict(DEFAULT_LABELS)

    def provide_debug_configurations(self) -> list[DebugConfiguration]:
        return [
            DebugConfiguration(
                name="Docker: Launch .NET Core (Preview)",
                pre_launch_task="build",
            )
        ]

    async def resolve_debug_configuration(
        self,
        workspace_folder: str | None,
        configuration: DebugConfiguration,
    ) -> DebugSessionDescriptor | None:
        """
        Resolve, build, run and describe a debug launch.

        Args:
            workspace_folder: Absolute path of the workspace root
            configuration: The user's debug configuration

        Returns:
            The launch descriptor, or None when a prerequisite failed

        Raises:
            ConfigurationError: If a property cannot be resolved
            ProcessExecutionError: If docker or dotnet fail
        """
        if not workspace_folder:
            raise ConfigurationError("No workspace folder is associated with debugging.")

        if not await self.prerequisite.check_prerequisite():
            logger.info("Prerequisites not met, launch aborted")
            return None

        options = await self.resolve_launch_options(workspace_folder, configuration)
        result = await self.docker_manager.prepare_for_launch(options)
        descriptor = self.create_configuration(configuration, options.app_folder, result)

        if configuration.remove_container_after_debug:
            self.session_manager.start_listening()

        return descriptor

    async def resolve_launch_options(
        self,
        workspace_folder: str,
        configuration: DebugConfiguration,
    ) -> LaunchOptions:
        """Infer every launch property without touching Docker."""
        app_folder = await self.infer_app_folder(workspace_folder, configuration)
        app_project = await self.infer_app_project(workspace_folder, configuration, app_folder)
        app_name = os.path.splitext(os.path.basename(app_project))[0]

        target_os = configuration.docker_run.os or PlatformOS.LINUX
        app_output = await self.infer_app_output(configuration, target_os, app_project)

        build = await self.infer_build_options(
            workspace_folder, configuration, app_folder, app_name
        )
        run = self.infer_run_options(workspace_folder, configuration, app_name, target_os)

        return LaunchOptions(
            app_folder=app_folder,
            app_output=app_output,
            app_project=app_project,
            workspace_folder=workspace_folder,
            configure_ssl=configuration.configure_ssl,
            build=build,
            run=run,
        )

    async def infer_app_folder(
        self, workspace_folder: str, configuration: DebugConfiguration
    ) -> str:
        if configuration.app_folder:
            app_folder = configuration.app_folder
        elif configuration.app_project:
            app_folder = os.path.dirname(configuration.app_project)
        else:
            app_folder = workspace_folder

        resolved = resolve_folder_path(app_folder, workspace_folder)

        if not await self.fs_provider.dir_exists(resolved):
            raise ConfigurationError(
                f"The application folder '{resolved}' does not exist. Ensure that the 'appFolder' "
                "or 'appProject' property is set correctly in the Docker debug configuration.",
                property="appFolder",
            )
        return resolved

    async def infer_app_project(
        self,
        workspace_folder: str,
        configuration: DebugConfiguration,
        app_folder: str,
    ) -> str:
        """
        Find the project file.

        Without an explicit ``appProject`` the first project file in name
        order wins, even when appFolder holds several; no prompt is shown.
        """
        app_project = configuration.app_project

        if not app_project:
            files = sorted(await self.fs_provider.read_dir(app_folder))
            project_file = next(
                (f for f in files if os.path.splitext(f)[1] in PROJECT_FILE_EXTENSIONS),
                None,
            )
            if project_file is not None:
                app_project = os.path.join(app_folder, project_file)

        if not app_project:
            raise ConfigurationError(
                "Unable to infer the application project file. Set either the 'appFolder' or "
                "'appProject' property in the Docker debug configuration.",
                property="appProject",
            )

        resolved = resolve_folder_path(app_project, workspace_folder)

        if not await self.fs_provider.file_exists(resolved):
            raise ConfigurationError(
                f"The application project file '{resolved}' does not exist. Ensure that the "
                "'appFolder' or 'appProject' property is set correctly in the Docker debug "
                "configuration.",
                property="appProject",
            )
        return resolved

    async def infer_app_output(
        self,
        configuration: DebugConfiguration,
        target_os: PlatformOS,
        app_project: str,
    ) -> str:
        if configuration.app_output:
            return configuration.app_output

        target_path = await self.project_provider.get_target_path(app_project)
        if not target_path:
            raise ConfigurationError(
                f"Unable to infer the application output file of '{app_project}'. Set the "
                "'appOutput' property in the Docker debug configuration.",
                property="appOutput",
            )
        relative = os.path.relpath(target_path, os.path.dirname(app_project))
        return self.os_provider.path_normalize(target_os, relative)

    async def infer_context(
        self,
        workspace_folder: str,
        app_folder: str,
        configuration: DebugConfiguration,
    ) -> str:
        if configuration.docker_build.context:
            context = configuration.docker_build.context
        elif os.path.normpath(app_folder) == os.path.normpath(workspace_folder):
            context = app_folder
        else:
            # Solution folder layout: build from the parent of the project folder
            context = os.path.dirname(os.path.normpath(app_folder))

        resolved = resolve_folder_path(context, workspace_folder)

        if not await self.fs_provider.dir_exists(resolved):
            raise ConfigurationError(
                f"The context folder '{resolved}' does not exist. Ensure that the 'context' "
                "property is set correctly in the Docker debug configuration.",
                property="context",
            )
        return resolved

    async def infer_dockerfile(
        self,
        workspace_folder: str,
        app_folder: str,
        configuration: DebugConfiguration,
    ) -> str:
        dockerfile = configuration.docker_build.dockerfile or os.path.join(app_folder, "Dockerfile")
        resolved = resolve_folder_path(dockerfile, workspace_folder)

        if not await self.fs_provider.file_exists(resolved):
            raise ConfigurationError(
                f"The Dockerfile '{resolved}' does not exist. Ensure that the 'dockerfile' "
                "property is set correctly in the Docker debug configuration.",
                property="dockerfile",
            )
        return resolved

    async def infer_build_options(
        self,
        workspace_folder: str,
        configuration: DebugConfiguration,
        app_folder: str,
        app_name: str,
    ) -> LaunchBuildOptions:
        build = configuration.docker_build
        context = await self.infer_context(workspace_folder, app_folder, configuration)
        dockerfile = await self.infer_dockerfile(workspace_folder, app_folder, configuration)

        return LaunchBuildOptions(
            args=build.args or {},
            context=context,
            dockerfile=dockerfile,
            labels=build.labels or self.default_labels,
            tag=build.tag or f"{app_name.lower()}:dev",
            target=build.target or DEFAULT_TARGET,
        )

    def infer_run_options(
        self,
        workspace_folder: str,
        configuration: DebugConfiguration,
        app_name: str,
        target_os: PlatformOS,
    ) -> LaunchRunOptions:
        run = configuration.docker_run

        return LaunchRunOptions(
            container_name=run.container_name or f"{app_name}-dev",
            env=run.env or {},
            env_files=[resolve_folder_path(f, workspace_folder) for f in run.env_files or []],
            extra_hosts=run.extra_hosts or [],
            labels=run.labels or self.default_labels,
            network=run.network,
            network_alias=run.network_alias,
            os=target_os,
            ports=run.ports or [],
            volumes=[
                volume.model_copy(
                    update={"local_path": resolve_folder_path(volume.local_path, workspace_folder)}
                )
                for volume in run.volumes or []
            ],
        )

    @staticmethod
    def create_launch_browser_configuration(result: LaunchResult) -> LaunchBrowserOptions:
        if not result.browser_url:
            return LaunchBrowserOptions(enabled=False)

        per_os = {
            browser.descriptor_key: BrowserBaseOptions(
                command=browser.command,
                args=browser.args(result.browser_url),
            )
            for browser in BROWSER_COMMANDS.values()
        }
        return LaunchBrowserOptions(enabled=True, args=result.browser_url, **per_os)

    def create_configuration(
        self,
        configuration: DebugConfiguration,
        app_folder: str,
        result: LaunchResult,
    ) -> DebugSessionDescriptor:
        return DebugSessionDescriptor(
            name=configuration.name,
            program=result.program,
            args=" ".join(result.program_args),
            cwd=result.program_cwd,
            launch_browser=self.create_launch_browser_configuration(result),
            pipe_transport=PipeTransport(
                pipe_cwd=result.pipe_cwd,
                pipe_program=result.pipe_program,
                pipe_args=result.pipe_args,
                debugger_path=result.debugger_path,
                quote_args=False,
            ),
            pre_launch_task=configuration.pre_launch_task,
            source_file_map={"/app/Views": os.path.join(app_folder, "Views")},
        )
