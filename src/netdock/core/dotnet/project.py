"""
.NET Core project inspection via MSBuild.

The build output path of a project is only known to MSBuild, so a small
wrapper project is written to a temp file that calls the project's
``GetTargetPath`` target and writes the result to a second temp file.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from netdock.core.providers.fs import FileSystemProvider
from netdock.core.providers.process import ProcessProvider
from netdock.core.providers.temp import TempFileProvider

logger = logging.getLogger(__name__)

GET_TARGET_PATH_PROJECT = """<Project>
    <Target Name="GetTargetPath">
        <MSBuild Projects="{project_file}" Targets="GetTargetPath">
            <Output TaskParameter="TargetOutputs" ItemName="TargetPath" />
        </MSBuild>
        <WriteLinesToFile File="{output_file}" Lines="@(TargetPath)" />
    </Target>
</Project>
"""


@runtime_checkable
class NetCoreProjectProvider(Protocol):
    async def get_target_path(self, project_file: str) -> str: ...


class MsBuildNetCoreProjectProvider:
    """NetCoreProjectProvider that asks MSBuild through ``dotnet build``."""

    def __init__(
        self,
        fs_provider: FileSystemProvider,
        process_provider: ProcessProvider,
        temp_file_provider: TempFileProvider,
        executable: str = "dotnet",
    ) -> None:
        self.fs_provider = fs_provider
        self.process_provider = process_provider
        self.temp_file_provider = temp_file_provider
        self.executable = executable

    async def get_target_path(self, project_file: str) -> str:
        """
        Get the absolute path of the assembly a project builds.

        Args:
            project_file: Path of the .csproj/.fsproj file

        Returns:
            First line written by the GetTargetPath target (e.g.
            ``/src/app/bin/Debug/netcoreapp2.2/app.dll``)

        Raises:
            ProcessExecutionError: If dotnet build fails
        """
        wrapper_project = self.temp_file_provider.get_temp_filename("GetTargetPath")
        output_file = self.temp_file_provider.get_temp_filename("GetTargetPathOutput")

        await self.fs_provider.write_file(
            wrapper_project,
            GET_TARGET_PATH_PROJECT.format(project_file=project_file, output_file=output_file),
        )

        try:
            await self.process_provider.exec(f'{self.executable} build "{wrapper_project}"')
            output = await self.fs_provider.read_file(output_file)
            target_path = output.splitlines()[0].strip() if output else ""
            logger.debug(f"Target path of {project_file}: {target_path}")
            return target_path
        finally:
            for temp_file in (wrapper_project, output_file):
                if await self.fs_provider.file_exists(temp_file):
                    await self.fs_provider.unlink_file(temp_file)
