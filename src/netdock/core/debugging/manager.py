"""
Container lifecycle for a debug launch.

DockerManager turns resolved LaunchOptions into a LaunchResult:

1. build the image (skipped when the Dockerfile, .dockerignore and build
   options are unchanged and the cached image still exists)
2. reuse the container if it runs the same image with the same run
   settings, otherwise remove the stale one and start a new detached container
3. acquire the remote debugger for the container's runtime and copy it in
4. describe how to start the debugger through ``docker exec``

Steps run strictly in order; a failure in build or run aborts the launch
with the docker error. Removing containers is always best-effort.
"""

from __future__ import annotations

import hashlib
import json
import logging
import ntpath
import os
import posixpath
from typing import Any

from netdock.core.docker.client import DockerClient
from netdock.core.docker.models import (
    BuildImageOptions,
    DockerContainerVolume,
    RunContainerOptions,
    VolumePermissions,
)
from netdock.core.errors import ProcessExecutionError
from netdock.core.platform import CONTAINER_PATHS, HostPlatform, PlatformOS
from netdock.core.providers.fs import FileSystemProvider
from netdock.core.providers.os import OSProvider
from netdock.core.providers.state import Memento

from .models import LaunchBuildOptions, LaunchOptions, LaunchResult
from .output import OutputManager
from .ssl import LocalAspNetCoreSslManager
from .vsdbg import VsDbgClient

logger = logging.getLogger(__name__)

IMAGE_BUILD_CACHE_KEY = "DockerManager.imageBuildCache"
DEBUG_CONTAINERS_KEY = "DockerManager.debugContainers"

# Container label holding the hash of the settings it was started with
RUN_OPTIONS_LABEL = "netdock.runOptionsHash"

WINDOWS_CONTAINER_RUNTIME = "win7-x64"

# Prints the vsdbg runtime id matching the container's C library
DETECT_LINUX_RUNTIME_SCRIPT = (
    "if [ -e /etc/alpine-release ]; then echo linux-musl-x64; else echo linux-x64; fi"
)

NUGET_FALLBACK_FOLDERS: dict[HostPlatform, str] = {
    HostPlatform.WINDOWS: "C:\\Program Files\\dotnet\\sdk\\NuGetFallbackFolder",
    HostPlatform.MAC: "/usr/local/share/dotnet/sdk/NuGetFallbackFolder",
    HostPlatform.LINUX: "/usr/share/dotnet/sdk/NuGetFallbackFolder",
}

# (packages folder, fallback folder) inside the container
CONTAINER_NUGET_FOLDERS: dict[PlatformOS, tuple[str, str]] = {
    PlatformOS.LINUX: ("/root/.nuget/packages", "/root/.nuget/fallbackpackages"),
    PlatformOS.WINDOWS: ("C:\\.nuget\\packages", "C:\\.nuget\\fallbackpackages"),
}


def run_options_hash(options: RunContainerOptions) -> str:
    """Hash everything ``docker run`` is given, so changed settings force a new container."""
    data = options.model_dump(mode="json")
    data["labels"].pop(RUN_OPTIONS_LABEL, None)
    return hashlib.sha256(json.dumps(data, sort_keys=True).encode("utf-8")).hexdigest()


class DockerManager:
    """Builds, runs and prepares debug containers."""

    def __init__(
        self,
        docker_client: DockerClient,
        fs_provider: FileSystemProvider,
        os_provider: OSProvider,
        vsdbg_client: VsDbgClient,
        workspace_state: Memento,
        output_manager: OutputManager,
        ssl_manager: LocalAspNetCoreSslManager,
        *,
        debugger_version: str = "latest",
        debugger_runtime: str | None = None,
        pipe_program: str = "docker",
    ) -> None:
        self.docker_client = docker_client
        self.fs_provider = fs_provider
        self.os_provider = os_provider
        self.vsdbg_client = vsdbg_client
        self.workspace_state = workspace_state
        self.output_manager = output_manager
        self.ssl_manager = ssl_manager
        self.debugger_version = debugger_version
        self.debugger_runtime = debugger_runtime
        self.pipe_program = pipe_program

    async def prepare_for_launch(self, options: LaunchOptions) -> LaunchResult:
        """
        Build and start the debug container and inject the debugger.

        Args:
            options: Resolved launch options

        Returns:
            LaunchResult describing how to start the debugger in the container

        Raises:
            ProcessExecutionError: If docker or the debugger acquisition fails
        """
        if options.configure_ssl:
            await self.ssl_manager.trust_certificate_if_necessary()
            await self.ssl_manager.export_certificate_if_necessary(options.app_project)

        image_id = await self.build_image_if_necessary(options.build)
        container_id = await self.run_container(image_id, options)

        container_os = options.run.os
        runtime = self.debugger_runtime or await self.detect_runtime(container_id, container_os)
        debugger_folder = await self.vsdbg_client.get_vsdbg_version(self.debugger_version, runtime)
        await self.copy_debugger(container_id, debugger_folder, container_os)

        browser_url = await self.docker_client.get_container_web_endpoint(container_id)
        paths = CONTAINER_PATHS[container_os]

        return LaunchResult(
            browser_url=browser_url,
            debugger_path=paths.debugger_path,
            pipe_args=["exec", "-i", options.run.container_name],
            pipe_cwd=options.workspace_folder,
            pipe_program=self.pipe_program,
            program="dotnet",
            program_args=[options.app_output],
            program_cwd=paths.app_folder,
        )

    async def build_image_if_necessary(self, build: LaunchBuildOptions) -> str:
        """
        Build the image unless the cached build for its tag is still valid.

        Returns:
            Image id
        """
        fingerprint = await self._build_fingerprint(build)
        cache: dict[str, Any] = dict(self.workspace_state.get(IMAGE_BUILD_CACHE_KEY) or {})
        cached = cache.get(build.tag)

        if cached and {k: cached.get(k) for k in fingerprint} == fingerprint:
            cached_image_id = cached.get("imageId")
            image = (
                await self.docker_client.inspect_object(cached_image_id, "image")
                if cached_image_id
                else None
            )
            if image:
                logger.info(f"Image {build.tag} is up to date, skipping build")
                return str(cached_image_id)

        async def build_image() -> str:
            return await self.docker_client.build_image(
                BuildImageOptions(
                    context=build.context,
                    dockerfile=build.dockerfile,
                    tag=build.tag,
                    target=build.target,
                    args=build.args,
                    labels=build.labels,
                )
            )

        image_id = await self.output_manager.perform_operation(
            f"Building Docker image {build.tag}...",
            build_image,
            "Docker image built.",
            "Failed to build Docker image.",
        )

        cache[build.tag] = {**fingerprint, "imageId": image_id}
        await self.workspace_state.update(IMAGE_BUILD_CACHE_KEY, cache)
        return image_id

    async def _build_fingerprint(self, build: LaunchBuildOptions) -> dict[str, str | None]:
        docker_ignore = os.path.join(build.context, ".dockerignore")
        docker_ignore_hash = (
            await self.fs_provider.hash_file(docker_ignore)
            if await self.fs_provider.file_exists(docker_ignore)
            else None
        )
        options_hash = hashlib.sha256(
            json.dumps(build.model_dump(), sort_keys=True).encode("utf-8")
        ).hexdigest()
        return {
            "dockerfileHash": await self.fs_provider.hash_file(build.dockerfile),
            "dockerIgnoreHash": docker_ignore_hash,
            "optionsHash": options_hash,
        }

    async def run_container(self, image_id: str, options: LaunchOptions) -> str:
        """
        Start the debug container, or reuse it when it already runs this image
        with the same run settings.

        Returns:
            Container id
        """
        run = options.run
        run_options = await self._run_options(options)
        run_hash = run_options_hash(run_options)

        existing = await self.docker_client.inspect_object(run.container_name, "container")
        running = bool(existing and (existing.get("State") or {}).get("Running"))
        labels = ((existing or {}).get("Config") or {}).get("Labels") or {}

        if (
            existing
            and running
            and existing.get("Image") == image_id
            and labels.get(RUN_OPTIONS_LABEL) == run_hash
        ):
            container_id = str(existing.get("Id") or run.container_name)
            logger.info(f"Reusing running container {run.container_name}")
        else:
            if existing:
                await self._remove_quietly(run.container_name)

            run_options.labels[RUN_OPTIONS_LABEL] = run_hash
            container_id = await self.docker_client.run_container(image_id, run_options)

        await self._add_to_debug_containers(container_id)
        return container_id

    async def _run_options(self, options: LaunchOptions) -> RunContainerOptions:
        run = options.run
        paths = CONTAINER_PATHS[run.os]
        volumes = [*await self._default_volumes(options), *run.volumes]
        env = dict(run.env)
        if any(v.container_path == CONTAINER_NUGET_FOLDERS[run.os][1] for v in volumes):
            env.setdefault("NUGET_FALLBACK_PACKAGES", CONTAINER_NUGET_FOLDERS[run.os][1])

        return RunContainerOptions(
            container_name=run.container_name,
            entrypoint=paths.keep_alive[0],
            command=list(paths.keep_alive[1:]),
            env=env,
            env_files=run.env_files,
            extra_hosts=run.extra_hosts,
            labels=dict(run.labels),
            network=run.network,
            network_alias=run.network_alias,
            ports=run.ports,
            publish_all_ports=not run.ports,
            volumes=volumes,
        )

    async def _default_volumes(self, options: LaunchOptions) -> list[DockerContainerVolume]:
        container_os = options.run.os
        volumes = [
            DockerContainerVolume(
                local_path=options.app_folder,
                container_path=CONTAINER_PATHS[container_os].app_folder,
                permissions=VolumePermissions.READ_WRITE,
            )
        ]

        packages_target, fallback_target = CONTAINER_NUGET_FOLDERS[container_os]
        join = ntpath.join if self.os_provider.os == HostPlatform.WINDOWS else posixpath.join
        packages_folder = join(self.os_provider.homedir, ".nuget", "packages")
        if await self.fs_provider.dir_exists(packages_folder):
            volumes.append(
                DockerContainerVolume(
                    local_path=packages_folder,
                    container_path=packages_target,
                    permissions=VolumePermissions.READ_ONLY,
                )
            )

        fallback_folder = NUGET_FALLBACK_FOLDERS[self.os_provider.os]
        if await self.fs_provider.dir_exists(fallback_folder):
            volumes.append(
                DockerContainerVolume(
                    local_path=fallback_folder,
                    container_path=fallback_target,
                    permissions=VolumePermissions.READ_ONLY,
                )
            )

        if options.configure_ssl:
            host = self.ssl_manager.get_host_secrets_folders()
            container = self.ssl_manager.get_container_secrets_folders(container_os)
            volumes.extend(
                [
                    DockerContainerVolume(
                        local_path=host.certificate_folder,
                        container_path=container.certificate_folder,
                        permissions=VolumePermissions.READ_ONLY,
                    ),
                    DockerContainerVolume(
                        local_path=host.user_secrets_folder,
                        container_path=container.user_secrets_folder,
                        permissions=VolumePermissions.READ_ONLY,
                    ),
                ]
            )

        return volumes

    async def detect_runtime(self, container_id: str, container_os: PlatformOS) -> str:
        """Pick the vsdbg runtime id for a running container."""
        if container_os == PlatformOS.WINDOWS:
            return WINDOWS_CONTAINER_RUNTIME

        output = await self.docker_client.exec_container(
            container_id, ["/bin/sh", "-c", DETECT_LINUX_RUNTIME_SCRIPT]
        )
        runtime = output.strip() or "linux-x64"
        logger.debug(f"Container {container_id[:12]} uses runtime {runtime}")
        return runtime

    async def copy_debugger(
        self, container_id: str, debugger_folder: str, container_os: PlatformOS
    ) -> None:
        # "<folder>/." copies the folder contents, creating the target folder
        source = os.path.join(debugger_folder, ".")
        await self.docker_client.copy_to_container(
            container_id, source, CONTAINER_PATHS[container_os].debugger_folder
        )

    async def cleanup_after_launch(self) -> None:
        """Force-remove every container started for debugging, ignoring failures."""
        removed: list[str] = list(self.workspace_state.get(DEBUG_CONTAINERS_KEY) or [])
        for container_id in removed:
            await self._remove_quietly(container_id)

        # Containers tracked by a launch made while removing must survive
        remaining = [
            container_id
            for container_id in self.workspace_state.get(DEBUG_CONTAINERS_KEY) or []
            if container_id not in removed
        ]
        await self.workspace_state.update(DEBUG_CONTAINERS_KEY, remaining)

    async def _add_to_debug_containers(self, container_id: str) -> None:
        containers: list[str] = list(self.workspace_state.get(DEBUG_CONTAINERS_KEY) or [])
        if container_id not in containers:
            containers.append(container_id)
            await self.workspace_state.update(DEBUG_CONTAINERS_KEY, containers)

    async def _remove_quietly(self, container: str) -> None:
        try:
            await self.docker_client.remove_container(container, force=True)
        except ProcessExecutionError as e:
            logger.debug(f"Ignoring failure to remove container {container}: {e}")
