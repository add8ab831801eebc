"""
Docker CLI client.

Wraps the docker command line behind async methods. Every call goes through
run_process with an argv list (never a shell string), and a non-zero exit is
raised as ProcessExecutionError carrying docker's own error text.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from netdock.core.errors import ProcessExecutionError
from netdock.core.providers.process import run_process

from .models import BuildImageOptions, RunContainerOptions

logger = logging.getLogger(__name__)

# Container ports that are opened in a browser, in order of preference
WEB_PORTS: tuple[tuple[str, str], ...] = (("443/tcp", "https"), ("80/tcp", "http"))

PORTS_FORMAT = "{{json .NetworkSettings.Ports}}"

# Seconds to wait for ``docker version``, which hangs on an unresponsive daemon
VERSION_TIMEOUT = 30.0


@runtime_checkable
class DockerClient(Protocol):
    """Protocol for the container engine operations used by netdock."""

    async def get_version(self, format: str | None = None) -> str: ...

    async def build_image(self, options: BuildImageOptions) -> str: ...

    async def run_container(self, image: str, options: RunContainerOptions) -> str: ...

    async def exec_container(self, container: str, command: Sequence[str]) -> str: ...

    async def copy_to_container(
        self, container: str, local_path: str, container_path: str
    ) -> None: ...

    async def remove_container(self, container: str, force: bool = False) -> None: ...

    async def inspect_object(
        self, ref: str, object_type: str | None = None
    ) -> dict[str, Any] | None: ...

    async def get_container_web_endpoint(self, container: str) -> str | None: ...


class CliDockerClient:
    """DockerClient implemented on top of the docker CLI."""

    def __init__(self, executable: str = "docker") -> None:
        self.executable = executable

    async def _run(self, args: list[str], timeout: float | None = None) -> str:
        command = [self.executable, *args]
        result = await run_process(command, timeout=timeout)
        if not result.success:
            raise ProcessExecutionError(
                " ".join(command),
                result.exit_code,
                stdout=result.stdout,
                stderr=result.stderr,
                error=result.error,
            )
        return result.stdout

    async def get_version(self, format: str | None = None) -> str:
        """
        Get docker client/server version information.

        Args:
            format: Go template passed to ``--format`` (e.g. ``{{json .Server.Os}}``)

        Returns:
            Raw stdout of ``docker version``
        """
        args = ["version"]
        if format:
            args.extend(["--format", format])
        return await self._run(args, timeout=VERSION_TIMEOUT)

    async def build_image(self, options: BuildImageOptions) -> str:
        """
        Build an image and return its id.

        Args:
            options: Build context, Dockerfile, tag, target, args and labels

        Returns:
            Image id (``sha256:...``) of the tagged image
        """
        args = ["build", "-f", options.dockerfile, "--tag", options.tag]
        if options.target:
            args.extend(["--target", options.target])
        for key, value in options.args.items():
            args.extend(["--build-arg", f"{key}={value}"])
        for key, value in options.labels.items():
            args.extend(["--label", f"{key}={value}"])
        args.append(options.context)

        logger.info(f"Building image {options.tag} from {options.dockerfile}")
        await self._run(args)

        inspect = ["inspect", "--type", "image", "--format", "{{.Id}}", options.tag]
        image_id = (await self._run(inspect)).strip()
        logger.debug(f"Built image {options.tag} ({image_id})")
        return image_id

    async def run_container(self, image: str, options: RunContainerOptions) -> str:
        """
        Start a detached container.

        Args:
            image: Image reference or id
            options: Name, mounts, ports, environment and network settings

        Returns:
            Id of the new container
        """
        args = ["run", "--detach"]
        if options.container_name:
            args.extend(["--name", options.container_name])
        if options.entrypoint:
            args.extend(["--entrypoint", options.entrypoint])
        for key, value in options.env.items():
            args.extend(["-e", f"{key}={value}"])
        for env_file in options.env_files:
            args.extend(["--env-file", env_file])
        for host in options.extra_hosts:
            args.extend(["--add-host", host.to_cli()])
        for key, value in options.labels.items():
            args.extend(["--label", f"{key}={value}"])
        if options.network:
            args.extend(["--network", options.network])
        if options.network_alias:
            args.extend(["--network-alias", options.network_alias])
        for port in options.ports:
            args.extend(["-p", port.to_cli()])
        if options.publish_all_ports:
            args.append("--publish-all")
        for volume in options.volumes:
            args.extend(["-v", volume.to_cli()])
        args.append(image)
        args.extend(options.command)

        container_id = (await self._run(args)).strip()
        logger.info(f"Started container {options.container_name or container_id[:12]}")
        return container_id

    async def exec_container(self, container: str, command: Sequence[str]) -> str:
        return await self._run(["exec", container, *command])

    async def copy_to_container(
        self, container: str, local_path: str, container_path: str
    ) -> None:
        logger.debug(f"Copying {local_path} to {container}:{container_path}")
        await self._run(["cp", local_path, f"{container}:{container_path}"])

    async def remove_container(self, container: str, force: bool = False) -> None:
        args = ["rm"]
        if force:
            args.append("--force")
        args.append(container)
        await self._run(args)

    async def inspect_object(
        self, ref: str, object_type: str | None = None
    ) -> dict[str, Any] | None:
        """
        Inspect a container or image.

        Args:
            ref: Name or id
            object_type: ``container`` or ``image`` (any type if None)

        Returns:
            Inspect data, or None if no such object exists
        """
        args = ["inspect"]
        if object_type:
            args.extend(["--type", object_type])
        args.extend(["--format", "{{json .}}", ref])

        result = await run_process([self.executable, *args])
        if not result.success:
            # docker inspect exits 1 for unknown objects
            return None
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError:
            return None
        return data if isinstance(data, dict) else None

    async def get_container_web_endpoint(self, container: str) -> str | None:
        """
        Find a browser URL for a container's published web port.

        Args:
            container: Container name or id

        Returns:
            ``https://localhost:<port>`` or ``http://localhost:<port>`` for the
            host port bound to container port 443 or 80, or None
        """
        output = await self._run(
            ["inspect", "--type", "container", "--format", PORTS_FORMAT, container]
        )
        try:
            ports = json.loads(output) or {}
        except json.JSONDecodeError:
            return None

        for container_port, scheme in WEB_PORTS:
            for binding in ports.get(container_port) or []:
                host_port = binding.get("HostPort")
                if host_port:
                    return f"{scheme}://localhost:{host_port}"
        return None
