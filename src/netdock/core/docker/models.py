"""
Docker data models.

Port, volume and extra-host entries are written by users in launch.json, so
they accept camelCase keys (``hostPort``, ``localPath``) as well as the
snake_case attribute names.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class VolumePermissions(str, Enum):
    """Mount mode of a volume."""

    READ_ONLY = "ro"
    READ_WRITE = "rw"


class DockerContainerPort(_CamelModel):
    """A port mapping; an unset host port lets Docker pick one."""

    container_port: int = Field(ge=1, le=65535)
    host_port: int | None = Field(default=None, ge=1, le=65535)
    protocol: str | None = Field(default=None, pattern="^(tcp|udp)$")

    def to_cli(self) -> str:
        spec = str(self.container_port)
        if self.protocol:
            spec = f"{spec}/{self.protocol}"
        if self.host_port is not None:
            spec = f"{self.host_port}:{spec}"
        return spec


class DockerContainerVolume(_CamelModel):
    """A bind mount from the host into the container."""

    local_path: str
    container_path: str
    permissions: VolumePermissions = VolumePermissions.READ_WRITE

    def to_cli(self) -> str:
        return f"{self.local_path}:{self.container_path}:{self.permissions.value}"


class DockerContainerExtraHost(_CamelModel):
    """An /etc/hosts entry added to the container."""

    hostname: str
    ip: str

    def to_cli(self) -> str:
        return f"{self.hostname}:{self.ip}"


class BuildImageOptions(BaseModel):
    """Arguments of ``docker build``."""

    context: str
    dockerfile: str
    tag: str
    target: str | None = None
    args: dict[str, str] = Field(default_factory=dict)
    labels: dict[str, str] = Field(default_factory=dict)


class RunContainerOptions(BaseModel):
    """Arguments of a detached ``docker run``."""

    container_name: str | None = None
    entrypoint: str | None = None
    command: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    env_files: list[str] = Field(default_factory=list)
    extra_hosts: list[DockerContainerExtraHost] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)
    network: str | None = None
    network_alias: str | None = None
    ports: list[DockerContainerPort] = Field(default_factory=list)
    publish_all_ports: bool = False
    volumes: list[DockerContainerVolume] = Field(default_factory=list)
