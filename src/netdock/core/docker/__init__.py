"""Docker CLI client and models."""

from .client import CliDockerClient, DockerClient
from .models import (
    BuildImageOptions,
    DockerContainerExtraHost,
    DockerContainerPort,
    DockerContainerVolume,
    RunContainerOptions,
    VolumePermissions,
)

__all__ = [
    "BuildImageOptions",
    "CliDockerClient",
    "DockerClient",
    "DockerContainerExtraHost",
    "DockerContainerPort",
    "DockerContainerVolume",
    "RunContainerOptions",
    "VolumePermissions",
]
