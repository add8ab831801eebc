"""
Debug launch data models.

Input:
    DebugConfiguration - the ``docker-coreclr`` entry of launch.json
Intermediate:
    LaunchOptions - fully resolved build and run parameters
    LaunchResult - what the container lifecycle step produced
Output:
    DebugSessionDescriptor - the ``coreclr`` configuration a native debugger
    front end attaches with

Models read from or written to launch.json use camelCase aliases; dump
them with ``model_dump(by_alias=True, exclude_none=True)``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from netdock.core.docker.models import (
    DockerContainerExtraHost,
    DockerContainerPort,
    DockerContainerVolume,
)
from netdock.core.platform import PlatformOS

DEBUG_CONFIGURATION_TYPE = "docker-coreclr"


class _LaunchJsonModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class DockerDebugBuildOptions(_LaunchJsonModel):
    """``dockerBuild`` section of a debug configuration."""

    args: dict[str, str] | None = None
    context: str | None = None
    dockerfile: str | None = None
    labels: dict[str, str] | None = None
    tag: str | None = None
    target: str | None = None


class DockerDebugRunOptions(_LaunchJsonModel):
    """``dockerRun`` section of a debug configuration."""

    container_name: str | None = None
    env: dict[str, str] | None = None
    env_files: list[str] | None = None
    extra_hosts: list[DockerContainerExtraHost] | None = None
    labels: dict[str, str] | None = None
    network: str | None = None
    network_alias: str | None = None
    os: PlatformOS | None = None
    ports: list[DockerContainerPort] | None = None
    volumes: list[DockerContainerVolume] | None = None


class DebugConfiguration(_LaunchJsonModel):
    """
    A user-declared Docker debug configuration.

    Every property is optional; missing values are inferred from the
    workspace by DockerDebugConfigurationProvider. Unknown launch.json keys
    are kept so they survive a round trip.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow",
    )

    name: str = "Docker: Launch .NET Core (Preview)"
    type: str = DEBUG_CONFIGURATION_TYPE
    request: str = "launch"
    pre_launch_task: str | None = None
    app_folder: str | None = None
    app_output: str | None = None
    app_project: str | None = None
    configure_ssl: bool = False
    remove_container_after_debug: bool = True
    docker_build: DockerDebugBuildOptions = Field(default_factory=DockerDebugBuildOptions)
    docker_run: DockerDebugRunOptions = Field(default_factory=DockerDebugRunOptions)


class LaunchBuildOptions(BaseModel):
    """Resolved ``docker build`` parameters."""

    model_config = ConfigDict(frozen=True)

    args: dict[str, str] = Field(default_factory=dict)
    context: str
    dockerfile: str
    labels: dict[str, str] = Field(default_factory=dict)
    tag: str
    target: str | None = None


class LaunchRunOptions(BaseModel):
    """Resolved ``docker run`` parameters."""

    model_config = ConfigDict(frozen=True)

    container_name: str
    env: dict[str, str] = Field(default_factory=dict)
    env_files: list[str] = Field(default_factory=list)
    extra_hosts: list[DockerContainerExtraHost] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)
    network: str | None = None
    network_alias: str | None = None
    os: PlatformOS = PlatformOS.LINUX
    ports: list[DockerContainerPort] = Field(default_factory=list)
    volumes: list[DockerContainerVolume] = Field(default_factory=list)


class LaunchOptions(BaseModel):
    """Everything the container lifecycle step needs for one launch."""

    model_config = ConfigDict(frozen=True)

    app_folder: str
    app_output: str
    app_project: str
    workspace_folder: str
    configure_ssl: bool = False
    build: LaunchBuildOptions
    run: LaunchRunOptions


class LaunchResult(BaseModel):
    """Output of DockerManager.prepare_for_launch."""

    model_config = ConfigDict(frozen=True)

    browser_url: str | None = None
    debugger_path: str
    pipe_args: list[str]
    pipe_cwd: str
    pipe_program: str
    program: str
    program_args: list[str]
    program_cwd: str


class BrowserBaseOptions(_LaunchJsonModel):
    enabled: bool | None = None
    command: str | None = None
    args: str | None = None


class LaunchBrowserOptions(BrowserBaseOptions):
    """``launchBrowser`` section with per-OS overrides."""

    windows: BrowserBaseOptions | None = None
    osx: BrowserBaseOptions | None = None
    linux: BrowserBaseOptions | None = None


class PipeTransport(_LaunchJsonModel):
    """How the debugger front end starts the debugger inside the container."""

    pipe_cwd: str
    pipe_program: str
    pipe_args: list[str]
    debugger_path: str
    quote_args: bool = False


class DebugSessionDescriptor(_LaunchJsonModel):
    """The resolved ``coreclr`` launch configuration."""

    name: str
    type: str = "coreclr"
    request: str = "launch"
    program: str
    args: str
    cwd: str
    launch_browser: LaunchBrowserOptions
    pipe_transport: PipeTransport
    pre_launch_task: str | None = None
    source_file_map: dict[str, str] = Field(default_factory=dict)

    def to_launch_json(self) -> dict[str, object]:
        return self.model_dump(by_alias=True, exclude_none=True)
