"""
Configuration data models for netdock.

These models define the structure of .netdock.json and
~/.config/netdock/config.json files, with validation via Pydantic.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DebuggerConfig(BaseModel):
    """
    Remote debugger (vsdbg) acquisition settings.
    """

    version: str = Field(
        default="latest",
        min_length=1,
        description="vsdbg version passed to the acquisition script",
    )
    runtime: str | None = Field(
        default=None,
        description="Force a runtime id (e.g. linux-x64); detected from the container if unset",
    )
    install_root: str | None = Field(
        default=None,
        description="Where debugger versions are cached (defaults to ~/.vsdbg)",
    )


class DockerConfig(BaseModel):
    """Docker CLI settings."""

    executable: str = Field(
        default="docker",
        min_length=1,
        description="Docker CLI executable",
    )
    labels: dict[str, str] = Field(
        default_factory=lambda: {"com.microsoft.created-by": "visual-studio-code"},
        description="Labels applied to images and containers when none are configured",
    )


class DotNetConfig(BaseModel):
    """dotnet CLI settings."""

    executable: str = Field(
        default="dotnet",
        min_length=1,
        description="dotnet CLI executable",
    )


class PrerequisitesConfig(BaseModel):
    """
    Which prerequisite checks gate a launch.

    The C# extension check only makes sense when a VS Code front end consumes
    the launch descriptor, so it is off by default.
    """

    require_csharp_extension: bool = Field(
        default=False,
        description="Require the ms-vscode.csharp extension to be installed",
    )
    extension_lookup_command: str = Field(
        default="code --list-extensions",
        description="Command listing installed editor extensions, one per line",
    )


class StateConfig(BaseModel):
    """Persisted state locations."""

    global_state_path: str | None = Field(
        default=None,
        description="Global state file (defaults to $XDG_DATA_HOME/netdock/global-state.json)",
    )


class NetdockConfig(BaseModel):
    """
    Top-level netdock configuration.

    Merged from defaults, user config, project config and environment
    variables by ``load_config``.
    """

    model_config = ConfigDict(extra="ignore")

    debugger: DebuggerConfig = Field(default_factory=DebuggerConfig)
    docker: DockerConfig = Field(default_factory=DockerConfig)
    dotnet: DotNetConfig = Field(default_factory=DotNetConfig)
    prerequisites: PrerequisitesConfig = Field(default_factory=PrerequisitesConfig)
    state: StateConfig = Field(default_factory=StateConfig)

    @field_validator("debugger", mode="before")
    @classmethod
    def _debugger_from_version(cls, value: object) -> object:
        # Allow the shorthand {"debugger": "17.0.10712.2"}
        if isinstance(value, str):
            return {"version": value}
        return value
