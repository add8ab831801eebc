"""Tests for Docker debug configuration resolution."""

import pytest
from conftest import StaticPrerequisite

from netdock.core.debugging.models import (
    DebugConfiguration,
    DockerDebugBuildOptions,
    DockerDebugRunOptions,
    LaunchOptions,
    LaunchResult,
)
from netdock.core.debugging.resolver import (
    DockerDebugConfigurationProvider,
    resolve_folder_path,
)
from netdock.core.debugging.session import DebugSessionEvents, DebugSessionManager
from netdock.core.docker.models import DockerContainerVolume
from netdock.core.errors import ConfigurationError
from netdock.core.platform import PlatformOS

WORKSPACE = "/ws"


class FakeProjectProvider:
    def __init__(self, target_path: str = "/ws/Foo/bin/Debug/netcoreapp2.2/Foo.dll") -> None:
        self.target_path = target_path
        self.requested: list[str] = []

    async def get_target_path(self, project_file: str) -> str:
        self.requested.append(project_file)
        return self.target_path


class FakeLaunchPreparer:
    def __init__(self) -> None:
        self.options: list[LaunchOptions] = []
        self.result = LaunchResult(
            browser_url=None,
            debugger_path="/remote_debugger/vsdbg",
            pipe_args=["exec", "-i", "Foo-dev"],
            pipe_cwd=WORKSPACE,
            pipe_program="docker",
            program="dotnet",
            program_args=["bin/Debug/netcoreapp2.2/Foo.dll"],
            program_cwd="/app",
        )

    async def prepare_for_launch(self, options: LaunchOptions) -> LaunchResult:
        self.options.append(options)
        return self.result


class NoopCleaner:
    def __init__(self) -> None:
        self.cleanups = 0

    async def cleanup_after_launch(self) -> None:
        self.cleanups += 1


@pytest.fixture
def foo_workspace(fs):
    """Workspace with a Foo project in a subfolder (solution layout)."""
    fs.add_dir(WORKSPACE)
    fs.add_file("/ws/Foo/Foo.csproj", "<Project />")
    fs.add_file("/ws/Foo/Dockerfile", "FROM microsoft/dotnet:2.2-aspnetcore-runtime AS base")
    return fs


@pytest.fixture
def preparer():
    return FakeLaunchPreparer()


@pytest.fixture
def session_manager():
    return DebugSessionManager(DebugSessionEvents(), NoopCleaner())


def make_provider(fs, linux_host, session_manager, preparer, prerequisite=None, project=None):
    return DockerDebugConfigurationProvider(
        session_manager,
        preparer,
        fs,
        linux_host,
        project or FakeProjectProvider(),
        prerequisite or StaticPrerequisite(True),
    )


class TestResolveFolderPath:
    """Test ${workspaceFolder} substitution."""

    def test_substitutes_any_case(self):
        assert resolve_folder_path("${workspaceFolder}/src", "/ws") == "/ws/src"
        assert resolve_folder_path("${WORKSPACEFOLDER}/src", "/ws") == "/ws/src"
        assert resolve_folder_path("${WorkspaceFolder}/a/${workspacefolder}", "/ws") == "/ws/a//ws"

    def test_leaves_other_paths_alone(self):
        assert resolve_folder_path("/abs/path", "/ws") == "/abs/path"

    def test_backslashes_in_workspace_are_kept(self):
        """The workspace path is inserted literally, not as a regex template."""
        assert resolve_folder_path("${workspaceFolder}\\app", "C:\\src\\1") == "C:\\src\\1\\app"


class TestInference:
    """Test inference of missing configuration properties."""

    @pytest.mark.asyncio
    async def test_defaults_from_project_name(self, foo_workspace, linux_host, session_manager, preparer):
        """Foo.csproj yields container Foo-dev and tag foo:dev."""
        provider = make_provider(foo_workspace, linux_host, session_manager, preparer)
        configuration = DebugConfiguration(app_project="${workspaceFolder}/Foo/Foo.csproj")

        options = await provider.resolve_launch_options(WORKSPACE, configuration)

        assert options.app_folder == "/ws/Foo"
        assert options.app_project == "/ws/Foo/Foo.csproj"
        assert options.app_output == "bin/Debug/netcoreapp2.2/Foo.dll"
        assert options.run.container_name == "Foo-dev"
        assert options.build.tag == "foo:dev"
        assert options.build.target == "base"
        assert options.build.context == WORKSPACE
        assert options.build.dockerfile == "/ws/Foo/Dockerfile"
        assert options.build.labels == {"com.microsoft.created-by": "visual-studio-code"}
        assert options.run.os == PlatformOS.LINUX

    @pytest.mark.asyncio
    async def test_context_is_app_folder_when_it_is_the_workspace(self, fs, linux_host, session_manager, preparer):
        fs.add_file("/ws/Api.csproj")
        fs.add_file("/ws/Dockerfile")
        provider = make_provider(fs, linux_host, session_manager, preparer)

        options = await provider.resolve_launch_options(WORKSPACE, DebugConfiguration())

        assert options.app_folder == WORKSPACE
        assert options.build.context == WORKSPACE
        assert options.app_project == "/ws/Api.csproj"

    @pytest.mark.asyncio
    async def test_first_project_file_wins(self, fs, linux_host, session_manager, preparer):
        """Several project files: the first in name order is used without prompting."""
        fs.add_file("/ws/app/Zeta.csproj")
        fs.add_file("/ws/app/Alpha.fsproj")
        fs.add_file("/ws/app/readme.md")
        fs.add_file("/ws/app/Dockerfile")
        provider = make_provider(fs, linux_host, session_manager, preparer)

        options = await provider.resolve_launch_options(
            WORKSPACE, DebugConfiguration(app_folder="${workspaceFolder}/app")
        )

        assert options.app_project == "/ws/app/Alpha.fsproj"
        assert options.run.container_name == "Alpha-dev"

    @pytest.mark.asyncio
    async def test_explicit_values_are_kept(self, foo_workspace, linux_host, session_manager, preparer):
        foo_workspace.add_file("/ws/docker/Dockerfile.debug")
        project = FakeProjectProvider()
        provider = make_provider(foo_workspace, linux_host, session_manager, preparer, project=project)
        configuration = DebugConfiguration(
            app_folder="/ws/Foo",
            app_output="out/Foo.dll",
            docker_build=DockerDebugBuildOptions(
                context="${workspaceFolder}/Foo",
                dockerfile="${workspaceFolder}/docker/Dockerfile.debug",
                tag="registry/foo:debug",
                target="dev",
                args={"CONFIG": "Debug"},
                labels={"team": "web"},
            ),
            docker_run=DockerDebugRunOptions(container_name="foo-debug", env={"ASPNETCORE_ENVIRONMENT": "Development"}),
        )

        options = await provider.resolve_launch_options(WORKSPACE, configuration)

        assert options.app_output == "out/Foo.dll"
        assert project.requested == []
        assert options.build.context == "/ws/Foo"
        assert options.build.dockerfile == "/ws/docker/Dockerfile.debug"
        assert options.build.tag == "registry/foo:debug"
        assert options.build.target == "dev"
        assert options.build.args == {"CONFIG": "Debug"}
        assert options.build.labels == {"team": "web"}
        assert options.run.container_name == "foo-debug"
        assert options.run.env == {"ASPNETCORE_ENVIRONMENT": "Development"}

    @pytest.mark.asyncio
    async def test_windows_container_output_path(self, foo_workspace, linux_host, session_manager, preparer):
        provider = make_provider(foo_workspace, linux_host, session_manager, preparer)
        configuration = DebugConfiguration(
            app_folder="/ws/Foo",
            docker_run=DockerDebugRunOptions(os=PlatformOS.WINDOWS),
        )

        options = await provider.resolve_launch_options(WORKSPACE, configuration)

        assert options.app_output == "bin\\Debug\\netcoreapp2.2\\Foo.dll"
        assert options.run.os == PlatformOS.WINDOWS

    @pytest.mark.asyncio
    async def test_env_files_and_volumes_are_resolved(self, foo_workspace, linux_host, session_manager, preparer):
        provider = make_provider(foo_workspace, linux_host, session_manager, preparer)
        configuration = DebugConfiguration(
            app_folder="/ws/Foo",
            docker_run=DockerDebugRunOptions(
                env_files=["${workspaceFolder}/.env"],
                volumes=[DockerContainerVolume(local_path="${workspaceFolder}/data", container_path="/data")],
            ),
        )

        options = await provider.resolve_launch_options(WORKSPACE, configuration)

        assert options.run.env_files == ["/ws/.env"]
        assert options.run.volumes[0].local_path == "/ws/data"
        assert options.run.volumes[0].container_path == "/data"


class TestResolutionErrors:
    """Test the messages shown for unresolvable properties."""

    @pytest.mark.asyncio
    async def test_missing_app_folder(self, fs, linux_host, session_manager, preparer):
        fs.add_dir(WORKSPACE)
        provider = make_provider(fs, linux_host, session_manager, preparer)

        with pytest.raises(ConfigurationError) as exc_info:
            await provider.resolve_launch_options(WORKSPACE, DebugConfiguration(app_folder="/ws/missing"))

        assert str(exc_info.value) == (
            "The application folder '/ws/missing' does not exist. Ensure that the 'appFolder' "
            "or 'appProject' property is set correctly in the Docker debug configuration."
        )

    @pytest.mark.asyncio
    async def test_no_project_file(self, fs, linux_host, session_manager, preparer):
        fs.add_file("/ws/Dockerfile")
        provider = make_provider(fs, linux_host, session_manager, preparer)

        with pytest.raises(ConfigurationError) as exc_info:
            await provider.resolve_launch_options(WORKSPACE, DebugConfiguration())

        assert str(exc_info.value) == (
            "Unable to infer the application project file. Set either the 'appFolder' or "
            "'appProject' property in the Docker debug configuration."
        )

    @pytest.mark.asyncio
    async def test_missing_project_file(self, foo_workspace, linux_host, session_manager, preparer):
        provider = make_provider(foo_workspace, linux_host, session_manager, preparer)

        with pytest.raises(ConfigurationError) as exc_info:
            await provider.resolve_launch_options(
                WORKSPACE, DebugConfiguration(app_project="/ws/Foo/Bar.csproj")
            )

        assert "The application project file '/ws/Foo/Bar.csproj' does not exist." in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_empty_app_project_is_inferred(self, foo_workspace, linux_host, session_manager, preparer):
        provider = make_provider(foo_workspace, linux_host, session_manager, preparer)

        options = await provider.resolve_launch_options(
            WORKSPACE, DebugConfiguration(app_folder="/ws/Foo", app_project="")
        )

        assert options.app_project == "/ws/Foo/Foo.csproj"

    @pytest.mark.asyncio
    async def test_no_target_path(self, foo_workspace, linux_host, session_manager, preparer):
        """MSBuild wrote no target path and appOutput is unset."""
        provider = make_provider(
            foo_workspace, linux_host, session_manager, preparer, project=FakeProjectProvider(target_path="")
        )

        with pytest.raises(ConfigurationError) as exc_info:
            await provider.resolve_launch_options(WORKSPACE, DebugConfiguration(app_folder="/ws/Foo"))

        assert str(exc_info.value) == (
            "Unable to infer the application output file of '/ws/Foo/Foo.csproj'. Set the "
            "'appOutput' property in the Docker debug configuration."
        )

    @pytest.mark.asyncio
    async def test_missing_dockerfile(self, fs, linux_host, session_manager, preparer):
        fs.add_file("/ws/Foo/Foo.csproj")
        provider = make_provider(fs, linux_host, session_manager, preparer)

        with pytest.raises(ConfigurationError) as exc_info:
            await provider.resolve_launch_options(WORKSPACE, DebugConfiguration(app_folder="/ws/Foo"))

        assert str(exc_info.value) == (
            "The Dockerfile '/ws/Foo/Dockerfile' does not exist. Ensure that the 'dockerfile' "
            "property is set correctly in the Docker debug configuration."
        )

    @pytest.mark.asyncio
    async def test_missing_context(self, foo_workspace, linux_host, session_manager, preparer):
        provider = make_provider(foo_workspace, linux_host, session_manager, preparer)
        configuration = DebugConfiguration(
            app_folder="/ws/Foo",
            docker_build=DockerDebugBuildOptions(context="/ws/nowhere"),
        )

        with pytest.raises(ConfigurationError) as exc_info:
            await provider.resolve_launch_options(WORKSPACE, configuration)

        assert str(exc_info.value) == (
            "The context folder '/ws/nowhere' does not exist. Ensure that the 'context' "
            "property is set correctly in the Docker debug configuration."
        )

    @pytest.mark.asyncio
    async def test_no_workspace_folder(self, fs, linux_host, session_manager, preparer):
        provider = make_provider(fs, linux_host, session_manager, preparer)

        with pytest.raises(ConfigurationError) as exc_info:
            await provider.resolve_debug_configuration(None, DebugConfiguration())

        assert str(exc_info.value) == "No workspace folder is associated with debugging."


class TestResolveDebugConfiguration:
    """Test the full resolve-and-launch flow."""

    @pytest.mark.asyncio
    async def test_failed_prerequisite_aborts_before_docker(self, foo_workspace, linux_host, session_manager, preparer):
        provider = make_provider(
            foo_workspace, linux_host, session_manager, preparer, prerequisite=StaticPrerequisite(False)
        )

        result = await provider.resolve_debug_configuration(WORKSPACE, DebugConfiguration(app_folder="/ws/Foo"))

        assert result is None
        assert preparer.options == []
        assert session_manager.is_listening is False

    @pytest.mark.asyncio
    async def test_descriptor(self, foo_workspace, linux_host, session_manager, preparer):
        provider = make_provider(foo_workspace, linux_host, session_manager, preparer)
        configuration = DebugConfiguration(
            name="Docker: Foo",
            app_folder="/ws/Foo",
            pre_launch_task="build",
        )

        descriptor = await provider.resolve_debug_configuration(WORKSPACE, configuration)

        assert descriptor is not None
        data = descriptor.to_launch_json()
        assert data["name"] == "Docker: Foo"
        assert data["type"] == "coreclr"
        assert data["request"] == "launch"
        assert data["program"] == "dotnet"
        assert data["args"] == "bin/Debug/netcoreapp2.2/Foo.dll"
        assert data["cwd"] == "/app"
        assert data["preLaunchTask"] == "build"
        assert data["launchBrowser"] == {"enabled": False}
        assert data["pipeTransport"] == {
            "pipeCwd": WORKSPACE,
            "pipeProgram": "docker",
            "pipeArgs": ["exec", "-i", "Foo-dev"],
            "debuggerPath": "/remote_debugger/vsdbg",
            "quoteArgs": False,
        }
        assert data["sourceFileMap"] == {"/app/Views": "/ws/Foo/Views"}

        assert session_manager.is_listening is True
        await session_manager.dispose()

    @pytest.mark.asyncio
    async def test_keeps_container_when_asked(self, foo_workspace, linux_host, session_manager, preparer):
        provider = make_provider(foo_workspace, linux_host, session_manager, preparer)
        configuration = DebugConfiguration(app_folder="/ws/Foo", remove_container_after_debug=False)

        assert await provider.resolve_debug_configuration(WORKSPACE, configuration) is not None
        assert session_manager.is_listening is False


class TestLaunchBrowser:
    """Test browser launch settings derived from the container endpoint."""

    def test_browser_per_host_platform(self):
        result = FakeLaunchPreparer().result.model_copy(update={"browser_url": "https://localhost:32768"})

        browser = DockerDebugConfigurationProvider.create_launch_browser_configuration(result)
        data = browser.model_dump(by_alias=True, exclude_none=True)

        assert data == {
            "enabled": True,
            "args": "https://localhost:32768",
            "windows": {"command": "cmd.exe", "args": "/C start https://localhost:32768"},
            "osx": {"command": "open"},
            "linux": {"command": "xdg-open"},
        }


class TestProvideDebugConfigurations:
    def test_default_configuration(self, fs, linux_host, session_manager, preparer):
        provider = make_provider(fs, linux_host, session_manager, preparer)

        [configuration] = provider.provide_debug_configurations()

        assert configuration.name == "Docker: Launch .NET Core (Preview)"
        assert configuration.type == "docker-coreclr"
        assert configuration.request == "launch"
        assert configuration.pre_launch_task == "build"
