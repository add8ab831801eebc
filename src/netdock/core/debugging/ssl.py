"""
ASP.NET Core HTTPS development certificate coordination.

Before an HTTPS-enabled app is debugged in a container, the development
certificate has to be trusted on the host and exported to a folder that is
mounted into the container. Both steps are remembered in an SslState owned
by the caller, so repeated launches in one session neither re-prompt nor
re-export.

Two launches racing on the same SslState may both see "not yet done" and
prompt twice; launches are started by a human, so this is accepted.
"""

from __future__ import annotations

import logging
import ntpath
import posixpath
from dataclasses import dataclass, field

from netdock.core.dotnet.client import DotNetClient, TrustState
from netdock.core.dotnet.project import NetCoreProjectProvider
from netdock.core.errors import ConfigurationError
from netdock.core.platform import HostPlatform, PlatformOS
from netdock.core.providers.os import OSProvider
from netdock.core.providers.process import ProcessProvider
from netdock.core.providers.ui import MessageItem, UserInteraction

logger = logging.getLogger(__name__)

DEV_CERTS_LEARN_MORE_URL = "https://aka.ms/vscode-docker-dev-certs"


@dataclass(frozen=True)
class SecretsFolders:
    certificate_folder: str
    user_secrets_folder: str


@dataclass
class SslState:
    """
    What has already been handled in this session.

    Attributes:
        known_configured_projects: Project files whose certificate was exported
        certificate_trusted_or_skipped: Trust was confirmed or deliberately skipped
    """

    known_configured_projects: set[str] = field(default_factory=set)
    certificate_trusted_or_skipped: bool = False

    def reset(self) -> None:
        self.known_configured_projects.clear()
        self.certificate_trusted_or_skipped = False


# Host folders: (root, certificate parts, user secrets parts). A root of
# "AppData" is read from the environment, "~" is the home directory.
_UNIX_SECRETS_LAYOUT = ("~", (".aspnet", "https"), (".microsoft", "usersecrets"))

HOST_SECRETS_LAYOUT: dict[HostPlatform, tuple[str, tuple[str, ...], tuple[str, ...]]] = {
    HostPlatform.WINDOWS: ("AppData", ("ASP.NET", "Https"), ("Microsoft", "UserSecrets")),
    HostPlatform.MAC: _UNIX_SECRETS_LAYOUT,
    HostPlatform.LINUX: _UNIX_SECRETS_LAYOUT,
}

CONTAINER_SECRETS_FOLDERS: dict[PlatformOS, SecretsFolders] = {
    PlatformOS.WINDOWS: SecretsFolders(
        certificate_folder="C:\\Users\\ContainerUser\\AppData\\Roaming\\ASP.NET\\Https",
        user_secrets_folder="C:\\Users\\ContainerUser\\AppData\\Roaming\\Microsoft\\UserSecrets",
    ),
    PlatformOS.LINUX: SecretsFolders(
        certificate_folder="/root/.aspnet/https",
        user_secrets_folder="/root/.microsoft/usersecrets",
    ),
}


class LocalAspNetCoreSslManager:
    """Trusts and exports the development certificate at most once per session."""

    def __init__(
        self,
        dotnet_client: DotNetClient,
        project_provider: NetCoreProjectProvider,
        process_provider: ProcessProvider,
        os_provider: OSProvider,
        ui: UserInteraction,
        state: SslState | None = None,
    ) -> None:
        self.dotnet_client = dotnet_client
        self.project_provider = project_provider
        self.process_provider = process_provider
        self.os_provider = os_provider
        self.ui = ui
        self.state = state if state is not None else SslState()

    async def trust_certificate_if_necessary(self) -> None:
        if self.state.certificate_trusted_or_skipped:
            return

        trusted = await self.dotnet_client.is_certificate_trusted()

        if trusted in (TrustState.TRUSTED, TrustState.NOT_APPLICABLE):
            self.state.certificate_trusted_or_skipped = True
            return

        if self.os_provider.os == HostPlatform.WINDOWS:
            trust = MessageItem("Trust")
            selection = await self.ui.show_warning_message(
                "The ASP.NET Core HTTPS development certificate is not trusted. To trust the "
                'certificate, run `dotnet dev-certs https --trust`, or click "Trust" below.',
                trust,
                learn_more_link=DEV_CERTS_LEARN_MORE_URL,
            )
            if selection == trust:
                await self.dotnet_client.trust_certificate()
                # Exports made with the untrusted certificate must be redone
                self.state.known_configured_projects.clear()
        elif self.os_provider.is_mac:
            await self.ui.show_warning_message(
                "The ASP.NET Core HTTPS development certificate is not trusted. To trust the "
                "certificate, run `dotnet dev-certs https --trust`.",
                learn_more_link=DEV_CERTS_LEARN_MORE_URL,
            )

        self.state.certificate_trusted_or_skipped = True

    async def export_certificate_if_necessary(
        self,
        project_file: str,
        certificate_export_path: str | None = None,
    ) -> None:
        """
        Export the development certificate for a project once per session.

        Args:
            project_file: The project the certificate is exported for
            certificate_export_path: Destination .pfx; defaults to
                ``<host certificate folder>/<assembly name>.pfx``
        """
        if project_file in self.state.known_configured_projects:
            logger.debug(f"Certificate already exported for {project_file}")
            return

        if certificate_export_path is None:
            certificate_export_path = await self._get_certificate_export_path(project_file)

        await self.dotnet_client.export_certificate(project_file, certificate_export_path)
        self.state.known_configured_projects.add(project_file)

    def get_host_secrets_folders(self) -> SecretsFolders:
        """
        Get the host folders holding exported certificates and user secrets.

        Raises:
            ConfigurationError: On Windows when %AppData% is not defined
        """
        is_windows = self.os_provider.os == HostPlatform.WINDOWS
        root_name, certificate_parts, secrets_parts = HOST_SECRETS_LAYOUT[self.os_provider.os]
        join = ntpath.join if is_windows else posixpath.join

        if root_name == "~":
            root = self.os_provider.homedir
        else:
            root = self.process_provider.env.get(root_name)
            if root is None:
                raise ConfigurationError(
                    f"The environment variable '{root_name}' is not defined. This variable is "
                    "used to locate the HTTPS certificate and user secrets folders."
                )

        return SecretsFolders(
            certificate_folder=join(root, *certificate_parts),
            user_secrets_folder=join(root, *secrets_parts),
        )

    def get_container_secrets_folders(self, platform: PlatformOS) -> SecretsFolders:
        return CONTAINER_SECRETS_FOLDERS[platform]

    async def _get_certificate_export_path(self, project_file: str) -> str:
        target_path = await self.project_provider.get_target_path(project_file)
        assembly_name = posixpath.splitext(ntpath.basename(target_path))[0]
        certificate_folder = self.get_host_secrets_folders().certificate_folder
        join = ntpath.join if self.os_provider.os == HostPlatform.WINDOWS else posixpath.join
        return join(certificate_folder, f"{assembly_name}.pfx")
