"""
dotnet CLI client.

Covers the SDK probe used by prerequisites and the ASP.NET Core HTTPS
development certificate commands (check, trust, export) used by the SSL
coordinator.
"""

from __future__ import annotations

import logging
import os
import re
import secrets
from enum import Enum
from typing import Protocol, runtime_checkable

from netdock.core.errors import ProcessExecutionError
from netdock.core.platform import HostPlatform
from netdock.core.providers.fs import FileSystemProvider
from netdock.core.providers.os import OSProvider
from netdock.core.providers.process import ProcessProvider

logger = logging.getLogger(__name__)

# `dotnet dev-certs https --check --trust` exit code for an untrusted certificate
UNTRUSTED_CERTIFICATE_EXIT_CODE = 6

USER_SECRETS_PASSWORD_KEY = "Kestrel:Certificates:Development:Password"


class TrustState(str, Enum):
    """Whether the HTTPS development certificate is trusted on this host."""

    TRUSTED = "trusted"
    UNTRUSTED = "untrusted"
    NOT_APPLICABLE = "not_applicable"


@runtime_checkable
class DotNetClient(Protocol):
    async def get_version(self) -> str | None: ...

    async def is_certificate_trusted(self) -> TrustState: ...

    async def trust_certificate(self) -> None: ...

    async def export_certificate(self, project_file: str, certificate_export_path: str) -> None: ...


def _quote(value: str) -> str:
    return f'"{value}"'


class CommandLineDotNetClient:
    """DotNetClient that shells out to the dotnet CLI."""

    def __init__(
        self,
        process_provider: ProcessProvider,
        fs_provider: FileSystemProvider,
        os_provider: OSProvider,
        executable: str = "dotnet",
    ) -> None:
        self.process_provider = process_provider
        self.fs_provider = fs_provider
        self.os_provider = os_provider
        self.executable = executable

    async def get_version(self) -> str | None:
        """
        Probe for the .NET Core SDK.

        Returns:
            SDK version string, or None if dotnet is missing or fails
        """
        try:
            result = await self.process_provider.exec(f"{self.executable} --version")
        except ProcessExecutionError as e:
            logger.debug(f"dotnet --version failed: {e}")
            return None
        return result.stdout.strip() or None

    async def is_certificate_trusted(self) -> TrustState:
        # Linux has no machine-wide trust store that dev-certs can manage
        if self.os_provider.os == HostPlatform.LINUX:
            return TrustState.NOT_APPLICABLE

        try:
            await self.process_provider.exec(f"{self.executable} dev-certs https --check --trust")
        except ProcessExecutionError as e:
            if e.exit_code == UNTRUSTED_CERTIFICATE_EXIT_CODE:
                return TrustState.UNTRUSTED
            raise
        return TrustState.TRUSTED

    async def trust_certificate(self) -> None:
        await self.process_provider.exec(f"{self.executable} dev-certs https --trust")

    async def export_certificate(self, project_file: str, certificate_export_path: str) -> None:
        """
        Export the development certificate for use inside a container.

        A random password protects the exported .pfx; it is stored in the
        project's user secrets where Kestrel looks for it.

        Args:
            project_file: .csproj/.fsproj whose user secrets receive the password
            certificate_export_path: Destination .pfx path on the host
        """
        await self._add_user_secrets_if_necessary(project_file)

        export_folder = os.path.dirname(certificate_export_path)
        if export_folder and not await self.fs_provider.dir_exists(export_folder):
            await self.fs_provider.make_dir(export_folder)

        password = secrets.token_hex(32)

        logger.info(f"Exporting HTTPS development certificate to {certificate_export_path}")
        await self.process_provider.exec(
            f"{self.executable} dev-certs https "
            f"-ep {_quote(certificate_export_path)} -p {_quote(password)}"
        )
        await self.process_provider.exec(
            f"{self.executable} user-secrets --project {_quote(project_file)} "
            f"set {USER_SECRETS_PASSWORD_KEY} {_quote(password)}"
        )

    async def _add_user_secrets_if_necessary(self, project_file: str) -> None:
        contents = await self.fs_provider.read_file(project_file)
        if re.search(r"UserSecretsId", contents, re.IGNORECASE):
            return

        logger.debug(f"Initializing user secrets for {project_file}")
        await self.process_provider.exec(
            f"{self.executable} user-secrets init --project {_quote(project_file)}"
        )
