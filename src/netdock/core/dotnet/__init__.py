"""dotnet CLI client and MSBuild project inspection."""

from .client import CommandLineDotNetClient, DotNetClient, TrustState
from .project import MsBuildNetCoreProjectProvider, NetCoreProjectProvider

__all__ = [
    "CommandLineDotNetClient",
    "DotNetClient",
    "MsBuildNetCoreProjectProvider",
    "NetCoreProjectProvider",
    "TrustState",
]
