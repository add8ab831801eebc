"""
Configuration models and loading.

This module provides Pydantic models for netdock configuration
with multi-layer merging: defaults < user < project < env vars.
"""

from .env import load_layered_env
from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import (
    DebuggerConfig,
    DockerConfig,
    DotNetConfig,
    NetdockConfig,
    PrerequisitesConfig,
    StateConfig,
)

__all__ = [
    # Models
    "DebuggerConfig",
    "DockerConfig",
    "DotNetConfig",
    "NetdockConfig",
    "PrerequisitesConfig",
    "StateConfig",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_layered_env",
]
