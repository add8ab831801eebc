"""Environment loading from .env files.

Debug containers often need secrets (connection strings, API keys) that the
user keeps in .env files next to the project. netdock loads them into the
process environment before resolving configuration so NETDOCK_* overrides
can live there too.

Precedence: os.environ (pre-existing) > project .env > user .env
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

from .loader import get_xdg_config_home


def read_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file, dropping keys without values."""
    if not path.is_file():
        return {}
    values = dotenv_values(path)
    return {str(k): str(v) for k, v in values.items() if k is not None and v is not None}


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> dict[str, str]:
    """Load user and project .env files into os.environ.

    Args:
        project_dir: base directory for project env paths (defaults to cwd)
        user_env_paths: explicit user env file paths
        project_env_paths: explicit project env file paths

    Returns:
        The variables that were set by this call
    """
    if project_dir is None:
        project_dir = Path.cwd()
    if user_env_paths is None:
        user_env_paths = [get_xdg_config_home() / "netdock" / ".env"]
    if project_env_paths is None:
        project_env_paths = [project_dir / ".env", project_dir / ".env.local"]

    loaded: dict[str, str] = {}

    # Later files override earlier ones, but nothing overrides the real environment
    for path in [*user_env_paths, *project_env_paths]:
        for key, value in read_env_file(Path(path)).items():
            if key not in os.environ or key in loaded:
                loaded[key] = value
                os.environ[key] = value

    return loaded
