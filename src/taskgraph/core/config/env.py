"""Environment loading helpers.

Settings can come from .env files as well as the shell. Precedence:

    exported shell variables > project .env files > user .env file

Project files are ``.env`` then ``.env.local`` in the project directory
(later files win); the user file lives at ``$XDG_CONFIG_HOME/taskgraph/.env``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values


def default_user_env_paths() -> list[Path]:
    xdg_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return [Path(xdg_home) / "taskgraph" / ".env"]


def default_project_env_paths(project_dir: Path) -> list[Path]:
    return [project_dir / ".env", project_dir / ".env.local"]


def _merge_env_files(paths: Iterable[Path]) -> dict[str, str]:
    """Values from *paths* in order; keys without a value are skipped."""
    merged: dict[str, str] = {}
    for path in paths:
        path = Path(path)
        if not path.exists():
            continue
        merged.update(
            {str(k): str(v) for k, v in dotenv_values(path).items() if k and v is not None}
        )
    return merged


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> list[str]:
    """Export variables from user and project .env files into os.environ.

    Variables already present in the process environment are left alone.

    Args:
        project_dir: base directory for project env paths (defaults to cwd)
        user_env_paths: explicit user env file paths
        project_env_paths: explicit project env file paths

    Returns:
        Names of the variables that were set from files
    """
    project_dir = project_dir or Path.cwd()
    if user_env_paths is None:
        user_env_paths = default_user_env_paths()
    if project_env_paths is None:
        project_env_paths = default_project_env_paths(project_dir)

    # Project values layered over user values, then filtered against the shell
    from_files = _merge_env_files(user_env_paths)
    from_files.update(_merge_env_files(project_env_paths))

    loaded: list[str] = []
    for name, value in from_files.items():
        if name in os.environ:
            continue
        os.environ[name] = value
        loaded.append(name)
    return loaded
