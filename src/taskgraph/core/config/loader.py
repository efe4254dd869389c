"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import TaskGraphConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per process
_config_cache: TaskGraphConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """Path to ~/.config/taskgraph/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "taskgraph" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Working directory to search from (defaults to current directory)

    Returns:
        Path to .taskgraph.json in the project root
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".taskgraph.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`. Nested
    dicts are merged, not replaced.

    Example:
        >>> base = {"a": 1, "b": {"x": 10, "y": 20}}
        >>> override = {"b": {"y": 30, "z": 40}, "c": 3}
        >>> deep_merge(base, override)
        {'a': 1, 'b': {'x': 10, 'y': 30, 'z': 40}, 'c': 3}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        # Config system should be resilient to a broken file
        logger.warning(f"Failed to parse config at {path}: {e}")
        return None


def _parse_bool(value: str) -> bool:
    return value.lower() not in ("false", "0", "", "no")


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        TASKGRAPH_STORE - overrides store.backend
        TASKGRAPH_DB - overrides store.path
        TASKGRAPH_FORMAT - overrides render.format
        TASKGRAPH_SHOW_DETAILS - overrides render.show_task_details
        TASKGRAPH_LOG_LEVEL - overrides logging.level
    """
    result = config_dict.copy()

    def _section(name: str) -> dict[str, Any]:
        section = dict(result.get(name) or {})
        result[name] = section
        return section

    if store_name := os.environ.get("TASKGRAPH_STORE"):
        _section("store")["backend"] = store_name.lower()

    if db_path := os.environ.get("TASKGRAPH_DB"):
        _section("store")["path"] = db_path

    if fmt := os.environ.get("TASKGRAPH_FORMAT"):
        if fmt.lower() in ("tree", "ascii", "dot"):
            _section("render")["format"] = fmt.lower()
        else:
            logger.warning(f"Invalid TASKGRAPH_FORMAT value '{fmt}', ignoring")

    if details := os.environ.get("TASKGRAPH_SHOW_DETAILS"):
        _section("render")["show_task_details"] = _parse_bool(details)

    if level := os.environ.get("TASKGRAPH_LOG_LEVEL"):
        _section("logging")["level"] = level

    return result


def get_default_config() -> dict[str, Any]:
    """Hardcoded default configuration."""
    return {
        "store": {"backend": "sqlite", "path": ".taskgraph/tasks.db", "timeout_seconds": 5.0},
        "render": {"format": "tree", "show_task_details": False},
        "logging": {"level": "WARNING"},
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> TaskGraphConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (TASKGRAPH_*)
        2. Project config (.taskgraph.json)
        3. User config (~/.config/taskgraph/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Project directory to load .taskgraph.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated TaskGraphConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = TaskGraphConfig(**merged)
    _config_cache = config
    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
