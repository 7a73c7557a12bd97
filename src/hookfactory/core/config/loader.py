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

from .models import HookFactoryConfig

logger = logging.getLogger(__name__)

# Env var -> config key
ENV_OVERRIDES = {
    "HOOKFACTORY_BACKUP_LIMIT": "backup_limit",
    "HOOKFACTORY_OUTPUT_DIR": "output_dir",
    "HOOKFACTORY_CLAUDE_DIR": "claude_dir",
}


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
    """Path to ~/.config/hookfactory/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "hookfactory" / "config.json"


def get_project_config_path(project_dir: Path | None = None) -> Path:
    """Path to .hookfactory.json in the project root."""
    if project_dir is None:
        project_dir = Path.cwd()
    return project_dir / ".hookfactory.json"


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON object from a file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Failed to parse config at {path}: {e}")
        return None

    if isinstance(data, dict):
        return data
    logger.warning(f"Ignoring config at {path}: top level is not an object")
    return None


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Env vars have the highest precedence and override all config files.
    An unparseable HOOKFACTORY_BACKUP_LIMIT is ignored with a warning.
    """
    result = config_dict.copy()

    for env_var, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if not value:
            continue
        if key == "backup_limit":
            try:
                result[key] = int(value)
            except ValueError:
                logger.warning(f"Invalid {env_var} value '{value}', ignoring")
                continue
        else:
            result[key] = value

    return result


def load_config(project_dir: Path | None = None) -> HookFactoryConfig:
    """
    Load configuration with full precedence chain.

    Args:
        project_dir: Project root (defaults to current directory)

    Returns:
        Validated HookFactoryConfig

    Raises:
        pydantic.ValidationError: If the merged configuration is invalid
    """
    merged: dict[str, Any] = {}

    user_config = load_json_file(get_user_config_path())
    if user_config:
        merged.update(user_config)

    project_config = load_json_file(get_project_config_path(project_dir))
    if project_config:
        merged.update(project_config)

    merged = apply_env_overrides(merged)
    return HookFactoryConfig.model_validate(merged)
