"""
Configuration models and loading.

Pydantic model for hookfactory configuration with multi-layer merging:
defaults < user < project < env vars.
"""

from .loader import (
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import HookFactoryConfig

__all__ = [
    "HookFactoryConfig",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
]
