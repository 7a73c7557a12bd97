"""
hookfactory - Claude Code hook builder and installer

Generates hooks from templates, validates them for safety, and installs them
into user or project settings with atomic writes and backups.
"""

__version__ = "0.3.0"

from hookfactory.core.hooks import HookDefinition, Installer, SettingsStore, validate_hook

__all__ = ["HookDefinition", "Installer", "SettingsStore", "validate_hook", "__version__"]
