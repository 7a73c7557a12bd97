"""
Hook generation, validation and installation for Claude Code settings.

This package renders hook definitions from templates, checks them against a
static safety policy, and installs them into the host runtime's settings.json
at user or project scope without clobbering existing settings.

Key Functions:
    render_template: Build a validated hook from a catalog template
    validate_hook: Run the safety rules over a hook definition
    load_hook_file: Read a hook.json bundle

Key Classes:
    Installer: Install, uninstall and list hooks in a scope
    SettingsStore: Atomic, backed-up storage of one settings file
    StatusReporter: Generated / validated / installed / tested overview

Architecture:
    - Pure validation: commands are scanned as text, never executed
    - Atomic writes: temp file + rename, backup before every write
    - Non-destructive: unrelated settings and hooks are preserved

Usage:
    from hookfactory.core.hooks import Installer, Scope, render_template

    hook = render_template("formatter", "python")
    Installer(project_dir).install(Scope.PROJECT, hook)
"""

from hookfactory.core.hooks.bundle import load_hook_file, write_bundle
from hookfactory.core.hooks.catalog import EVENT_CATALOG, EventPolicy, EventType, get_policy
from hookfactory.core.hooks.exceptions import (
    AlreadyInstalledError,
    BackupNotFoundError,
    BundleExistsError,
    CorruptConfigError,
    HookFactoryError,
    HookFileError,
    HookNotFoundError,
    InstallVerificationError,
    InvalidSettingsError,
    IOFailure,
    PolicyViolation,
    TemplateError,
    TemplateParameterError,
    TemplateRenderError,
    UnknownTemplateError,
    ValidationFailure,
)
from hookfactory.core.hooks.installer import InstallResult, Installer, UninstallResult
from hookfactory.core.hooks.models import (
    HookAction,
    HookDefinition,
    HookMatcher,
    HookMetadata,
    HookSummary,
    Scope,
    SettingsDocument,
    ValidationIssue,
    ValidationResult,
    ValidationRule,
)
from hookfactory.core.hooks.safety import validate_hook
from hookfactory.core.hooks.status import StatusReport, StatusReporter
from hookfactory.core.hooks.store import SettingsStore
from hookfactory.core.hooks.templates import get_template, list_templates, render_template

__all__ = [
    # Catalog
    "EVENT_CATALOG",
    "EventPolicy",
    "EventType",
    "get_policy",
    # Models
    "HookAction",
    "HookDefinition",
    "HookMatcher",
    "HookMetadata",
    "HookSummary",
    "Scope",
    "SettingsDocument",
    "ValidationIssue",
    "ValidationResult",
    "ValidationRule",
    # Operations
    "validate_hook",
    "render_template",
    "get_template",
    "list_templates",
    "load_hook_file",
    "write_bundle",
    "Installer",
    "InstallResult",
    "UninstallResult",
    "SettingsStore",
    "StatusReporter",
    "StatusReport",
    # Errors
    "HookFactoryError",
    "ValidationFailure",
    "PolicyViolation",
    "HookFileError",
    "TemplateError",
    "UnknownTemplateError",
    "TemplateParameterError",
    "TemplateRenderError",
    "BundleExistsError",
    "CorruptConfigError",
    "InvalidSettingsError",
    "BackupNotFoundError",
    "IOFailure",
    "AlreadyInstalledError",
    "HookNotFoundError",
    "InstallVerificationError",
]
