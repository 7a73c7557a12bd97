"""
Typed exceptions for hook generation, validation and installation.

Every public operation in ``hookfactory.core.hooks`` either returns a value or
raises one of these. The CLI maps each family to an exit code.
"""

from __future__ import annotations

import errno
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hookfactory.core.hooks.models import ValidationResult


class HookFactoryError(Exception):
    """Base exception for all hookfactory errors."""


# ============================================================================
# Validation
# ============================================================================


class ValidationFailure(HookFactoryError):
    """A hook definition failed structural or safety validation."""

    def __init__(self, result: ValidationResult, message: str | None = None) -> None:
        self.result = result
        rules = ", ".join(sorted({f.rule.value for f in result.failures}))
        super().__init__(message or f"Hook failed validation ({rules})")


class PolicyViolation(ValidationFailure):
    """Timeout or matcher shape not allowed for the hook's event type."""


class HookFileError(ValidationFailure):
    """A hook.json file could not be parsed into a hook definition."""

    def __init__(self, path: Path, result: ValidationResult) -> None:
        self.path = path
        super().__init__(result, f"Invalid hook file: {path}")


# ============================================================================
# Templates
# ============================================================================


class TemplateError(HookFactoryError):
    """Base exception for template rendering errors."""


class UnknownTemplateError(TemplateError):
    """Requested template is not in the catalog."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        super().__init__(f"Unknown template '{name}' (available: {', '.join(available)})")


class TemplateParameterError(TemplateError):
    """Language or user parameter rejected by a template."""


class BundleExistsError(TemplateError):
    """The build output directory already holds a hook.json."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"{path} already exists (use --force to overwrite)")


class TemplateRenderError(ValidationFailure):
    """A template instantiation produced a hook that fails validation."""

    def __init__(self, template_name: str, result: ValidationResult) -> None:
        self.template_name = template_name
        super().__init__(
            result,
            f"Template '{template_name}' produced an invalid hook: "
            + "; ".join(f"[{f.rule.value}] {f.message}" for f in result.failures),
        )


# ============================================================================
# Settings storage
# ============================================================================


class CorruptConfigError(HookFactoryError):
    """An existing settings file is not a valid settings document."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Corrupt settings file {path}: {detail}")


class InvalidSettingsError(HookFactoryError):
    """A settings document could not be serialized to JSON."""


class BackupNotFoundError(HookFactoryError):
    """No backup is available to restore."""

    def __init__(self, backup_dir: Path, name: str | None = None) -> None:
        self.backup_dir = backup_dir
        self.name = name
        if name:
            super().__init__(f"Backup '{name}' not found in {backup_dir}")
        else:
            super().__init__(f"No backups found in {backup_dir}")


class IOFailure(HookFactoryError):
    """A filesystem operation failed; no partial state was left behind."""

    def __init__(self, path: Path, error: OSError) -> None:
        self.path = path
        self.error = error
        self.kind = _classify_os_error(error)
        super().__init__(f"{self.kind}: {path}: {error.strerror or error}")


def _classify_os_error(error: OSError) -> str:
    if isinstance(error, PermissionError) or error.errno in (errno.EACCES, errno.EPERM):
        return "permission-denied"
    if error.errno in (errno.ENOSPC, errno.EDQUOT):
        return "disk-full"
    if isinstance(error, FileNotFoundError) or error.errno == errno.ENOENT:
        return "not-found"
    return "os-error"


# ============================================================================
# Installer
# ============================================================================


class AlreadyInstalledError(HookFactoryError):
    """A hook with the same name is already installed in the scope."""

    def __init__(self, hook_name: str, event_type: str, scope: str) -> None:
        self.hook_name = hook_name
        self.event_type = event_type
        self.scope = scope
        super().__init__(
            f"Hook '{hook_name}' is already installed under {event_type} ({scope} scope)"
        )


class HookNotFoundError(HookFactoryError):
    """No managed hook with the given name exists in the scope."""

    def __init__(self, hook_name: str, scope: str) -> None:
        self.hook_name = hook_name
        self.scope = scope
        super().__init__(f"Hook '{hook_name}' is not installed ({scope} scope)")


class InstallVerificationError(HookFactoryError):
    """The settings file did not read back as written; the write was rolled back."""
