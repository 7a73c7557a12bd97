"""
Hook installer for the host runtime's settings files.

The only component that changes hook entries in a settings document. It
validates the hook, merges it into the scope's document and hands the result
to the store's atomic write. Existing settings, hooks from other tools, and
event types outside the catalog are preserved.

Implementation:
    - Validates the hook definition (refuses anything with failures)
    - Loads the scope's settings.json (empty document if missing)
    - Rejects duplicate hook names unless replace is set
    - Appends the entry to the event's ordered list
    - Writes through SettingsStore (backup, temp file, atomic rename)
    - Reads the file back and rolls back if it does not match

Example:
    >>> installer = Installer(project_dir=Path("/path/to/project"))
    >>> result = installer.install(Scope.PROJECT, hook)
    >>> [s.hook_name for s in installer.list_hooks(Scope.PROJECT)]
    ['python-formatter']
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from hookfactory.core.config import HookFactoryConfig
from hookfactory.core.hooks.exceptions import (
    AlreadyInstalledError,
    CorruptConfigError,
    HookNotFoundError,
    InstallVerificationError,
)
from hookfactory.core.hooks.models import (
    METADATA_KEY,
    PREVIEW_LENGTH,
    HookAction,
    HookDefinition,
    HookSummary,
    Scope,
    SettingsDocument,
    entry_hook_name,
    is_managed_entry,
)
from hookfactory.core.hooks.safety import raise_for_result, validate_hook
from hookfactory.core.hooks.store import SettingsStore

logger = logging.getLogger(__name__)

UNMANAGED_NAME = "-"


class InstallResult(BaseModel):
    """Result of a successful install."""

    scope: Scope
    hook_name: str
    event_type: str
    settings_file: str
    replaced: bool = Field(default=False, description="An entry with the same name was removed")
    backup: str | None = Field(default=None, description="Backup of the previous settings file")

    @property
    def message(self) -> str:
        verb = "Replaced" if self.replaced else "Installed"
        return f"{verb} {self.hook_name} ({self.event_type}) in {self.scope.value} settings"


class UninstallResult(BaseModel):
    """Result of a successful uninstall."""

    scope: Scope
    hook_name: str
    event_type: str
    settings_file: str
    backup: str | None = None


class Installer:
    """
    Installs, removes and lists hooks in user and project settings.

    Attributes:
        project_dir: Directory used to locate the project-scope settings file
        config: Tool configuration (settings location, backup retention)
    """

    def __init__(
        self,
        project_dir: Path | None = None,
        config: HookFactoryConfig | None = None,
        stores: dict[Scope, SettingsStore] | None = None,
    ) -> None:
        self.project_dir = project_dir
        self.config = config or HookFactoryConfig()
        self._stores: dict[Scope, SettingsStore] = dict(stores or {})

    def store(self, scope: Scope | str) -> SettingsStore:
        """The settings store for a scope."""
        scope = Scope(scope)
        if scope not in self._stores:
            self._stores[scope] = SettingsStore.for_scope(scope, self.project_dir, self.config)
        return self._stores[scope]

    def install(
        self, scope: Scope | str, hook: HookDefinition, replace: bool = False
    ) -> InstallResult:
        """
        Install a hook into a scope's settings.

        Args:
            scope: "user" or "project"
            hook: Hook definition to install
            replace: Remove an existing hook with the same name first

        Returns:
            InstallResult describing the change

        Raises:
            ValidationFailure: If the hook fails validation (PolicyViolation for
                timeout/matcher policy failures)
            AlreadyInstalledError: If the name is taken and replace is False
            CorruptConfigError: If the existing settings file is malformed
            IOFailure: If the write fails; the previous file is untouched
            InstallVerificationError: If the file did not read back as written
        """
        scope = Scope(scope)
        raise_for_result(validate_hook(hook))

        store = self.store(scope)
        doc = store.load()

        replaced = False
        existing = doc.find(hook.hook_name)
        if existing is not None:
            event_type, _ = existing
            if not replace:
                logger.info(f"Hook {hook.hook_name} already installed under {event_type}")
                raise AlreadyInstalledError(hook.hook_name, event_type, scope.value)
            doc.remove(hook.hook_name)
            replaced = True

        doc.append(hook)
        backup = store.write(doc)
        self._verify(store, doc, backup)

        logger.info(f"Installed {hook.hook_name} into {store.settings_file}")
        return InstallResult(
            scope=scope,
            hook_name=hook.hook_name,
            event_type=hook.event_type.value,
            settings_file=str(store.settings_file),
            replaced=replaced,
            backup=str(backup) if backup else None,
        )

    def uninstall(self, scope: Scope | str, hook_name: str) -> UninstallResult:
        """
        Remove a hook by name from a scope's settings.

        Removes the first managed entry with that name across all event types.

        Raises:
            HookNotFoundError: If no managed entry has that name; nothing is written
            CorruptConfigError: If the existing settings file is malformed
            IOFailure: If the write fails
        """
        scope = Scope(scope)
        store = self.store(scope)
        doc = store.load()

        removed = doc.remove(hook_name)
        if removed is None:
            logger.info(f"Hook {hook_name} not found in {store.settings_file}")
            raise HookNotFoundError(hook_name, scope.value)

        event_type, _ = removed
        backup = store.write(doc)
        self._verify(store, doc, backup)

        logger.info(f"Uninstalled {hook_name} from {store.settings_file}")
        return UninstallResult(
            scope=scope,
            hook_name=hook_name,
            event_type=event_type,
            settings_file=str(store.settings_file),
            backup=str(backup) if backup else None,
        )

    def list_hooks(self, scope: Scope | str) -> list[HookSummary]:
        """
        Summarize every hook entry in a scope, including unmanaged ones.

        Raises:
            CorruptConfigError: If the settings file is malformed
        """
        scope = Scope(scope)
        doc = self.store(scope).load()
        return [_summarize(scope, event_type, entry) for event_type, _, entry in doc.iter_entries()]

    def get_hook(self, scope: Scope | str, hook_name: str) -> HookDefinition:
        """
        Rebuild the definition of an installed hook.

        Raises:
            HookNotFoundError: If no managed entry has that name
        """
        scope = Scope(scope)
        doc = self.store(scope).load()
        location = doc.find(hook_name)
        if location is None:
            raise HookNotFoundError(hook_name, scope.value)
        event_type, index = location
        return HookDefinition.from_settings_entry(doc.hooks[event_type][index])

    def _verify(
        self, store: SettingsStore, expected: SettingsDocument, backup: Path | None
    ) -> None:
        """Re-read what was written; restore this write's backup if it differs."""
        try:
            actual = store.load().to_dict()
        except CorruptConfigError:
            actual = None
        if actual == expected.to_dict():
            return
        logger.error(f"{store.settings_file} did not read back as written")
        if backup is None:
            raise InstallVerificationError(f"{store.settings_file} did not read back as written")
        store.rollback(backup)
        raise InstallVerificationError(
            f"{store.settings_file} did not read back as written; restored {backup.name}"
        )


def _summarize(scope: Scope, event_type: str, entry: object) -> HookSummary:
    if not isinstance(entry, dict):
        return HookSummary(
            scope=scope,
            event_type=event_type,
            hook_name=UNMANAGED_NAME,
            command_preview=str(entry)[:PREVIEW_LENGTH],
            managed=False,
        )

    actions = entry.get("hooks", [])
    if isinstance(actions, list):
        preview = " && ".join(
            HookAction(command=str(h.get("command", "")), timeout=1).preview()
            for h in actions
            if isinstance(h, dict)
        )
    else:
        preview = str(actions)[:PREVIEW_LENGTH]

    matcher = entry.get("matcher")
    if is_managed_entry(entry):
        filter_ = entry[METADATA_KEY].get("filter")
        if isinstance(filter_, dict) and filter_:
            matcher = "; ".join(f"{key}={_join_values(v)}" for key, v in filter_.items())
    return HookSummary(
        scope=scope,
        event_type=event_type,
        hook_name=entry_hook_name(entry) or UNMANAGED_NAME,
        command_preview=preview,
        managed=is_managed_entry(entry),
        matcher=str(matcher) if matcher is not None else None,
    )


def _join_values(values: object) -> str:
    if isinstance(values, list):
        return ",".join(str(v) for v in values)
    return str(values)
