"""
Settings storage layer for the host runtime's settings.json.

One store owns one settings file (one scope). Every mutation goes through
``write``, which:

1. serializes the document (nothing is touched if that fails),
2. copies the current file into the backup directory,
3. writes a temp file in the target directory and fsyncs it,
4. atomically renames the temp file over the target,
5. prunes backups beyond the retention limit.

Readers therefore see either the old file or the new one, never a partial
write. Concurrent writers are last-writer-wins; there is no locking.

Storage locations:
- User: ~/.claude/settings.json (or $CLAUDE_CONFIG_DIR/settings.json)
- Project: <project root>/.claude/settings.json
- Backups: <settings dir>/backups/settings.json.<timestamp>.bak

Example:
    store = SettingsStore.for_scope(Scope.PROJECT, project_dir)
    doc = store.load()
    doc.append(hook)
    store.write(doc)

    # Undo the last write
    store.rollback()
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import stat
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from hookfactory.core.config import HookFactoryConfig
from hookfactory.core.hooks.exceptions import (
    BackupNotFoundError,
    CorruptConfigError,
    InvalidSettingsError,
    IOFailure,
)
from hookfactory.core.hooks.models import Scope, SettingsDocument
from hookfactory.utils.project import get_project_root

logger = logging.getLogger(__name__)

SETTINGS_FILE = "settings.json"
BACKUP_DIR = "backups"
BACKUP_SUFFIX = ".bak"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S.%f"


class SettingsStore:
    """
    Storage layer for one settings file.

    Attributes:
        settings_file: Path to the settings JSON file
        backup_dir: Directory holding timestamped backups of settings_file
        backup_limit: Number of backups retained after each write
        scope: Scope this store serves, if created for one
    """

    def __init__(
        self,
        settings_file: Path | str,
        backup_dir: Path | str | None = None,
        backup_limit: int = 5,
        scope: Scope | None = None,
    ) -> None:
        if backup_limit < 1:
            raise ValueError("backup_limit must be at least 1")
        self.settings_file = Path(settings_file)
        self.backup_dir = (
            Path(backup_dir) if backup_dir else self.settings_file.parent / BACKUP_DIR
        )
        self.backup_limit = backup_limit
        self.scope = scope

    def __repr__(self) -> str:
        return f"SettingsStore({str(self.settings_file)!r})"

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def user(cls, config: HookFactoryConfig | None = None) -> SettingsStore:
        """Store for the user-level settings file, shared by every project."""
        config = config or HookFactoryConfig()
        return cls(
            config.get_claude_dir() / SETTINGS_FILE,
            backup_limit=config.backup_limit,
            scope=Scope.USER,
        )

    @classmethod
    def project(
        cls, project_dir: Path | None = None, config: HookFactoryConfig | None = None
    ) -> SettingsStore:
        """Store for <project root>/.claude/settings.json."""
        config = config or HookFactoryConfig()
        root = get_project_root(project_dir)
        return cls(
            root / ".claude" / SETTINGS_FILE,
            backup_limit=config.backup_limit,
            scope=Scope.PROJECT,
        )

    @classmethod
    def for_scope(
        cls,
        scope: Scope | str,
        project_dir: Path | None = None,
        config: HookFactoryConfig | None = None,
    ) -> SettingsStore:
        """Store for a scope name ("user" or "project")."""
        if Scope(scope) == Scope.USER:
            return cls.user(config)
        return cls.project(project_dir, config)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def exists(self) -> bool:
        return self.settings_file.exists()

    def load(self) -> SettingsDocument:
        """
        Load the settings document.

        Returns an empty document if the file doesn't exist yet.

        Raises:
            CorruptConfigError: If the file is not a valid settings document
            IOFailure: If the file exists but cannot be read
        """
        if not self.settings_file.exists():
            return SettingsDocument()

        try:
            raw = self.settings_file.read_bytes()
        except OSError as e:
            raise IOFailure(self.settings_file, e) from e

        try:
            data = json.loads(raw.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise CorruptConfigError(self.settings_file, f"not UTF-8: {e}") from e
        except json.JSONDecodeError as e:
            raise CorruptConfigError(self.settings_file, f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise CorruptConfigError(self.settings_file, "top level is not a JSON object")

        try:
            return SettingsDocument.model_validate(data)
        except ValidationError as e:
            raise CorruptConfigError(
                self.settings_file, "'hooks' must map event names to lists of entries"
            ) from e

    def list_backups(self) -> list[Path]:
        """Backups of this settings file, newest first."""
        if not self.backup_dir.is_dir():
            return []
        pattern = f"{self.settings_file.name}.*{BACKUP_SUFFIX}"
        return sorted(self.backup_dir.glob(pattern), key=lambda p: p.name, reverse=True)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def write(self, doc: SettingsDocument) -> Path | None:
        """
        Atomically replace the settings file with a document.

        Args:
            doc: Document to write

        Returns:
            Path of the backup taken of the previous file, or None if there was none

        Raises:
            InvalidSettingsError: If the document cannot be serialized
            IOFailure: If any filesystem step fails (the target is left untouched)
        """
        payload = self._serialize(doc)

        try:
            self.settings_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailure(self.settings_file.parent, e) from e

        backup = self._backup_current()
        self._atomic_write(payload)
        logger.info(f"Wrote settings to {self.settings_file}")
        self._prune_backups()
        return backup

    def rollback(self, backup: Path | str | None = None) -> Path:
        """
        Restore a backup over the settings file.

        Uses the same temp-file-and-rename sequence as ``write``. The backup
        itself is kept.

        Args:
            backup: Backup file or file name to restore (defaults to the newest)

        Returns:
            Path of the restored backup

        Raises:
            BackupNotFoundError: If there is no backup (or the named one is missing)
            IOFailure: If the backup cannot be read or the restore fails
        """
        if backup is None:
            backups = self.list_backups()
            if not backups:
                raise BackupNotFoundError(self.backup_dir)
            source = backups[0]
        else:
            source = Path(backup)
            if source.parent == Path("."):
                source = self.backup_dir / source
            if not source.is_file():
                raise BackupNotFoundError(self.backup_dir, Path(backup).name)

        try:
            payload = source.read_bytes()
        except OSError as e:
            raise IOFailure(source, e) from e

        self._atomic_write(payload)
        logger.info(f"Restored {self.settings_file} from {source.name}")
        return source

    def reinitialize(self) -> Path | None:
        """
        Replace the settings file with an empty document.

        This is the explicit recovery path for a corrupt file: the current
        content is backed up verbatim first, whatever it contains.

        Returns:
            Path of the backup of the replaced file, or None if there was no file
        """
        try:
            self.settings_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailure(self.settings_file.parent, e) from e

        backup = self._backup_current()
        self._atomic_write(self._serialize(SettingsDocument()))
        logger.info(f"Reinitialized {self.settings_file}")
        self._prune_backups()
        return backup

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _serialize(doc: SettingsDocument) -> bytes:
        try:
            text = json.dumps(doc.to_dict(), indent=2, ensure_ascii=False, allow_nan=False)
            return (text + "\n").encode("utf-8")
        except (TypeError, ValueError) as e:
            raise InvalidSettingsError(f"Settings document is not serializable: {e}") from e

    def _next_backup_path(self) -> Path:
        stamp = datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)
        candidate = self.backup_dir / f"{self.settings_file.name}.{stamp}{BACKUP_SUFFIX}"
        counter = 1
        while candidate.exists():
            candidate = (
                self.backup_dir / f"{self.settings_file.name}.{stamp}_{counter:02d}{BACKUP_SUFFIX}"
            )
            counter += 1
        return candidate

    def _backup_current(self) -> Path | None:
        if not self.settings_file.exists():
            return None
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            target = self._next_backup_path()
            shutil.copyfile(self.settings_file, target)
        except OSError as e:
            raise IOFailure(self.backup_dir, e) from e
        logger.info(f"Backed up {self.settings_file} to {target.name}")
        return target

    def _prune_backups(self) -> list[Path]:
        removed = []
        for old in self.list_backups()[self.backup_limit :]:
            try:
                old.unlink()
            except OSError as e:
                raise IOFailure(old, e) from e
            removed.append(old)
        if removed:
            logger.info(f"Pruned {len(removed)} old backup(s) from {self.backup_dir}")
        return removed

    def _atomic_write(self, payload: bytes) -> None:
        """Write to a temp file in the target's directory, then rename over the target."""
        target = self.settings_file
        try:
            fd, temp_path = tempfile.mkstemp(
                dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise IOFailure(target.parent, e) from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            if target.exists():
                os.chmod(temp_path, stat.S_IMODE(target.stat().st_mode))
            os.replace(temp_path, target)
        except Exception as e:
            # Clean up temp file on error
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            if isinstance(e, OSError):
                raise IOFailure(target, e) from e
            raise
