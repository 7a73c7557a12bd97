"""
Hook data models for hookfactory.

Defines the hook definition (the unit that gets generated, validated and
installed), the validation result, and the two serialized forms a definition
takes on disk:

- hook.json, written by ``hook build`` and read by ``hook validate`` and
  ``hook install``::

    {"matcher": {"tools": ["Write"]},
     "hooks": [{"type": "command", "command": "...", "timeout": 30}],
     "_metadata": {"generated_by": "...", "event_type": "PostToolUse",
                   "hook_name": "...", "created_at": "..."}}

- a settings entry, stored in the host runtime's settings.json under
  ``hooks.<EventType>``. The host reads ``matcher`` as a tool-name pattern, so
  the structured matcher travels in ``_metadata.filter``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator, Literal

from pydantic import BaseModel, ConfigDict, Field

from hookfactory.core.hooks.catalog import EventType

METADATA_KEY = "_metadata"
DEFAULT_GENERATOR = "hookfactory"
PREVIEW_LENGTH = 60


class Scope(str, Enum):
    """Where a settings document lives."""

    USER = "user"
    PROJECT = "project"


class HookMatcher(BaseModel):
    """
    Structured filter deciding when a hook fires.

    Which fields may be populated depends on the event type; see
    ``hookfactory.core.hooks.catalog``.
    """

    tools: list[str] = Field(default_factory=list, description="Tool names, e.g. Write, Edit")
    paths: list[str] = Field(default_factory=list, description="File glob patterns")
    content: list[str] = Field(default_factory=list, description="Prompt content filters")
    branches: list[str] = Field(default_factory=list, description="Branch names or globs")

    @property
    def is_empty(self) -> bool:
        return not self.populated_fields()

    def populated_fields(self) -> list[str]:
        """Names of the filter lists that have at least one entry."""
        return [name for name in ("tools", "paths", "content", "branches") if getattr(self, name)]

    def to_dict(self) -> dict[str, list[str]]:
        """Serialize, omitting empty lists."""
        return {name: list(getattr(self, name)) for name in self.populated_fields()}

    def to_host_pattern(self) -> str | None:
        """
        Tool-name pattern understood by the host runtime.

        Returns:
            "A|B" for tool filters, "*" for path-only filters, None otherwise
        """
        if self.tools:
            return "|".join(self.tools)
        if self.paths:
            return "*"
        return None


class HookAction(BaseModel):
    """One command the host runs when the hook fires."""

    type: Literal["command"] = "command"
    command: str
    timeout: int = Field(description="Seconds before the host kills the command")

    def preview(self, length: int = PREVIEW_LENGTH) -> str:
        """Single-line, truncated rendering of the command."""
        flat = " ".join(self.command.split())
        if len(flat) <= length:
            return flat
        return flat[: length - 3] + "..."


class HookMetadata(BaseModel):
    """Provenance for a hook; carries no behavior."""

    hook_name: str
    generated_by: str = DEFAULT_GENERATOR
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    description: str | None = None


class HookDefinition(BaseModel):
    """
    The unit of hook configuration.

    Example:
        >>> hook = HookDefinition(
        ...     event_type=EventType.STOP,
        ...     actions=[HookAction(command="git status --short || true", timeout=10)],
        ...     metadata=HookMetadata(hook_name="git-status"),
        ... )
        >>> hook.hook_name
        'git-status'
    """

    event_type: EventType
    matcher: HookMatcher = Field(default_factory=HookMatcher)
    actions: list[HookAction] = Field(default_factory=list)
    metadata: HookMetadata

    @property
    def hook_name(self) -> str:
        return self.metadata.hook_name

    def _metadata_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "generated_by": self.metadata.generated_by,
            "event_type": self.event_type.value,
            "hook_name": self.metadata.hook_name,
            "created_at": self.metadata.created_at.isoformat(),
        }
        if self.metadata.description:
            data["description"] = self.metadata.description
        return data

    def _actions_list(self) -> list[dict[str, Any]]:
        return [action.model_dump() for action in self.actions]

    def to_hook_file(self) -> dict[str, Any]:
        """Serialize to the hook.json layout."""
        return {
            "matcher": self.matcher.to_dict(),
            "hooks": self._actions_list(),
            METADATA_KEY: self._metadata_dict(),
        }

    @classmethod
    def from_hook_file(cls, data: dict[str, Any]) -> HookDefinition:
        """
        Parse the hook.json layout.

        Raises:
            pydantic.ValidationError: If required keys are missing or mistyped
        """
        meta = dict(data.get(METADATA_KEY) or {})
        return cls.model_validate(
            {
                "event_type": meta.pop("event_type", None),
                "matcher": data.get("matcher") or {},
                "actions": data.get("hooks") or [],
                "metadata": meta,
            }
        )

    def to_settings_entry(self) -> dict[str, Any]:
        """Serialize to an entry for ``settings["hooks"][event_type]``."""
        entry: dict[str, Any] = {}
        pattern = self.matcher.to_host_pattern()
        if pattern is not None:
            entry["matcher"] = pattern
        entry["hooks"] = self._actions_list()
        metadata = self._metadata_dict()
        if not self.matcher.is_empty:
            metadata["filter"] = self.matcher.to_dict()
        entry[METADATA_KEY] = metadata
        return entry

    @classmethod
    def from_settings_entry(cls, entry: dict[str, Any]) -> HookDefinition:
        """
        Rebuild a definition from a managed settings entry.

        Raises:
            ValueError: If the entry was not written by hookfactory
            pydantic.ValidationError: If the entry is malformed
        """
        if not is_managed_entry(entry):
            raise ValueError("Settings entry has no hookfactory metadata")
        meta = dict(entry[METADATA_KEY])
        matcher = meta.pop("filter", None) or {}
        return cls.model_validate(
            {
                "event_type": meta.pop("event_type"),
                "matcher": matcher,
                "actions": entry.get("hooks") or [],
                "metadata": meta,
            }
        )


def is_managed_entry(entry: Any) -> bool:
    """Check whether a settings entry was written by hookfactory."""
    if not isinstance(entry, dict):
        return False
    meta = entry.get(METADATA_KEY)
    return isinstance(meta, dict) and bool(meta.get("hook_name"))


def entry_hook_name(entry: Any) -> str | None:
    """Hook name of a managed settings entry, or None."""
    if not is_managed_entry(entry):
        return None
    return str(entry[METADATA_KEY]["hook_name"])


class ValidationRule(str, Enum):
    """Checks applied by the safety validator."""

    STRUCTURE = "structure"
    MATCHER = "matcher"
    DENYLIST = "denylist"
    TOOL_GUARD = "tool-guard"
    SILENT_FAILURE = "silent-failure"
    PATH_SAFETY = "path-safety"
    TIMEOUT = "timeout"


POLICY_RULES = frozenset({ValidationRule.MATCHER, ValidationRule.TIMEOUT})


class ValidationIssue(BaseModel):
    """One failed check."""

    rule: ValidationRule
    message: str
    action_index: int | None = Field(
        default=None, description="Index of the offending action, if action-specific"
    )


class ValidationResult(BaseModel):
    """Outcome of validating one hook definition. There is no soft pass."""

    failures: list[ValidationIssue] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def rules(self) -> set[ValidationRule]:
        return {f.rule for f in self.failures}

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "failures": [f.model_dump(mode="json", exclude_none=True) for f in self.failures],
        }


class SettingsDocument(BaseModel):
    """
    Parsed form of a host settings file.

    Only ``hooks`` is interpreted; every other top-level key is carried through
    untouched. Event lists keep their stored order because the host runs the
    hooks for one event in sequence.
    """

    model_config = ConfigDict(extra="allow")

    hooks: dict[str, list[Any]] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def iter_entries(self) -> Iterator[tuple[str, int, Any]]:
        """Yield (event_type, index, entry) for every stored entry."""
        for event_type, entries in self.hooks.items():
            for index, entry in enumerate(entries):
                yield event_type, index, entry

    def find(self, hook_name: str) -> tuple[str, int] | None:
        """Locate the first managed entry with a name, across all event types."""
        for event_type, index, entry in self.iter_entries():
            if entry_hook_name(entry) == hook_name:
                return event_type, index
        return None

    def append(self, hook: HookDefinition) -> None:
        self.hooks.setdefault(hook.event_type.value, []).append(hook.to_settings_entry())

    def remove(self, hook_name: str) -> tuple[str, dict[str, Any]] | None:
        """
        Remove the first managed entry with a name.

        An event list left empty is dropped from the document.

        Returns:
            (event_type, removed entry), or None when nothing matched
        """
        location = self.find(hook_name)
        if location is None:
            return None
        event_type, index = location
        entry = self.hooks[event_type].pop(index)
        if not self.hooks[event_type]:
            del self.hooks[event_type]
        return event_type, entry


class HookSummary(BaseModel):
    """One row of ``hook list``."""

    scope: Scope
    event_type: str
    hook_name: str
    command_preview: str
    managed: bool = True
    matcher: str | None = None
