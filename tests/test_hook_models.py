"""
Tests for hook models and their serialized forms.
"""

import pytest
from pydantic import ValidationError

from hookfactory.core.hooks import (
    EventType,
    HookAction,
    HookDefinition,
    HookMatcher,
    SettingsDocument,
)
from hookfactory.core.hooks.models import entry_hook_name, is_managed_entry


class TestHookMatcher:
    """Matcher serialization and host pattern."""

    def test_to_dict_omits_empty_lists(self):
        matcher = HookMatcher(tools=["Write"], paths=[])
        assert matcher.to_dict() == {"tools": ["Write"]}
        assert HookMatcher().to_dict() == {}
        assert HookMatcher().is_empty

    def test_host_pattern_joins_tools(self):
        assert HookMatcher(tools=["Write", "Edit"]).to_host_pattern() == "Write|Edit"

    def test_host_pattern_for_path_only(self):
        assert HookMatcher(paths=["**/*.py"]).to_host_pattern() == "*"

    def test_host_pattern_absent_for_empty(self):
        assert HookMatcher(branches=["main"]).to_host_pattern() is None


class TestHookAction:
    def test_preview_truncates(self):
        action = HookAction(command="echo " + "x" * 100, timeout=5)
        preview = action.preview()
        assert len(preview) == 60
        assert preview.endswith("...")

    def test_preview_flattens_whitespace(self):
        assert HookAction(command="a\n  b", timeout=5).preview() == "a b"


class TestHookFile:
    """hook.json layout."""

    def test_layout(self, formatter_hook):
        data = formatter_hook.to_hook_file()
        assert data["matcher"] == {"tools": ["Write", "Edit"], "paths": ["**/*.py"]}
        assert data["hooks"][0]["type"] == "command"
        assert data["hooks"][0]["timeout"] == 30
        assert data["_metadata"]["event_type"] == "PostToolUse"
        assert data["_metadata"]["hook_name"] == "python-formatter"
        assert data["_metadata"]["generated_by"] == "hookfactory"

    def test_round_trip(self, formatter_hook):
        restored = HookDefinition.from_hook_file(formatter_hook.to_hook_file())
        assert restored == formatter_hook

    def test_unknown_event_type_rejected(self, formatter_hook):
        data = formatter_hook.to_hook_file()
        data["_metadata"]["event_type"] = "OnFileSave"
        with pytest.raises(ValidationError):
            HookDefinition.from_hook_file(data)


class TestSettingsEntry:
    """Entries stored in settings.json."""

    def test_entry_carries_host_matcher_and_filter(self, formatter_hook):
        entry = formatter_hook.to_settings_entry()
        assert entry["matcher"] == "Write|Edit"
        assert entry["_metadata"]["filter"] == {"tools": ["Write", "Edit"], "paths": ["**/*.py"]}
        assert is_managed_entry(entry)
        assert entry_hook_name(entry) == "python-formatter"

    def test_empty_matcher_omits_matcher_key(self, hook_factory):
        hook = hook_factory(
            name="stop-hook", event_type=EventType.STOP, command="true", timeout=10
        )
        entry = hook.to_settings_entry()
        assert "matcher" not in entry
        assert "filter" not in entry["_metadata"]

    def test_round_trip(self, formatter_hook):
        restored = HookDefinition.from_settings_entry(formatter_hook.to_settings_entry())
        assert restored == formatter_hook

    def test_unmanaged_entry_rejected(self):
        with pytest.raises(ValueError):
            HookDefinition.from_settings_entry({"matcher": "Bash", "hooks": []})
        assert not is_managed_entry({"matcher": "Bash", "hooks": []})
        assert entry_hook_name("not a dict") is None


class TestSettingsDocument:
    """Whole-file model."""

    def test_preserves_unknown_keys(self):
        doc = SettingsDocument.model_validate(
            {"statusLine": {"type": "command"}, "permissions": {"allow": ["Bash"]}}
        )
        data = doc.to_dict()
        assert data["statusLine"] == {"type": "command"}
        assert data["permissions"] == {"allow": ["Bash"]}
        assert data["hooks"] == {}

    def test_append_find_remove(self, formatter_hook):
        doc = SettingsDocument(hooks={"PostToolUse": [{"matcher": "Bash", "hooks": []}]})
        doc.append(formatter_hook)
        assert doc.find("python-formatter") == ("PostToolUse", 1)

        removed = doc.remove("python-formatter")
        assert removed is not None
        assert removed[0] == "PostToolUse"
        assert doc.hooks["PostToolUse"] == [{"matcher": "Bash", "hooks": []}]

    def test_remove_drops_empty_event_list(self, formatter_hook):
        doc = SettingsDocument()
        doc.append(formatter_hook)
        doc.remove("python-formatter")
        assert "PostToolUse" not in doc.hooks

    def test_remove_missing_returns_none(self):
        assert SettingsDocument().remove("nope") is None

    def test_keeps_unknown_event_types(self):
        doc = SettingsDocument.model_validate({"hooks": {"Notification": [{"hooks": []}]}})
        assert list(doc.iter_entries()) == [("Notification", 0, {"hooks": []})]
