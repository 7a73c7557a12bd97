"""
Pytest configuration and shared fixtures.

Every test runs with the user-level settings directory and the XDG config
home redirected into tmp_path, so nothing touches the real ~/.claude.
"""

import json
from pathlib import Path
from typing import Any

import pytest

from hookfactory.core.config import HookFactoryConfig
from hookfactory.core.hooks import (
    EventType,
    HookAction,
    HookDefinition,
    HookMatcher,
    HookMetadata,
    Installer,
    SettingsStore,
)

SAFE_FORMAT_COMMAND = (
    "command -v ruff >/dev/null 2>&1 || exit 0; "
    "command -v jq >/dev/null 2>&1 || exit 0; "
    "FILE=\"$(jq -r '.tool_input.file_path // empty')\"; "
    'ruff format "$FILE" >/dev/null 2>&1 || true'
)


# ==============================================================================
# Environment Isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point user-level settings and config at temp directories."""
    monkeypatch.setenv("CLAUDE_CONFIG_DIR", str(tmp_path / "claude-home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in ("HOOKFACTORY_BACKUP_LIMIT", "HOOKFACTORY_OUTPUT_DIR", "HOOKFACTORY_CLAUDE_DIR"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def claude_home(tmp_path: Path) -> Path:
    """User-level settings directory (what CLAUDE_CONFIG_DIR points at)."""
    return tmp_path / "claude-home"


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A project directory recognized as a root via its .git marker."""
    project = tmp_path / "project"
    (project / ".git").mkdir(parents=True)
    return project


@pytest.fixture
def project_settings(project_dir: Path) -> Path:
    return project_dir / ".claude" / "settings.json"


# ==============================================================================
# Hook Fixtures
# ==============================================================================


def make_hook(
    name: str = "python-formatter",
    event_type: EventType = EventType.POST_TOOL_USE,
    command: str = SAFE_FORMAT_COMMAND,
    timeout: int = 30,
    matcher: HookMatcher | None = None,
) -> HookDefinition:
    """Build a hook definition; defaults describe a valid PostToolUse formatter."""
    if matcher is None:
        matcher = (
            HookMatcher(tools=["Write", "Edit"], paths=["**/*.py"])
            if event_type in (EventType.POST_TOOL_USE, EventType.PRE_TOOL_USE)
            else HookMatcher()
        )
    return HookDefinition(
        event_type=event_type,
        matcher=matcher,
        actions=[HookAction(command=command, timeout=timeout)],
        metadata=HookMetadata(hook_name=name),
    )


@pytest.fixture
def hook_factory():
    """Factory for hook definitions, see ``make_hook``."""
    return make_hook


@pytest.fixture
def formatter_hook() -> HookDefinition:
    return make_hook()


@pytest.fixture
def installer(project_dir: Path) -> Installer:
    return Installer(project_dir=project_dir, config=HookFactoryConfig())


@pytest.fixture
def store(tmp_path: Path) -> SettingsStore:
    """Store over a settings file in its own directory, keeping 3 backups."""
    return SettingsStore(tmp_path / "settings-dir" / "settings.json", backup_limit=3)


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    return path
