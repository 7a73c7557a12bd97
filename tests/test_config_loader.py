"""
Tests for layered hookfactory configuration.

Precedence: defaults < user config < project config < environment.
"""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from hookfactory.core.config import (
    HookFactoryConfig,
    get_project_config_path,
    get_user_config_path,
    load_config,
)

from conftest import write_json


class TestPaths:
    def test_user_config_under_xdg(self, tmp_path: Path):
        assert get_user_config_path() == tmp_path / "xdg" / "hookfactory" / "config.json"

    def test_xdg_fallback(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.delenv("XDG_CONFIG_HOME")
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        expected = tmp_path / "home" / ".config" / "hookfactory" / "config.json"
        assert get_user_config_path() == expected

    def test_project_config(self, project_dir: Path):
        assert get_project_config_path(project_dir) == project_dir / ".hookfactory.json"


class TestDefaults:
    def test_defaults(self, project_dir: Path):
        config = load_config(project_dir)
        assert config == HookFactoryConfig()
        assert config.backup_limit == 5
        assert config.output_dir == "generated-hooks"
        assert config.generated_by == "hookfactory"

    def test_output_path_relative_to_project(self, project_dir: Path):
        assert HookFactoryConfig().get_output_path(project_dir) == project_dir / "generated-hooks"

    def test_absolute_output_path(self, project_dir: Path, tmp_path: Path):
        config = HookFactoryConfig(output_dir=str(tmp_path / "elsewhere"))
        assert config.get_output_path(project_dir) == tmp_path / "elsewhere"


class TestLayering:
    def test_project_overrides_user(self, project_dir: Path):
        write_json(get_user_config_path(), {"backup_limit": 7, "generated_by": "me"})
        write_json(project_dir / ".hookfactory.json", {"backup_limit": 3})

        config = load_config(project_dir)

        assert config.backup_limit == 3
        assert config.generated_by == "me"

    def test_env_overrides_files(self, project_dir: Path, monkeypatch: pytest.MonkeyPatch):
        write_json(project_dir / ".hookfactory.json", {"backup_limit": 3, "output_dir": "a"})
        monkeypatch.setenv("HOOKFACTORY_BACKUP_LIMIT", "10")
        monkeypatch.setenv("HOOKFACTORY_OUTPUT_DIR", "b")

        config = load_config(project_dir)

        assert config.backup_limit == 10
        assert config.output_dir == "b"

    def test_claude_dir_env(self, project_dir: Path, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("HOOKFACTORY_CLAUDE_DIR", str(tmp_path / "alt"))
        assert load_config(project_dir).get_claude_dir() == tmp_path / "alt"

    def test_unknown_keys_ignored(self, project_dir: Path):
        write_json(project_dir / ".hookfactory.json", {"theme": "dark"})
        assert load_config(project_dir) == HookFactoryConfig()


class TestBadInput:
    def test_unparseable_file_skipped(self, project_dir: Path, caplog):
        (project_dir / ".hookfactory.json").write_text("{nope")
        with caplog.at_level(logging.WARNING):
            config = load_config(project_dir)
        assert config.backup_limit == 5
        assert "Failed to parse config" in caplog.text

    def test_bad_env_int_ignored(self, project_dir: Path, monkeypatch, caplog):
        monkeypatch.setenv("HOOKFACTORY_BACKUP_LIMIT", "lots")
        with caplog.at_level(logging.WARNING):
            assert load_config(project_dir).backup_limit == 5
        assert "HOOKFACTORY_BACKUP_LIMIT" in caplog.text

    def test_out_of_range_limit_rejected(self, project_dir: Path):
        write_json(project_dir / ".hookfactory.json", {"backup_limit": 0})
        with pytest.raises(ValidationError):
            load_config(project_dir)

    def test_blank_output_dir_rejected(self):
        with pytest.raises(ValidationError):
            HookFactoryConfig(output_dir="  ")
