"""
Build output for generated hooks.

``hook build`` writes one directory per hook::

    <output>/<hook-name>/hook.json     machine-readable definition
    <output>/<hook-name>/README.md     what it does and how to install it

A ``test-results.json`` with ``{"passed": true}`` dropped beside hook.json
marks the hook as tested for ``hook status``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from hookfactory.core.hooks.catalog import get_policy
from hookfactory.core.hooks.exceptions import BundleExistsError, HookFileError, IOFailure
from hookfactory.core.hooks.models import (
    HookDefinition,
    ValidationIssue,
    ValidationResult,
    ValidationRule,
)

logger = logging.getLogger(__name__)

HOOK_FILE = "hook.json"
README_FILE = "README.md"
TEST_RESULTS_FILE = "test-results.json"


def resolve_hook_file(path: Path | str) -> Path:
    """Accept either a hook.json path or the directory holding one."""
    path = Path(path)
    return path / HOOK_FILE if path.is_dir() else path


def _structure_failure(message: str) -> ValidationResult:
    return ValidationResult(
        failures=[ValidationIssue(rule=ValidationRule.STRUCTURE, message=message)]
    )


def load_hook_file(path: Path | str) -> HookDefinition:
    """
    Read a hook.json file.

    Args:
        path: hook.json file, or a bundle directory containing one

    Returns:
        Parsed HookDefinition (not yet safety-validated)

    Raises:
        HookFileError: If the file is not valid JSON or not a hook definition
        IOFailure: If the file cannot be read
    """
    hook_file = resolve_hook_file(path)
    try:
        raw = hook_file.read_bytes()
    except OSError as e:
        raise IOFailure(hook_file, e) from e

    try:
        data: Any = json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise HookFileError(hook_file, _structure_failure(f"File is not UTF-8: {e}")) from e
    except json.JSONDecodeError as e:
        raise HookFileError(hook_file, _structure_failure(f"Invalid JSON: {e}")) from e

    if not isinstance(data, dict):
        raise HookFileError(hook_file, _structure_failure("Top level must be a JSON object"))

    try:
        return HookDefinition.from_hook_file(data)
    except ValidationError as e:
        issues = [
            ValidationIssue(
                rule=ValidationRule.STRUCTURE,
                message=f"{'.'.join(str(part) for part in err['loc']) or 'hook'}: {err['msg']}",
            )
            for err in e.errors()
        ]
        raise HookFileError(hook_file, ValidationResult(failures=issues)) from e


def render_readme(hook: HookDefinition) -> str:
    """Human-readable description of a generated hook."""
    policy = get_policy(hook.event_type)
    low, high = policy.timeout_range
    lines = [
        f"# {hook.hook_name}",
        "",
        hook.metadata.description or f"{hook.event_type.value} hook.",
        "",
        f"- **Event:** `{hook.event_type.value}` ({policy.description.lower()})",
        f"- **Blocks host on failure:** {'yes' if policy.may_block else 'no'}",
        f"- **Allowed timeout:** {low}-{high}s",
    ]
    matcher = hook.matcher.to_dict()
    if matcher:
        for field, values in matcher.items():
            lines.append(f"- **Matcher {field}:** {', '.join(f'`{v}`' for v in values)}")
    else:
        lines.append("- **Matcher:** none")
    lines.extend(["", "## Commands", ""])
    for action in hook.actions:
        lines.extend([f"Timeout: {action.timeout}s", "", "```sh", action.command, "```", ""])
    lines.extend(
        [
            "## Install",
            "",
            "```sh",
            f"hook validate {hook.hook_name}/{HOOK_FILE}",
            f"hook install {hook.hook_name}/{HOOK_FILE} project   # or: user",
            "```",
            "",
            f"Generated by {hook.metadata.generated_by} on "
            f"{hook.metadata.created_at.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}.",
            "",
        ]
    )
    return "\n".join(lines)


def write_bundle(hook: HookDefinition, output_dir: Path | str, force: bool = False) -> Path:
    """
    Write hook.json and README.md for a hook.

    Args:
        hook: Validated hook definition
        output_dir: Parent directory; the bundle goes in ``<output_dir>/<hook-name>``
        force: Overwrite an existing bundle

    Returns:
        Path to the written hook.json

    Raises:
        BundleExistsError: If the bundle exists and force is False
        IOFailure: If the files cannot be written
    """
    bundle_dir = Path(output_dir) / hook.hook_name
    hook_file = bundle_dir / HOOK_FILE

    if hook_file.exists() and not force:
        raise BundleExistsError(hook_file)

    try:
        bundle_dir.mkdir(parents=True, exist_ok=True)
        with hook_file.open("w", encoding="utf-8") as f:
            json.dump(hook.to_hook_file(), f, indent=2)
            f.write("\n")
        (bundle_dir / README_FILE).write_text(render_readme(hook), encoding="utf-8")
    except OSError as e:
        raise IOFailure(bundle_dir, e) from e

    logger.info(f"Wrote hook bundle to {bundle_dir}")
    return hook_file


def is_tested(bundle_dir: Path) -> bool:
    """Check for a passing test-results.json in a bundle directory."""
    results_file = bundle_dir / TEST_RESULTS_FILE
    if not results_file.exists():
        return False
    try:
        data = json.loads(results_file.read_text(encoding="utf-8"))
    except (ValueError, OSError) as e:
        logger.warning(f"Ignoring unreadable {results_file}: {e}")
        return False
    return isinstance(data, dict) and data.get("passed") is True
