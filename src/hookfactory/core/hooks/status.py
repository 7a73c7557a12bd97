"""
Status reporting for generated and installed hooks.

Cross-references the bundles under the build output directory with the hooks
installed at user and project scope. Read-only: owns no state, writes nothing.

Usage:
    >>> reporter = StatusReporter(output_dir, Installer(project_dir))
    >>> report = reporter.build_report()
    >>> for action in report.next_actions:
    ...     print(action.priority, action.description, action.command)
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from hookfactory.core.hooks.bundle import HOOK_FILE, is_tested, load_hook_file
from hookfactory.core.hooks.exceptions import HookFactoryError, ValidationFailure
from hookfactory.core.hooks.installer import Installer
from hookfactory.core.hooks.models import HookSummary, Scope
from hookfactory.core.hooks.safety import validate_hook

logger = logging.getLogger(__name__)


class HookStatus(BaseModel):
    """Lifecycle state of one hook."""

    hook_name: str
    event_type: str | None = None
    path: str | None = Field(default=None, description="hook.json path, if generated")
    generated: bool = False
    validated: bool = False
    installed_scopes: list[Scope] = Field(default_factory=list)
    tested: bool = False
    failures: list[str] = Field(default_factory=list)

    @property
    def installed(self) -> bool:
        return bool(self.installed_scopes)


class ScopeError(BaseModel):
    """A scope whose settings could not be read."""

    scope: Scope
    message: str


class NextAction(BaseModel):
    """A suggested step, lower priority number first."""

    priority: int
    hook_name: str | None = None
    description: str
    command: str | None = None


class StatusReport(BaseModel):
    """Everything ``hook status`` prints."""

    output_dir: str
    items: list[HookStatus] = Field(default_factory=list)
    scope_errors: list[ScopeError] = Field(default_factory=list)
    next_actions: list[NextAction] = Field(default_factory=list)

    def count(self, attribute: str) -> int:
        return sum(1 for item in self.items if getattr(item, attribute))


class StatusReporter:
    """
    Aggregates generated bundles and installed hooks into a status report.

    Attributes:
        output_dir: Directory holding ``<hook-name>/hook.json`` bundles
        installer: Installer used to list installed hooks
    """

    def __init__(self, output_dir: Path, installer: Installer) -> None:
        self.output_dir = Path(output_dir)
        self.installer = installer

    def _installed(self, report: StatusReport) -> dict[Scope, list[HookSummary]]:
        installed: dict[Scope, list[HookSummary]] = {}
        for scope in Scope:
            try:
                installed[scope] = self.installer.list_hooks(scope)
            except HookFactoryError as e:
                logger.warning(f"Could not read {scope.value} settings: {e}")
                report.scope_errors.append(ScopeError(scope=scope, message=str(e)))
                installed[scope] = []
        return installed

    def _generated(self) -> list[HookStatus]:
        items: list[HookStatus] = []
        if not self.output_dir.is_dir():
            return items
        for hook_file in sorted(self.output_dir.glob(f"*/{HOOK_FILE}")):
            item = HookStatus(
                hook_name=hook_file.parent.name, path=str(hook_file), generated=True
            )
            try:
                hook = load_hook_file(hook_file)
            except ValidationFailure as e:
                item.failures = [f"[{f.rule.value}] {f.message}" for f in e.result.failures]
            except HookFactoryError as e:
                item.failures = [str(e)]
            else:
                item.hook_name = hook.hook_name
                item.event_type = hook.event_type.value
                result = validate_hook(hook)
                item.validated = result.ok
                item.failures = [f"[{f.rule.value}] {f.message}" for f in result.failures]
            item.tested = is_tested(hook_file.parent)
            items.append(item)
        return items

    def build_report(self) -> StatusReport:
        """Collect per-hook status and prioritized next actions."""
        report = StatusReport(output_dir=str(self.output_dir))
        installed = self._installed(report)
        items = self._generated()
        by_name = {item.hook_name: item for item in items}

        for scope, summaries in installed.items():
            for summary in summaries:
                if not summary.managed:
                    continue
                item = by_name.get(summary.hook_name)
                if item is None:
                    item = HookStatus(hook_name=summary.hook_name, event_type=summary.event_type)
                    by_name[summary.hook_name] = item
                    items.append(item)
                if scope not in item.installed_scopes:
                    item.installed_scopes.append(scope)

        report.items = items
        report.next_actions = _next_actions(report)
        return report


def _next_actions(report: StatusReport) -> list[NextAction]:
    actions: list[NextAction] = []
    for error in report.scope_errors:
        actions.append(
            NextAction(
                priority=1,
                description=f"Repair {error.scope.value} settings: {error.message}",
                command=f"hook reinit {error.scope.value} --yes",
            )
        )
    for item in report.items:
        if item.generated and not item.validated:
            actions.append(
                NextAction(
                    priority=2,
                    hook_name=item.hook_name,
                    description=f"Fix validation failures in {item.hook_name}",
                    command=f"hook validate {item.path}",
                )
            )
        elif item.generated and not item.installed:
            actions.append(
                NextAction(
                    priority=3,
                    hook_name=item.hook_name,
                    description=f"Install {item.hook_name}",
                    command=f"hook install {item.path} project",
                )
            )
        elif item.installed and not item.tested:
            actions.append(
                NextAction(
                    priority=4,
                    hook_name=item.hook_name,
                    description=f"Test {item.hook_name} and record test-results.json",
                )
            )
    return sorted(actions, key=lambda a: (a.priority, a.hook_name or ""))
