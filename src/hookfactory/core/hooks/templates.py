"""
Hook template catalog and renderer.

Each template is bound to one event type and carries a command skeleton with
``@name`` placeholders. Rendering fills the placeholders from the chosen
language's tool binding and from user parameters, then runs the result
through the safety validator. Callers never receive an invalid definition
from this module.

User parameters are interpolated into fixed positions only. Every value is
checked against a character set that matches the quoting around its
placeholder, so a value can never open a new shell construct.

Example:
    >>> hook = render_template("formatter", "python")
    >>> hook.event_type
    <EventType.POST_TOOL_USE: 'PostToolUse'>
    >>> hook.hook_name
    'python-formatter'
"""

from __future__ import annotations

import logging
import re
import string
from enum import Enum

from pydantic import BaseModel, Field

from hookfactory.core.hooks.catalog import EventType, get_policy
from hookfactory.core.hooks.exceptions import (
    TemplateParameterError,
    TemplateRenderError,
    UnknownTemplateError,
)
from hookfactory.core.hooks.models import (
    DEFAULT_GENERATOR,
    HookAction,
    HookDefinition,
    HookMatcher,
    HookMetadata,
)
from hookfactory.core.hooks.safety import validate_hook

logger = logging.getLogger(__name__)

EDIT_TOOLS = ["Write", "Edit", "MultiEdit"]

_READ_FILE_PATH = (
    "command -v jq >/dev/null 2>&1 || exit 0; "
    "FILE=\"$(jq -r '.tool_input.file_path // empty')\"; "
)


def _guard(placeholder: str = "@tool") -> str:
    return f"command -v {placeholder} >/dev/null 2>&1 || exit 0; "


class CommandTemplate(string.Template):
    """string.Template using ``@`` so shell ``$VAR`` text passes through untouched."""

    delimiter = "@"


class Quoting(str, Enum):
    """Quoting context around a placeholder, which decides the allowed characters."""

    WORD = "word"
    """Bare word in command position or as a single argument."""

    ARGS = "args"
    """Unquoted argument list; words separated by spaces."""

    DOUBLE = "double"
    """Inside double quotes."""

    SINGLE = "single"
    """Inside single quotes."""


_ALLOWED_VALUES: dict[Quoting, re.Pattern[str]] = {
    Quoting.WORD: re.compile(r"^[A-Za-z0-9_.,:@%+=/-]+$"),
    Quoting.ARGS: re.compile(r"^[A-Za-z0-9_.,:@%+=/ -]*$"),
    Quoting.DOUBLE: re.compile(r"^[^\"'$`\\\n\r\x00]+$"),
    Quoting.SINGLE: re.compile(r"^[^'\n\r\x00]+$"),
}


class TemplateParam(BaseModel):
    """A user-settable placeholder."""

    name: str
    default: str
    description: str = ""
    quoting: Quoting = Quoting.WORD


class LanguageBinding(BaseModel):
    """Tool a template uses for one language."""

    tool: str
    args: str = ""
    paths: list[str] = Field(default_factory=list, description="Path filter for the matcher")


class HookTemplate(BaseModel):
    """A named, parameterized hook skeleton."""

    name: str
    description: str
    event_type: EventType
    command: str
    tools: list[str] = Field(default_factory=list, description="Matcher tool filter")
    branches: list[str] = Field(default_factory=list, description="Matcher branch filter")
    languages: dict[str, LanguageBinding] = Field(default_factory=dict)
    params: list[TemplateParam] = Field(default_factory=list)

    @property
    def needs_language(self) -> bool:
        return bool(self.languages)

    def param_specs(self) -> dict[str, TemplateParam]:
        """Declared parameters, plus ``tool``/``args`` for language templates."""
        specs = {p.name: p for p in self.params}
        if self.languages:
            specs.setdefault("tool", TemplateParam(name="tool", default="", quoting=Quoting.WORD))
            specs.setdefault("args", TemplateParam(name="args", default="", quoting=Quoting.ARGS))
        return specs

    def default_hook_name(self, language: str | None) -> str:
        return f"{language}-{self.name}" if language else self.name

    def matcher_for(self, language: str | None) -> HookMatcher:
        paths = self.languages[language].paths if language else []
        return HookMatcher(tools=list(self.tools), paths=list(paths), branches=list(self.branches))


TEMPLATES: dict[str, HookTemplate] = {
    t.name: t
    for t in [
        HookTemplate(
            name="formatter",
            description="Format a file after Claude writes or edits it",
            event_type=EventType.POST_TOOL_USE,
            tools=EDIT_TOOLS,
            command=(
                _guard()
                + _READ_FILE_PATH
                + 'case "$FILE" in @glob) @tool @args "$FILE" >/dev/null 2>&1 ;; esac || true'
            ),
            languages={
                "python": LanguageBinding(tool="ruff", args="format", paths=["**/*.py"]),
                "javascript": LanguageBinding(tool="prettier", args="--write", paths=["**/*.js"]),
                "typescript": LanguageBinding(tool="prettier", args="--write", paths=["**/*.ts"]),
                "go": LanguageBinding(tool="gofmt", args="-w", paths=["**/*.go"]),
                "rust": LanguageBinding(tool="rustfmt", paths=["**/*.rs"]),
                "shell": LanguageBinding(tool="shfmt", args="-w", paths=["**/*.sh"]),
            },
        ),
        HookTemplate(
            name="linter",
            description="Lint a file after it changes and report findings to Claude",
            event_type=EventType.POST_TOOL_USE,
            tools=EDIT_TOOLS,
            command=(
                _guard()
                + _READ_FILE_PATH
                + 'case "$FILE" in @glob) @tool @args "$FILE" >&2 ;; esac || true'
            ),
            languages={
                "python": LanguageBinding(tool="ruff", args="check --quiet", paths=["**/*.py"]),
                "javascript": LanguageBinding(tool="eslint", paths=["**/*.js"]),
                "typescript": LanguageBinding(tool="eslint", paths=["**/*.ts"]),
                "shell": LanguageBinding(tool="shellcheck", paths=["**/*.sh"]),
            },
        ),
        HookTemplate(
            name="git-add",
            description="Stage every file Claude writes or edits",
            event_type=EventType.POST_TOOL_USE,
            tools=EDIT_TOOLS,
            command=(
                _READ_FILE_PATH + '[ -n "$FILE" ] && git add -- "$FILE" >/dev/null 2>&1 || true'
            ),
        ),
        HookTemplate(
            name="test-runner",
            description="Run the test suite when Claude finishes and surface failures",
            event_type=EventType.STOP,
            command=(
                _guard()
                + '@tool @args >/dev/null 2>&1 || echo "Tests are failing (@tool)" >&2; exit 0'
            ),
            languages={
                "python": LanguageBinding(tool="pytest", args="-q -x"),
                "javascript": LanguageBinding(tool="npm", args="test --silent"),
                "typescript": LanguageBinding(tool="npm", args="test --silent"),
                "go": LanguageBinding(tool="go", args='test -short "./..."'),
                "rust": LanguageBinding(tool="cargo", args="test --quiet"),
            },
        ),
        HookTemplate(
            name="pre-tool-validation",
            description="Block Bash commands that contain a forbidden fragment",
            event_type=EventType.PRE_TOOL_USE,
            tools=["Bash"],
            command=(
                "command -v jq >/dev/null 2>&1 || exit 0; "
                "CMD=\"$(jq -r '.tool_input.command // empty')\"; "
                'case "$CMD" in *@pattern*) '
                'echo "Blocked: command contains \'@pattern\'" >&2; exit 2 ;; esac; exit 0'
            ),
            params=[
                TemplateParam(
                    name="pattern",
                    default="--no-verify",
                    description="Fragment that blocks the command",
                ),
            ],
        ),
        HookTemplate(
            name="session-context",
            description="Load branch, recent commits and working tree state at session start",
            event_type=EventType.SESSION_START,
            command=(
                "git rev-parse --is-inside-work-tree >/dev/null 2>&1 || exit 0; "
                'echo "Branch: $(git branch --show-current 2>/dev/null)"; '
                "git log --oneline -n @commits 2>/dev/null; "
                "git status --short 2>/dev/null || true"
            ),
            params=[
                TemplateParam(name="commits", default="5", description="Recent commits to show"),
            ],
        ),
        HookTemplate(
            name="notifier",
            description="Send a desktop notification when Claude finishes",
            event_type=EventType.STOP,
            command=_guard() + '@tool "@title" "@message" >/dev/null 2>&1 || true',
            params=[
                TemplateParam(name="tool", default="notify-send", description="Notifier program"),
                TemplateParam(
                    name="title", default="Claude", description="Title", quoting=Quoting.DOUBLE
                ),
                TemplateParam(
                    name="message",
                    default="Claude finished responding",
                    description="Body",
                    quoting=Quoting.DOUBLE,
                ),
            ],
        ),
        HookTemplate(
            name="security-scanner",
            description="Scan a changed file for security issues",
            event_type=EventType.POST_TOOL_USE,
            tools=EDIT_TOOLS,
            command=(
                _guard()
                + _READ_FILE_PATH
                + 'case "$FILE" in @glob) @tool @args "$FILE" >&2 ;; esac || true'
            ),
            languages={
                "python": LanguageBinding(tool="bandit", args="-q", paths=["**/*.py"]),
                "javascript": LanguageBinding(
                    tool="semgrep", args="--quiet --config auto", paths=["**/*.js"]
                ),
                "typescript": LanguageBinding(
                    tool="semgrep", args="--quiet --config auto", paths=["**/*.ts"]
                ),
                "secrets": LanguageBinding(
                    tool="gitleaks", args="detect --no-banner --no-git --source", paths=["**/*"]
                ),
            },
        ),
        HookTemplate(
            name="subagent-logger",
            description="Append a timestamped line to a log file when a subagent finishes",
            event_type=EventType.SUBAGENT_STOP,
            command=(
                _guard("date")
                + "printf '%s subagent finished\\n' \"$(date -u +%Y-%m-%dT%H:%M:%SZ)\" "
                + '>> "@logfile" 2>/dev/null || true'
            ),
            params=[
                TemplateParam(
                    name="logfile",
                    default=".claude/logs/subagents.log",
                    description="Log file, relative to the project root",
                    quoting=Quoting.DOUBLE,
                ),
            ],
        ),
        HookTemplate(
            name="prompt-guard",
            description="Reject prompts that look like they contain a secret",
            event_type=EventType.USER_PROMPT_SUBMIT,
            command=(
                "command -v jq >/dev/null 2>&1 || exit 0; "
                + _guard("grep")
                + "PROMPT=\"$(jq -r '.prompt // empty')\"; "
                "if printf '%s' \"$PROMPT\" | grep -Eq '@pattern'; then "
                'echo "Prompt blocked: it matches a secret pattern" >&2; exit 2; fi; exit 0'
            ),
            params=[
                TemplateParam(
                    name="pattern",
                    default="AKIA[0-9A-Z]{16}|-----BEGIN [A-Z ]*PRIVATE KEY-----",
                    description="Extended regex that blocks the prompt",
                    quoting=Quoting.SINGLE,
                ),
            ],
        ),
        HookTemplate(
            name="pre-push-tests",
            description="Abort a push when the test suite fails",
            event_type=EventType.PRE_PUSH,
            branches=["main"],
            command=(
                _guard()
                + '@tool @args >/dev/null 2>&1 '
                + '|| { echo "Tests failed; push aborted" >&2; exit 2; }'
            ),
            languages={
                "python": LanguageBinding(tool="pytest", args="-q"),
                "javascript": LanguageBinding(tool="npm", args="test --silent"),
                "typescript": LanguageBinding(tool="npm", args="test --silent"),
                "go": LanguageBinding(tool="go", args='test "./..."'),
                "rust": LanguageBinding(tool="cargo", args="test --quiet"),
            },
        ),
    ]
}


def list_templates() -> list[HookTemplate]:
    """All templates in catalog order."""
    return list(TEMPLATES.values())


def get_template(name: str) -> HookTemplate:
    """
    Look up a template by name.

    Raises:
        UnknownTemplateError: If no template has that name
    """
    try:
        return TEMPLATES[name]
    except KeyError:
        raise UnknownTemplateError(name, sorted(TEMPLATES)) from None


def _resolve_params(
    template: HookTemplate, language: str | None, params: dict[str, str]
) -> dict[str, str]:
    specs = template.param_specs()

    unknown = sorted(set(params) - set(specs))
    if unknown:
        allowed = ", ".join(sorted(specs)) or "none"
        raise TemplateParameterError(
            f"Template '{template.name}' does not accept parameter(s) "
            f"{', '.join(unknown)} (allowed: {allowed})"
        )

    values = {name: spec.default for name, spec in specs.items()}

    if template.needs_language:
        if not language:
            raise TemplateParameterError(
                f"Template '{template.name}' requires a language "
                f"(supported: {', '.join(sorted(template.languages))})"
            )
        binding = template.languages.get(language)
        if binding is None:
            raise TemplateParameterError(
                f"Language '{language}' is not supported by template '{template.name}' "
                f"(supported: {', '.join(sorted(template.languages))})"
            )
        values["tool"] = binding.tool
        values["args"] = binding.args
        values["glob"] = "|".join(p.rsplit("/", 1)[-1] for p in binding.paths) or "*"
    elif language:
        raise TemplateParameterError(f"Template '{template.name}' does not take a language")

    for name, value in params.items():
        pattern = _ALLOWED_VALUES[specs[name].quoting]
        if not pattern.match(value) or (specs[name].quoting != Quoting.ARGS and not value):
            raise TemplateParameterError(
                f"Invalid value for parameter '{name}': {value!r} "
                f"contains characters not allowed in a {specs[name].quoting.value} position"
            )
        values[name] = value
    return values


def render_template(
    name: str,
    language: str | None = None,
    params: dict[str, str] | None = None,
    *,
    hook_name: str | None = None,
    timeout: int | None = None,
    generated_by: str = DEFAULT_GENERATOR,
) -> HookDefinition:
    """
    Produce a validated hook definition from a template.

    Args:
        name: Template name (see ``list_templates``)
        language: Language binding, required for language-specific templates
        params: User parameter overrides
        hook_name: Hook name (defaults to "<language>-<template>" or "<template>")
        timeout: Timeout in seconds (defaults to the event type's default)
        generated_by: Provenance string stored in the metadata

    Returns:
        HookDefinition that passes ``validate_hook``

    Raises:
        UnknownTemplateError: If the template does not exist
        TemplateParameterError: If the language or a parameter is rejected
        TemplateRenderError: If the rendered hook fails validation
    """
    template = get_template(name)
    values = _resolve_params(template, language, dict(params or {}))

    try:
        command = CommandTemplate(template.command).substitute(values)
    except (KeyError, ValueError) as e:
        raise TemplateParameterError(f"Template '{name}' could not be rendered: {e}") from e

    policy = get_policy(template.event_type)
    hook = HookDefinition(
        event_type=template.event_type,
        matcher=template.matcher_for(language),
        actions=[
            HookAction(
                command=command,
                timeout=policy.default_timeout if timeout is None else timeout,
            )
        ],
        metadata=HookMetadata(
            hook_name=hook_name or template.default_hook_name(language),
            generated_by=generated_by,
            description=template.description,
        ),
    )

    result = validate_hook(hook)
    if not result.ok:
        raise TemplateRenderError(name, result)

    logger.debug(f"Rendered template {name} ({language or 'no language'}) as {hook.hook_name}")
    return hook
