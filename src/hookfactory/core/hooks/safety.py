"""
Static safety validation for hook definitions.

Commands are untrusted text. Everything here is pattern matching over the
literal string: nothing is executed, evaluated or handed to a shell.

Rules (all run, all failures collected):

    structure       at least one action, non-empty commands, slug hook name
    matcher         matcher shape legal for the event type
    denylist        destructive or exfiltrating shell patterns, no override
    tool-guard      external tools are probed for before use, no-op when absent
    silent-failure  non-blocking events end in a construct that always succeeds
    path-safety     path arguments quoted, no ``..`` segments
    timeout         timeout inside the event's closed range

Example:
    >>> result = validate_hook(hook)
    >>> if not result.ok:
    ...     for failure in result.failures:
    ...         print(f"[{failure.rule.value}] {failure.message}")
"""

from __future__ import annotations

import re
from typing import NamedTuple

from hookfactory.core.hooks.catalog import MatcherPolicy, get_policy
from hookfactory.core.hooks.exceptions import PolicyViolation, ValidationFailure
from hookfactory.core.hooks.models import (
    POLICY_RULES,
    HookDefinition,
    ValidationIssue,
    ValidationResult,
    ValidationRule,
)

HOOK_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]{0,63}$")
TOOL_NAME_PATTERN = re.compile(r"^(?:\*|[A-Za-z_][A-Za-z0-9_]*)$")

SHELL_BUILTINS = frozenset(
    {
        ":", ".", "[", "[[", "]]", "{", "}", "!", "alias", "bg", "break", "builtin",
        "case", "cd", "command", "continue", "declare", "do", "done", "echo", "elif",
        "else", "esac", "eval", "exec", "exit", "export", "false", "fc", "fg", "fi",
        "for", "function", "getopts", "hash", "if", "in", "jobs", "kill", "let",
        "local", "printf", "pwd", "read", "readonly", "return", "select", "set",
        "shift", "source", "test", "then", "time", "trap", "true", "type", "typeset",
        "ulimit", "umask", "unalias", "unset", "until", "wait", "while",
    }
)

ALWAYS_AVAILABLE = SHELL_BUILTINS | {"git"}

_KEYWORD_PREFIXES = frozenset({"if", "then", "else", "elif", "do", "while", "until", "!", "{"})
_LOOP_HEADERS = frozenset({"for", "select", "case"})
_WRAPPERS = frozenset({"command", "exec", "env", "nohup", "time", "sudo", "xargs"})
_PROBES = frozenset({"command", "which", "type", "hash"})

_MASK = "\0"
_SEGMENT_SPLIT = re.compile(r"[;&|()\n`]")
_AMP_REDIRECT = re.compile(r"\d*>&\d*-?|&>>?")
_ASSIGNMENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*\+?=")
_REDIRECT_PREFIX = re.compile(r"^\d*[<>]+")
_PATH_VARIABLE = re.compile(r"\$\{?([A-Za-z_][A-Za-z0-9_]*)")
_TRAVERSAL = re.compile(r"(?:^|[\s/'\"=:])\.\.(?:[/\s'\";]|$)")
_SILENT_TAIL = re.compile(
    r"(?:\|\|\s*(?:true|:|exit\s+0)|(?:^|[;\n])\s*(?:exit\s+0|true|:))\s*$"
)
_GUARD_TAIL = re.compile(r"\|\|\s*(?:exit|return)\s+0\b|&&")
_FAILING_EXIT = re.compile(r"(?<![\w-])(?:exit|return)\s+(?!0(?![^\s;&|)}]))[^\s;&|)}]+")

_NETWORK = r"\b(?:curl|wget|nc|ncat|netcat|scp|rsync|ftp|socat)\b"
_SECRETS = (
    r"(?:\.ssh/|\.aws/credentials|\bid_(?:rsa|dsa|ecdsa|ed25519)\b|\.env\b|\.netrc\b"
    r"|\.npmrc\b|\.pypirc\b|\$\{?\w*(?:TOKEN|SECRET|PASSWORD|API_KEY)\w*\}?)"
)

# git and any global options before the subcommand (-C dir, -c k=v, --no-pager, ...)
_GIT = (
    r"\bgit(?:\s+(?:-[Cc]|--(?:git-dir|work-tree|namespace|config-env|exec-path))"
    r"(?:=|\s+)(?:\"[^\"]*\"|'[^']*'|\S+)|\s+-{1,2}[\w-]+(?:=\S+)?)*\s+"
)

DENYLIST: tuple[tuple[str, re.Pattern[str]], ...] = (
    (
        "recursive force delete",
        re.compile(
            r"\brm\s+(?:-\S+\s+)*"
            r"(?:-[a-zA-Z]*[rR][a-zA-Z]*f|-[a-zA-Z]*f[a-zA-Z]*[rR])"
        ),
    ),
    (
        "recursive force delete",
        re.compile(
            r"\brm\s+[^;&|\n]*(?:-[a-zA-Z]*[rR]\b|--recursive)"
            r"[^;&|\n]*(?:-[a-zA-Z]*f\b|--force)"
        ),
    ),
    (
        "recursive force delete",
        re.compile(
            r"\brm\s+[^;&|\n]*(?:-[a-zA-Z]*f\b|--force)"
            r"[^;&|\n]*(?:-[a-zA-Z]*[rR]\b|--recursive)"
        ),
    ),
    (
        "forced git push",
        re.compile(_GIT + r"push\b[^;&|\n]*(?:\s--force(?:-with-lease)?\b|\s-f\b|\s\+\S+)"),
    ),
    ("destructive git reset", re.compile(_GIT + r"reset\b[^;&|\n]*\s--hard\b")),
    ("destructive git clean", re.compile(_GIT + r"clean\b[^;&|\n]*\s-[a-zA-Z]*f")),
    (
        "execution of network-fetched code",
        re.compile(r"\b(?:curl|wget)\b[^;\n]*\|\s*(?:sudo\s+)?(?:ba|z|k|da|fi)?sh\b"),
    ),
    (
        "execution of network-fetched code",
        re.compile(r"\beval\b[^;\n]*(?:\$\(|`)\s*(?:curl|wget)\b"),
    ),
    (
        "execution of network-fetched code",
        re.compile(r"\b(?:bash|sh|zsh|source|\.)\s+<\(\s*(?:curl|wget)\b"),
    ),
    ("credential exfiltration", re.compile(_NETWORK + r"[^;\n]*" + _SECRETS)),
    ("credential exfiltration", re.compile(_SECRETS + r"[^;\n]*\|\s*" + _NETWORK)),
    ("filesystem format", re.compile(r"\bmkfs(?:\.\w+)?\b")),
    ("raw disk write", re.compile(r"\bdd\b[^;\n]*\bof=/dev/")),
    ("world-writable root", re.compile(r"\bchmod\s+(?:-\S+\s+)*-R\s+0?777\s+/(?:\s|$)")),
    ("fork bomb", re.compile(r":\s*\(\s*\)\s*\{\s*:\s*\|\s*:\s*&\s*\}\s*;\s*:")),
)


class Invocation(NamedTuple):
    """A command word found in command position."""

    tool: str
    offset: int


# ============================================================================
# Shell scanning
# ============================================================================


def mask_quoted(command: str, keep_substitutions: bool = False) -> str:
    """
    Replace quoted text with NUL characters, preserving offsets.

    Single-quoted text, double-quoted text and escaped characters are masked
    along with the quote characters themselves. With ``keep_substitutions``,
    ``$(...)`` inside double quotes stays visible so the commands it runs can
    be found.
    """
    out: list[str] = []
    stack: list[str] = []
    i = 0
    length = len(command)
    while i < length:
        ch = command[i]
        top = stack[-1] if stack else None

        if top == "'":
            if ch == "'":
                stack.pop()
            out.append(_MASK)
            i += 1
            continue

        if ch == "\\" and i + 1 < length:
            out.append(_MASK * 2)
            i += 2
            continue

        if top == '"':
            if ch == '"':
                stack.pop()
                out.append(_MASK)
                i += 1
            elif command.startswith("$(", i):
                stack.append("$(")
                out.append("$(" if keep_substitutions else _MASK * 2)
                i += 2
            else:
                out.append(_MASK)
                i += 1
            continue

        visible = keep_substitutions or '"' not in stack
        if ch in "'\"":
            stack.append(ch)
            out.append(_MASK)
            i += 1
        elif command.startswith("$(", i):
            stack.append("$(")
            out.append("$(" if visible else _MASK * 2)
            i += 2
        elif ch == ")" and top == "$(":
            stack.pop()
            out.append(")" if keep_substitutions or '"' not in stack else _MASK)
            i += 1
        else:
            out.append(ch if visible else _MASK)
            i += 1
    return "".join(out)


def _blank_amp_redirects(masked: str) -> str:
    return _AMP_REDIRECT.sub(lambda m: " " * len(m.group(0)), masked)


def find_invocations(command: str) -> list[Invocation]:
    """
    Find the programs a command string runs, in order of appearance.

    Splits on ``; & | ( ) newline`` and backticks outside quotes (including
    inside ``$(...)``), then takes the first real word of each simple command,
    skipping shell keywords, assignments, redirections, probes and
    wrappers such as ``env`` or ``sudo``.
    """
    masked = _blank_amp_redirects(mask_quoted(command, keep_substitutions=True))
    invocations: list[Invocation] = []
    start = 0
    for boundary in [m.start() for m in _SEGMENT_SPLIT.finditer(masked)] + [len(masked)]:
        segment = masked[start:boundary]
        invocation = _first_command_word(segment, start)
        if invocation is not None:
            invocations.append(invocation)
        start = boundary + 1
    return invocations


def _first_command_word(segment: str, base: int) -> Invocation | None:
    words = [(m.group(0), m.start()) for m in re.finditer(r"\S+", segment)]
    i = 0
    skip_next = False
    wrapped = False
    while i < len(words):
        raw, offset = words[i]
        word = raw.replace(_MASK, "")
        i += 1
        if skip_next:
            skip_next = False
            continue
        if not word:
            continue
        if _REDIRECT_PREFIX.match(word):
            # bare "> file" consumes the following word
            skip_next = not _REDIRECT_PREFIX.sub("", word)
            continue
        if _ASSIGNMENT.match(word):
            continue
        if wrapped and word.startswith("-"):
            continue
        if word in _LOOP_HEADERS:
            return None
        if word in _KEYWORD_PREFIXES:
            continue
        if word in _PROBES:
            next_word = words[i][0].replace(_MASK, "") if i < len(words) else ""
            if word != "command" or next_word.startswith("-"):
                return None
        if word in _WRAPPERS:
            wrapped = True
            continue
        if word.startswith("$") or word.isdigit() or any(c in word for c in "*?["):
            return None
        if not re.search(r"[A-Za-z0-9]", word):
            return None
        return Invocation(word, base + offset)
    return None


def has_guard(command: str, tool: str, before: int) -> bool:
    """
    Check for an existence probe for ``tool`` that starts before ``before``.

    The probe must sit in an ``if``/``while`` condition, be followed by
    ``|| exit 0`` or ``|| return 0``, or gate the call with ``&&``.
    """
    pattern = re.compile(
        r"(?P<cond>\b(?:if|elif|while|until)\s+(?:!\s*)?)?"
        r"(?<![\w-])(?:command\s+-[vV]|which|type(?:\s+-[pPt])?|hash)\s+(?:--\s+)?"
        r"['\"]?" + re.escape(tool) + r"['\"]?(?![\w.-])(?P<tail>[^;\n]*)"
    )
    for match in pattern.finditer(command):
        if match.start() >= before:
            break
        if match.group("cond") or _GUARD_TAIL.search(match.group("tail")):
            return True
    return False


# ============================================================================
# Individual rules
# ============================================================================


def _check_structure(hook: HookDefinition) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if not HOOK_NAME_PATTERN.match(hook.hook_name):
        issues.append(
            ValidationIssue(
                rule=ValidationRule.STRUCTURE,
                message=(
                    f"Hook name '{hook.hook_name}' must be 1-64 lowercase letters, "
                    "digits, '-' or '_', starting with a letter or digit"
                ),
            )
        )
    if not hook.actions:
        issues.append(
            ValidationIssue(
                rule=ValidationRule.STRUCTURE, message="Hook must define at least one action"
            )
        )
    for index, action in enumerate(hook.actions):
        if not action.command.strip():
            issues.append(
                ValidationIssue(
                    rule=ValidationRule.STRUCTURE,
                    message="Command is empty",
                    action_index=index,
                )
            )
    return issues


def _check_matcher(hook: HookDefinition) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    policy = get_policy(hook.event_type)
    allowed = policy.allowed_matcher_fields
    populated = hook.matcher.populated_fields()
    event = hook.event_type.value

    for field in populated:
        if field not in allowed:
            expectation = (
                "an empty matcher"
                if not allowed
                else "only " + " or ".join(sorted(allowed)) + " filters"
            )
            issues.append(
                ValidationIssue(
                    rule=ValidationRule.MATCHER,
                    message=f"{event} requires {expectation}; got '{field}'",
                )
            )

    if policy.matcher == MatcherPolicy.TOOL_OR_PATH and not (
        hook.matcher.tools or hook.matcher.paths
    ):
        issues.append(
            ValidationIssue(
                rule=ValidationRule.MATCHER,
                message=f"{event} requires at least one tool name or path filter",
            )
        )

    for field in populated:
        for value in getattr(hook.matcher, field):
            if not value.strip():
                issues.append(
                    ValidationIssue(
                        rule=ValidationRule.MATCHER, message=f"Empty entry in matcher '{field}'"
                    )
                )
    for tool in hook.matcher.tools:
        if tool.strip() and not TOOL_NAME_PATTERN.match(tool):
            issues.append(
                ValidationIssue(
                    rule=ValidationRule.MATCHER, message=f"Invalid tool name in matcher: '{tool}'"
                )
            )
    for glob in hook.matcher.paths:
        if _TRAVERSAL.search(glob):
            issues.append(
                ValidationIssue(
                    rule=ValidationRule.MATCHER,
                    message=f"Path filter contains a '..' segment: '{glob}'",
                )
            )
    return issues


def _check_denylist(command: str, index: int) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    reported: set[str] = set()
    for label, pattern in DENYLIST:
        match = pattern.search(command)
        if match and label not in reported:
            reported.add(label)
            issues.append(
                ValidationIssue(
                    rule=ValidationRule.DENYLIST,
                    message=f"Denied pattern ({label}): '{match.group(0).strip()}'",
                    action_index=index,
                )
            )
    return issues


def _check_tool_guards(command: str, index: int) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    seen: set[str] = set()
    for invocation in find_invocations(command):
        tool = invocation.tool
        if tool in ALWAYS_AVAILABLE or tool in seen:
            continue
        seen.add(tool)
        if not has_guard(command, tool, invocation.offset):
            issues.append(
                ValidationIssue(
                    rule=ValidationRule.TOOL_GUARD,
                    message=(
                        f"'{tool}' is used without an existence check; add "
                        f"'command -v {tool} >/dev/null 2>&1 || exit 0' before it"
                    ),
                    action_index=index,
                )
            )
    return issues


def _check_silent_failure(command: str, index: int) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    tail = command.rstrip().rstrip(";").rstrip()
    if not _SILENT_TAIL.search(tail):
        issues.append(
            ValidationIssue(
                rule=ValidationRule.SILENT_FAILURE,
                message="Command must end with '|| true' or 'exit 0' on a non-blocking event",
                action_index=index,
            )
        )

    # exit never returns, so no '|| true' tail can cover it
    failing = _FAILING_EXIT.search(mask_quoted(command))
    if failing:
        issues.append(
            ValidationIssue(
                rule=ValidationRule.SILENT_FAILURE,
                message=(
                    f"'{command[failing.start():failing.end()]}' exits non-zero "
                    "on a non-blocking event"
                ),
                action_index=index,
            )
        )
    return issues


def _check_path_safety(command: str, index: int) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if _TRAVERSAL.search(command):
        issues.append(
            ValidationIssue(
                rule=ValidationRule.PATH_SAFETY,
                message="Command contains a '..' path segment",
                action_index=index,
            )
        )

    masked = _blank_amp_redirects(mask_quoted(command))
    for word in re.split(r"[\s;&|()`]+", masked):
        if not word or word == _MASK * len(word):
            continue
        target = _REDIRECT_PREFIX.sub("", word)
        flagged = False
        for match in _PATH_VARIABLE.finditer(target):
            name = match.group(1).upper()
            if any(part in name for part in ("PATH", "FILE", "DIR")):
                flagged = True
                issues.append(
                    ValidationIssue(
                        rule=ValidationRule.PATH_SAFETY,
                        message=f"Unquoted path variable '${match.group(1)}'; quote it",
                        action_index=index,
                    )
                )
        if flagged or "/" not in target or "://" in target or target.startswith("/dev/"):
            continue
        issues.append(
            ValidationIssue(
                rule=ValidationRule.PATH_SAFETY,
                message=f"Unquoted path argument '{target.replace(_MASK, '')}'",
                action_index=index,
            )
        )
    return issues


def _check_timeout(hook: HookDefinition) -> list[ValidationIssue]:
    policy = get_policy(hook.event_type)
    low, high = policy.timeout_range
    return [
        ValidationIssue(
            rule=ValidationRule.TIMEOUT,
            message=(
                f"Timeout {action.timeout}s is outside the {low}-{high}s range "
                f"allowed for {hook.event_type.value}"
            ),
            action_index=index,
        )
        for index, action in enumerate(hook.actions)
        if not policy.allows_timeout(action.timeout)
    ]


# ============================================================================
# Public API
# ============================================================================


def validate_hook(hook: HookDefinition) -> ValidationResult:
    """
    Run every safety rule against a hook definition.

    Pure function: no I/O, no mutation, same input gives the same result.

    Args:
        hook: Definition to check

    Returns:
        ValidationResult; ``ok`` only when no rule failed
    """
    policy = get_policy(hook.event_type)
    failures = _check_structure(hook) + _check_matcher(hook)
    for index, action in enumerate(hook.actions):
        command = action.command
        if not command.strip():
            continue
        failures.extend(_check_denylist(command, index))
        failures.extend(_check_tool_guards(command, index))
        if not policy.may_block:
            failures.extend(_check_silent_failure(command, index))
        failures.extend(_check_path_safety(command, index))
    failures.extend(_check_timeout(hook))
    return ValidationResult(failures=failures)


def raise_for_result(result: ValidationResult) -> None:
    """
    Raise if a validation result has failures.

    Raises:
        PolicyViolation: If only timeout/matcher policy rules failed
        ValidationFailure: For any other failed rule
    """
    if result.ok:
        return
    if result.rules() <= POLICY_RULES:
        raise PolicyViolation(result)
    raise ValidationFailure(result)
