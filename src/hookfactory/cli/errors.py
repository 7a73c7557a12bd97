"""
Standardized error handling and exit codes for the hook CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

import logging
import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from hookfactory.core.hooks import (
    AlreadyInstalledError,
    BackupNotFoundError,
    BundleExistsError,
    CorruptConfigError,
    HookFactoryError,
    HookFileError,
    HookNotFoundError,
    IOFailure,
    TemplateError,
    ValidationFailure,
    ValidationResult,
)

console = Console()

_debug_mode = False


class ExitCode(IntEnum):
    """Standard exit codes for hook CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Expected failure: already installed, not found, no backup."""

    USER_ERROR = 2
    """Invalid input: validation failure, bad template or parameter."""

    CONFIG_ERROR = 3
    """Existing settings file is corrupt."""

    IO_ERROR = 4
    """Filesystem failure (permission denied, disk full, missing path)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for the CLI.

    Args:
        debug: If True, enable DEBUG level logging on stderr and full tracebacks
    """
    global _debug_mode
    _debug_mode = debug

    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it
    """
    console.print(f"[red]Error:[/red] {escape(problem)}")

    if reason:
        console.print(f"[dim]{escape(reason)}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {escape(solution)}")


def print_validation_result(result: ValidationResult, title: str = "Validation Failures") -> None:
    """Print each failed rule in a table."""
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Rule", style="yellow", no_wrap=True)
    table.add_column("Action", style="dim", width=6)
    table.add_column("Problem")

    for failure in result.failures:
        table.add_row(
            failure.rule.value,
            "" if failure.action_index is None else str(failure.action_index),
            escape(failure.message),
        )

    console.print(table)


def handle_error(error: HookFactoryError) -> NoReturn:
    """
    Print an error and exit with the code for its kind.

    With --debug the full traceback follows the message.

    Raises:
        typer.Exit: Always
    """
    code = ExitCode.GENERAL_ERROR

    if isinstance(error, ValidationFailure):
        if isinstance(error, HookFileError):
            print_error(f"Invalid hook file: {error.path}")
        else:
            print_error(str(error).split(":")[0])
        print_validation_result(error.result)
        code = ExitCode.USER_ERROR
    elif isinstance(error, BundleExistsError):
        print_error(str(error), solution="hook build ... --force")
        code = ExitCode.USER_ERROR
    elif isinstance(error, TemplateError):
        print_error(str(error), solution="hook templates  # to see templates and languages")
        code = ExitCode.USER_ERROR
    elif isinstance(error, CorruptConfigError):
        print_error(
            f"Corrupt settings file: {error.path}",
            reason=error.detail,
            solution="Fix the file by hand, or run 'hook reinit <user|project> --yes' "
            "to back it up and start empty",
        )
        code = ExitCode.CONFIG_ERROR
    elif isinstance(error, IOFailure):
        print_error(str(error))
        code = ExitCode.IO_ERROR
    elif isinstance(error, AlreadyInstalledError):
        print_error(str(error), solution=f"hook install ... {error.scope} --replace")
    elif isinstance(error, HookNotFoundError):
        print_error(str(error), solution=f"hook list {error.scope}  # to see installed hooks")
    elif isinstance(error, BackupNotFoundError):
        print_error(str(error), reason="Backups are taken before every settings write")
    else:
        print_error(str(error))
        if not _debug_mode:
            console.print("[dim]Run with --debug for full traceback[/dim]")

    if _debug_mode:
        console.print("\n[dim]Full traceback:[/dim]")
        console.print(escape(traceback.format_exc()))

    raise typer.Exit(code)


__all__ = [
    "ExitCode",
    "console",
    "handle_error",
    "print_error",
    "print_validation_result",
    "setup_logging",
]
