"""
Shared helpers for hook CLI commands.
"""

from pathlib import Path

import typer
from pydantic import ValidationError

from hookfactory.cli.errors import ExitCode, print_error
from hookfactory.core.config import HookFactoryConfig, load_config
from hookfactory.core.hooks import Installer
from hookfactory.utils.project import get_project_root


def resolve_project_dir(project_dir: str | None) -> Path:
    """Project root for a ``--project-dir`` option, or discovered from the cwd."""
    if project_dir is None:
        return get_project_root()

    path = Path(project_dir).resolve()
    if not path.is_dir():
        print_error(f"Not a directory: {path}", solution="Pass an existing project directory")
        raise typer.Exit(ExitCode.USER_ERROR)
    return path


def load_context(project_dir: str | None) -> tuple[Path, HookFactoryConfig]:
    """Project root and the layered configuration for it."""
    root = resolve_project_dir(project_dir)
    try:
        return root, load_config(root)
    except ValidationError as e:
        print_error(
            "Invalid hookfactory configuration",
            reason=str(e),
            solution="Check .hookfactory.json and HOOKFACTORY_* environment variables",
        )
        raise typer.Exit(ExitCode.USER_ERROR) from e


def make_installer(project_dir: str | None) -> Installer:
    root, config = load_context(project_dir)
    return Installer(project_dir=root, config=config)


def parse_params(values: list[str] | None) -> dict[str, str]:
    """
    Parse repeated ``--param key=value`` options.

    Raises:
        typer.Exit: If an option is not of the form key=value
    """
    params: dict[str, str] = {}
    for raw in values or []:
        key, sep, value = raw.partition("=")
        if not sep or not key.strip():
            print_error(
                f"Invalid parameter: {raw}",
                reason="Parameters must look like key=value",
                solution="hook build --template formatter --language python --param args=format",
            )
            raise typer.Exit(ExitCode.USER_ERROR)
        params[key.strip()] = value
    return params


def confirm_or_exit(yes: bool, action: str) -> None:
    """Refuse a destructive action unless ``--yes`` was given."""
    if not yes:
        print_error(
            f"Refusing to {action} without confirmation",
            solution="Re-run with --yes",
        )
        raise typer.Exit(ExitCode.USER_ERROR)
