"""
Backup inspection and recovery commands.

A backup of the settings file is taken before every write. These commands
list them, restore one, or replace a corrupt settings file with an empty one.
"""

from datetime import datetime

import typer
from rich.markup import escape
from rich.table import Table

from hookfactory.cli.common import confirm_or_exit, make_installer
from hookfactory.cli.errors import console, handle_error
from hookfactory.core.hooks import HookFactoryError, Scope


def backups(
    scope: Scope = typer.Argument(..., help="Scope: user or project"),
    project_dir: str | None = typer.Option(
        None, "--project-dir", "-p", help="Project directory (default: discovered from cwd)"
    ),
) -> None:
    """
    List settings backups for a scope, newest first.

    Examples:
        hook backups project
    """
    store = make_installer(project_dir).store(scope)
    found = store.list_backups()

    if not found:
        console.print(f"[dim]No backups in {escape(str(store.backup_dir))}[/dim]")
        return

    table = Table(title=f"Backups ({scope.value})", show_header=True, header_style="bold")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Modified")
    table.add_column("Size", justify="right")

    for path in found:
        stat = path.stat()
        table.add_row(
            path.name,
            datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M:%S"),
            f"{stat.st_size} B",
        )

    console.print(table)
    console.print(f"[dim]{escape(str(store.backup_dir))}[/dim]")


def rollback(
    scope: Scope = typer.Argument(..., help="Scope: user or project"),
    backup: str | None = typer.Option(
        None, "--backup", "-b", help="Backup file name to restore (default: newest)"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Confirm replacing the settings file"),
    project_dir: str | None = typer.Option(
        None, "--project-dir", "-p", help="Project directory (default: discovered from cwd)"
    ),
) -> None:
    """
    Restore the settings file from a backup.

    The backup is kept. Use 'hook backups' to see what is available.

    Examples:
        hook rollback project --yes
        hook rollback user --backup settings.json.2026-01-05T10-00-00.000000.bak --yes
    """
    confirm_or_exit(yes, "overwrite the settings file")
    store = make_installer(project_dir).store(scope)

    try:
        restored = store.rollback(backup)
    except HookFactoryError as e:
        handle_error(e)

    console.print(
        f"[green]✓[/green] Restored {escape(str(store.settings_file))} "
        f"from {escape(restored.name)}"
    )


def reinit(
    scope: Scope = typer.Argument(..., help="Scope: user or project"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Confirm replacing the settings file"),
    project_dir: str | None = typer.Option(
        None, "--project-dir", "-p", help="Project directory (default: discovered from cwd)"
    ),
) -> None:
    """
    Replace a scope's settings file with an empty one.

    Recovery for a corrupt settings file. The current content is backed up
    first, whatever it contains, and can be restored with 'hook rollback'.

    Examples:
        hook reinit project --yes
    """
    confirm_or_exit(yes, "reinitialize the settings file")
    store = make_installer(project_dir).store(scope)

    try:
        backup = store.reinitialize()
    except HookFactoryError as e:
        handle_error(e)

    console.print(f"[green]✓[/green] Reinitialized {escape(str(store.settings_file))}")
    if backup:
        console.print(f"  Previous content saved to {escape(backup.name)}")
