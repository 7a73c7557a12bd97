"""
Commands that change or read the hooks in a settings file.

Every write goes through the installer, which validates first, backs up the
current file and replaces it atomically.
"""

import typer
from rich.markup import escape
from rich.table import Table

from hookfactory.cli.common import make_installer
from hookfactory.cli.errors import console, handle_error
from hookfactory.core.hooks import HookFactoryError, Scope, load_hook_file


def install(
    path: str = typer.Argument(..., help="hook.json file or bundle directory"),
    scope: Scope = typer.Argument(..., help="Where to install: user or project"),
    replace: bool = typer.Option(
        False, "--replace", help="Replace an installed hook with the same name"
    ),
    project_dir: str | None = typer.Option(
        None, "--project-dir", "-p", help="Project directory (default: discovered from cwd)"
    ),
) -> None:
    """
    Install a generated hook into user or project settings.

    The hook is validated again before anything is written. Other settings
    and hooks installed by other tools are left as they are.

    Examples:
        hook install generated-hooks/python-formatter project
        hook install hook.json user --replace
    """
    installer = make_installer(project_dir)

    try:
        hook = load_hook_file(path)
        result = installer.install(scope, hook, replace=replace)
    except HookFactoryError as e:
        handle_error(e)

    console.print(f"[green]✓[/green] {escape(result.message)}")
    console.print(f"  Settings file: {escape(result.settings_file)}")
    if result.backup:
        console.print(f"  Backup: {escape(result.backup)}")


def uninstall(
    name: str = typer.Argument(..., help="Hook name"),
    scope: Scope = typer.Argument(..., help="Scope to remove it from: user or project"),
    project_dir: str | None = typer.Option(
        None, "--project-dir", "-p", help="Project directory (default: discovered from cwd)"
    ),
) -> None:
    """
    Remove an installed hook by name.

    Only hooks installed by this tool are matched. The settings file is not
    touched when no hook has that name.

    Examples:
        hook uninstall python-formatter project
    """
    installer = make_installer(project_dir)

    try:
        result = installer.uninstall(scope, name)
    except HookFactoryError as e:
        handle_error(e)

    console.print(
        f"[green]✓[/green] Removed {escape(result.hook_name)} ({result.event_type}) "
        f"from {result.scope.value} settings"
    )
    if result.backup:
        console.print(f"  Backup: {escape(result.backup)}")


def list_hooks(
    scope: Scope = typer.Argument(..., help="Scope to list: user or project"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    project_dir: str | None = typer.Option(
        None, "--project-dir", "-p", help="Project directory (default: discovered from cwd)"
    ),
) -> None:
    """
    List every hook in a scope's settings, including unmanaged ones.

    Hooks not installed by this tool are shown with the name '-'.

    Examples:
        hook list project
        hook list user --json
    """
    installer = make_installer(project_dir)

    try:
        summaries = installer.list_hooks(scope)
    except HookFactoryError as e:
        handle_error(e)

    if json_output:
        console.print_json(data=[s.model_dump(mode="json") for s in summaries])
        return

    if not summaries:
        console.print(f"[dim]No hooks installed in {scope.value} settings[/dim]")
        return

    table = Table(title=f"Hooks ({scope.value})", show_header=True, header_style="bold")
    table.add_column("Event", style="cyan", no_wrap=True)
    table.add_column("Name", no_wrap=True)
    table.add_column("Matcher", style="dim")
    table.add_column("Command")

    for summary in summaries:
        table.add_row(
            summary.event_type,
            escape(summary.hook_name) if summary.managed else "[dim]-[/dim]",
            escape(summary.matcher or ""),
            escape(summary.command_preview),
        )

    console.print(table)
