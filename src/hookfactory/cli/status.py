"""
hook CLI - Status command.

Show which hooks are generated, validated, installed and tested, and what to
do next.
"""

from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from hookfactory.cli.common import load_context
from hookfactory.cli.errors import console
from hookfactory.core.hooks import Installer, StatusReporter


def _mark(value: bool) -> str:
    return "[green]✓[/green]" if value else "[dim]-[/dim]"


def status(
    output: str | None = typer.Option(
        None, "--output", "-o", help="Build output directory (default: config output_dir)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    project_dir: str | None = typer.Option(
        None, "--project-dir", "-p", help="Project directory (default: discovered from cwd)"
    ),
) -> None:
    """
    Show generated, validated, installed and tested status for each hook.

    Unreadable settings are reported rather than raised, so status works even
    when a settings file is corrupt.

    Examples:
        hook status
        hook status --json
    """
    root, config = load_context(project_dir)
    output_dir = Path(output) if output else config.get_output_path(root)
    report = StatusReporter(output_dir, Installer(project_dir=root, config=config)).build_report()

    if json_output:
        console.print_json(data=report.model_dump(mode="json"))
        return

    if report.items:
        table = Table(title="Hook Status", show_header=True, header_style="bold")
        table.add_column("Hook", style="cyan", no_wrap=True)
        table.add_column("Event")
        table.add_column("Generated", justify="center")
        table.add_column("Validated", justify="center")
        table.add_column("Installed")
        table.add_column("Tested", justify="center")

        for item in report.items:
            scopes = ", ".join(s.value for s in item.installed_scopes)
            table.add_row(
                escape(item.hook_name),
                item.event_type or "?",
                _mark(item.generated),
                _mark(item.validated) if item.generated else "[dim]n/a[/dim]",
                scopes or "[dim]-[/dim]",
                _mark(item.tested),
            )

        console.print(table)
        console.print(
            f"[dim]{len(report.items)} hooks: {report.count('generated')} generated, "
            f"{report.count('validated')} validated, {report.count('installed')} installed, "
            f"{report.count('tested')} tested[/dim]"
        )
    else:
        console.print(f"[dim]No hooks found in {escape(str(output_dir))} or in settings[/dim]")

    for error in report.scope_errors:
        console.print(
            f"[red]✗[/red] {error.scope.value} settings unreadable: {escape(error.message)}"
        )

    if report.next_actions:
        console.print()
        console.print("[bold cyan]Next Steps:[/bold cyan]")
        for action in report.next_actions:
            console.print(f"  {action.priority}. {escape(action.description)}")
            if action.command:
                console.print(f"     [dim]{escape(action.command)}[/dim]")
