"""
Commands that generate and check hook definitions.

``build`` renders a template into a bundle directory, ``validate`` runs the
safety rules over an existing hook.json, and ``templates`` / ``events`` print
the two static catalogs.
"""

from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from hookfactory.cli.common import load_context, parse_params
from hookfactory.cli.errors import ExitCode, console, handle_error, print_validation_result
from hookfactory.core.hooks import (
    EVENT_CATALOG,
    HookFactoryError,
    HookFileError,
    list_templates,
    load_hook_file,
    render_template,
    validate_hook,
    write_bundle,
)


def build(
    template: str = typer.Option(
        ..., "--template", "-t", help="Template name (see 'hook templates')"
    ),
    language: str | None = typer.Option(
        None, "--language", "-l", help="Language binding, for language-specific templates"
    ),
    param: list[str] | None = typer.Option(
        None, "--param", "-P", help="Template parameter as key=value (repeatable)"
    ),
    name: str | None = typer.Option(None, "--name", "-n", help="Hook name (default: derived)"),
    timeout: int | None = typer.Option(
        None, "--timeout", help="Timeout in seconds (default: the event's default)"
    ),
    output: str | None = typer.Option(
        None, "--output", "-o", help="Output directory (default: config output_dir)"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing bundle"),
    project_dir: str | None = typer.Option(
        None, "--project-dir", "-p", help="Project directory (default: discovered from cwd)"
    ),
) -> None:
    """
    Generate a hook from a template.

    Writes <output>/<hook-name>/hook.json and README.md. The rendered hook
    always passes validation; otherwise nothing is written.

    Examples:
        hook build --template formatter --language python
        hook build -t pre-tool-validation -P pattern=--force
        hook build -t notifier --name done-ping --timeout 5
    """
    root, config = load_context(project_dir)
    params = parse_params(param)
    output_dir = Path(output) if output else config.get_output_path(root)

    try:
        hook = render_template(
            template,
            language,
            params,
            hook_name=name,
            timeout=timeout,
            generated_by=config.generated_by,
        )
        hook_file = write_bundle(hook, output_dir, force=force)
    except HookFactoryError as e:
        handle_error(e)

    console.print(
        f"[green]✓[/green] Built {escape(hook.hook_name)} "
        f"({hook.event_type.value}) at {escape(str(hook_file))}"
    )
    console.print(f"  Install with: hook install {escape(str(hook_file))} project")


def validate(
    path: str = typer.Argument(..., help="hook.json file or bundle directory"),
    json_output: bool = typer.Option(False, "--json", help="Output result as JSON"),
) -> None:
    """
    Check a hook definition against the safety rules.

    Exits 0 when every rule passes and 2 when any fails.

    Examples:
        hook validate generated-hooks/python-formatter
        hook validate hook.json --json
    """
    try:
        hook = load_hook_file(path)
    except HookFileError as e:
        if json_output:
            console.print_json(data=e.result.to_dict())
            raise typer.Exit(ExitCode.USER_ERROR)
        handle_error(e)
    except HookFactoryError as e:
        handle_error(e)

    result = validate_hook(hook)

    if json_output:
        console.print_json(data={"hook_name": hook.hook_name, **result.to_dict()})
    elif result.ok:
        console.print(f"[green]✓[/green] {escape(hook.hook_name)} passed all safety rules")
    else:
        console.print(f"[red]✗[/red] {escape(hook.hook_name)} failed validation")
        print_validation_result(result)

    if not result.ok:
        raise typer.Exit(ExitCode.USER_ERROR)


def templates() -> None:
    """List the hook templates and the languages each supports."""
    table = Table(title="Hook Templates", show_header=True, header_style="bold")
    table.add_column("Template", style="cyan", no_wrap=True)
    table.add_column("Event")
    table.add_column("Languages")
    table.add_column("Parameters", style="dim")
    table.add_column("Description")

    for template in list_templates():
        params = ", ".join(f"{p.name}={p.default}" for p in template.params)
        table.add_row(
            template.name,
            template.event_type.value,
            ", ".join(sorted(template.languages)) or "-",
            escape(params) or "-",
            template.description,
        )

    console.print(table)


def events() -> None:
    """Show the supported event types and their policies."""
    table = Table(title="Event Types", show_header=True, header_style="bold")
    table.add_column("Event", style="cyan", no_wrap=True)
    table.add_column("Matcher")
    table.add_column("Timeout (s)", justify="right")
    table.add_column("Default", justify="right")
    table.add_column("May block")
    table.add_column("Description")

    for policy in EVENT_CATALOG.values():
        low, high = policy.timeout_range
        table.add_row(
            policy.event_type.value,
            ", ".join(sorted(policy.allowed_matcher_fields)) or "empty",
            f"{low}-{high}",
            str(policy.default_timeout),
            "yes" if policy.may_block else "no",
            policy.description,
        )

    console.print(table)
