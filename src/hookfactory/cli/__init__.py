"""
hook CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import typer

from hookfactory import __version__
from hookfactory.cli import backups, build, install, status
from hookfactory.cli.errors import ExitCode, console, setup_logging

# Help panel names for command grouping
PANEL_BUILD = "Build and Check Hooks"
PANEL_INSTALL = "Install Hooks"
PANEL_RECOVER = "Backups and Recovery"

app = typer.Typer(
    name="hook",
    help="Generate, validate and install Claude Code hooks",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"hook version {__version__}")
        raise typer.Exit(ExitCode.SUCCESS)


@app.callback()
def main(
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    Generate, validate and install Claude Code hooks.

    Quick Start:
        hook build --template formatter --language python
        hook install generated-hooks/python-formatter project
        hook status

    Settings are written atomically and backed up before every change.
    """
    setup_logging(debug)


# =============================================================================
# Build and Check Hooks
# =============================================================================

app.command(name="build", rich_help_panel=PANEL_BUILD)(build.build)
app.command(name="validate", rich_help_panel=PANEL_BUILD)(build.validate)
app.command(name="templates", rich_help_panel=PANEL_BUILD)(build.templates)
app.command(name="events", rich_help_panel=PANEL_BUILD)(build.events)


# =============================================================================
# Install Hooks
# =============================================================================

app.command(name="install", rich_help_panel=PANEL_INSTALL)(install.install)
app.command(name="uninstall", rich_help_panel=PANEL_INSTALL)(install.uninstall)
app.command(name="list", rich_help_panel=PANEL_INSTALL)(install.list_hooks)
app.command(name="status", rich_help_panel=PANEL_INSTALL)(status.status)


# =============================================================================
# Backups and Recovery
# =============================================================================

app.command(name="backups", rich_help_panel=PANEL_RECOVER)(backups.backups)
app.command(name="rollback", rich_help_panel=PANEL_RECOVER)(backups.rollback)
app.command(name="reinit", rich_help_panel=PANEL_RECOVER)(backups.reinit)


@app.command(rich_help_panel=PANEL_RECOVER)
def version() -> None:
    """Show hook version and exit."""
    console.print(f"hook version {__version__}")
    raise typer.Exit(ExitCode.SUCCESS)


def cli_main() -> None:
    """
    Main CLI entry point.

    Ctrl+C exits with the conventional 130 instead of a traceback.
    """
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        raise SystemExit(ExitCode.SIGINT) from None


__all__ = ["app", "cli_main"]
