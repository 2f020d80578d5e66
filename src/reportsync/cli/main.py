"""
Main CLI entry point.
"""

import typer

from reportsync import __version__
from reportsync.cli import check, config, repair, sync, validate


def version_callback(value: bool):
    """Callback to display version and exit."""
    if value:
        typer.echo(f"reportsync version {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="reportsync",
    help="reportsync - Sync JSON report records with a remote store and publish generated artifacts",
    add_completion=True,
)

# Register subcommands
app.add_typer(sync.app, name="sync")
app.add_typer(validate.app, name="validate")
app.add_typer(repair.app, name="repair")
app.add_typer(check.app, name="check")
app.add_typer(config.app, name="config")


@app.callback(invoke_without_command=True)
def entrypoint(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        help="Show version and exit.",
    ),
):
    """
    reportsync - Sync JSON report records with a remote store and publish generated artifacts.

    Run 'reportsync <command> --help' for help on a specific command.
    """
    if ctx.invoked_subcommand is None:
        if not version:
            typer.echo(ctx.get_help())
            raise typer.Exit()


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
