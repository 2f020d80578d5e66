"""
reportsync validate - Validate local JSON records against the report schema.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from reportsync.config.loader import load_config
from reportsync.exceptions import ConfigurationError
from reportsync.utils.logging import setup_logging_from_config
from reportsync.validation.runner import ValidationRunSummary, validate_directory, validate_files
from reportsync.validation.validator import SchemaTiers, TieredValidator

app = typer.Typer(name="validate", help="Validate local JSON records", invoke_without_command=True)

console = Console()


def print_validation_summary(summary: ValidationRunSummary) -> None:
    failing = [r for r in summary.reports if not r.passed]
    if failing or summary.parse_errors:
        table = Table(title="Invalid records", show_header=True)
        table.add_column("File", style="cyan")
        table.add_column("Problems", style="red")
        for name, message in summary.parse_errors.items():
            table.add_row(name, f"Invalid JSON syntax: {message}")
        for report in failing:
            table.add_row(report.record_id, "\n".join(f.message for f in report.errors))
        console.print(table)

    warnings = sum(len(r.warnings) for r in summary.reports)
    console.print(
        f"\n[green]{summary.valid} valid[/green] | [red]{summary.invalid} invalid[/red] | {summary.total} total"
        + (f" | [yellow]{warnings} warning(s)[/yellow]" if warnings else "")
    )


@app.callback()
def validate(
    ctx: typer.Context,
    paths: list[Path] | None = typer.Argument(None, help="Files to validate (default: every *.json in the data directory)"),
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
) -> None:
    """
    Validate local JSON records against the report schema.
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        config = load_config(project_dir, env=env, required=False)
        validator = TieredValidator(SchemaTiers.from_config(config.validation))
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2) from e
    setup_logging_from_config(config.data, project_dir, console=console)

    if paths:
        summary = validate_files(list(paths), validator)
    else:
        local_dir = Path(config.get("sync.local_dir", "data"))
        if not local_dir.is_absolute():
            local_dir = project_dir / local_dir
        summary = validate_directory(local_dir, validator)

    if summary.total == 0:
        console.print("[yellow]No JSON files found to validate[/yellow]")
        return

    print_validation_summary(summary)
    if summary.has_failures:
        raise typer.Exit(1)
