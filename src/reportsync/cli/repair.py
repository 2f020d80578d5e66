"""
reportsync repair - Auto-fix malformed JSON records.

Fixes trailing commas, stray invisible characters and surplus closing
brackets. The original file is kept as <name>.bak.
"""

from pathlib import Path

import typer
from rich.console import Console

from reportsync.config.loader import load_config
from reportsync.exceptions import ConfigurationError
from reportsync.utils.logging import setup_logging_from_config
from reportsync.validation.repair import repair_directory

app = typer.Typer(name="repair", help="Auto-fix malformed JSON records", invoke_without_command=True)

console = Console()


@app.callback()
def repair(
    ctx: typer.Context,
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
) -> None:
    """
    Validate and auto-fix every JSON record in the data directory.
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        config = load_config(project_dir, env=env, required=False)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2) from e
    setup_logging_from_config(config.data, project_dir, console=console)

    local_dir = Path(config.get("sync.local_dir", "data"))
    if not local_dir.is_absolute():
        local_dir = project_dir / local_dir
    if not local_dir.is_dir():
        console.print(f"[yellow]No data directory at {local_dir}[/yellow]")
        return

    summary = repair_directory(local_dir)

    for name in summary.fixed:
        console.print(f"[green]Fixed[/green] {name} (backup: {name}.bak)")
    for name in summary.failed:
        console.print(f"[red]Could not auto-fix[/red] {name}, manual check required")

    console.print(
        f"\n{len(summary.valid)} valid | {len(summary.fixed)} auto-fixed | {len(summary.failed)} still invalid"
    )
    if not summary.all_valid:
        raise typer.Exit(1)
