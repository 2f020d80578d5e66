"""
reportsync sync - Run one synchronization pass.

Downloads changed records, validates them, generates artifacts and uploads
them. Exit codes: 0 success, 1 some records failed (unless --allow-errors),
2 configuration error or missing remote folder.
"""

import asyncio
import signal
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from reportsync.config.loader import Config, load_config
from reportsync.config.settings import SyncSettings
from reportsync.exceptions import ConfigurationError, RemoteNotFoundError, RemoteStoreError
from reportsync.generation import CommandGenerator
from reportsync.remote.manager import create_store
from reportsync.sync.manifest import JsonManifest
from reportsync.sync.orchestrator import SyncOrchestrator
from reportsync.sync.types import SyncSummary
from reportsync.sync.uploader import StoreUploader
from reportsync.utils.logging import get_logger, setup_logging_from_config
from reportsync.validation.validator import SchemaTiers, TieredValidator

logger = get_logger("reportsync.cli.sync")

app = typer.Typer(name="sync", help="Run one synchronization pass", invoke_without_command=True)

console = Console()


async def run_sync_pass(config: Config, settings: SyncSettings, project_dir: Path) -> SyncSummary:
    """Build the pipeline from configuration and run one pass; SIGINT/SIGTERM stop it between records."""
    logger.info(f"Starting synchronization pass (root folder: {settings.root_folder_id or '/'})")
    generator = CommandGenerator.from_config(config.generator, project_dir)
    validator = TieredValidator(SchemaTiers.from_config(config.validation))

    async with create_store(config.remote, project_dir) as store:
        orchestrator = SyncOrchestrator(
            store,
            settings,
            generator=generator,
            validator=validator,
            uploader=StoreUploader(store, settings.artifact_folder_id, settings.source_folder_id),
            manifest=JsonManifest(settings.manifest_path) if settings.manifest_path else None,
        )

        loop = asyncio.get_running_loop()
        installed = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, orchestrator.request_stop)
                installed.append(sig)
            except (NotImplementedError, RuntimeError):
                # Not supported on this platform/loop
                pass
        try:
            return await orchestrator.run_pass()
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)


def print_summary(summary: SyncSummary) -> None:
    table = Table(title="Summary Report", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("Records considered", str(summary.total))
    table.add_row("Artifacts generated", f"[green]{summary.generated}[/green]")
    table.add_row("Skipped (unchanged)", str(summary.skipped))
    table.add_row("Errors", f"[red]{summary.errored}[/red]" if summary.errored else "0")
    console.print(table)

    if summary.errors:
        console.print("\n[bold red]Error Details:[/bold red]")
        for index, error in enumerate(summary.errors, start=1):
            console.print(f" {index}. {error.name} [dim]({error.stage})[/dim] -> {error.message}")

    if summary.cancelled:
        console.print("\n[yellow]Pass was cancelled before all records were processed[/yellow]")
    console.print(f"\n[dim]Completed in {summary.duration_seconds:.1f}s[/dim]")


@app.callback()
def sync(
    ctx: typer.Context,
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
    force: bool = typer.Option(False, "--force", "-f", help="Download and regenerate every record (bypass change detection)"),
    allow_errors: bool = typer.Option(False, "--allow-errors", help="Exit 0 even if some records failed"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """
    Run one synchronization pass.
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        config = load_config(project_dir, env=env)
        setup_logging_from_config(config.data, project_dir, console=console, level_override="DEBUG" if verbose else None)
        settings = SyncSettings.from_config(config, project_dir, force=True if force else None)
        summary = asyncio.run(run_sync_pass(config, settings, project_dir))
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2) from e
    except RemoteNotFoundError as e:
        console.print(f"[red]Remote folder not found:[/red] {e}")
        raise typer.Exit(2) from e
    except RemoteStoreError as e:
        console.print(f"[red]Remote store error:[/red] {e}")
        raise typer.Exit(2) from e

    if summary.nothing_to_do:
        console.print("[green]No remote or local JSON files found to process.[/green]")
        return

    print_summary(summary)
    if summary.has_errors and not allow_errors:
        raise typer.Exit(1)
