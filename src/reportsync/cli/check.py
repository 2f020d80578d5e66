"""
reportsync check - Verify remote access.

Resolves the data folder and lists the records the configured credentials
can see. Read-only: duplicates are reported, not trashed.
"""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from reportsync.config.loader import Config, load_config
from reportsync.config.settings import SyncSettings
from reportsync.exceptions import ConfigurationError, RemoteNotFoundError, RemoteStoreError
from reportsync.remote.manager import create_store
from reportsync.sync.directory import select_survivors
from reportsync.sync.types import RemoteObject

app = typer.Typer(name="check", help="Verify access to the remote store", invoke_without_command=True)

console = Console()


async def list_remote_records(config: Config, settings: SyncSettings, project_dir: Path) -> tuple[str, list[RemoteObject]]:
    async with create_store(config.remote, project_dir) as store:
        folder_id = await store.get_folder(settings.root_folder_id, settings.data_folder)
        return folder_id, await store.list_folder(folder_id, settings.name_filter)


@app.callback()
def check(
    ctx: typer.Context,
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
) -> None:
    """
    Resolve the data folder and list the records it holds.
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        config = load_config(project_dir, env=env)
        settings = SyncSettings.from_config(config, project_dir)
        folder_id, objects = asyncio.run(list_remote_records(config, settings, project_dir))
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2) from e
    except RemoteNotFoundError as e:
        console.print(f"[red]'{settings.data_folder}' folder not found:[/red] {e}")
        raise typer.Exit(2) from e
    except RemoteStoreError as e:
        console.print(f"[red]Remote store error:[/red] {e}")
        raise typer.Exit(2) from e

    console.print(f"[green]Found '{settings.data_folder}' folder:[/green] {folder_id or '/'}")
    if not objects:
        console.print("[yellow]No records in the data folder[/yellow]")
        return

    _, duplicates = select_survivors(objects)
    duplicate_ids = {d.id for d in duplicates}

    table = Table(title=f"Records ({len(objects)})", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Id", style="dim")
    table.add_column("Modified", style="green")
    table.add_column("Digest", style="dim")
    table.add_column("Note", style="yellow")
    for obj in objects:
        table.add_row(
            obj.name,
            obj.id,
            obj.modified_at.isoformat(timespec="seconds"),
            obj.digest or "-",
            "older duplicate" if obj.id in duplicate_ids else "",
        )
    console.print(table)
