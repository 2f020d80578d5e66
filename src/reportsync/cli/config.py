"""
reportsync config - Show configuration.

Prints the resolved configuration for an environment with secrets masked.
"""

from pathlib import Path
from typing import Any

import typer
import yaml
from rich.console import Console
from rich.syntax import Syntax

from reportsync.config.loader import load_config
from reportsync.exceptions import ConfigurationError

app = typer.Typer(name="config", help="Show reportsync configuration", invoke_without_command=True)

console = Console()

SECRET_KEYS = {"access_token", "token", "password", "secret"}


def mask_secrets(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: "****" if k in SECRET_KEYS and v else mask_secrets(v) for k, v in value.items()}
    if isinstance(value, list):
        return [mask_secrets(v) for v in value]
    return value


@app.callback()
def config(
    ctx: typer.Context,
    env: str | None = typer.Option(None, help="Environment to resolve"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
):
    """
    Show the resolved configuration.
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        cfg = load_config(project_dir, env=env)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2) from e

    env_files = sorted(p.name for p in project_dir.glob("config.*.yaml"))
    console.print("\n[bold]Configuration: config.yaml[/bold]" + (f" + config.{env}.yaml" if env else ""))
    if env_files:
        console.print(f"[dim]Available environment files: {', '.join(env_files)}[/dim]")
    console.print()

    content = yaml.safe_dump(mask_secrets(cfg.data), sort_keys=False)
    console.print(Syntax(content, "yaml", theme="monokai", line_numbers=False))
