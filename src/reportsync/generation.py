"""
Artifact generation.

The pipeline does not render anything itself. It hands each validated record
to an ArtifactGenerator and uploads whatever file comes back.
"""

from __future__ import annotations

import asyncio
import shlex
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from reportsync.exceptions import ConfigurationError, GenerationError
from reportsync.utils.logging import get_logger

logger = get_logger("reportsync.generation")


@runtime_checkable
class ArtifactGenerator(Protocol):
    """Turns a validated record file into an artifact file."""

    async def generate(self, record_path: Path) -> Path: ...


class CommandGenerator:
    """
    Run an external renderer for each record.

    The record path is appended to `command`. The renderer must print the
    artifact path as its last non-empty stdout line; relative paths are
    resolved against `cwd`.

    Example:
        generator = CommandGenerator(["node", "scripts/generate-report.js"], timeout=300)
        pdf_path = await generator.generate(Path("data/jane-doe.json"))
    """

    def __init__(self, command: str | list[str], timeout: float = 300, cwd: Path | None = None):
        self.command = shlex.split(command) if isinstance(command, str) else list(command)
        if not self.command:
            raise ValueError("generator command must not be empty")
        self.timeout = timeout
        self.cwd = Path(cwd) if cwd else Path.cwd()

    @classmethod
    def from_config(cls, generator_config: dict[str, Any], project_dir: Path | None = None) -> CommandGenerator:
        """
        Build from the `generator:` config section.

        Raises:
            ConfigurationError: generator.command is missing or empty
        """
        command = generator_config.get("command")
        if not command:
            raise ConfigurationError(
                "generator.command is not set\n"
                "  Suggestion: set generator.command to the renderer, e.g. [node, scripts/generate-report.js]"
            )
        cwd = Path(generator_config.get("cwd") or project_dir or Path.cwd())
        if project_dir is not None and not cwd.is_absolute():
            cwd = project_dir / cwd
        return cls(command, timeout=float(generator_config.get("timeout", 300)), cwd=cwd)

    async def generate(self, record_path: Path) -> Path:
        args = [*self.command, str(record_path)]
        logger.debug(f"Running generator: {' '.join(args)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                cwd=str(self.cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise GenerationError(f"Could not start generator '{self.command[0]}': {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise GenerationError(f"Generator timed out after {self.timeout}s for {Path(record_path).name}") from e

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip().splitlines()
            raise GenerationError(
                f"Generator exited with code {process.returncode} for {Path(record_path).name}"
                + (f": {detail[-1]}" if detail else "")
            )

        lines = [line.strip() for line in stdout.decode("utf-8", errors="replace").splitlines() if line.strip()]
        if not lines:
            raise GenerationError(f"Generator printed no artifact path for {Path(record_path).name}")

        artifact = Path(lines[-1])
        if not artifact.is_absolute():
            artifact = self.cwd / artifact
        if not artifact.is_file():
            raise GenerationError(f"Generator reported {artifact}, but no such file exists")
        return artifact
