"""
Typed synchronization settings built from the loaded configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from reportsync.config.loader import Config
from reportsync.config.resolver import is_unresolved
from reportsync.exceptions import ConfigurationError
from reportsync.sync.downloader import DownloadPolicy

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _setting(section: dict[str, Any], key: str, default: Any = None) -> Any:
    """Read a key, treating missing, empty and unresolved ${VAR} values as unset."""
    value = section.get(key)
    if value is None or value == "" or is_unresolved(value):
        return default
    return value


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_VALUES


@dataclass
class SyncSettings:
    """
    Settings for one synchronization pass.

    Attributes:
        root_folder_id: Remote root folder holding the data folder
        data_folder: Name of the data folder under the root
        local_dir: Local working-set directory
        artifact_folder_id: Upload destination for generated artifacts
        source_folder_id: Upload destination for local-only source records
        force: Download every remote record regardless of change detection
        max_concurrent: Records processed at once
        manifest_path: Manifest file (None disables it)
        name_filter: Substring remote record names must contain
        download: Retry/stabilization policy
    """

    root_folder_id: str
    local_dir: Path
    data_folder: str = "data"
    artifact_folder_id: str | None = None
    source_folder_id: str | None = None
    force: bool = False
    max_concurrent: int = 1
    manifest_path: Path | None = None
    name_filter: str = ".json"
    download: DownloadPolicy = field(default_factory=DownloadPolicy)

    def __post_init__(self):
        self.local_dir = Path(self.local_dir)
        if self.artifact_folder_id is None:
            self.artifact_folder_id = self.root_folder_id
        if self.source_folder_id is None:
            self.source_folder_id = self.root_folder_id
        if self.max_concurrent < 1:
            raise ConfigurationError("sync.max_concurrent must be >= 1")

    @classmethod
    def from_config(cls, config: Config, project_dir: Path | None = None, *, force: bool | None = None) -> SyncSettings:
        """
        Build settings from the `remote:` and `sync:` sections.

        Args:
            config: Loaded configuration
            project_dir: Base for relative paths (default: current directory)
            force: Overrides sync.force when given (e.g. from --force)

        Raises:
            ConfigurationError: missing root folder or invalid values
        """
        project_dir = project_dir or Path.cwd()
        remote = config.remote
        sync = config.sync
        store_type = remote.get("type", "drive")

        root_folder_id = _setting(remote, "root_folder_id")
        if root_folder_id is None:
            if store_type == "drive":
                raise ConfigurationError(
                    "remote.root_folder_id is not set\n"
                    "  Suggestion: export DRIVE_FOLDER_ID or set remote.root_folder_id in config.yaml"
                )
            # Filesystem ids are paths relative to the store root
            root_folder_id = "" if store_type == "filesystem" else "root"

        local_dir = Path(_setting(sync, "local_dir", "data"))
        if not local_dir.is_absolute():
            local_dir = project_dir / local_dir

        manifest = _setting(sync, "manifest", str(Path(sync.get("local_dir") or "data") / "manifest.json"))
        manifest_path: Path | None = None
        if manifest is not False and str(manifest).lower() not in ("false", "none", "off"):
            manifest_path = Path(manifest)
            if not manifest_path.is_absolute():
                manifest_path = project_dir / manifest_path

        try:
            download = DownloadPolicy.from_dict(sync.get("download"))
            max_concurrent = int(_setting(sync, "max_concurrent", 1))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid sync settings: {e}") from e

        return cls(
            root_folder_id=str(root_folder_id),
            local_dir=local_dir,
            data_folder=_setting(sync, "data_folder", "data"),
            artifact_folder_id=_setting(sync, "artifact_folder_id"),
            source_folder_id=_setting(sync, "source_folder_id"),
            force=_as_bool(_setting(sync, "force")) if force is None else force,
            max_concurrent=max_concurrent,
            manifest_path=manifest_path,
            name_filter=_setting(sync, "name_filter", ".json"),
            download=download,
        )
