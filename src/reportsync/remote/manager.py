"""
Remote store factory.

Builds the configured store from the `remote:` config section.
"""

from pathlib import Path
from typing import Any

from reportsync.config.resolver import is_unresolved
from reportsync.exceptions import ConfigurationError
from reportsync.remote.base import RemoteStore
from reportsync.remote.drive import DriveStore
from reportsync.remote.filesystem import FilesystemStore
from reportsync.remote.memory import MemoryStore
from reportsync.utils.logging import get_logger

logger = get_logger("reportsync.remote.manager")

STORE_TYPES = ("drive", "filesystem", "memory")


def create_store(remote_config: dict[str, Any], project_dir: Path | None = None) -> RemoteStore:
    """
    Create a remote store from configuration.

    Args:
        remote_config: The `remote:` section
        project_dir: Base directory for relative filesystem roots

    Raises:
        ConfigurationError: unknown type or missing settings
    """
    store_type = remote_config.get("type", "drive")

    if store_type == "drive":
        token = remote_config.get("access_token")
        if not token or is_unresolved(token):
            raise ConfigurationError(
                "remote.access_token is not set\n"
                "  Suggestion: export DRIVE_ACCESS_TOKEN or set remote.access_token in config.yaml"
            )
        drive_id = remote_config.get("drive_id")
        if drive_id and is_unresolved(drive_id):
            drive_id = None
        return DriveStore(
            access_token=token,
            drive_id=drive_id or None,
            timeout=int(remote_config.get("timeout", 120)),
        )

    if store_type == "filesystem":
        root = Path(remote_config.get("root_path", "remote"))
        if project_dir is not None and not root.is_absolute():
            root = project_dir / root
        return FilesystemStore(root, config=remote_config)

    if store_type == "memory":
        logger.warning("Using in-memory remote store; nothing will be persisted")
        return MemoryStore()

    raise ConfigurationError(f"Unknown remote store type '{store_type}'. Available: {list(STORE_TYPES)}")
