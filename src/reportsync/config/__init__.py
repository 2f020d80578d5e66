"""
Configuration loading.

Usage:
    from reportsync.config import load_config, SyncSettings

    config = load_config(project_dir, env="prod")
    settings = SyncSettings.from_config(config, project_dir)
"""

from reportsync.config.loader import Config, load_config
from reportsync.config.resolver import is_unresolved, resolve_config
from reportsync.config.settings import SyncSettings

__all__ = ["Config", "load_config", "resolve_config", "is_unresolved", "SyncSettings"]
