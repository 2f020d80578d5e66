"""
reportsync - Keep a local set of JSON report records in sync with a remote
document store, validate them, and publish generated artifacts.
"""

__version__ = "0.1.0"

# Configuration
from reportsync.config import Config, SyncSettings, load_config

# Exceptions
from reportsync.exceptions import (
    ConfigurationError,
    CorruptRecordError,
    DownloadError,
    GenerationError,
    RemoteNotFoundError,
    RemoteStoreError,
    ReportSyncError,
    TransientFailure,
    UploadError,
    ValidationFailure,
)
from reportsync.generation import ArtifactGenerator, CommandGenerator

# Remote stores
from reportsync.remote import DriveStore, FilesystemStore, MemoryStore, RemoteStore, create_store

# Pipeline
from reportsync.sync.directory import RemoteDirectory
from reportsync.sync.downloader import DownloadPolicy, StableDownloader
from reportsync.sync.orchestrator import SyncOrchestrator
from reportsync.sync.types import SyncDecision, SyncSummary

# Logging utilities
from reportsync.utils.logging import get_logger, setup_logging, setup_logging_from_config

# Validation
from reportsync.validation import SchemaTiers, TieredValidator, ValidationReport, resolve

__all__ = [
    # Pipeline
    "SyncOrchestrator",
    "RemoteDirectory",
    "StableDownloader",
    "DownloadPolicy",
    "SyncDecision",
    "SyncSummary",
    # Validation
    "TieredValidator",
    "SchemaTiers",
    "ValidationReport",
    "resolve",
    # Remote stores
    "RemoteStore",
    "DriveStore",
    "FilesystemStore",
    "MemoryStore",
    "create_store",
    # Generation
    "ArtifactGenerator",
    "CommandGenerator",
    # Configuration
    "Config",
    "SyncSettings",
    "load_config",
    # Exceptions
    "ReportSyncError",
    "ConfigurationError",
    "RemoteStoreError",
    "RemoteNotFoundError",
    "TransientFailure",
    "CorruptRecordError",
    "DownloadError",
    "ValidationFailure",
    "GenerationError",
    "UploadError",
    # Logging
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
]
