"""
Synchronization pipeline.

Only the data model is exported here; remote stores import it, so the
pipeline modules are imported from their own paths:

    from reportsync.sync.orchestrator import SyncOrchestrator
    from reportsync.sync.downloader import StableDownloader, DownloadPolicy
"""

from reportsync.sync.types import (
    LocalRecord,
    ObjectError,
    PlannedItem,
    RemoteObject,
    SyncDecision,
    SyncSummary,
    UploadResult,
)

__all__ = [
    "LocalRecord",
    "ObjectError",
    "PlannedItem",
    "RemoteObject",
    "SyncDecision",
    "SyncSummary",
    "UploadResult",
]
