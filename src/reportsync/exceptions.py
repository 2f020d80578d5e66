"""
reportsync exception hierarchy.

All domain-specific exceptions inherit from ReportSyncError, so callers can
catch any pipeline error with a single base class while still handling
individual stages where it matters.

Hierarchy::

    ReportSyncError
    ├── ConfigurationError        - config loading, parsing, validation
    ├── RemoteStoreError          - remote store request failures
    │   ├── RemoteNotFoundError   - folder/object does not exist
    │   └── TransientFailure      - network, stream or disk hiccup (retryable)
    ├── CorruptRecordError        - downloaded bytes are not parseable
    ├── DownloadError             - download retries exhausted
    ├── ValidationFailure         - required/structural tier violations
    ├── GenerationError           - artifact generator failed
    └── UploadError               - artifact/source upload failed
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from reportsync.validation.validator import ValidationReport


class ReportSyncError(Exception):
    """Base exception for all reportsync errors."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- Configuration -----------------------------------------------------------


class ConfigurationError(ReportSyncError):
    """Raised when configuration loading, parsing, or validation fails."""


# --- Remote store ------------------------------------------------------------


class RemoteStoreError(ReportSyncError):
    """Raised when a remote store request fails."""


class RemoteNotFoundError(RemoteStoreError):
    """Raised when a remote folder or object does not exist."""

    def __init__(self, message: str, *, parent_id: str | None = None, name: str | None = None) -> None:
        super().__init__(message, details={"parent_id": parent_id, "name": name})
        self.parent_id = parent_id
        self.name = name


class TransientFailure(RemoteStoreError):
    """Raised for network, stream or disk failures that are worth retrying."""


# --- Download ----------------------------------------------------------------


class CorruptRecordError(ReportSyncError):
    """Raised when a stabilized file cannot be parsed as structured data."""

    def __init__(self, path: str | Path, reason: str) -> None:
        super().__init__(f"Malformed JSON in {path}: {reason}", details={"path": str(path)})
        self.path = Path(path)
        self.reason = reason


class DownloadError(ReportSyncError):
    """Raised when a download fails after all attempts."""

    def __init__(self, path: str | Path, attempts: int, last_error: str | None = None) -> None:
        full = f"Failed to download {path} after {attempts} attempts"
        if last_error:
            full = f"{full}: {last_error}"
        super().__init__(full, details={"path": str(path), "attempts": attempts})
        self.path = Path(path)
        self.attempts = attempts
        self.last_error = last_error


# --- Validation --------------------------------------------------------------


class ValidationFailure(ReportSyncError):
    """Raised when a record has required or structural violations."""

    def __init__(self, report: ValidationReport) -> None:
        errors = report.errors
        summary = "; ".join(f.message for f in errors[:5])
        if len(errors) > 5:
            summary += f"; ... ({len(errors) - 5} more)"
        super().__init__(
            f"Validation failed for {report.record_id}: {summary}",
            details={"record_id": report.record_id, "violations": len(errors)},
        )
        self.report = report


# --- Collaborators -----------------------------------------------------------


class GenerationError(ReportSyncError):
    """Raised when the artifact generator fails for a record."""


class UploadError(ReportSyncError):
    """Raised when an artifact or source file cannot be uploaded."""

    def __init__(self, path: str | Path, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(f"Upload of {Path(path).name} failed: {message}", details={"path": str(path)})
        self.path = Path(path)
        if cause is not None:
            self.__cause__ = cause
