"""
Type definitions for the synchronization pipeline.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from reportsync.utils.hashing import calculate_file_hash_async

JSON_MIME_TYPE = "application/json"
PDF_MIME_TYPE = "application/pdf"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


@dataclass(frozen=True)
class RemoteObject:
    """Snapshot of one remote object at scan time."""

    id: str
    name: str
    mime_type: str
    modified_at: datetime
    digest: str | None = None
    parent_id: str | None = None


@dataclass(frozen=True)
class UploadResult:
    """Identifier and shareable link of an uploaded file."""

    id: str
    link: str | None = None


@dataclass(frozen=True)
class LocalRecord:
    """A record file in the local working set."""

    path: Path
    modified_at: datetime
    digest: str | None = None

    @property
    def name(self) -> str:
        return self.path.name

    @classmethod
    async def from_path(cls, path: Path, *, with_digest: bool = True) -> LocalRecord:
        """Stat (and optionally hash) a local file. Raises OSError if it is gone."""
        stat = os.stat(path)
        digest = await calculate_file_hash_async(path) if with_digest else None
        return cls(path=path, modified_at=mtime_to_datetime(stat.st_mtime), digest=digest)

    def load(self) -> Any:
        """Parse the record. Raises ValueError on malformed JSON."""
        with open(self.path, encoding="utf-8") as f:
            return json.load(f)


class SyncDecision(Enum):
    """What a pass does with one candidate record."""

    DOWNLOAD = "download"
    SKIP_UNCHANGED = "skip_unchanged"
    LOCAL_ONLY = "local_only"
    ERROR = "error"


@dataclass(frozen=True)
class PlannedItem:
    """A candidate record and the decision computed for it."""

    name: str
    decision: SyncDecision
    local_path: Path
    remote: RemoteObject | None = None
    reason: str = ""


class OutcomeStatus(Enum):
    GENERATED = "generated"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(frozen=True)
class ObjectError:
    """A per-object failure recorded in the pass summary."""

    name: str
    stage: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "stage": self.stage, "message": self.message}


@dataclass(frozen=True)
class ArtifactRecord:
    """A generated artifact and where it was uploaded."""

    record_name: str
    artifact_path: Path
    link: str | None = None


@dataclass(frozen=True)
class ObjectOutcome:
    """Result of processing one planned item; folded into SyncSummary."""

    name: str
    decision: SyncDecision
    status: OutcomeStatus
    error: ObjectError | None = None
    artifact: ArtifactRecord | None = None
    warnings: int = 0


@dataclass
class SyncSummary:
    """
    Aggregate result of one synchronization pass.

    Attributes:
        total: Items considered (processed to an outcome)
        generated: Items whose artifact was generated (and uploaded, if configured)
        skipped: Unchanged items
        errored: Items that failed at any stage
        errors: Per-error detail in processing order
        artifacts: Generated artifacts
        cancelled: True if a stop request cut the pass short
    """

    total: int = 0
    generated: int = 0
    skipped: int = 0
    errored: int = 0
    errors: list[ObjectError] = field(default_factory=list)
    artifacts: list[ArtifactRecord] = field(default_factory=list)
    cancelled: bool = False
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    def add(self, outcome: ObjectOutcome) -> None:
        """Fold one object outcome into the totals."""
        self.total += 1
        if outcome.status is OutcomeStatus.GENERATED:
            self.generated += 1
            if outcome.artifact is not None:
                self.artifacts.append(outcome.artifact)
        elif outcome.status is OutcomeStatus.SKIPPED:
            self.skipped += 1
        else:
            self.errored += 1
            if outcome.error is not None:
                self.errors.append(outcome.error)

    @property
    def nothing_to_do(self) -> bool:
        return self.total == 0 and not self.cancelled

    @property
    def has_errors(self) -> bool:
        return self.errored > 0

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "generated": self.generated,
            "skipped": self.skipped,
            "errored": self.errored,
            "cancelled": self.cancelled,
            "errors": [e.to_dict() for e in self.errors],
            "artifacts": [
                {"record": a.record_name, "artifact": str(a.artifact_path), "link": a.link} for a in self.artifacts
            ],
            "duration_seconds": self.duration_seconds,
        }


def mtime_to_datetime(mtime: float) -> datetime:
    """File system mtime -> timezone-aware UTC datetime."""
    return datetime.fromtimestamp(mtime, tz=timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp such as ``2025-11-06T10:15:00.000Z``."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
