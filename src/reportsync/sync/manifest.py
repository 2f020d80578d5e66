"""
JSON manifest of processed records.

A flat ``{record name: ISO-8601 timestamp}`` object, rewritten atomically on
each record. Used for bookkeeping only; the pipeline never reads it back to
make decisions.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path

from reportsync.utils.logging import get_logger

logger = get_logger("reportsync.sync.manifest")


class JsonManifest:
    """Manifest accessors."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def entries(self) -> dict[str, str]:
        """Read all entries; an unreadable or missing manifest is empty."""
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.debug(f"Manifest read failed (treat as empty): {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def record(self, name: str, timestamp: datetime | None = None) -> None:
        """Record that `name` was processed. Never raises."""
        timestamp = timestamp or datetime.now(timezone.utc)
        entries = self.entries()
        entries[name] = timestamp.isoformat()

        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(entries, f, indent=2)
            os.replace(tmp, self.path)
            logger.debug(f"Updated manifest for {name}")
        except OSError as e:
            logger.warning(f"Could not update manifest {self.path} for {name}: {e}")
