"""
Best-effort repair of malformed JSON records.

Only a few mechanical problems are fixed (BOM and zero-width characters,
trailing commas, surplus closing brackets at the end of the document). A
repair is accepted only if the result parses; the original file is kept as
``<name>.bak``.
"""

from __future__ import annotations

import json
import os
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from reportsync.utils.logging import get_logger

logger = get_logger("reportsync.validation.repair")

_INVISIBLE = re.compile(r"[\u200b-\u200d\ufeff]")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_MAX_TRIMMED_CLOSERS = 4


def _parses(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


def try_fix_json(content: str) -> str | None:
    """
    Try to turn malformed JSON text into valid JSON.

    Returns:
        The fixed text, or None when the heuristics do not produce valid JSON
    """
    fixed = _INVISIBLE.sub("", content)
    fixed = _TRAILING_COMMA.sub(r"\1", fixed).strip()
    if _parses(fixed):
        return fixed

    # Drop surplus closers left behind by bad merges: "...}}" -> "...}"
    candidate = fixed
    for _ in range(_MAX_TRIMMED_CLOSERS):
        if not candidate or candidate[-1] not in "}]":
            break
        candidate = candidate[:-1].rstrip()
        if _parses(candidate):
            return candidate
    return None


@dataclass
class RepairSummary:
    """Outcome of repairing a directory."""

    valid: list[str] = field(default_factory=list)
    fixed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def all_valid(self) -> bool:
        return not self.failed


def repair_file(path: Path) -> bool | None:
    """
    Repair one file in place.

    Returns:
        None if the file was already valid, True if it was fixed, False if not
    """
    content = path.read_text(encoding="utf-8", errors="replace")
    if _parses(content):
        return None

    fixed = try_fix_json(content)
    if fixed is None:
        return False

    backup = path.with_name(path.name + ".bak")
    shutil.copy2(path, backup)
    tmp = path.with_name(path.name + ".part")
    tmp.write_text(fixed, encoding="utf-8")
    os.replace(tmp, path)
    logger.info(f"Fixed {path.name} and backed up original to {backup.name}")
    return True


def repair_directory(directory: Path) -> RepairSummary:
    """Validate and auto-fix every ``*.json`` file in a directory."""
    summary = RepairSummary()
    for path in sorted(directory.glob("*.json")):
        result = repair_file(path)
        if result is None:
            summary.valid.append(path.name)
        elif result:
            summary.fixed.append(path.name)
        else:
            logger.error(f"Could not auto-fix {path.name}, manual check required")
            summary.failed.append(path.name)

    logger.info(
        f"Repair: {len(summary.valid)} valid, {len(summary.fixed)} auto-fixed, {len(summary.failed)} still invalid"
    )
    return summary
