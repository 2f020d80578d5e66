"""
Batch validation of a local record directory.

Parses every ``*.json`` file, validates it, and collects a summary.
"""

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from reportsync.utils.logging import get_logger
from reportsync.validation.validator import TieredValidator, ValidationReport

logger = get_logger("reportsync.validation.runner")


@dataclass
class ValidationRunSummary:
    """
    Summary of a batch validation run.

    Attributes:
        valid: Files that parsed and passed
        invalid: Files that failed to parse or failed validation
        reports: Per-file reports (parsed files only)
        parse_errors: file name -> parser message
        duration_seconds: Total execution time
    """

    valid: int = 0
    invalid: int = 0
    reports: list[ValidationReport] = field(default_factory=list)
    parse_errors: dict[str, str] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return self.valid + self.invalid

    @property
    def has_failures(self) -> bool:
        return self.invalid > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "invalid": self.invalid,
            "total": self.total,
            "parse_errors": dict(self.parse_errors),
            "reports": [r.to_dict() for r in self.reports],
            "duration_seconds": self.duration_seconds,
        }


def load_record(path: Path) -> Any:
    """Read and parse a JSON record. Raises ValueError/OSError on failure."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def validate_files(paths: list[Path], validator: TieredValidator | None = None) -> ValidationRunSummary:
    """Validate an explicit list of record files."""
    validator = validator or TieredValidator()
    start_time = time.time()
    summary = ValidationRunSummary()

    for path in paths:
        try:
            record = load_record(path)
        except (OSError, ValueError) as e:
            logger.error(f"{path.name} - Invalid JSON syntax ({e})")
            summary.parse_errors[path.name] = str(e)
            summary.invalid += 1
            continue

        report = validator.validate(record, record_id=path.name)
        summary.reports.append(report)
        log_report(report)
        if report.passed:
            summary.valid += 1
        else:
            summary.invalid += 1

    summary.duration_seconds = time.time() - start_time
    logger.info(f"Validation: {summary.valid} valid | {summary.invalid} invalid | {summary.total} total")
    return summary


def validate_directory(directory: Path, validator: TieredValidator | None = None) -> ValidationRunSummary:
    """Validate every ``*.json`` record in a directory (manifest excluded)."""
    if not directory.is_dir():
        logger.warning(f"No data directory at {directory}")
        return ValidationRunSummary()
    paths = sorted(p for p in directory.glob("*.json") if p.name != "manifest.json")
    if not paths:
        logger.warning(f"No JSON files found in {directory}")
    return validate_files(paths, validator)


def log_report(report: ValidationReport) -> None:
    """Log each finding at a level matching its tier."""
    for finding in report.findings:
        if finding.tier.is_blocking:
            logger.error(f"{report.record_id}: {finding.message}")
        else:
            logger.warning(f"{report.record_id}: {finding.message}")
    if report.passed:
        logger.info(f"JSON validated successfully: {report.record_id}")
    else:
        logger.error(f"Validation failed for {report.record_id}")
