"""
Record validation.

Usage:
    from reportsync.validation import TieredValidator, resolve

    report = TieredValidator().validate(record, record_id="report.json")
    phone = resolve(record, "contactInfo.phone")
"""

from reportsync.validation.paths import ABSENT, AllElements, FieldPath, Index, Key, parse_path, resolve
from reportsync.validation.repair import RepairSummary, repair_directory, try_fix_json
from reportsync.validation.runner import ValidationRunSummary, validate_directory, validate_files
from reportsync.validation.validator import (
    DEFAULT_REPORT_SCHEMA,
    Finding,
    SchemaTiers,
    Tier,
    TieredValidator,
    ValidationReport,
)

__all__ = [
    # Paths
    "ABSENT",
    "AllElements",
    "FieldPath",
    "Index",
    "Key",
    "parse_path",
    "resolve",
    # Validator
    "DEFAULT_REPORT_SCHEMA",
    "Finding",
    "SchemaTiers",
    "Tier",
    "TieredValidator",
    "ValidationReport",
    # Batch
    "ValidationRunSummary",
    "validate_directory",
    "validate_files",
    # Repair
    "RepairSummary",
    "repair_directory",
    "try_fix_json",
]
