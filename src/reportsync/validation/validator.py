"""
Tiered schema validation for report records.

Three severity tiers are applied to a parsed record:

- REQUIRED: must be present and non-empty; failure fails the record.
- STRUCTURAL: must be present (``array[].field`` checks every element);
  failure fails the record.
- RECOMMENDED: same check as REQUIRED, advisory only.

A date format check runs last. Validation is pure: the same record and
schema always produce the same report, and the record is never modified.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from reportsync.validation.paths import ARRAY_MARKER, is_blank, is_missing, parse_path, resolve

# Whole-string match, ASCII digits only
DATE_PATTERN = r"[0-9]{4}-[0-9]{2}-[0-9]{2}"


class Tier(Enum):
    """Severity class of a validation rule."""

    REQUIRED = "required"
    STRUCTURAL = "structural"
    RECOMMENDED = "recommended"

    @property
    def is_blocking(self) -> bool:
        return self is not Tier.RECOMMENDED


@dataclass(frozen=True)
class Finding:
    """A single tier violation."""

    tier: Tier
    path: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"tier": self.tier.value, "path": self.path, "message": self.message}


@dataclass
class ValidationReport:
    """
    Outcome of validating one record.

    Attributes:
        record_id: Record name (usually the file name)
        findings: Violations in emission order
    """

    record_id: str
    findings: list[Finding] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        """False only when a REQUIRED or STRUCTURAL finding exists."""
        return not any(f.tier.is_blocking for f in self.findings)

    @property
    def errors(self) -> list[Finding]:
        return [f for f in self.findings if f.tier.is_blocking]

    @property
    def warnings(self) -> list[Finding]:
        return [f for f in self.findings if not f.tier.is_blocking]

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_id": self.record_id,
            "passed": self.passed,
            "findings": [f.to_dict() for f in self.findings],
        }


DEFAULT_REQUIRED = (
    "patientFirstName",
    "patientLastName",
    "patientDateOfBirth",
    "patientEmail",
    "reportDate",
    "diagnosisSummary",
    "tumors",
    "whatThisMeans",
    "testsCompleted",
    "testsNeeded",
    "treatmentTeam",
)

DEFAULT_RECOMMENDED = (
    "diagnosisDate",
    "resources",
    "contactInfo",
    "contactInfo.phone",
    "contactInfo.email",
)

DEFAULT_STRUCTURAL = (
    "tumors[].name",
    "tumors[].location",
    "tumors[].stage",
    "tumors[].grade",
    "tumors[].hormoneReceptorStatus",
    "tumors[].her2Status",
    "whatThisMeans.goodNews",
    "whatThisMeans.newOptions",
    "whatThisMeans.treatmentFocus",
    "testsCompleted[].name",
    "testsCompleted[].date",
    "testsCompleted[].explanation",
    "testsNeeded[].name",
    "testsNeeded[].date",
    "testsNeeded[].explanation",
    "treatmentTeam.oncologist",
    "treatmentTeam.surgeon",
    "treatmentTeam.radiologist",
)

DEFAULT_DATE_FIELDS = ("patientDateOfBirth",)


@dataclass(frozen=True)
class SchemaTiers:
    """Path lists for each tier plus the date-formatted fields."""

    required: tuple[str, ...] = ()
    structural: tuple[str, ...] = ()
    recommended: tuple[str, ...] = ()
    date_fields: tuple[str, ...] = ()
    date_pattern: str = DATE_PATTERN

    @classmethod
    def from_config(cls, config: dict[str, Any] | None) -> SchemaTiers:
        """
        Build tiers from the `validation:` config section.

        Lists that are not configured keep the default report schema.
        """
        config = config or {}
        default = DEFAULT_REPORT_SCHEMA

        def _paths(key: str, fallback: tuple[str, ...]) -> tuple[str, ...]:
            value = config.get(key)
            if value is None:
                return fallback
            if isinstance(value, str):
                return (value,)
            return tuple(str(v) for v in value)

        return cls(
            required=_paths("required", default.required),
            structural=_paths("structural", default.structural),
            recommended=_paths("recommended", default.recommended),
            date_fields=_paths("date_fields", default.date_fields),
            date_pattern=str(config.get("date_pattern", default.date_pattern)),
        )


DEFAULT_REPORT_SCHEMA = SchemaTiers(
    required=DEFAULT_REQUIRED,
    structural=DEFAULT_STRUCTURAL,
    recommended=DEFAULT_RECOMMENDED,
    date_fields=DEFAULT_DATE_FIELDS,
)


class TieredValidator:
    """
    Applies the tiers of a SchemaTiers to parsed records.

    Usage:
        validator = TieredValidator()
        report = validator.validate(record, record_id="2025.11.06-rpt-a.json")
        if not report.passed:
            ...
    """

    def __init__(self, schema: SchemaTiers = DEFAULT_REPORT_SCHEMA):
        self.schema = schema
        self._date_re = re.compile(schema.date_pattern, re.ASCII)
        self._structural = [_split_array_path(p) for p in schema.structural]

    def validate(self, record: Any, record_id: str = "unknown.json") -> ValidationReport:
        """Validate one record and return its report."""
        report = ValidationReport(record_id=record_id)
        findings = report.findings

        for path in self.schema.required:
            if is_blank(resolve(record, path)):
                findings.append(Finding(Tier.REQUIRED, path, f"Missing required field: {path}"))

        for path, array_path, sub_path in self._structural:
            if array_path is None:
                if is_missing(resolve(record, path)):
                    findings.append(Finding(Tier.STRUCTURAL, path, f"Missing structural required field: {path}"))
                continue
            findings.extend(self._check_array(record, array_path, sub_path))

        for path in self.schema.recommended:
            if is_blank(resolve(record, path)):
                findings.append(Finding(Tier.RECOMMENDED, path, f"Recommended field missing or empty: {path}"))

        for path in self.schema.date_fields:
            value = resolve(record, path)
            if is_blank(value):
                continue
            if not isinstance(value, str) or not self._date_re.fullmatch(value):
                findings.append(Finding(Tier.REQUIRED, path, f"{path} must be in YYYY-MM-DD format"))

        return report

    def _check_array(self, record: Any, array_path: str, sub_path: str) -> list[Finding]:
        elements = resolve(record, array_path + ARRAY_MARKER)
        if is_missing(elements):
            return [
                Finding(
                    Tier.STRUCTURAL,
                    array_path,
                    f"Missing or empty array for structural required field: {array_path}",
                )
            ]

        sub = parse_path(sub_path)
        findings = []
        for i, element in enumerate(elements):
            if is_blank(resolve(element, sub)):
                element_path = f"{array_path}[{i}].{sub_path}"
                findings.append(
                    Finding(Tier.STRUCTURAL, element_path, f"Missing structural required field: {element_path}")
                )
        return findings


def _split_array_path(path: str) -> tuple[str, str | None, str]:
    """Split ``array[].sub`` into (path, "array", "sub"); plain paths get None."""
    marker = ARRAY_MARKER + "."
    if marker in path:
        array_path, sub_path = path.split(marker, 1)
        return path, array_path, sub_path
    return path, None, ""
