"""
Tests for batch validation of a record directory.
"""

import json

from reportsync.validation.runner import validate_directory, validate_files
from reportsync.validation.validator import SchemaTiers, TieredValidator

VALIDATOR = TieredValidator(SchemaTiers(required=("title",), recommended=("summary",)))


def write(path, data):
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return path


class TestValidateFiles:
    def test_counts(self, tmp_path):
        paths = [
            write(tmp_path / "a.json", {"title": "A", "summary": "s"}),
            write(tmp_path / "b.json", {"title": "B"}),
            write(tmp_path / "c.json", {"summary": "no title"}),
            write(tmp_path / "d.json", '{"title": '),
        ]

        summary = validate_files(paths, VALIDATOR)

        assert summary.valid == 2
        assert summary.invalid == 2
        assert summary.total == 4
        assert summary.has_failures
        assert list(summary.parse_errors) == ["d.json"]
        assert [r.record_id for r in summary.reports] == ["a.json", "b.json", "c.json"]
        assert summary.reports[1].warnings[0].path == "summary"

    def test_to_dict(self, tmp_path):
        summary = validate_files([write(tmp_path / "a.json", {"title": "A"})], VALIDATOR)
        data = summary.to_dict()
        assert data["valid"] == 1
        assert data["total"] == 1
        assert data["reports"][0]["record_id"] == "a.json"

    def test_logs_findings(self, tmp_path, caplog):
        validate_files([write(tmp_path / "c.json", {})], VALIDATOR)
        assert "c.json: Missing required field: title" in caplog.text
        assert "Validation failed for c.json" in caplog.text


class TestValidateDirectory:
    def test_skips_manifest_and_other_files(self, tmp_path):
        write(tmp_path / "a.json", {"title": "A"})
        write(tmp_path / "manifest.json", {"a.json": "2025-11-06T10:00:00+00:00"})
        write(tmp_path / "notes.txt", "hello")

        summary = validate_directory(tmp_path, VALIDATOR)

        assert summary.total == 1
        assert summary.valid == 1

    def test_missing_directory(self, tmp_path):
        summary = validate_directory(tmp_path / "nope", VALIDATOR)
        assert summary.total == 0
        assert not summary.has_failures
