"""
Tests for the JSON manifest.
"""

import json
from datetime import datetime, timezone

from reportsync.sync.manifest import JsonManifest


class TestJsonManifest:
    def test_missing_manifest_is_empty(self, tmp_path):
        assert JsonManifest(tmp_path / "manifest.json").entries() == {}

    def test_record_and_read(self, tmp_path):
        manifest = JsonManifest(tmp_path / "data" / "manifest.json")
        when = datetime(2025, 11, 6, 10, 0, tzinfo=timezone.utc)

        manifest.record("a.json", when)
        manifest.record("b.json")

        entries = manifest.entries()
        assert entries["a.json"] == "2025-11-06T10:00:00+00:00"
        assert "b.json" in entries
        assert json.loads((tmp_path / "data" / "manifest.json").read_text()) == entries
        assert not (tmp_path / "data" / "manifest.json.tmp").exists()

    def test_record_overwrites_entry(self, tmp_path):
        manifest = JsonManifest(tmp_path / "manifest.json")
        manifest.record("a.json", datetime(2025, 1, 1, tzinfo=timezone.utc))
        manifest.record("a.json", datetime(2025, 2, 1, tzinfo=timezone.utc))
        assert manifest.entries() == {"a.json": "2025-02-01T00:00:00+00:00"}

    def test_corrupt_manifest_is_replaced(self, tmp_path):
        path = tmp_path / "manifest.json"
        path.write_text("{not json")
        manifest = JsonManifest(path)
        assert manifest.entries() == {}
        manifest.record("a.json")
        assert list(manifest.entries()) == ["a.json"]

    def test_non_object_manifest(self, tmp_path):
        path = tmp_path / "manifest.json"
        path.write_text("[1, 2]")
        assert JsonManifest(path).entries() == {}

    def test_write_failure_is_logged(self, tmp_path, caplog):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        manifest = JsonManifest(blocker / "manifest.json")

        manifest.record("a.json")

        assert "Could not update manifest" in caplog.text
