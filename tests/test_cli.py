"""
Tests for CLI commands.

Uses typer's CliRunner with throwaway projects backed by a filesystem remote
and a tiny Python renderer.
"""

import json
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from reportsync import __version__
from reportsync.cli.config import mask_secrets
from reportsync.cli.main import app

runner = CliRunner()

RENDER = (
    "import sys, pathlib; p = pathlib.Path(sys.argv[1]); "
    "out = p.with_suffix('.pdf'); out.write_bytes(b'%PDF'); print(out)"
)


def make_project(root: Path, records: dict[str, dict] | None = None, **sync) -> Path:
    """Create a project with a filesystem remote holding `records` in remote/data."""
    (root / "remote" / "data").mkdir(parents=True)
    (root / "remote" / "out").mkdir()
    for name, record in (records or {}).items():
        (root / "remote" / "data" / name).write_text(json.dumps(record))

    config = {
        "remote": {"type": "filesystem", "root_path": "remote"},
        "sync": {
            "local_dir": "data",
            "artifact_folder_id": "out",
            "download": {"poll_interval": 0.01, "base_delay": 0},
            **sync,
        },
        "generator": {"command": [sys.executable, "-c", RENDER]},
        "validation": {"required": ["title"], "structural": [], "recommended": [], "date_fields": []},
        "logging": {"console_enabled": False},
    }
    # JSON is valid YAML
    (root / "config.yaml").write_text(json.dumps(config))
    return root


class TestVersion:
    """Tests for --version flag."""

    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"reportsync version {__version__}" in result.output

    def test_version_short_flag(self):
        result = runner.invoke(app, ["-v"])
        assert result.exit_code == 0
        assert "reportsync version" in result.output


class TestHelp:
    """Tests for help output."""

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "reportsync" in result.output.lower()

    @pytest.mark.parametrize("command", ["sync", "validate", "repair", "check", "config"])
    def test_command_help(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


class TestSync:
    """Tests for the sync command."""

    def test_missing_config(self, tmp_path):
        result = runner.invoke(app, ["sync", "--project-dir", str(tmp_path)])
        assert result.exit_code == 2
        assert "Configuration error" in result.output

    def test_generates_then_skips(self, tmp_path):
        project = make_project(tmp_path, {"a.json": {"title": "A"}, "b.json": {"title": "B"}})

        result = runner.invoke(app, ["sync", "--project-dir", str(project)])
        assert result.exit_code == 0, result.output
        assert "Summary Report" in result.output
        assert sorted(p.name for p in (project / "remote" / "out").iterdir()) == ["a.pdf", "b.pdf"]
        assert json.loads((project / "data" / "a.json").read_text()) == {"title": "A"}
        assert set(json.loads((project / "data" / "manifest.json").read_text())) == {"a.json", "b.json"}

        (project / "remote" / "out" / "a.pdf").unlink()
        result = runner.invoke(app, ["sync", "--project-dir", str(project)])
        assert result.exit_code == 0, result.output
        assert not (project / "remote" / "out" / "a.pdf").exists()

    def test_force_regenerates(self, tmp_path):
        project = make_project(tmp_path, {"a.json": {"title": "A"}})
        runner.invoke(app, ["sync", "--project-dir", str(project)])
        (project / "remote" / "out" / "a.pdf").unlink()

        result = runner.invoke(app, ["sync", "--project-dir", str(project), "--force"])

        assert result.exit_code == 0, result.output
        assert (project / "remote" / "out" / "a.pdf").exists()

    def test_record_errors_exit_1(self, tmp_path):
        project = make_project(tmp_path, {"a.json": {"title": "A"}, "bad.json": {"summary": "no title"}})

        result = runner.invoke(app, ["sync", "--project-dir", str(project)])

        assert result.exit_code == 1
        assert "Error Details" in result.output
        assert "bad.json" in result.output
        assert (project / "remote" / "out" / "a.pdf").exists()

    def test_allow_errors(self, tmp_path):
        project = make_project(tmp_path, {"bad.json": {}})
        result = runner.invoke(app, ["sync", "--project-dir", str(project), "--allow-errors"])
        assert result.exit_code == 0

    def test_missing_data_folder_exit_2(self, tmp_path):
        project = make_project(tmp_path, data_folder="reports")
        result = runner.invoke(app, ["sync", "--project-dir", str(project)])
        assert result.exit_code == 2
        assert "Remote folder not found" in result.output

    def test_nothing_to_do(self, tmp_path):
        project = make_project(tmp_path)
        result = runner.invoke(app, ["sync", "--project-dir", str(project)])
        assert result.exit_code == 0
        assert "No remote or local JSON files found" in result.output


class TestValidate:
    """Tests for the validate command."""

    def test_validate_directory(self, tmp_path):
        project = make_project(tmp_path)
        (project / "data").mkdir()
        (project / "data" / "a.json").write_text('{"title": "A"}')
        (project / "data" / "b.json").write_text('{"title": ')

        result = runner.invoke(app, ["validate", "--project-dir", str(project)])

        assert result.exit_code == 1
        assert "Invalid records" in result.output
        assert "1 valid" in result.output

    def test_validate_explicit_files(self, tmp_path):
        path = tmp_path / "ok.json"
        path.write_text(json.dumps({"title": "A"}))
        validation = {"required": ["title"], "structural": [], "recommended": [], "date_fields": []}
        (tmp_path / "config.yaml").write_text(json.dumps({"validation": validation}))

        result = runner.invoke(app, ["validate", "--project-dir", str(tmp_path), str(path)])

        assert result.exit_code == 0, result.output
        assert "1 valid" in result.output

    def test_no_files(self, tmp_path):
        result = runner.invoke(app, ["validate", "--project-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "No JSON files found to validate" in result.output


class TestRepair:
    """Tests for the repair command."""

    def test_repair(self, tmp_path):
        project = make_project(tmp_path)
        (project / "data").mkdir()
        (project / "data" / "a.json").write_text('{"title": "A",}')

        result = runner.invoke(app, ["repair", "--project-dir", str(project)])

        assert result.exit_code == 0, result.output
        assert "Fixed" in result.output
        assert json.loads((project / "data" / "a.json").read_text()) == {"title": "A"}
        assert (project / "data" / "a.json.bak").exists()

    def test_unfixable(self, tmp_path):
        project = make_project(tmp_path)
        (project / "data").mkdir()
        (project / "data" / "a.json").write_text("{{{")
        result = runner.invoke(app, ["repair", "--project-dir", str(project)])
        assert result.exit_code == 1

    def test_no_data_directory(self, tmp_path):
        result = runner.invoke(app, ["repair", "--project-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "No data directory" in result.output


class TestCheck:
    """Tests for the check command."""

    def test_lists_records(self, tmp_path):
        project = make_project(tmp_path, {"a.json": {"title": "A"}})
        result = runner.invoke(app, ["check", "--project-dir", str(project)])
        assert result.exit_code == 0, result.output
        assert "Found 'data' folder" in result.output
        assert "a.json" in result.output
        # Read-only
        assert (project / "remote" / "data" / "a.json").exists()
        assert not (project / "data").exists()

    def test_missing_folder(self, tmp_path):
        project = make_project(tmp_path, data_folder="reports")
        result = runner.invoke(app, ["check", "--project-dir", str(project)])
        assert result.exit_code == 2


class TestConfigCommand:
    """Tests for the config command."""

    def test_masks_secrets(self, tmp_path):
        (tmp_path / "config.yaml").write_text("remote:\n  type: drive\n  access_token: super-secret-token\n")
        result = runner.invoke(app, ["config", "--project-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "super-secret-token" not in result.output
        assert "****" in result.output

    def test_mask_secrets_nested(self):
        masked = mask_secrets({"remote": {"access_token": "t", "root_folder_id": "r"}, "list": [{"password": "p"}]})
        assert masked == {"remote": {"access_token": "****", "root_folder_id": "r"}, "list": [{"password": "****"}]}

    def test_missing_config(self, tmp_path):
        result = runner.invoke(app, ["config", "--project-dir", str(tmp_path)])
        assert result.exit_code == 2
