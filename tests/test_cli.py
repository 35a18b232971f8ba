"""Test the lockguard command line interface."""

import json
import sys

import pytest
from typer.testing import CliRunner

from lockguard import cli
from lockguard.cli.app import app
from lockguard.rich_utils.ui_helpers import get_console


runner = CliRunner()

LOCK = {
    "lockfileVersion": 3,
    "packages": {
        "": {"name": "demo"},
        "node_modules/dep-a": {"version": "1.2.0"},
        "node_modules/dep-a/node_modules/dep-b": {"version": "2.0.0"},
    },
}


class TestScanCommand:
    """Test exit codes and output of the scan command."""

    def test_clean_project_passes(self, write_project, database_data):
        project = write_project({"dep-a": "^1.0.0"}, lock=LOCK, database=database_data)
        result = runner.invoke(app, ["scan", str(project)])
        assert result.exit_code == 0
        assert "No issues at or above high severity" in result.stdout

    def test_deep_scan_finds_transitive_issue(self, write_project, database_data):
        project = write_project({"dep-a": "^1.0.0"}, lock=LOCK, database=database_data)
        result = runner.invoke(app, ["scan", str(project), "--deep"])
        assert result.exit_code == 1
        assert "dep-b" in result.stdout
        assert "npm uninstall dep-b" in result.stdout

    def test_json_output(self, write_project, database_data):
        project = write_project({"dep-a": "^1.0.0"}, lock=LOCK, database=database_data)
        result = runner.invoke(app, ["scan", str(project), "--deep", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["scanMode"] == "deep"
        assert data["packagesScanned"] == {"total": 2, "direct": 1, "transitive": 1}
        assert data["results"]["critical"][0]["dependencyChain"] == ["dep-a"]
        assert data["results"]["critical"][0]["type"] == "Confirmed Malicious"

    def test_output_file(self, write_project, database_data, tmp_path):
        project = write_project({"dep-b": "2.0.0"}, database=database_data)
        output = tmp_path / "out"
        output.mkdir()
        result = runner.invoke(app, ["scan", str(project), "-o", str(output / "scan.json")])
        assert result.exit_code == 1
        data = json.loads((output / "scan.json").read_text(encoding="utf-8"))
        assert data["totalIssues"] == 1

    def test_ignore_option(self, write_project, database_data):
        project = write_project({"dep-b": "2.0.0"}, database=database_data)
        result = runner.invoke(app, ["scan", str(project), "--ignore", "dep-b"])
        assert result.exit_code == 0

    def test_severity_threshold(self, write_project, database_data):
        project = write_project({"colors": "1.4.1"}, database=database_data)
        assert runner.invoke(app, ["scan", str(project)]).exit_code == 0
        assert runner.invoke(app, ["scan", str(project), "--severity", "medium"]).exit_code == 1
        assert runner.invoke(app, ["scan", str(project), "--strict"]).exit_code == 1

    def test_project_config_file(self, write_project, database_data):
        project = write_project({"dep-a": "^1.0.0"}, lock=LOCK, database=database_data)
        (project / "lockguard.config.yaml").write_text("scan:\n  deep: true\n", encoding="utf-8")
        assert runner.invoke(app, ["scan", str(project)]).exit_code == 1
        assert runner.invoke(app, ["scan", str(project), "--direct"]).exit_code == 0

    def test_config_lock_file_is_relative_to_config(self, write_project, database_data, tmp_path_factory, monkeypatch):
        project = write_project({"dep-a": "^1.0.0"}, lock=LOCK, lock_name="custom-lock.json", database=database_data)
        (project / "lockguard.config.yaml").write_text(
            "scan:\n  deep: true\n  lock_file: custom-lock.json\n", encoding="utf-8"
        )
        monkeypatch.chdir(tmp_path_factory.mktemp("elsewhere"))
        result = runner.invoke(app, ["scan", str(project), "--json"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["scanMode"] == "deep"
        assert data["lockFile"] == "custom-lock.json"
        assert data["totalIssues"] == 1

    def test_missing_manifest_is_configuration_error(self, tmp_path):
        result = runner.invoke(app, ["scan", str(tmp_path / "nowhere")])
        assert result.exit_code == 2
        assert "Configuration error" in result.stdout

    def test_json_configuration_error_exit_code(self, tmp_path):
        result = runner.invoke(app, ["scan", str(tmp_path / "nowhere"), "--json"])
        assert result.exit_code == 2
        assert "Configuration error" in result.output

    def test_unwritable_output_file(self, write_project, database_data, tmp_path):
        project = write_project({"dep-b": "2.0.0"}, database=database_data)
        result = runner.invoke(app, ["scan", str(project), "-o", str(tmp_path / "missing" / "scan.json")])
        assert result.exit_code == 2
        assert "Could not write scan result" in result.output
        assert not isinstance(result.exception, OSError)

    def test_invalid_severity_is_configuration_error(self, write_project, database_data):
        project = write_project({"dep-a": "^1.0.0"}, database=database_data)
        result = runner.invoke(app, ["scan", str(project), "--severity", "urgent"])
        assert result.exit_code == 2

    def test_invalid_config_file(self, write_project, database_data):
        project = write_project({"dep-a": "^1.0.0"}, database=database_data)
        (project / "lockguard.config.yaml").write_text("scan:\n  deep: maybe\n", encoding="utf-8")
        result = runner.invoke(app, ["scan", str(project)])
        assert result.exit_code == 2
        assert "scan.deep" in result.stdout

    def test_explicit_database(self, write_project, database_data, tmp_path):
        project = write_project({"dep-b": "2.0.0"})
        database = tmp_path / "db.json"
        database.write_text(json.dumps(database_data), encoding="utf-8")
        result = runner.invoke(app, ["scan", str(project), "--database", str(database)])
        assert result.exit_code == 1


class TestConsole:
    """Test console routing."""

    def test_default_console_writes_stdout(self):
        assert get_console().stderr is False

    def test_error_console_writes_stderr(self):
        assert get_console(stderr=True).stderr is True


class TestEntryPoint:
    """Test the console script target."""

    def test_entry_point_runs_scan(self, write_project, database_data, monkeypatch):
        project = write_project({"dep-a": "^1.0.0"}, database=database_data)
        monkeypatch.setattr(sys, "argv", ["lockguard", "scan", str(project)])
        with pytest.raises(SystemExit) as excinfo:
            cli.app()
        assert excinfo.value.code == 0
