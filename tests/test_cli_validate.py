import json
from pathlib import Path

from typer.testing import CliRunner

from activity_graph.cli import app


runner = CliRunner()
EXAMPLES = Path(__file__).resolve().parent.parent / "examples"


def test_cli_validate_success():
    r = runner.invoke(app, ["validate", str(EXAMPLES / "basic-process.yaml")])
    assert r.exit_code == 0
    assert "OK: 3 activities" in r.stdout
    assert "Process: Supplier onboarding" in r.stdout


def test_cli_validate_cycle_rejected():
    r = runner.invoke(app, ["validate", str(EXAMPLES / "invalid-cycle.yaml")])
    assert r.exit_code == 2
    assert "E_CYCLE_DETECTED" in r.output


def test_cli_validate_allow_cycles():
    r = runner.invoke(app, ["validate", str(EXAMPLES / "invalid-cycle.yaml"), "--allow-cycles"])
    assert r.exit_code == 0
    assert "OK:" in r.stdout


def test_cli_validate_missing_file():
    r = runner.invoke(app, ["validate", str(EXAMPLES / "nope.yaml")])
    assert r.exit_code == 1
    assert "E_FILE_NOT_FOUND" in r.output


def test_cli_validate_unknown_format():
    r = runner.invoke(app, ["validate", str(EXAMPLES / "basic-process.yaml"), "--format", "xml"])
    assert r.exit_code == 2
    assert "E_VALIDATE_UNKNOWN_FORMAT" in r.output


def test_cli_validate_json_success():
    r = runner.invoke(app, ["validate", str(EXAMPLES / "release-process.yaml"), "--format", "json"])
    assert r.exit_code == 0
    payload = json.loads(r.stdout)
    assert payload["tool"] == "activity-graph"
    assert payload["command"] == "validate"
    assert payload["ok"] is True
    assert payload["error_count"] == 0
    assert payload["summary"]["activity_count"] == 6
    assert payload["summary"]["dependency_count"] == 6
    assert payload["summary"]["status_counts"]["completed"] == 2


def test_cli_validate_json_failure_contains_codes():
    r = runner.invoke(app, ["validate", str(EXAMPLES / "invalid-bad-status.yaml"), "--format", "json"])
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert payload["ok"] is False
    codes = {e["code"] for e in payload["errors"]}
    assert "E_INVALID_ENUM" in codes
    assert payload["errors"][0]["source"] == "validate"


def test_cli_validate_with_status_file():
    r = runner.invoke(app, ["validate", str(EXAMPLES / "custom-labels.yaml")])
    assert r.exit_code == 2
    assert "E_INVALID_ENUM" in r.output

    r = runner.invoke(
        app,
        [
            "validate",
            str(EXAMPLES / "custom-labels.yaml"),
            "--status-file",
            str(EXAMPLES / "statuses-extra.yaml"),
        ],
    )
    assert r.exit_code == 0, r.output


def test_cli_validate_status_file_not_found():
    r = runner.invoke(
        app,
        ["validate", str(EXAMPLES / "basic-process.yaml"), "--status-file", "missing.yaml"],
    )
    assert r.exit_code == 1
    assert "E_STATUS_FILE_NOT_FOUND" in r.output


def test_cli_validate_status_file_invalid(tmp_path: Path):
    p = tmp_path / "statuses.yaml"
    p.write_text("finished: [Done]\n", encoding="utf-8")
    r = runner.invoke(
        app, ["validate", str(EXAMPLES / "basic-process.yaml"), "--status-file", str(p)]
    )
    assert r.exit_code == 2
    assert "E_STATUS_FILE_INVALID" in r.output


def test_cli_unknown_log_level():
    r = runner.invoke(app, ["--log-level", "chatty", "validate", str(EXAMPLES / "basic-process.yaml")])
    assert r.exit_code == 2
    assert "E_UNKNOWN_LOG_LEVEL" in r.output


def test_cli_validate_status_file_broken_yaml(tmp_path: Path):
    p = tmp_path / "statuses.yaml"
    p.write_text("completed: [Done\n", encoding="utf-8")
    r = runner.invoke(
        app, ["validate", str(EXAMPLES / "basic-process.yaml"), "--status-file", str(p)]
    )
    assert r.exit_code == 2
    assert "E_STATUS_FILE_INVALID" in r.output
    assert "invalid YAML" in r.output
