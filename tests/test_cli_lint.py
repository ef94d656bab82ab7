import json

from typer.testing import CliRunner

from blocking_planner.cli import app

runner = CliRunner()


def test_cli_lint_success():
    r = runner.invoke(app, ["lint", "examples/diamond-snapshot.json"])
    assert r.exit_code == 0
    assert "OK:" in r.stdout


def test_cli_lint_reports_cycle():
    r = runner.invoke(app, ["lint", "examples/invalid-snapshot.json"])
    assert r.exit_code == 2
    assert "L_CYCLE_DETECTED" in r.output
    assert "L_DANGLING_DEPENDENCY" in r.output


def test_cli_lint_json():
    r = runner.invoke(app, ["lint", "examples/invalid-snapshot.json", "--format", "json"])
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert payload["command"] == "lint"
    assert payload["ok"] is False
    assert payload["error_count"] == 5
    assert {e["source"] for e in payload["errors"]} == {"lint"}


def test_cli_lint_load_error_json():
    r = runner.invoke(app, ["lint", "examples/not-a-snapshot.json", "--format", "json"])
    assert r.exit_code == 1
    payload = json.loads(r.stdout)
    assert payload["errors"][0]["code"] == "E_INVALID_TOP_LEVEL"
    assert payload["errors"][0]["source"] == "load"
