import json

from typer.testing import CliRunner

from blocking_planner.cli import app

runner = CliRunner()


def test_cli_plan_text():
    r = runner.invoke(app, ["plan", "examples/diamond-snapshot.json", "--capacity", "2"])
    assert r.exit_code == 0, r.output
    assert "OK: 4 items in 3 waves (capacity=2, avg=1.33/wave)" in r.stdout
    assert "Wave 2: b, c" in r.stdout


def test_cli_plan_json():
    r = runner.invoke(
        app, ["plan", "examples/diamond-snapshot.json", "--capacity", "1", "--format", "json"]
    )
    assert r.exit_code == 0, r.output
    payload = json.loads(r.stdout)
    assert payload["command"] == "plan"
    result = payload["result"]
    assert result["waves"] == [["a"], ["b"], ["c"], ["d"]]
    assert result["total_waves"] == 4
    assert result["capacity"] == 1


def test_cli_plan_skips_closed_issues():
    r = runner.invoke(app, ["plan", "examples/legacy-snapshot.json", "--format", "json"])
    assert r.exit_code == 0, r.output
    result = json.loads(r.stdout)["result"]
    assert result["waves"] == [["y"], ["z"]]
    assert result["total_items"] == 2


def test_cli_plan_uses_config_file():
    r = runner.invoke(
        app,
        [
            "plan",
            "examples/linear-snapshot.yaml",
            "--config",
            "examples/planner-config.yaml",
            "--format",
            "json",
        ],
    )
    assert r.exit_code == 0, r.output
    result = json.loads(r.stdout)["result"]
    assert result["capacity"] == 2
    assert result["waves"] == [["a", "c"], ["epic"]]


def test_cli_plan_option_overrides_config():
    r = runner.invoke(
        app,
        [
            "plan",
            "examples/linear-snapshot.yaml",
            "--config",
            "examples/planner-config.yaml",
            "--capacity",
            "3",
            "--format",
            "json",
        ],
    )
    assert r.exit_code == 0, r.output
    result = json.loads(r.stdout)["result"]
    assert result["waves"] == [["a", "c", "epic"]]


def test_cli_plan_invalid_config():
    r = runner.invoke(
        app, ["plan", "examples/diamond-snapshot.json", "--config", "examples/invalid-config.yaml"]
    )
    assert r.exit_code == 2
    assert "E_CONFIG_INVALID" in r.output


def test_cli_plan_missing_config():
    r = runner.invoke(
        app, ["plan", "examples/diamond-snapshot.json", "--config", "examples/nope.yaml"]
    )
    assert r.exit_code == 1
    assert "E_CONFIG_NOT_FOUND" in r.output
