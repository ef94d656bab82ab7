from __future__ import annotations

import json
import logging
from typing import Any, Optional

import typer

from blocking_planner.core.blocking_model import build_blocking_model
from blocking_planner.core.config.plan_config import PlanConfig, PlanConfigError, load_and_merge
from blocking_planner.core.errors import PlanError, PlanUsageError, SnapshotLoadError
from blocking_planner.core.io.export import (
    model_to_dict,
    schedule_to_dict,
    summarize_model,
    summarize_schedule,
)
from blocking_planner.core.io.load_snapshot import load_snapshot
from blocking_planner.core.lint.lint_snapshot import lint_snapshot
from blocking_planner.core.plan.schedule import build_plan_schedule

app = typer.Typer(add_completion=False, no_args_is_help=True)

FORMATS = ("text", "json")


@app.callback()
def _callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine decisions to stderr"),
) -> None:
    """Blocking-graph planner CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _check_format(format: str, code: str) -> None:
    if format not in FORMATS:
        err = PlanUsageError(
            code=code,
            message=f"unknown format: {format} (choose one of: {', '.join(FORMATS)})",
            file=None,
            path="format",
        )
        _print_errors([err])
        raise typer.Exit(code=2)


def _to_item(e: PlanError) -> dict[str, Any]:
    if isinstance(e, SnapshotLoadError):
        source = "load"
    elif e.code.startswith("L_"):
        source = "lint"
    else:
        source = "usage"
    return {
        "code": e.code,
        "message": e.message,
        "file": e.file,
        "path": e.path,
        "severity": "error",
        "source": source,
    }


def _emit_json(command: str, ok: bool, errors: list[PlanError], result: Any, exit_code: int) -> None:
    payload = {
        "tool": "blocking-planner",
        "command": command,
        "ok": ok,
        "error_count": len(errors),
        "errors": [_to_item(e) for e in errors],
        "result": result,
    }
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))
    raise typer.Exit(code=exit_code)


def _load(path: str, command: str, format: str) -> list[dict[str, Any]]:
    try:
        return load_snapshot(path)
    except SnapshotLoadError as e:
        if format == "json":
            _emit_json(command, False, [e], None, 1)
        _print_errors([e])
        raise typer.Exit(code=1)


def _config(config_file: Optional[str], command: str, format: str, **overrides: Any) -> PlanConfig:
    err: PlanError
    exit_code = 2
    try:
        return load_and_merge(config_file, **overrides)
    except FileNotFoundError:
        err = SnapshotLoadError(
            code="E_CONFIG_NOT_FOUND",
            message=f"config file not found: {config_file}",
            file=None,
            path="config",
        )
        exit_code = 1
    except PlanConfigError as e:
        err = PlanUsageError(
            code="E_CONFIG_INVALID",
            message=str(e),
            file=config_file,
            path="config",
        )

    if format == "json":
        _emit_json(command, False, [err], None, exit_code)
    _print_errors([err])
    raise typer.Exit(code=exit_code)


@app.command("model")
def model(
    path: str = typer.Argument(..., help="Path to a graph snapshot (.json/.yaml/.yml)"),
    priority: Optional[int] = typer.Option(None, "--priority", help="Only issues with this priority (0-4)"),
    assignee: Optional[str] = typer.Option(None, "--assignee", help="Only issues whose assignee contains this"),
    label: Optional[str] = typer.Option(None, "--label", help="Only issues carrying this label"),
    max_paths: Optional[int] = typer.Option(None, "--max-paths", help="Maximum critical paths to report"),
    config_file: Optional[str] = typer.Option(None, "--config", help="Optional YAML planning config"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Show completion order, critical paths, ready items, phases and fan-out."""
    _check_format(format, "E_MODEL_UNKNOWN_FORMAT")
    cfg = _config(
        config_file,
        "model",
        format,
        max_paths=max_paths,
        priority=priority,
        assignee=assignee,
        label=label,
    )
    components = _load(path, "model", format)

    blocking = build_blocking_model(components, cfg.filters, max_paths=cfg.max_paths)
    if format == "json":
        _emit_json("model", True, [], model_to_dict(blocking), 0)
    typer.echo(summarize_model(blocking))


@app.command("plan")
def plan(
    path: str = typer.Argument(..., help="Path to a graph snapshot (.json/.yaml/.yml)"),
    capacity: Optional[int] = typer.Option(None, "--capacity", help="Maximum items per wave"),
    priority: Optional[int] = typer.Option(None, "--priority", help="Only issues with this priority (0-4)"),
    assignee: Optional[str] = typer.Option(None, "--assignee", help="Only issues whose assignee contains this"),
    label: Optional[str] = typer.Option(None, "--label", help="Only issues carrying this label"),
    config_file: Optional[str] = typer.Option(None, "--config", help="Optional YAML planning config"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Build a capacity-bounded wave schedule."""
    _check_format(format, "E_PLAN_UNKNOWN_FORMAT")
    cfg = _config(
        config_file,
        "plan",
        format,
        capacity=capacity,
        priority=priority,
        assignee=assignee,
        label=label,
    )
    components = _load(path, "plan", format)

    blocking = build_blocking_model(components, cfg.filters, max_paths=cfg.max_paths)
    schedule = build_plan_schedule(
        blocking.issues, blocking.edges, blocking.completion_order, cfg.capacity
    )
    if format == "json":
        _emit_json("plan", True, [], schedule_to_dict(schedule), 0)
    typer.echo(summarize_schedule(schedule))


@app.command("lint")
def lint(
    path: str = typer.Argument(..., help="Path to a graph snapshot (.json/.yaml/.yml)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Report data the engine would silently drop or work around."""
    _check_format(format, "E_LINT_UNKNOWN_FORMAT")
    components = _load(path, "lint", format)

    errors: list[PlanError] = list(lint_snapshot(components, file=path))
    if format == "json":
        _emit_json("lint", not errors, errors, None, 2 if errors else 0)
    if errors:
        _print_errors(errors)
        raise typer.Exit(code=2)
    typer.echo("OK: lint passed")


def _print_errors(errors: list[PlanError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="blocking-planner")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
