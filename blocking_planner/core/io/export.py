from __future__ import annotations

from typing import Any, Iterable

from blocking_planner.core.model import BlockingModel, Issue, PlanSchedule


def issue_to_dict(issue: Issue) -> dict[str, Any]:
    return {
        "id": issue.id,
        "title": issue.title,
        "status": issue.status,
        "priority": issue.priority,
        "assignee": issue.assignee,
        "labels": list(issue.labels),
        "estimate_minutes": issue.estimate_minutes,
        "issue_type": issue.issue_type,
    }


def _ids(issues: Iterable[Issue]) -> list[str]:
    return [i.id for i in issues]


def model_to_dict(model: BlockingModel) -> dict[str, Any]:
    """JSON-ready view of a blocking model. Derived lists reference issues by id."""
    return {
        "issues": [issue_to_dict(i) for i in model.issues],
        "edges": [{"from": e.from_id, "to": e.to_id} for e in model.edges],
        "completion_order": _ids(model.completion_order),
        "critical_path": _ids(model.critical_path),
        "critical_paths": [_ids(p) for p in model.critical_paths],
        "ready_items": _ids(model.ready_items),
        "parallel_groups": [_ids(g) for g in model.parallel_groups],
        "fan_out_counts": dict(model.fan_out_counts),
    }


def schedule_to_dict(schedule: PlanSchedule) -> dict[str, Any]:
    return {
        "waves": [_ids(w) for w in schedule.waves],
        "total_waves": schedule.total_waves,
        "total_items": schedule.total_items,
        "average_throughput": schedule.average_throughput,
        "capacity": schedule.capacity,
    }


def _label(issue: Issue) -> str:
    return f"{issue.id} {issue.title}".rstrip()


def summarize_model(model: BlockingModel) -> str:
    if not model.issues:
        return "OK: 0 issues"

    lines = [f"OK: {len(model.issues)} issues, {len(model.edges)} blocking edges"]
    lines.append("Completion order: " + ", ".join(_ids(model.completion_order)))
    for n, path in enumerate(model.critical_paths, start=1):
        lines.append(f"Critical path {n}: " + " -> ".join(_ids(path)))
    lines.append("Ready: " + (", ".join(_ids(model.ready_items)) or "(none)"))
    for n, group in enumerate(model.parallel_groups, start=1):
        lines.append(f"Phase {n}: " + ", ".join(_ids(group)))
    unblocks = [
        f"{_label(i)} unblocks {model.fan_out_counts.get(i.id, 0)}"
        for i in model.completion_order
        if model.fan_out_counts.get(i.id, 0) > 0
    ]
    if unblocks:
        lines.append("Fan-out:")
        lines.extend(f"- {u}" for u in unblocks)
    return "\n".join(lines)


def summarize_schedule(schedule: PlanSchedule) -> str:
    lines = [
        f"OK: {schedule.total_items} items in {schedule.total_waves} waves "
        f"(capacity={schedule.capacity}, avg={schedule.average_throughput:.2f}/wave)"
    ]
    for n, wave in enumerate(schedule.waves, start=1):
        lines.append(f"Wave {n}: " + ", ".join(_ids(wave)))
    return "\n".join(lines)
