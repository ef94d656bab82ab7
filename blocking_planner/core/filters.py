from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence

from blocking_planner.core.model import BlockingEdge, Filters, Issue


def matches_filters(issue: Issue, filters: Filters) -> bool:
    if filters.priority is not None and issue.priority != filters.priority:
        return False
    if filters.assignee:
        if not issue.assignee or filters.assignee not in issue.assignee:
            return False
    if filters.label and filters.label not in issue.labels:
        return False
    return True


def apply_filters(
    ids: Sequence[str],
    issue_map: Mapping[str, Issue],
    filters: Optional[Filters],
) -> list[str]:
    """Keep ids whose issue matches every filter that is set (AND semantics).

    Ids with no issue in `issue_map` are dropped. No filters keeps every id.
    """

    kept: list[str] = []
    for nid in ids:
        issue = issue_map.get(nid)
        if issue is None:
            continue
        if filters is None or filters.is_empty or matches_filters(issue, filters):
            kept.append(nid)
    return kept


def restrict_edges(edges: Iterable[BlockingEdge], ids: Iterable[str]) -> list[BlockingEdge]:
    """Edges whose endpoints both survived filtering."""
    keep = set(ids)
    return [e for e in edges if e.from_id in keep and e.to_id in keep]
