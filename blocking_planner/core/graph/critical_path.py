from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence

from blocking_planner.core.graph.traversal import build_adjacency, topological_sort
from blocking_planner.core.model import BlockingEdge, Issue


PRIORITY_WEIGHT_BASE = 3
MAX_PRIORITY_LEVEL = 4
DEFAULT_MAX_PATHS = 3

# A secondary chain must score at least this share of the best chain.
SIGNIFICANCE_RATIO = 0.7


def priority_weight(issue: Optional[Issue]) -> float:
    """3^(4 - priority): P0 weighs 81, P4 weighs 1. Unknown priority weighs 1."""
    if issue is None or issue.priority is None:
        return 1
    clamped = min(MAX_PRIORITY_LEVEL, max(0, issue.priority))
    return PRIORITY_WEIGHT_BASE ** (MAX_PRIORITY_LEVEL - clamped)


def node_weights(
    ids: Sequence[str], issue_map: Optional[Mapping[str, Issue]] = None
) -> dict[str, float]:
    """Weight every node by duration estimate when the graph has any, else by priority."""
    issue_map = issue_map or {}
    issues = [issue_map.get(nid) for nid in ids]
    if any(i is not None and i.estimate_minutes is not None for i in issues):
        return {
            nid: (i.estimate_minutes if i is not None and i.estimate_minutes is not None else 1)
            for nid, i in zip(ids, issues)
        }
    return {nid: priority_weight(i) for nid, i in zip(ids, issues)}


def _trace(end: str, predecessor: Mapping[str, Optional[str]]) -> list[str]:
    path: list[str] = []
    seen: set[str] = set()
    cur: Optional[str] = end
    # Predecessor links can loop when relaxation ran through a cycle.
    while cur is not None and cur not in seen:
        seen.add(cur)
        path.append(cur)
        cur = predecessor[cur]
    path.reverse()
    return path


def find_critical_paths(
    ids: Sequence[str],
    edges: Iterable[BlockingEdge],
    issue_map: Optional[Mapping[str, Issue]] = None,
    max_paths: int = DEFAULT_MAX_PATHS,
) -> list[list[str]]:
    """Return up to `max_paths` node-disjoint, highest-weight chains, blocker first.

    Chains are ranked by total weight. A chain is reported only when it shares
    no node with a chain already reported and scores at least 70% of the best.
    """

    ids = list(dict.fromkeys(ids))
    if not ids or max_paths < 1:
        return []

    edges = list(edges)
    out_edges, _ = build_adjacency(ids, edges)
    weights = node_weights(ids, issue_map)

    dist: dict[str, float] = dict(weights)
    predecessor: dict[str, Optional[str]] = {nid: None for nid in ids}
    for cur in topological_sort(ids, edges):
        for nxt in out_edges[cur]:
            candidate = dist[cur] + weights[nxt]
            if candidate > dist[nxt]:
                dist[nxt] = candidate
                predecessor[nxt] = cur

    # sorted() is stable: equal scores keep input order.
    ranked = sorted(ids, key=lambda nid: dist[nid], reverse=True)
    threshold = dist[ranked[0]] * SIGNIFICANCE_RATIO

    paths: list[list[str]] = []
    claimed: set[str] = set()
    for end in ranked:
        if len(paths) >= max_paths or dist[end] < threshold:
            break
        path = _trace(end, predecessor)
        if claimed.intersection(path):
            continue
        paths.append(path)
        claimed.update(path)
    return paths


def find_critical_path(
    ids: Sequence[str],
    edges: Iterable[BlockingEdge],
    issue_map: Optional[Mapping[str, Issue]] = None,
) -> list[str]:
    paths = find_critical_paths(ids, edges, issue_map, max_paths=1)
    return paths[0] if paths else []
