from __future__ import annotations

import logging
from collections import deque
from typing import Iterable, Mapping, Optional, Sequence

from blocking_planner.core.graph.traversal import VisitState, build_adjacency, new_state_arena
from blocking_planner.core.model import BlockingEdge, Issue


logger = logging.getLogger(__name__)


def _is_closed(issue_map: Optional[Mapping[str, Issue]], nid: str) -> bool:
    if issue_map is None:
        return False
    issue = issue_map.get(nid)
    return issue is not None and issue.is_closed


def find_ready_items(
    ids: Sequence[str],
    edges: Iterable[BlockingEdge],
    issue_map: Mapping[str, Issue],
) -> list[str]:
    """Open items whose blockers are all closed/done.

    A blocker missing from `issue_map` counts as incomplete.
    """

    ids = list(dict.fromkeys(ids))
    _, blocked_by = build_adjacency(ids, edges)
    return [
        nid
        for nid in ids
        if not _is_closed(issue_map, nid)
        and all(_is_closed(issue_map, blocker) for blocker in blocked_by[nid])
    ]


def find_parallel_groups(
    ids: Sequence[str],
    edges: Iterable[BlockingEdge],
    issue_map: Optional[Mapping[str, Issue]] = None,
) -> list[list[str]]:
    """Group ids by phase (topological depth) so each group can be worked in parallel.

    Edges whose blocker is already closed/done do not add depth. Cycle members
    keep whatever depth their acyclic blockers gave them, or phase 0 if none.
    """

    ids = list(dict.fromkeys(ids))
    if not ids:
        return []

    active = [e for e in edges if not _is_closed(issue_map, e.from_id)]
    out_edges, in_edges = build_adjacency(ids, active)
    in_degree = {nid: len(in_edges[nid]) for nid in ids}
    state = new_state_arena(ids)

    phase: dict[str, int] = {}
    q: deque[str] = deque()
    for nid in ids:
        if in_degree[nid] == 0:
            phase[nid] = 0
            q.append(nid)

    while q:
        cur = q.popleft()
        state[cur] = VisitState.DONE
        for nxt in out_edges[cur]:
            in_degree[nxt] -= 1
            phase[nxt] = max(phase.get(nxt, 0), phase[cur] + 1)
            if in_degree[nxt] == 0:
                q.append(nxt)

    unresolved = 0
    for nid in ids:
        if state[nid] is not VisitState.DONE:
            phase.setdefault(nid, 0)
            unresolved += 1
    if unresolved:
        logger.debug("find_parallel_groups: %d node(s) on cycles left unresolved", unresolved)

    groups: dict[int, list[str]] = {}
    for nid in ids:
        groups.setdefault(phase[nid], []).append(nid)
    return [groups[p] for p in sorted(groups)]
