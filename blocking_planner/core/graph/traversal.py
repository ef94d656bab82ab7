from __future__ import annotations

import logging
from collections import deque
from enum import IntEnum
from typing import Iterable, Sequence

from blocking_planner.core.model import BlockingEdge


logger = logging.getLogger(__name__)


class VisitState(IntEnum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


def new_state_arena(ids: Iterable[str]) -> dict[str, VisitState]:
    """Per-call node state table shared by the traversals that must tolerate cycles."""
    return {nid: VisitState.UNVISITED for nid in ids}


def build_adjacency(
    ids: Sequence[str], edges: Iterable[BlockingEdge]
) -> tuple[dict[str, list[str]], dict[str, list[str]]]:
    """Return (outgoing, incoming) adjacency lists restricted to `ids`."""
    out_edges: dict[str, list[str]] = {nid: [] for nid in ids}
    in_edges: dict[str, list[str]] = {nid: [] for nid in ids}
    for e in edges:
        if e.from_id in out_edges and e.to_id in in_edges:
            out_edges[e.from_id].append(e.to_id)
            in_edges[e.to_id].append(e.from_id)
    return out_edges, in_edges


def topological_sort(ids: Sequence[str], edges: Iterable[BlockingEdge]) -> list[str]:
    """Order ids so every blocker precedes what it blocks (Kahn's algorithm).

    Nodes left over after the queue drains sit on a cycle; they are appended in
    input order, so the result always holds every input id exactly once.
    """

    ids = list(dict.fromkeys(ids))
    out_edges, in_edges = build_adjacency(ids, edges)
    in_degree = {nid: len(in_edges[nid]) for nid in ids}
    state = new_state_arena(ids)

    q: deque[str] = deque(nid for nid in ids if in_degree[nid] == 0)
    order: list[str] = []
    while q:
        cur = q.popleft()
        state[cur] = VisitState.DONE
        order.append(cur)
        for nxt in out_edges[cur]:
            in_degree[nxt] -= 1
            if in_degree[nxt] == 0:
                q.append(nxt)

    remainder = [nid for nid in ids if state[nid] is not VisitState.DONE]
    if remainder:
        logger.debug("topological_sort: %d node(s) on cycles appended", len(remainder))
        order.extend(remainder)
    return order


def calculate_fan_out(ids: Sequence[str], edges: Iterable[BlockingEdge]) -> dict[str, int]:
    """Count, per node, the distinct nodes transitively unblocked by finishing it.

    Descendant sets are memoized and reused by every ancestor. A node reached
    while still in progress (cycle) is not re-entered; whatever it has
    collected so far is reused.
    """

    ids = list(dict.fromkeys(ids))
    out_edges, _ = build_adjacency(ids, edges)
    state = new_state_arena(ids)
    reach: dict[str, set[str]] = {}

    for root in ids:
        if state[root] is not VisitState.UNVISITED:
            continue
        state[root] = VisitState.IN_PROGRESS
        reach[root] = set()
        stack: list[tuple[str, int]] = [(root, 0)]
        while stack:
            node, i = stack[-1]
            children = out_edges[node]
            if i < len(children):
                stack[-1] = (node, i + 1)
                child = children[i]
                if state[child] is VisitState.UNVISITED:
                    state[child] = VisitState.IN_PROGRESS
                    reach[child] = set()
                    stack.append((child, 0))
                continue

            # All children finished (or in progress); fold their sets in.
            acc = reach[node]
            for child in children:
                acc.add(child)
                acc |= reach[child]
            state[node] = VisitState.DONE
            stack.pop()

    return {nid: len(reach[nid] - {nid}) for nid in ids}
