from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Optional, Sequence

from blocking_planner.core.model import BlockingEdge, Issue, PlanSchedule


logger = logging.getLogger(__name__)


def normalize_capacity(capacity: Any) -> int:
    """Floor a capacity to a positive int; anything unusable becomes 1."""
    if isinstance(capacity, bool):
        return 1
    try:
        parsed = float(capacity)
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(parsed) or parsed <= 0:
        return 1
    return max(1, math.floor(parsed))


def empty_schedule(capacity: Any = 1) -> PlanSchedule:
    return PlanSchedule(
        waves=(),
        total_waves=0,
        total_items=0,
        average_throughput=0.0,
        capacity=normalize_capacity(capacity),
    )


def build_plan_schedule(
    issues: Sequence[Issue],
    edges: Iterable[BlockingEdge],
    completion_order: Optional[Sequence[Issue]] = None,
    capacity: Any = 1,
) -> PlanSchedule:
    """Pack open issues into waves of at most `capacity` items.

    Closed/done issues count as already complete and never take a slot. Each
    wave draws from items with no remaining blocker, ordered by position in
    `completion_order` (raw input position when absent), then by id. When only
    cycles remain, every remaining item becomes a candidate so the plan always
    finishes.
    """

    cap = normalize_capacity(capacity)
    if not issues:
        return empty_schedule(cap)

    issue_map: dict[str, Issue] = {}
    for issue in issues:
        if issue is not None and issue.id:
            issue_map[issue.id] = issue

    node_ids = list(issue_map.keys())
    fallback_index = {nid: i for i, nid in enumerate(node_ids)}
    order_index: dict[str, int] = {}
    for i, issue in enumerate(completion_order or ()):
        if issue is not None and issue.id:
            order_index[issue.id] = i

    blockers: dict[str, list[str]] = {nid: [] for nid in node_ids}
    for e in edges:
        if e.to_id in blockers:
            blockers[e.to_id].append(e.from_id)

    def sort_key(nid: str) -> tuple[int, str]:
        return (order_index.get(nid, fallback_index[nid]), nid)

    completed = {nid for nid in node_ids if issue_map[nid].is_closed}
    remaining = [nid for nid in node_ids if nid not in completed]
    remaining_set = set(remaining)
    waves: list[tuple[Issue, ...]] = []

    while remaining:
        ready = [
            nid
            for nid in remaining
            if not any(b in remaining_set and b not in completed for b in blockers[nid])
        ]
        if not ready:
            logger.debug("plan: no ready items among %d remaining; breaking cycle", len(remaining))
            ready = list(remaining)

        wave_ids = sorted(ready, key=sort_key)[:cap]
        waves.append(tuple(issue_map[nid] for nid in wave_ids))
        completed.update(wave_ids)
        remaining_set.difference_update(wave_ids)
        remaining = [nid for nid in remaining if nid in remaining_set]

    total_items = sum(len(w) for w in waves)
    total_waves = len(waves)
    return PlanSchedule(
        waves=tuple(waves),
        total_waves=total_waves,
        total_items=total_items,
        average_throughput=total_items / total_waves if total_waves else 0.0,
        capacity=cap,
    )
