from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Optional

from blocking_planner.core.filters import apply_filters, restrict_edges
from blocking_planner.core.graph.critical_path import DEFAULT_MAX_PATHS, find_critical_paths
from blocking_planner.core.graph.normalize import extract_blocking_graph
from blocking_planner.core.graph.readiness import find_parallel_groups, find_ready_items
from blocking_planner.core.graph.traversal import calculate_fan_out, topological_sort
from blocking_planner.core.model import BlockingModel, Filters


logger = logging.getLogger(__name__)


def build_blocking_model(
    components: Any,
    filters: Optional[Filters] = None,
    max_paths: int = DEFAULT_MAX_PATHS,
) -> BlockingModel:
    """Build the full blocking model from a raw graph snapshot.

    Filtering happens first so every derived view covers the same issue subset.
    Anything that is not a non-empty sequence of components yields an empty model.
    """

    if not isinstance(components, (list, tuple)) or not components:
        return BlockingModel.empty()

    issue_map, edges = extract_blocking_graph(components)

    ids = apply_filters(list(issue_map.keys()), issue_map, filters)
    edges = restrict_edges(edges, ids)

    order = topological_sort(ids, edges)
    paths = find_critical_paths(ids, edges, issue_map, max_paths=max_paths)
    ready = find_ready_items(ids, edges, issue_map)
    groups = find_parallel_groups(ids, edges, issue_map)
    fan_out = calculate_fan_out(ids, edges)

    logger.debug(
        "blocking model: %d issues, %d edges, %d ready, %d phases, %d critical path(s)",
        len(ids),
        len(edges),
        len(ready),
        len(groups),
        len(paths),
    )

    critical_paths = tuple(tuple(issue_map[nid] for nid in path) for path in paths)
    return BlockingModel(
        issues=tuple(issue_map[nid] for nid in ids),
        edges=tuple(edges),
        completion_order=tuple(issue_map[nid] for nid in order),
        critical_path=critical_paths[0] if critical_paths else (),
        critical_paths=critical_paths,
        ready_items=tuple(issue_map[nid] for nid in ready),
        parallel_groups=tuple(tuple(issue_map[nid] for nid in group) for group in groups),
        fan_out_counts=MappingProxyType(fan_out),
    )
