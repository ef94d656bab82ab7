from __future__ import annotations

from typing import Any, Optional

from blocking_planner.core.errors import SnapshotLintError
from blocking_planner.core.graph.normalize import (
    BLOCKING_TYPES,
    ISSUE_ID_KEYS,
    dependency_endpoints,
    extract_blocking_graph,
    get_field,
    parse_dependency,
)
from blocking_planner.core.graph.traversal import VisitState, build_adjacency, new_state_arena


# Snapshot lint rules. The engine drops bad data silently; lint says what was dropped.
# - L_MISSING_ISSUE_ID: issue entry without an id
# - L_DUPLICATE_ID: the same issue id listed more than once
# - L_MALFORMED_DEPENDENCY: blocking dependency missing an endpoint
# - L_DANGLING_DEPENDENCY: blocking dependency referencing an unknown issue
# - L_CYCLE_DETECTED: blocking cycle (including an issue blocking itself)


def _list_key(component: dict[str, Any], keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        if isinstance(component.get(key), list):
            return key
    return None


def lint_snapshot(components: Any, file: Optional[str] = None) -> list[SnapshotLintError]:
    """Lint a raw graph snapshot.

    Best effort: never raises on bad shapes, only reports what it can see.
    """

    if not isinstance(components, list):
        return []

    errors: list[SnapshotLintError] = []
    id_locations: dict[str, str] = {}

    for ci, component in enumerate(components):
        if not isinstance(component, dict):
            continue
        issues_key = _list_key(component, ("Issues", "issues"))
        if issues_key is None:
            continue
        for ii, raw in enumerate(component[issues_key]):
            loc = f"components[{ci}].{issues_key}[{ii}]"
            nid = get_field(raw, ISSUE_ID_KEYS) if isinstance(raw, dict) else None
            if nid is None or (isinstance(nid, str) and not nid.strip()):
                errors.append(
                    SnapshotLintError(
                        code="L_MISSING_ISSUE_ID",
                        message="issue has no id and is ignored",
                        file=file,
                        path=loc,
                    )
                )
                continue
            nid = str(nid).strip()
            if nid in id_locations:
                errors.append(
                    SnapshotLintError(
                        code="L_DUPLICATE_ID",
                        message=f"duplicate issue id: {nid} (first at {id_locations[nid]})",
                        file=file,
                        path=f"{loc}.id",
                    )
                )
            else:
                id_locations[nid] = loc

    issue_map, edges = extract_blocking_graph(components)
    known = set(issue_map.keys())

    for ci, component in enumerate(components):
        if not isinstance(component, dict):
            continue
        deps_key = _list_key(component, ("Dependencies", "dependencies"))
        if deps_key is None:
            continue
        for di, raw in enumerate(component[deps_key]):
            dep = parse_dependency(raw)
            if dep is None or dep.type not in BLOCKING_TYPES:
                continue
            loc = f"components[{ci}].{deps_key}[{di}]"
            a, b = dependency_endpoints(dep)
            if not a or not b:
                errors.append(
                    SnapshotLintError(
                        code="L_MALFORMED_DEPENDENCY",
                        message=f"{dep.type} dependency is missing an endpoint",
                        file=file,
                        path=loc,
                    )
                )
                continue
            unknown = [x for x in dict.fromkeys((a, b)) if x not in known]
            if unknown:
                errors.append(
                    SnapshotLintError(
                        code="L_DANGLING_DEPENDENCY",
                        message=f"dependency references unknown issue(s): {', '.join(unknown)}",
                        file=file,
                        path=loc,
                    )
                )

    for nid, msg in _detect_cycles(list(issue_map.keys()), edges):
        errors.append(
            SnapshotLintError(
                code="L_CYCLE_DETECTED",
                message=msg,
                file=file,
                path=id_locations.get(nid, f"issues[{nid}]"),
            )
        )

    return _sorted(errors)


def _detect_cycles(ids: list[str], edges: list[Any]) -> list[tuple[str, str]]:
    out_edges, _ = build_adjacency(ids, edges)
    state = new_state_arena(ids)
    emitted: set[frozenset[str]] = set()
    out: list[tuple[str, str]] = []

    for root in ids:
        if state[root] is not VisitState.UNVISITED:
            continue
        state[root] = VisitState.IN_PROGRESS
        path: list[str] = [root]
        stack: list[tuple[str, int]] = [(root, 0)]
        while stack:
            u, i = stack[-1]
            if i >= len(out_edges[u]):
                state[u] = VisitState.DONE
                stack.pop()
                path.pop()
                continue
            stack[-1] = (u, i + 1)
            v = out_edges[u][i]
            if state[v] is VisitState.IN_PROGRESS:
                # cycle: v ... u -> v
                cycle = path[path.index(v):] + [v]
                key = frozenset(cycle)
                if key not in emitted:
                    emitted.add(key)
                    out.append((u, "blocking cycle detected: " + " -> ".join(cycle)))
            elif state[v] is VisitState.UNVISITED:
                state[v] = VisitState.IN_PROGRESS
                path.append(v)
                stack.append((v, 0))

    return out


def _sorted(errors: list[SnapshotLintError]) -> list[SnapshotLintError]:
    return sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
