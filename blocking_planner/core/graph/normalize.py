from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union

from blocking_planner.core.model import BlockingEdge, Issue


logger = logging.getLogger(__name__)

BLOCKING_TYPES: frozenset[str] = frozenset({"blocks", "blocked-by"})

# Field spellings emitted by the upstream tracker (snake, Pascal, camel).
DEP_ISSUE_KEYS = ("issue_id", "IssueID", "issueId")
DEP_DEPENDS_ON_KEYS = ("depends_on_id", "DependsOnID", "dependsOnId")
DEP_FROM_KEYS = ("from_id", "FromID", "fromId")
DEP_TO_KEYS = ("to_id", "ToID", "toId")
DEP_TYPE_KEYS = ("type", "dependency_type", "relationship", "relation_type")

ISSUE_ID_KEYS = ("id", "ID", "Id")
ISSUE_TITLE_KEYS = ("title", "Title")
ISSUE_STATUS_KEYS = ("status", "Status")
ISSUE_PRIORITY_KEYS = ("priority", "Priority")
ISSUE_ASSIGNEE_KEYS = ("assignee", "Assignee")
ISSUE_LABELS_KEYS = ("labels", "Labels")
ISSUE_ESTIMATE_KEYS = ("estimate_minutes", "EstimateMinutes", "estimateMinutes", "estimated_minutes")
ISSUE_TYPE_KEYS = ("issue_type", "IssueType", "issueType")


@dataclass(frozen=True)
class CanonicalDependency:
    """Record shaped as issue -> depends_on; the blocker is always `depends_on_id`."""

    issue_id: Optional[str]
    depends_on_id: Optional[str]
    type: str


@dataclass(frozen=True)
class LegacyDependency:
    from_id: Optional[str]
    to_id: Optional[str]
    type: str


RawDependency = Union[CanonicalDependency, LegacyDependency]


def get_field(obj: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if key in obj and obj[key] is not None:
            return obj[key]
    return None


def _has_any_key(obj: Mapping[str, Any], keys: Iterable[str]) -> bool:
    return any(key in obj for key in keys)


def _as_id(v: Any) -> Optional[str]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, str)):
        s = str(v).strip()
        return s or None
    return None


def parse_dependency(raw: Any) -> Optional[RawDependency]:
    """Detect the raw dependency shape and return the matching record.

    Returns None for values that are not mappings.
    """

    if not isinstance(raw, Mapping):
        return None

    dep_type = get_field(raw, DEP_TYPE_KEYS)
    dep_type = dep_type if isinstance(dep_type, str) and dep_type else "related"

    if _has_any_key(raw, DEP_ISSUE_KEYS) or _has_any_key(raw, DEP_DEPENDS_ON_KEYS):
        return CanonicalDependency(
            issue_id=_as_id(get_field(raw, DEP_ISSUE_KEYS)),
            depends_on_id=_as_id(get_field(raw, DEP_DEPENDS_ON_KEYS)),
            type=dep_type,
        )

    return LegacyDependency(
        from_id=_as_id(get_field(raw, DEP_FROM_KEYS)),
        to_id=_as_id(get_field(raw, DEP_TO_KEYS)),
        type=dep_type,
    )


def dependency_endpoints(dep: RawDependency) -> tuple[Optional[str], Optional[str]]:
    """(issue, blocker-or-target) ids as written, before direction rules apply."""
    if isinstance(dep, CanonicalDependency):
        return dep.issue_id, dep.depends_on_id
    return dep.from_id, dep.to_id


def to_blocking_edge(dep: RawDependency) -> Optional[BlockingEdge]:
    """Apply the direction rules. Returns None for non-blocking or incomplete records."""
    if dep.type not in BLOCKING_TYPES:
        return None

    if isinstance(dep, CanonicalDependency):
        if not dep.issue_id or not dep.depends_on_id:
            return None
        return BlockingEdge(from_id=dep.depends_on_id, to_id=dep.issue_id)

    if not dep.from_id or not dep.to_id:
        return None
    if dep.type == "blocks":
        return BlockingEdge(from_id=dep.from_id, to_id=dep.to_id)
    return BlockingEdge(from_id=dep.to_id, to_id=dep.from_id)


def _as_priority(v: Any) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, float):
        return int(v) if math.isfinite(v) and v.is_integer() else None
    if isinstance(v, str):
        s = v.strip().upper().removeprefix("P")
        if s.lstrip("-").isdigit():
            return int(s)
    return None


def _as_estimate(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    try:
        est = float(v)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(est) or est < 0:
        return None
    return est


def _as_labels(v: Any) -> tuple[str, ...]:
    if not isinstance(v, (list, tuple)):
        return ()
    return tuple(x for x in v if isinstance(x, str))


def _as_optional_str(v: Any) -> Optional[str]:
    return v if isinstance(v, str) and v else None


def parse_issue(raw: Any, fallback_id: Optional[str] = None) -> Optional[Issue]:
    if isinstance(raw, Issue):
        return raw
    if not isinstance(raw, Mapping):
        return None

    issue_id = _as_id(get_field(raw, ISSUE_ID_KEYS)) or fallback_id
    if not issue_id:
        return None

    title = get_field(raw, ISSUE_TITLE_KEYS)
    status = get_field(raw, ISSUE_STATUS_KEYS)
    return Issue(
        id=issue_id,
        title=title if isinstance(title, str) else "",
        status=status if isinstance(status, str) and status else "open",
        priority=_as_priority(get_field(raw, ISSUE_PRIORITY_KEYS)),
        assignee=_as_optional_str(get_field(raw, ISSUE_ASSIGNEE_KEYS)),
        labels=_as_labels(get_field(raw, ISSUE_LABELS_KEYS)),
        estimate_minutes=_as_estimate(get_field(raw, ISSUE_ESTIMATE_KEYS)),
        issue_type=_as_optional_str(get_field(raw, ISSUE_TYPE_KEYS)),
    )


def component_issues(component: Mapping[str, Any]) -> list[Any]:
    issues = get_field(component, ("Issues", "issues"))
    return issues if isinstance(issues, list) else []


def component_issue_map(component: Mapping[str, Any]) -> dict[str, Any]:
    mapping = get_field(component, ("IssueMap", "issue_map", "issueMap"))
    return mapping if isinstance(mapping, dict) else {}


def component_dependencies(component: Mapping[str, Any]) -> list[Any]:
    deps = get_field(component, ("Dependencies", "dependencies"))
    return deps if isinstance(deps, list) else []


def extract_blocking_graph(
    components: Iterable[Any],
) -> tuple[dict[str, Issue], list[BlockingEdge]]:
    """Flatten graph components into one issue lookup and canonical blocking edges.

    Only `blocks` / `blocked-by` relations are kept, oriented blocker -> blocked.
    Malformed records and edges referencing unknown issues are skipped.
    """

    issue_map: dict[str, Issue] = {}
    candidates: list[BlockingEdge] = []
    skipped = 0

    for component in components:
        if not isinstance(component, Mapping):
            continue

        for key, raw in component_issue_map(component).items():
            issue = parse_issue(raw, fallback_id=_as_id(key))
            if issue is not None:
                issue_map[issue.id] = issue

        for raw in component_issues(component):
            issue = parse_issue(raw)
            if issue is not None:
                issue_map[issue.id] = issue

        for raw in component_dependencies(component):
            dep = parse_dependency(raw)
            if dep is None:
                skipped += 1
                continue
            edge = to_blocking_edge(dep)
            if edge is None:
                if dep.type in BLOCKING_TYPES:
                    skipped += 1
                continue
            candidates.append(edge)

    edges: list[BlockingEdge] = []
    seen: set[BlockingEdge] = set()
    dangling = 0
    for edge in candidates:
        if edge.from_id not in issue_map or edge.to_id not in issue_map:
            dangling += 1
            continue
        if edge in seen:
            continue
        seen.add(edge)
        edges.append(edge)

    if skipped or dangling:
        logger.debug(
            "normalize: skipped %d malformed and %d dangling dependencies", skipped, dangling
        )
    return issue_map, edges
