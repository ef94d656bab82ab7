from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal, Mapping, Optional


IssueStatus = Literal["open", "in_progress", "blocked", "closed", "done"]

CLOSED_STATUSES: frozenset[str] = frozenset({"closed", "done"})


def is_closed_status(status: Optional[str]) -> bool:
    return status in CLOSED_STATUSES


@dataclass(frozen=True)
class Issue:
    id: str
    title: str = ""
    status: str = "open"
    priority: Optional[int] = None
    assignee: Optional[str] = None
    labels: tuple[str, ...] = ()
    estimate_minutes: Optional[float] = None
    issue_type: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return is_closed_status(self.status)


@dataclass(frozen=True)
class BlockingEdge:
    """`from_id` must complete before `to_id` can proceed."""

    from_id: str
    to_id: str


@dataclass(frozen=True)
class Filters:
    priority: Optional[int] = None
    assignee: Optional[str] = None
    label: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.priority is None and not self.assignee and not self.label


@dataclass(frozen=True)
class BlockingModel:
    issues: tuple[Issue, ...]
    edges: tuple[BlockingEdge, ...]
    completion_order: tuple[Issue, ...]
    critical_path: tuple[Issue, ...]
    critical_paths: tuple[tuple[Issue, ...], ...]
    ready_items: tuple[Issue, ...]
    parallel_groups: tuple[tuple[Issue, ...], ...]
    fan_out_counts: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def empty(cls) -> "BlockingModel":
        return cls(
            issues=(),
            edges=(),
            completion_order=(),
            critical_path=(),
            critical_paths=(),
            ready_items=(),
            parallel_groups=(),
        )


@dataclass(frozen=True)
class PlanSchedule:
    waves: tuple[tuple[Issue, ...], ...]
    total_waves: int
    total_items: int
    average_throughput: float
    capacity: int
