from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from blocking_planner.core.graph.critical_path import DEFAULT_MAX_PATHS
from blocking_planner.core.model import Filters


DEFAULT_CAPACITY = 1

KNOWN_KEYS: frozenset[str] = frozenset({"capacity", "max_paths", "filters"})
KNOWN_FILTER_KEYS: frozenset[str] = frozenset({"priority", "assignee", "label"})


class PlanConfigError(ValueError):
    pass


@dataclass(frozen=True)
class PlanConfig:
    capacity: int = DEFAULT_CAPACITY
    max_paths: int = DEFAULT_MAX_PATHS
    filters: Filters = field(default_factory=Filters)


def _positive_int(name: str, v: Any) -> int:
    if isinstance(v, bool) or not isinstance(v, int) or v < 1:
        raise PlanConfigError(f"{name} must be a positive integer")
    return v


def parse_filters(raw: Any) -> Filters:
    """Build Filters from a mapping of priority/assignee/label.

    Missing or null keys stay unset.
    """
    if raw is None:
        return Filters()
    if not isinstance(raw, dict):
        raise PlanConfigError("filters must be a mapping")

    unknown = sorted(str(k) for k in raw if k not in KNOWN_FILTER_KEYS)
    if unknown:
        raise PlanConfigError(f"unknown filter key(s): {', '.join(unknown)}")

    priority = raw.get("priority")
    if priority is not None and (isinstance(priority, bool) or not isinstance(priority, int)):
        raise PlanConfigError("filters.priority must be an integer")

    for key in ("assignee", "label"):
        v = raw.get(key)
        if v is not None and not isinstance(v, str):
            raise PlanConfigError(f"filters.{key} must be a string")

    return Filters(priority=priority, assignee=raw.get("assignee"), label=raw.get("label"))


def load_config_file(path: str | Path) -> PlanConfig:
    """Load planning defaults from a YAML file.

    Format:
      capacity: 3
      max_paths: 3
      filters:
        priority: 1
        assignee: alice
        label: backend
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise PlanConfigError(f"config file is not valid YAML: {e}") from e
    if raw is None:
        return PlanConfig()
    if not isinstance(raw, dict):
        raise PlanConfigError("config file must be a mapping")

    unknown = sorted(str(k) for k in raw if k not in KNOWN_KEYS)
    if unknown:
        raise PlanConfigError(f"unknown config key(s): {', '.join(unknown)}")

    cfg = PlanConfig()
    if raw.get("capacity") is not None:
        cfg = replace(cfg, capacity=_positive_int("capacity", raw["capacity"]))
    if raw.get("max_paths") is not None:
        cfg = replace(cfg, max_paths=_positive_int("max_paths", raw["max_paths"]))
    if "filters" in raw:
        cfg = replace(cfg, filters=parse_filters(raw["filters"]))
    return cfg


def merged_config(
    base: PlanConfig,
    *,
    capacity: Optional[int] = None,
    max_paths: Optional[int] = None,
    priority: Optional[int] = None,
    assignee: Optional[str] = None,
    label: Optional[str] = None,
) -> PlanConfig:
    """Return `base` with any explicitly given value replacing it."""
    filters = base.filters
    if priority is not None:
        filters = replace(filters, priority=priority)
    if assignee is not None:
        filters = replace(filters, assignee=assignee)
    if label is not None:
        filters = replace(filters, label=label)

    return PlanConfig(
        capacity=base.capacity if capacity is None else capacity,
        max_paths=base.max_paths if max_paths is None else _positive_int("max_paths", max_paths),
        filters=filters,
    )


def load_and_merge(config_file: str | None, **overrides: Any) -> PlanConfig:
    base = load_config_file(config_file) if config_file else PlanConfig()
    return merged_config(base, **overrides)
