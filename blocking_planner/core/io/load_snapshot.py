from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from blocking_planner.core.errors import SnapshotLoadError


def load_snapshot(path: str) -> list[dict[str, Any]]:
    """Load a graph snapshot (`bd graph --all --json` output) from YAML/JSON.

    Accepts a list of components, a mapping with a `components` list, or a
    single component mapping. Returns the list of component mappings; does not
    coerce issues or dependencies, the normalizer owns that.
    """

    p = Path(path)
    if not p.exists():
        raise SnapshotLoadError(
            code="E_FILE_NOT_FOUND",
            message="file does not exist",
            file=str(p),
        )

    suffix = p.suffix.lower()
    try:
        raw_text = p.read_text(encoding="utf-8")
    except Exception as e:  # pragma: no cover
        raise SnapshotLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    try:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(raw_text)
        elif suffix == ".json":
            data = json.loads(raw_text)
        else:
            raise SnapshotLoadError(
                code="E_UNSUPPORTED_FORMAT",
                message="supported formats are .yaml/.yml and .json",
                file=str(p),
            )
    except SnapshotLoadError:
        raise
    except Exception as e:
        code = "E_YAML_PARSE" if suffix in {".yaml", ".yml"} else "E_JSON_PARSE"
        raise SnapshotLoadError(code=code, message=str(e), file=str(p)) from e

    return normalize_snapshot(data, file=str(p))


def normalize_snapshot(data: Any, file: str | None = None) -> list[dict[str, Any]]:
    if isinstance(data, dict):
        if "components" in data:
            data = data.get("components")
        else:
            data = [data]

    if not isinstance(data, list):
        raise SnapshotLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="snapshot must be a list of components or a mapping",
            file=file,
        )

    return [c for c in data if isinstance(c, dict)]
