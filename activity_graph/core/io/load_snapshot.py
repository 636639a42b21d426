from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from activity_graph.core.errors import SnapshotLoadError


def load_snapshot(path: str) -> dict[str, Any]:
    """Load a YAML/JSON activity snapshot file.

    Returns a dict with keys: schema_version, activities, optional process.
    Activity entries written with `depends_on` are renamed to `dependencies`;
    nothing else is coerced, the validator owns shape checking.
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
    except OSError as e:  # pragma: no cover
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
    except (yaml.YAMLError, ValueError) as e:
        code = "E_YAML_PARSE" if suffix in {".yaml", ".yml"} else "E_JSON_PARSE"
        raise SnapshotLoadError(code=code, message=str(e), file=str(p)) from e

    if not isinstance(data, dict):
        raise SnapshotLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be a mapping/object",
            file=str(p),
        )

    activities = data.get("activities")
    if isinstance(activities, list):
        activities = [_normalize_activity(raw) for raw in activities]

    normalized: dict[str, Any] = {
        "schema_version": data.get("schema_version"),
        "activities": activities,
    }
    if "process" in data:
        normalized["process"] = data.get("process")

    normalized["__file__"] = str(p)
    return normalized


def _normalize_activity(raw: Any) -> Any:
    # The web UI exports `depends_on`; the engine reads `dependencies`.
    if not isinstance(raw, dict) or "dependencies" in raw or "depends_on" not in raw:
        return raw
    out = {k: v for k, v in raw.items() if k != "depends_on"}
    out["dependencies"] = raw["depends_on"]
    return out
