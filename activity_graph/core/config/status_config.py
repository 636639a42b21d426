from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import yaml

from activity_graph.core.model import ActivityStatus


DEFAULT_STATUS_ALIASES: dict[str, ActivityStatus] = {
    # Canonical values are always accepted.
    "pending": ActivityStatus.PENDING,
    "in_progress": ActivityStatus.IN_PROGRESS,
    "completed": ActivityStatus.COMPLETED,
    "on_hold": ActivityStatus.ON_HOLD,
    # Labels shown by the web UI.
    "Pendiente": ActivityStatus.PENDING,
    "En Progreso": ActivityStatus.IN_PROGRESS,
    "Completada": ActivityStatus.COMPLETED,
    "En Pausa": ActivityStatus.ON_HOLD,
}


class StatusConfigError(ValueError):
    pass


def load_status_file(path: str | Path) -> dict[str, ActivityStatus]:
    """Load extra status aliases from a YAML file.

    Format:
      <canonical status>: ["Alias 1", "Alias 2", ...]

    Returns a mapping of alias -> ActivityStatus.
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise StatusConfigError(f"invalid YAML: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise StatusConfigError("status file must be a mapping of status -> list[str]")

    canonical = {s.value: s for s in ActivityStatus}
    out: dict[str, ActivityStatus] = {}
    for k, v in raw.items():
        if not isinstance(k, str) or k not in canonical:
            raise StatusConfigError(f"unknown status '{k}' (choose one of: {', '.join(canonical)})")
        if not isinstance(v, list) or not v:
            raise StatusConfigError(f"status '{k}' must map to a non-empty list")
        for item in v:
            if not isinstance(item, str) or not item.strip():
                raise StatusConfigError(f"status '{k}' aliases must be non-empty strings")
            out[item.strip()] = canonical[k]
    return out


def merged_aliases(
    overrides: dict[str, ActivityStatus] | None = None,
) -> dict[str, ActivityStatus]:
    """Return DEFAULT_STATUS_ALIASES merged with optional overrides.

    Overrides may re-point an alias to another status, except the canonical
    values which always map to themselves.
    """
    merged = dict(DEFAULT_STATUS_ALIASES)
    if overrides:
        merged.update(overrides)
    for s in ActivityStatus:
        merged[s.value] = s
    return merged


def load_and_merge(status_file: str | None) -> dict[str, ActivityStatus]:
    if not status_file:
        return merged_aliases()
    overrides = load_status_file(status_file)
    return merged_aliases(overrides)


def parse_status(value: Any, aliases: dict[str, ActivityStatus]) -> Optional[ActivityStatus]:
    if isinstance(value, ActivityStatus):
        return value
    if not isinstance(value, str):
        return None
    return aliases.get(value.strip())
