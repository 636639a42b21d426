from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Optional, cast

from activity_graph.core.config.status_config import merged_aliases, parse_status
from activity_graph.core.errors import SnapshotValidationError
from activity_graph.core.graph.cycles import find_cycles
from activity_graph.core.model import Activity, ActivityId, ActivityStatus, GraphSnapshot


def is_activity_id(v: Any) -> bool:
    if isinstance(v, bool):
        return False
    if isinstance(v, int):
        return True
    return isinstance(v, str) and bool(v.strip())


def validate_snapshot(
    data: dict[str, Any],
    *,
    status_aliases: Optional[dict[str, ActivityStatus]] = None,
    reject_cycles: bool = True,
) -> tuple[Optional[GraphSnapshot], list[SnapshotValidationError]]:
    """Validate a raw snapshot mapping and build a GraphSnapshot.

    Returns (snapshot, errors). Snapshot is None when errors exist.

    Unknown dependency ids are not errors here: the engine treats them as
    unsatisfied, and lint reports them. Existing cycles are rejected unless
    reject_cycles is False, so bulk-imported data cannot bypass the check
    applied to single edits.
    """

    file = cast(Optional[str], data.get("__file__"))
    aliases = status_aliases if status_aliases is not None else merged_aliases()
    errors: list[SnapshotValidationError] = []

    schema_version = data.get("schema_version")
    if not isinstance(schema_version, str) or not schema_version.strip():
        errors.append(
            SnapshotValidationError(
                code="E_REQUIRED_FIELD",
                message="schema_version is required and must be a non-empty string",
                file=file,
                path="schema_version",
            )
        )

    process = data.get("process")
    if process is not None and not isinstance(process, str):
        errors.append(
            SnapshotValidationError(
                code="E_INVALID_TYPE",
                message="process must be a string",
                file=file,
                path="process",
            )
        )

    activities = data.get("activities")
    if not isinstance(activities, list):
        errors.append(
            SnapshotValidationError(
                code="E_REQUIRED_FIELD",
                message="activities is required and must be an array",
                file=file,
                path="activities",
            )
        )
        return None, _sorted(errors)

    built: list[Activity] = []
    index_by_id: dict[ActivityId, int] = {}

    for i, raw in enumerate(activities):
        item_path = f"activities[{i}]"
        if not isinstance(raw, dict):
            errors.append(
                SnapshotValidationError(
                    code="E_INVALID_TYPE",
                    message="activity must be an object",
                    file=file,
                    path=item_path,
                )
            )
            continue

        aid = raw.get("id")
        if not is_activity_id(aid):
            errors.append(
                SnapshotValidationError(
                    code="E_REQUIRED_FIELD",
                    message="id is required and must be an integer or a non-empty string",
                    file=file,
                    path=f"{item_path}.id",
                )
            )
            continue

        if aid in index_by_id:
            errors.append(
                SnapshotValidationError(
                    code="E_DUPLICATE_ID",
                    message=f"duplicate activity id: {aid}",
                    file=file,
                    path=f"{item_path}.id",
                )
            )
            continue

        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append(
                SnapshotValidationError(
                    code="E_REQUIRED_FIELD",
                    message="name is required and must be a non-empty string",
                    file=file,
                    path=f"{item_path}.name",
                )
            )
            continue

        status = parse_status(raw.get("status"), aliases)
        if status is None:
            errors.append(
                SnapshotValidationError(
                    code="E_INVALID_ENUM",
                    message=f"status must be one of {sorted(aliases)}",
                    file=file,
                    path=f"{item_path}.status",
                )
            )
            continue

        deps = raw.get("dependencies", [])
        if deps is None:
            deps = []
        if not isinstance(deps, list) or not all(is_activity_id(d) for d in deps):
            errors.append(
                SnapshotValidationError(
                    code="E_INVALID_TYPE",
                    message="dependencies must be an array of activity ids",
                    file=file,
                    path=f"{item_path}.dependencies",
                )
            )
            continue

        if aid in deps:
            errors.append(
                SnapshotValidationError(
                    code="E_SELF_DEPENDENCY",
                    message=f"activity {aid} cannot depend on itself",
                    file=file,
                    path=f"{item_path}.dependencies",
                )
            )

        order = raw.get("order")
        if order is not None and (isinstance(order, bool) or not isinstance(order, int)):
            errors.append(
                SnapshotValidationError(
                    code="E_INVALID_TYPE",
                    message="order must be an integer",
                    file=file,
                    path=f"{item_path}.order",
                )
            )

        index_by_id[aid] = i
        built.append(
            Activity(
                id=aid,
                name=name,
                status=status,
                dependencies=tuple(deps),
                order=cast(Optional[int], order),
            )
        )

    snapshot = GraphSnapshot.from_activities(built, process=cast(Optional[str], process))

    if reject_cycles:
        for cycle in find_cycles(snapshot):
            if len(cycle) == 2:
                # [a, a] is already reported as E_SELF_DEPENDENCY
                continue
            owner = cycle[-2]
            errors.append(
                SnapshotValidationError(
                    code="E_CYCLE_DETECTED",
                    message="dependency cycle detected: " + " -> ".join(str(x) for x in cycle),
                    file=file,
                    path=f"activities[{index_by_id.get(owner, 0)}].dependencies",
                )
            )

    if errors:
        return None, _sorted(errors)

    return snapshot, []


def summarize_snapshot(snapshot: GraphSnapshot) -> str:
    counts = Counter([a.status for a in snapshot])
    parts = [f"{s.value}={counts.get(s, 0)}" for s in ActivityStatus]
    edge_count = sum(len(a.dependencies) for a in snapshot)
    head = f"OK: {len(snapshot)} activities (" + ", ".join(parts) + f"), {edge_count} dependencies"
    if snapshot.process:
        head += f"\nProcess: {snapshot.process}"
    return head


def _sorted(errors: Iterable[SnapshotValidationError]) -> list[SnapshotValidationError]:
    return sorted(
        list(errors),
        key=lambda e: e.sort_key(),
    )
