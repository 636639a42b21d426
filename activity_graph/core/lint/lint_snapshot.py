from __future__ import annotations

from typing import Any, Optional

from activity_graph.core.config.status_config import merged_aliases, parse_status
from activity_graph.core.errors import SnapshotValidationError
from activity_graph.core.graph.cycles import find_cycles
from activity_graph.core.graph.readiness import unmet_dependencies
from activity_graph.core.model import Activity, ActivityId, ActivityStatus, GraphSnapshot
from activity_graph.core.validate.validate_snapshot import is_activity_id


# Snapshot lint rules:
# - L_UNKNOWN_DEPENDENCY: dependency id not present in the snapshot (treated as unmet)
# - L_DUPLICATE_DEPENDENCY: the same id listed twice in one activity's dependencies
# - L_STARTED_BEFORE_READY: in_progress/completed while a dependency is not completed
# - L_CYCLE_DETECTED: dependency cycle exists


def lint_snapshot(
    data: dict[str, Any],
    *,
    status_aliases: Optional[dict[str, ActivityStatus]] = None,
) -> list[SnapshotValidationError]:
    """Lint a raw snapshot mapping.

    Lint runs *in addition to* validation. It works best effort on
    partially-invalid input and flags data the engine tolerates but a
    consistent process should not contain.
    """

    file = data.get("__file__") if isinstance(data.get("__file__"), str) else None
    aliases = status_aliases if status_aliases is not None else merged_aliases()

    activities = data.get("activities")
    if not isinstance(activities, list):
        # Let validator handle shape.
        return []

    id_to_index: dict[ActivityId, int] = {}
    best_effort: list[Activity] = []
    errors: list[SnapshotValidationError] = []

    for i, raw in enumerate(activities):
        if not isinstance(raw, dict):
            continue
        aid = raw.get("id")
        if not is_activity_id(aid) or aid in id_to_index:
            continue
        id_to_index[aid] = i

        deps_raw = raw.get("dependencies")
        deps: list[ActivityId] = []
        if isinstance(deps_raw, list):
            deps = [d for d in deps_raw if is_activity_id(d)]

        seen: set[ActivityId] = set()
        for dep in deps:
            if dep in seen:
                errors.append(
                    SnapshotValidationError(
                        code="L_DUPLICATE_DEPENDENCY",
                        message=f"dependency listed more than once: {dep}",
                        file=file,
                        path=f"activities[{i}].dependencies",
                    )
                )
            seen.add(dep)

        name = raw.get("name")
        best_effort.append(
            Activity(
                id=aid,
                name=name if isinstance(name, str) else str(aid),
                status=parse_status(raw.get("status"), aliases) or ActivityStatus.PENDING,
                dependencies=tuple(deps),
            )
        )

    snapshot = GraphSnapshot.from_activities(best_effort)

    # Rule: unknown dependencies
    for activity in snapshot:
        for dep in activity.dependencies:
            if dep not in snapshot:
                errors.append(
                    SnapshotValidationError(
                        code="L_UNKNOWN_DEPENDENCY",
                        message=f"dependencies references unknown id: {dep}",
                        file=file,
                        path=f"activities[{id_to_index[activity.id]}].dependencies",
                    )
                )

    # Rule: started or finished before prerequisites were completed
    for activity in snapshot:
        if activity.status not in (ActivityStatus.IN_PROGRESS, ActivityStatus.COMPLETED):
            continue
        unmet = unmet_dependencies(activity, snapshot)
        if unmet:
            errors.append(
                SnapshotValidationError(
                    code="L_STARTED_BEFORE_READY",
                    message=(
                        f"activity is {activity.status.value} but dependencies are not completed: "
                        + ", ".join(str(x) for x in unmet)
                    ),
                    file=file,
                    path=f"activities[{id_to_index[activity.id]}].status",
                )
            )

    # Rule: cycle detection
    for cycle in find_cycles(snapshot):
        errors.append(
            SnapshotValidationError(
                code="L_CYCLE_DETECTED",
                message="dependency cycle detected: " + " -> ".join(str(x) for x in cycle),
                file=file,
                path=f"activities[{id_to_index.get(cycle[-2], 0)}].dependencies",
            )
        )

    return _sorted(errors)


def _sorted(errors: list[SnapshotValidationError]) -> list[SnapshotValidationError]:
    return sorted(errors, key=lambda e: e.sort_key())
