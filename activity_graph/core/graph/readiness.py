from __future__ import annotations

from activity_graph.core.model import Activity, ActivityId, ActivityStatus, GraphSnapshot


def unmet_dependencies(activity: Activity, snapshot: GraphSnapshot) -> list[ActivityId]:
    """Dependencies that are missing from the snapshot or not completed."""
    out: list[ActivityId] = []
    for dep_id in activity.dependencies:
        dep = snapshot.get(dep_id)
        if dep is None or dep.status != ActivityStatus.COMPLETED:
            out.append(dep_id)
    return out


def can_start(activity: Activity, snapshot: GraphSnapshot) -> bool:
    return not unmet_dependencies(activity, snapshot)
