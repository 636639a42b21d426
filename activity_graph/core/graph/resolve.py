from __future__ import annotations

from collections import defaultdict, deque
from typing import Iterable

from activity_graph.core.model import ActivityId, ActivityStatus, GraphSnapshot


def get_blocked_activities(activity_id: ActivityId, snapshot: GraphSnapshot) -> list[ActivityId]:
    """Activities that directly depend on activity_id and are not yet completed.

    One hop only, in snapshot order. Use get_transitively_blocked for the full
    downstream impact.
    """
    return [
        a.id
        for a in snapshot
        if activity_id in a.dependencies and a.status != ActivityStatus.COMPLETED
    ]


def get_transitively_blocked(
    activity_id: ActivityId, snapshot: GraphSnapshot
) -> list[ActivityId]:
    # prerequisite -> activities that depend on it
    dependents: dict[ActivityId, list[ActivityId]] = defaultdict(list)
    for a in snapshot:
        for dep in a.dependencies:
            dependents[dep].append(a.id)

    q: deque[ActivityId] = deque([activity_id])
    seen: set[ActivityId] = {activity_id}
    out: list[ActivityId] = []
    while q:
        cur = q.popleft()
        for nxt in dependents.get(cur, []):
            if nxt in seen:
                continue
            seen.add(nxt)
            q.append(nxt)
            activity = snapshot.get(nxt)
            if activity is not None and activity.status != ActivityStatus.COMPLETED:
                out.append(nxt)
    return out


def get_dependency_chain(activity_id: ActivityId, snapshot: GraphSnapshot) -> list[ActivityId]:
    """Every prerequisite reachable from activity_id, in discovery order.

    The start id is never part of the result, even on cyclic data. The order
    explains a path; it is not an execution schedule.
    """
    chain: list[ActivityId] = []
    seen: set[ActivityId] = {activity_id}
    stack: list[ActivityId] = [activity_id]

    while stack:
        current = stack.pop()
        activity = snapshot.get(current)
        if activity is None:
            continue
        for dep in activity.dependencies:
            if dep in seen:
                continue
            seen.add(dep)
            chain.append(dep)
            stack.append(dep)

    return chain


def activity_labels(ids: Iterable[ActivityId], snapshot: GraphSnapshot) -> list[str]:
    labels: list[str] = []
    for aid in ids:
        activity = snapshot.get(aid)
        labels.append(activity.name if activity is not None else f"ID: {aid}")
    return labels
