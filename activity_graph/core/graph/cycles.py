from __future__ import annotations

import logging
from dataclasses import dataclass

from activity_graph.core.graph.resolve import activity_labels, get_dependency_chain
from activity_graph.core.model import ActivityId, GraphSnapshot


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: str = ""


def would_create_cycle(
    snapshot: GraphSnapshot, activity_id: ActivityId, proposed_dependency_id: ActivityId
) -> bool:
    """Return True if adding activity_id -> proposed_dependency_id closes a cycle.

    Walks from the proposed prerequisite toward its own prerequisites. Reaching
    activity_id means the prerequisite already depends on it. Ids missing from
    the snapshot are dead ends.
    """
    if activity_id == proposed_dependency_id:
        return True

    visited: set[ActivityId] = set()
    stack: list[ActivityId] = [proposed_dependency_id]

    while stack:
        current = stack.pop()
        if current == activity_id:
            logger.debug(
                "edge %r -> %r would close a cycle", activity_id, proposed_dependency_id
            )
            return True
        if current in visited:
            continue
        visited.add(current)

        activity = snapshot.get(current)
        if activity is None:
            continue
        stack.extend(dep for dep in activity.dependencies if dep not in visited)

    return False


def find_cycles(snapshot: GraphSnapshot) -> list[list[ActivityId]]:
    """Return each distinct cycle already present, as a closed path [a, ..., a]."""
    WHITE, GRAY, BLACK = 0, 1, 2
    state: dict[ActivityId, int] = {aid: WHITE for aid in snapshot.activities_by_id}
    emitted: set[tuple[ActivityId, ...]] = set()
    out: list[list[ActivityId]] = []

    for start in list(state.keys()):
        if state[start] != WHITE:
            continue

        path: list[ActivityId] = [start]
        state[start] = GRAY
        frames = [iter(snapshot.activities_by_id[start].dependencies)]

        while frames:
            descended = False
            for nxt in frames[-1]:
                if nxt not in state:
                    continue
                if state[nxt] == GRAY:
                    # cycle: nxt ... path[-1] -> nxt
                    cycle = path[path.index(nxt):] + [nxt]
                    key = tuple(cycle)
                    if key not in emitted:
                        emitted.add(key)
                        out.append(cycle)
                elif state[nxt] == WHITE:
                    state[nxt] = GRAY
                    path.append(nxt)
                    frames.append(iter(snapshot.activities_by_id[nxt].dependencies))
                    descended = True
                    break
            if not descended:
                frames.pop()
                state[path.pop()] = BLACK

    if out:
        logger.debug("snapshot contains %d dependency cycle(s)", len(out))
    return out


def validate_dependency(
    snapshot: GraphSnapshot, activity_id: ActivityId, proposed_dependency_id: ActivityId
) -> ValidationResult:
    """Gate a new activity_id -> proposed_dependency_id edge before it is persisted."""
    activity = snapshot.get(activity_id)
    if activity is None:
        return ValidationResult(valid=False, reason=f"activity not found: {activity_id}")
    if snapshot.get(proposed_dependency_id) is None:
        return ValidationResult(
            valid=False, reason=f"dependency activity not found: {proposed_dependency_id}"
        )
    if activity_id == proposed_dependency_id:
        return ValidationResult(valid=False, reason="an activity cannot depend on itself")
    if proposed_dependency_id in activity.dependencies:
        return ValidationResult(valid=True)

    if would_create_cycle(snapshot, activity_id, proposed_dependency_id):
        chain = [proposed_dependency_id] + get_dependency_chain(proposed_dependency_id, snapshot)
        return ValidationResult(
            valid=False,
            reason="circular dependency detected: " + " -> ".join(activity_labels(chain, snapshot)),
        )
    return ValidationResult(valid=True)
