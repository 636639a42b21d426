from __future__ import annotations

import logging
from dataclasses import dataclass

from activity_graph.core.graph.readiness import unmet_dependencies
from activity_graph.core.graph.resolve import activity_labels, get_blocked_activities
from activity_graph.core.model import Activity, ActivityStatus, GraphSnapshot


logger = logging.getLogger(__name__)

# Transitions that require every dependency to be completed.
START_TRANSITIONS: set[tuple[ActivityStatus, ActivityStatus]] = {
    (ActivityStatus.PENDING, ActivityStatus.IN_PROGRESS),
    (ActivityStatus.PENDING, ActivityStatus.COMPLETED),
    (ActivityStatus.IN_PROGRESS, ActivityStatus.COMPLETED),
}

# Un-completing an activity must not strand its dependents.
REOPEN_TRANSITIONS: set[tuple[ActivityStatus, ActivityStatus]] = {
    (ActivityStatus.COMPLETED, ActivityStatus.PENDING),
}


@dataclass(frozen=True)
class TransitionResult:
    valid: bool
    reason: str = ""


def validate_transition(
    activity: Activity, new_status: ActivityStatus, snapshot: GraphSnapshot
) -> TransitionResult:
    """Accept or reject moving activity to new_status.

    Only the dependency-sensitive transitions are checked; every other
    transition is accepted unchanged. Nothing is mutated: callers apply the
    status only when the result is valid.
    """
    transition = (activity.status, new_status)

    if transition in START_TRANSITIONS:
        unmet = unmet_dependencies(activity, snapshot)
        if unmet:
            names = activity_labels(unmet, snapshot)
            logger.debug(
                "rejecting %s -> %s for %r: unmet %r",
                activity.status.value,
                new_status.value,
                activity.id,
                unmet,
            )
            return TransitionResult(
                valid=False,
                reason="cannot start: incomplete dependencies: " + ", ".join(names),
            )
        return TransitionResult(valid=True)

    if transition in REOPEN_TRANSITIONS:
        blocked = get_blocked_activities(activity.id, snapshot)
        if blocked:
            logger.debug("rejecting reopen of %r: %d dependents", activity.id, len(blocked))
            return TransitionResult(
                valid=False,
                reason=(
                    f"this activity blocks {len(blocked)} activity(ies); "
                    "it cannot be moved back to pending"
                ),
            )
        return TransitionResult(valid=True)

    return TransitionResult(valid=True)
