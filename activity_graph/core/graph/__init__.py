"""Dependency graph queries over a GraphSnapshot.

Every function here is pure: it reads the snapshot it is given and returns a
derived value. Nothing is cached between calls.
"""

from activity_graph.core.graph.cycles import (
    ValidationResult,
    find_cycles,
    validate_dependency,
    would_create_cycle,
)
from activity_graph.core.graph.readiness import can_start, unmet_dependencies
from activity_graph.core.graph.resolve import (
    activity_labels,
    get_blocked_activities,
    get_dependency_chain,
    get_transitively_blocked,
)

__all__ = [
    "ValidationResult",
    "activity_labels",
    "can_start",
    "find_cycles",
    "get_blocked_activities",
    "get_dependency_chain",
    "get_transitively_blocked",
    "unmet_dependencies",
    "validate_dependency",
    "would_create_cycle",
]
