"""Status transition checks (pending -> in_progress -> completed, completed -> pending)."""

from activity_graph.core.transition.validate_transition import TransitionResult, validate_transition

__all__ = ["TransitionResult", "validate_transition"]
