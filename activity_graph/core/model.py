from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Optional, Union


ActivityId = Union[int, str]


class ActivityStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    # Carried through snapshots but not interpreted by the engine.
    ON_HOLD = "on_hold"


@dataclass(frozen=True)
class Activity:
    id: ActivityId
    name: str
    status: ActivityStatus
    dependencies: tuple[ActivityId, ...] = ()

    order: Optional[int] = None

    def __post_init__(self) -> None:
        # Set semantics, declaration order kept for deterministic traversal.
        deps = tuple(dict.fromkeys(self.dependencies))
        object.__setattr__(self, "dependencies", deps)


@dataclass(frozen=True)
class GraphSnapshot:
    """All activities of one process, indexed by id.

    Edges run activity -> prerequisite. The snapshot is read-only for the
    duration of an engine call; callers build a new one after every edit.
    """

    activities_by_id: dict[ActivityId, Activity] = field(default_factory=dict)
    process: Optional[str] = None

    @classmethod
    def from_activities(
        cls, activities: Iterable[Activity], *, process: Optional[str] = None
    ) -> GraphSnapshot:
        return cls(activities_by_id={a.id: a for a in activities}, process=process)

    def get(self, activity_id: ActivityId) -> Optional[Activity]:
        return self.activities_by_id.get(activity_id)

    def with_status(self, activity_id: ActivityId, status: ActivityStatus) -> GraphSnapshot:
        """Return a copy where one activity carries a new status."""
        current = self.activities_by_id.get(activity_id)
        if current is None:
            return self
        updated = dict(self.activities_by_id)
        updated[activity_id] = Activity(
            id=current.id,
            name=current.name,
            status=status,
            dependencies=current.dependencies,
            order=current.order,
        )
        return GraphSnapshot(activities_by_id=updated, process=self.process)

    def __contains__(self, activity_id: object) -> bool:
        return activity_id in self.activities_by_id

    def __iter__(self) -> Iterator[Activity]:
        return iter(self.activities_by_id.values())

    def __len__(self) -> int:
        return len(self.activities_by_id)
