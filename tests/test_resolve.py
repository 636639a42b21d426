from activity_graph.core.graph.resolve import (
    activity_labels,
    get_blocked_activities,
    get_dependency_chain,
    get_transitively_blocked,
)
from activity_graph.core.model import Activity, ActivityStatus, GraphSnapshot


P = ActivityStatus.PENDING
C = ActivityStatus.COMPLETED


def _snapshot(*specs: tuple) -> GraphSnapshot:
    return GraphSnapshot.from_activities(
        Activity(id=aid, name=f"Activity {aid}", status=status, dependencies=deps)
        for aid, status, deps in specs
    )


def test_blocked_contains_only_unfinished_direct_dependents():
    snapshot = _snapshot(
        (1, C, []),
        (2, P, [1]),
        (3, C, [1]),
        (4, ActivityStatus.IN_PROGRESS, [1]),
        (5, P, [2]),
    )
    assert get_blocked_activities(1, snapshot) == [2, 4]
    assert get_blocked_activities(2, snapshot) == [5]
    assert get_blocked_activities(5, snapshot) == []


def test_blocked_for_unknown_id_is_empty():
    snapshot = _snapshot((1, P, []))
    assert get_blocked_activities(99, snapshot) == []


def test_blocked_includes_dependents_of_ids_absent_from_snapshot():
    snapshot = _snapshot((1, P, ["gone"]))
    assert get_blocked_activities("gone", snapshot) == [1]


def test_transitively_blocked_walks_downstream():
    snapshot = _snapshot(
        (1, P, []),
        (2, P, [1]),
        (3, C, [2]),
        (4, P, [3]),
        (5, P, []),
    )
    assert get_transitively_blocked(1, snapshot) == [2, 4]
    assert get_transitively_blocked(5, snapshot) == []


def test_transitively_blocked_terminates_on_cycle():
    snapshot = _snapshot((1, P, [2]), (2, P, [1]))
    assert get_transitively_blocked(1, snapshot) == [2]


def test_chain_scenario_order():
    snapshot = _snapshot((1, P, []), (2, P, [1]), (3, P, [2]))
    assert get_dependency_chain(3, snapshot) == [2, 1]
    assert get_dependency_chain(1, snapshot) == []


def test_chain_has_no_duplicates_on_shared_prerequisites():
    snapshot = _snapshot((1, P, []), (2, P, [1]), (3, P, [1, 2]))
    chain = get_dependency_chain(3, snapshot)
    assert sorted(chain) == [1, 2]
    assert len(chain) == len(set(chain))


def test_chain_terminates_on_cycle_and_excludes_start():
    snapshot = _snapshot((1, P, [2]), (2, P, [3]), (3, P, [1]))
    chain = get_dependency_chain(1, snapshot)
    assert chain == [2, 3]
    assert 1 not in chain


def test_chain_includes_unknown_ids_once():
    snapshot = _snapshot((1, P, ["x"]), (2, P, [1, "x"]))
    assert get_dependency_chain(2, snapshot) == [1, "x"]


def test_labels_fall_back_to_id():
    snapshot = _snapshot((1, P, []))
    assert activity_labels([1, 7], snapshot) == ["Activity 1", "ID: 7"]
