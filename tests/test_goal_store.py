"""Goal store lifecycle, ordering and capacity tests."""

from __future__ import annotations

import random

import pytest

from goals import (
    CapacityExceededError,
    GoalStore,
    NotFoundError,
    OutOfRangeError,
    ValidationError,
)
from models import GoalCategory, GoalStatus


def ids(store: GoalStore, status: GoalStatus) -> list[str]:
    return [g.id for g in store.get_goals_by_status(status)]


def test_add_goal_appends_to_backlog(store: GoalStore) -> None:
    first = store.add_goal("Run a 5k").goal
    second = store.add_goal("Read 12 books", category=GoalCategory.LEARNING).goal

    assert first.status == GoalStatus.BACKLOG
    assert second.category == GoalCategory.LEARNING
    assert ids(store, GoalStatus.BACKLOG) == [first.id, second.id]
    assert first.id != second.id
    assert store.get_goal_by_id(second.id).sort_order == 1


@pytest.mark.parametrize("title", ["", "   ", None])
def test_add_goal_rejects_empty_title(store: GoalStore, title) -> None:
    with pytest.raises(ValidationError):
        store.add_goal(title)
    assert store.goals == []


def test_reorder_single_element_move(store: GoalStore, add_goals) -> None:
    a, b, c = add_goals("A", "B", "C")

    store.reorder_goals(GoalStatus.BACKLOG, 0, 2)

    assert ids(store, GoalStatus.BACKLOG) == [b, c, a]
    assert [g.sort_order for g in store.get_goals_by_status(GoalStatus.BACKLOG)] == [0, 1, 2]


def test_reorder_round_trip_restores_order(store: GoalStore, add_goals) -> None:
    original = add_goals("A", "B", "C", "D", "E")

    for i in range(5):
        for j in range(5):
            if i == j:
                continue
            store.reorder_goals(GoalStatus.BACKLOG, i, j)
            store.reorder_goals(GoalStatus.BACKLOG, j, i)
            assert ids(store, GoalStatus.BACKLOG) == original


@pytest.mark.parametrize("old_index,new_index", [(-1, 0), (0, 3), (3, 0), (0, -1)])
def test_reorder_out_of_range(store: GoalStore, add_goals, old_index, new_index) -> None:
    original = add_goals("A", "B", "C")

    with pytest.raises(OutOfRangeError):
        store.reorder_goals(GoalStatus.BACKLOG, old_index, new_index)
    assert ids(store, GoalStatus.BACKLOG) == original


def test_reorder_same_index_is_noop(store: GoalStore, add_goals) -> None:
    add_goals("A", "B")
    notified = []
    store.subscribe(notified.append)

    result = store.reorder_goals(GoalStatus.BACKLOG, 1, 1)

    assert result.ok and not result.changed
    assert notified == []


def test_completed_bucket_cannot_be_reordered(store: GoalStore, add_goals) -> None:
    a, b = add_goals("A", "B")
    store.move_goal_to_status(a, GoalStatus.COMPLETED)
    store.move_goal_to_status(b, GoalStatus.COMPLETED)

    with pytest.raises(ValidationError):
        store.reorder_goals(GoalStatus.COMPLETED, 0, 1)


def test_move_into_active_at_position(store: GoalStore, add_goals) -> None:
    a, b = add_goals("A", "B")
    store.move_goal_to_status(a, GoalStatus.ACTIVE)

    store.move_goal_to_status(b, GoalStatus.ACTIVE, 0)

    assert ids(store, GoalStatus.ACTIVE) == [b, a]
    assert store.get_goal_by_id(b).status == GoalStatus.ACTIVE
    assert ids(store, GoalStatus.BACKLOG) == []


def test_move_clamps_target_index(store: GoalStore, add_goals) -> None:
    a, b, c = add_goals("A", "B", "C")
    store.move_goal_to_status(a, GoalStatus.ACTIVE)

    store.move_goal_to_status(c, GoalStatus.ACTIVE, 42)

    assert ids(store, GoalStatus.ACTIVE) == [a, c]
    assert ids(store, GoalStatus.BACKLOG) == [b]


def test_focus_cap_rejects_third_active_goal(store: GoalStore, add_goals) -> None:
    a, b, c = add_goals("A", "B", "C")
    store.move_goal_to_status(a, GoalStatus.ACTIVE)
    store.move_goal_to_status(b, GoalStatus.ACTIVE)
    notified = []
    store.subscribe(notified.append)

    with pytest.raises(CapacityExceededError):
        store.move_goal_to_status(c, GoalStatus.ACTIVE, 0)

    assert ids(store, GoalStatus.ACTIVE) == [a, b]
    assert ids(store, GoalStatus.BACKLOG) == [c]
    assert store.get_goal_by_id(c).status == GoalStatus.BACKLOG
    assert notified == []


def test_first_caller_wins_last_active_slot(store: GoalStore, add_goals) -> None:
    a, b, c = add_goals("A", "B", "C")
    store.move_goal_to_status(a, GoalStatus.ACTIVE)

    store.move_goal_to_status(b, GoalStatus.ACTIVE)
    with pytest.raises(CapacityExceededError):
        store.move_goal_to_status(c, GoalStatus.ACTIVE)

    assert ids(store, GoalStatus.ACTIVE) == [a, b]


def test_move_to_same_status_is_noop(store: GoalStore, add_goals) -> None:
    a, b = add_goals("A", "B")
    notified = []
    store.subscribe(notified.append)

    result = store.move_goal_to_status(b, GoalStatus.BACKLOG, 0)

    assert not result.changed
    assert ids(store, GoalStatus.BACKLOG) == [a, b]
    assert notified == []


def test_unknown_goal_raises_not_found(store: GoalStore) -> None:
    with pytest.raises(NotFoundError):
        store.move_goal_to_status("missing", GoalStatus.ACTIVE)
    with pytest.raises(NotFoundError):
        store.update_progress("missing", 10)
    with pytest.raises(NotFoundError):
        store.delete_goal("missing")


def test_completing_stamps_marker_and_keeps_progress(store: GoalStore, add_goals) -> None:
    (a,) = add_goals("A")
    store.update_progress(a, 40)
    store.move_goal_to_status(a, GoalStatus.ACTIVE)

    store.move_goal_to_status(a, GoalStatus.COMPLETED)

    goal = store.get_goal_by_id(a)
    assert goal.status == GoalStatus.COMPLETED
    assert goal.completed_at is not None
    assert goal.progress == 40
    assert ids(store, GoalStatus.ACTIVE) == []


def test_completed_goals_newest_first(store: GoalStore, add_goals) -> None:
    a, b, c = add_goals("A", "B", "C")
    store.move_goal_to_status(b, GoalStatus.COMPLETED)
    store.move_goal_to_status(a, GoalStatus.COMPLETED)
    store.move_goal_to_status(c, GoalStatus.COMPLETED)

    assert ids(store, GoalStatus.COMPLETED) == [c, a, b]


def test_uncompleting_revalidates_capacity(store: GoalStore, add_goals) -> None:
    a, b, c = add_goals("A", "B", "C")
    store.move_goal_to_status(c, GoalStatus.COMPLETED)
    store.move_goal_to_status(a, GoalStatus.ACTIVE)
    store.move_goal_to_status(b, GoalStatus.ACTIVE)

    with pytest.raises(CapacityExceededError):
        store.move_goal_to_status(c, GoalStatus.ACTIVE)

    store.move_goal_to_status(c, GoalStatus.BACKLOG)
    goal = store.get_goal_by_id(c)
    assert goal.status == GoalStatus.BACKLOG
    assert goal.completed_at is None


def test_goal_can_cycle_through_every_status(store: GoalStore, add_goals) -> None:
    (a,) = add_goals("A")
    for status in [GoalStatus.ACTIVE, GoalStatus.COMPLETED, GoalStatus.ACTIVE,
                   GoalStatus.BACKLOG, GoalStatus.COMPLETED, GoalStatus.BACKLOG]:
        store.move_goal_to_status(a, status)
        assert store.get_goal_by_id(a).status == status
        assert ids(store, status) == [a]


@pytest.mark.parametrize("value,expected", [(150, 100), (-5, 0), (55, 55)])
def test_update_progress_clamps(store: GoalStore, add_goals, value, expected) -> None:
    (a,) = add_goals("A")

    store.update_progress(a, value)

    assert store.get_goal_by_id(a).progress == expected
    assert ids(store, GoalStatus.BACKLOG) == [a]


def test_observers_get_one_full_snapshot_per_mutation(store: GoalStore, add_goals) -> None:
    a, b = add_goals("A", "B")
    snapshots = []
    unsubscribe = store.subscribe(snapshots.append)

    store.move_goal_to_status(a, GoalStatus.ACTIVE)

    assert len(snapshots) == 1
    assert snapshots[0].ids(GoalStatus.ACTIVE) == [a]
    assert snapshots[0].ids(GoalStatus.BACKLOG) == [b]

    unsubscribe()
    store.update_progress(a, 10)
    assert len(snapshots) == 1


def test_failing_observer_does_not_block_others(store: GoalStore) -> None:
    seen = []

    def broken(snapshot):
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(seen.append)

    result = store.add_goal("A")

    assert result.ok
    assert len(seen) == 1


def test_returned_goals_are_copies(store: GoalStore, add_goals) -> None:
    (a,) = add_goals("A")

    copy = store.get_goal_by_id(a)
    copy.status = GoalStatus.ACTIVE
    copy.title = "changed"

    assert store.get_goal_by_id(a).status == GoalStatus.BACKLOG
    assert store.get_goal_by_id(a).title == "A"


def test_update_goal_details(store: GoalStore, add_goals) -> None:
    (a,) = add_goals("A")

    store.update_goal_details(a, title="Run a marathon", category=GoalCategory.FITNESS,
                              linked_value_ids=["health"])

    goal = store.get_goal_by_id(a)
    assert goal.title == "Run a marathon"
    assert goal.category == GoalCategory.FITNESS
    assert goal.linked_value_ids == ["health"]

    with pytest.raises(ValidationError):
        store.update_goal_details(a, title=" ")
    with pytest.raises(ValidationError):
        store.update_goal_details(a, category="not-a-category")
    assert store.get_goal_by_id(a).title == "Run a marathon"


def test_delete_goal_removes_from_every_index(store: GoalStore, add_goals, check_bucket_consistency) -> None:
    a, b, c = add_goals("A", "B", "C")

    store.delete_goal(a)

    assert store.get_goal_by_id(a) is None
    assert ids(store, GoalStatus.BACKLOG) == [b, c]
    assert [g.sort_order for g in store.get_goals_by_status(GoalStatus.BACKLOG)] == [0, 1]
    check_bucket_consistency(store)


def test_goals_by_category_and_counts(store: GoalStore) -> None:
    fit = store.add_goal("Swim", category=GoalCategory.FITNESS).goal
    store.add_goal("Save", category=GoalCategory.FINANCE)
    store.move_goal_to_status(fit.id, GoalStatus.ACTIVE)

    assert [g.id for g in store.get_goals_by_category(GoalCategory.FITNESS)] == [fit.id]
    assert store.get_goals_by_category(GoalCategory.FITNESS, GoalStatus.BACKLOG) == []
    assert store.counts() == {
        GoalStatus.BACKLOG: 1,
        GoalStatus.ACTIVE: 1,
        GoalStatus.COMPLETED: 0,
    }


def test_buckets_stay_consistent_under_random_operations(store: GoalStore, check_bucket_consistency) -> None:
    rng = random.Random(1234)
    expected_errors = (CapacityExceededError, OutOfRangeError, ValidationError)

    for step in range(300):
        goals = store.goals
        action = rng.choice(["add", "move", "reorder", "progress", "delete"])
        try:
            if action == "add" or not goals:
                store.add_goal(f"Goal {step}")
            elif action == "move":
                goal = rng.choice(goals)
                store.move_goal_to_status(goal.id, rng.choice(list(GoalStatus)), rng.randint(-1, 4))
            elif action == "reorder":
                status = rng.choice([GoalStatus.ACTIVE, GoalStatus.BACKLOG])
                length = store.counts()[status]
                store.reorder_goals(status, rng.randint(0, length), rng.randint(0, length))
            elif action == "progress":
                store.update_progress(rng.choice(goals).id, rng.randint(-50, 150))
            elif rng.random() < 0.3:
                store.delete_goal(rng.choice(goals).id)
        except expected_errors:
            pass
        check_bucket_consistency(store)
