"""Shared fixtures for goal store tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import pytest

from goals import GoalStore
from models import Goal, GoalStatus
from storage import JsonStore, StorageError, StorageInterface


class MemoryStorage(StorageInterface[Goal]):
    """Dict-backed storage whose writes can be switched to fail."""

    def __init__(self, goals: Optional[Sequence[Goal]] = None) -> None:
        self.items: Dict[str, Goal] = {g.id: g.model_copy(deep=True) for g in goals or []}
        self.fail_writes = False
        self.writes = 0

    def get_all(self) -> List[Goal]:
        return [g.model_copy(deep=True) for g in self.items.values()]

    def get_by_id(self, id_value: str) -> Optional[Goal]:
        goal = self.items.get(id_value)
        return goal.model_copy(deep=True) if goal else None

    def save(self, item: Goal) -> Goal:
        self.save_all([item])
        return item

    def save_all(self, items: Sequence[Goal]) -> List[Goal]:
        if self.fail_writes:
            raise StorageError("disk full")
        self.writes += 1
        for item in items:
            self.items[item.id] = item.model_copy(deep=True)
        return list(items)

    def delete(self, id_value: str) -> bool:
        if self.fail_writes:
            raise StorageError("disk full")
        self.writes += 1
        return self.items.pop(id_value, None) is not None


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(memory_storage: MemoryStorage) -> GoalStore:
    goal_store = GoalStore(memory_storage)
    goal_store.load()
    return goal_store


@pytest.fixture
def json_path(tmp_path: Path) -> str:
    return str(tmp_path / "data" / "goals.json")


@pytest.fixture
def json_store(json_path: str) -> JsonStore:
    return JsonStore(Goal, json_path)


@pytest.fixture
def add_goals(store: GoalStore) -> Callable[..., List[str]]:
    """Add backlog goals by title and return their ids in order."""

    def _add(*titles: str) -> List[str]:
        return [store.add_goal(title).goal.id for title in titles]

    return _add


@pytest.fixture
def check_bucket_consistency() -> Callable[[GoalStore], None]:
    def _check(goal_store: GoalStore) -> None:
        snapshot = goal_store.snapshot()
        ids = {status: snapshot.ids(status) for status in GoalStatus}
        assert len(ids[GoalStatus.ACTIVE]) <= goal_store.focus_cap

        every_id = [goal_id for status in GoalStatus for goal_id in ids[status]]
        assert len(every_id) == len(set(every_id))
        assert set(every_id) == {g.id for g in goal_store.goals}

        for status in GoalStatus:
            for goal in snapshot.by_status(status):
                assert goal.status == status
                assert 0 <= goal.progress <= 100

    return _check
