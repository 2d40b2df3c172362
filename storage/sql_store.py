import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import JSON, Column
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Field, Session, SQLModel, select

from models import Goal, GoalCategory, GoalStatus, Milestone
from storage.storage_interface import StorageError, StorageInterface

logger = logging.getLogger(__name__)


class GoalRecord(SQLModel, table=True):
    id: str = Field(primary_key=True)
    title: str
    description: str = ""
    category: str = GoalCategory.PERSONAL.value
    status: str = Field(default=GoalStatus.BACKLOG.value, index=True)
    progress: int = 0
    sort_order: int = 0
    target_date: Optional[date] = None
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    linked_value_ids: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    milestones: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))

    @classmethod
    def from_goal(cls, goal: Goal) -> "GoalRecord":
        return cls(
            id=goal.id,
            title=goal.title,
            description=goal.description,
            category=goal.category.value,
            status=goal.status.value,
            progress=goal.progress,
            sort_order=goal.sort_order,
            target_date=goal.target_date,
            created_at=goal.created_at,
            completed_at=goal.completed_at,
            linked_value_ids=list(goal.linked_value_ids) if goal.linked_value_ids is not None else None,
            milestones=[m.model_dump(mode='json') for m in goal.milestones],
        )

    def to_goal(self) -> Goal:
        return Goal(
            id=self.id,
            title=self.title,
            description=self.description,
            category=GoalCategory(self.category),
            status=GoalStatus(self.status),
            progress=self.progress,
            sort_order=self.sort_order,
            target_date=self.target_date,
            created_at=self.created_at,
            completed_at=self.completed_at,
            linked_value_ids=self.linked_value_ids,
            milestones=[Milestone.model_validate(m) for m in self.milestones or []],
        )

    def copy_from(self, other: "GoalRecord"):
        for name in GoalRecord.model_fields:
            if name != "id":
                setattr(self, name, getattr(other, name))


class SqlStore(StorageInterface[Goal]):
    """SQLModel-backed goal storage"""

    def __init__(self, engine: Engine):
        self.engine = engine

    def _to_goal(self, record: GoalRecord) -> Optional[Goal]:
        try:
            return record.to_goal()
        except ValueError as e:
            logger.warning("Skipping invalid goal row %s: %s", record.id, e)
            return None

    def get_all(self) -> List[Goal]:
        try:
            with Session(self.engine) as session:
                records = session.exec(select(GoalRecord)).all()
                goals = [self._to_goal(record) for record in records]
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot load goals: {e}") from e
        return [goal for goal in goals if goal is not None]

    def get_by_id(self, id_value: str) -> Optional[Goal]:
        try:
            with Session(self.engine) as session:
                record = session.get(GoalRecord, id_value)
                return self._to_goal(record) if record else None
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot load goal {id_value}: {e}") from e

    def save(self, item: Goal) -> Goal:
        self.save_all([item])
        return item

    def save_all(self, items: Sequence[Goal]) -> List[Goal]:
        try:
            with Session(self.engine) as session:
                for goal in items:
                    incoming = GoalRecord.from_goal(goal)
                    record = session.get(GoalRecord, goal.id)
                    if record is None:
                        session.add(incoming)
                    else:
                        record.copy_from(incoming)
                        session.add(record)
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot save {len(items)} goal(s): {e}") from e
        return list(items)

    def delete(self, id_value: str) -> bool:
        try:
            with Session(self.engine) as session:
                record = session.get(GoalRecord, id_value)
                if not record:
                    return False
                session.delete(record)
                session.commit()
                return True
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot delete goal {id_value}: {e}") from e
