from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from goals.errors import PersistenceError
from models import Goal, GoalStatus


class GoalSnapshot(BaseModel):
    """Consistent, ordered view of every bucket at one point in time"""

    active: List[Goal] = Field(default_factory=list)
    backlog: List[Goal] = Field(default_factory=list)
    completed: List[Goal] = Field(default_factory=list)

    def by_status(self, status: GoalStatus) -> List[Goal]:
        return getattr(self, GoalStatus(status).value)

    def ids(self, status: GoalStatus) -> List[str]:
        return [goal.id for goal in self.by_status(status)]

    def counts(self) -> Dict[GoalStatus, int]:
        return {status: len(self.by_status(status)) for status in GoalStatus}


class MutationResult(BaseModel):
    """
    Outcome of a store mutation

    The in-memory change has always been applied when a result is returned.
    ok is False only when the storage write failed afterwards, in which case
    error holds the PersistenceError to report.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    ok: bool = True
    changed: bool = True
    goal: Optional[Goal] = None
    error: Optional[PersistenceError] = None

    @classmethod
    def unchanged(cls, goal: Optional[Goal] = None) -> "MutationResult":
        return cls(ok=True, changed=False, goal=goal)
