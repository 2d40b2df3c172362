import uuid
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.milestone import Milestone


PROGRESS_MIN = 0
PROGRESS_MAX = 100


def clamp_progress(value: int) -> int:
    return max(PROGRESS_MIN, min(PROGRESS_MAX, int(value)))


class GoalStatus(str, Enum):
    BACKLOG = "backlog"
    ACTIVE = "active"
    COMPLETED = "completed"


class GoalCategory(str, Enum):
    PERSONAL = "personal"
    CAREER = "career"
    HEALTH = "health"
    FITNESS = "fitness"
    FINANCE = "finance"
    LEARNING = "learning"
    RELATIONSHIPS = "relationships"
    OTHER = "other"


class Goal(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique identifier, stable for the lifetime of the goal"
    )
    title: str = Field(
        description="Short descriptive title of the goal"
    )
    description: str = Field(
        default="",
        description="Longer explanation of the goal and why it matters"
    )
    category: GoalCategory = Field(
        default=GoalCategory.PERSONAL,
        description="Life area the goal belongs to"
    )
    status: GoalStatus = Field(
        default=GoalStatus.BACKLOG,
        description="Bucket the goal currently lives in (backlog, active or completed)"
    )
    progress: int = Field(
        default=0,
        description="Completion percentage, always between 0 and 100"
    )
    target_date: Optional[date] = Field(
        default=None,
        description="Date the user hopes to reach the goal by"
    )
    linked_value_ids: Optional[List[str]] = Field(
        default=None,
        description="IDs of the personal values this goal serves"
    )
    milestones: List[Milestone] = Field(
        default_factory=list,
        description="Ordered sub-steps towards the goal"
    )
    sort_order: int = Field(
        default=0,
        description="Position of the goal inside its bucket as last persisted"
    )
    created_at: datetime = Field(
        default_factory=datetime.now,
        description="When the goal was created"
    )
    completed_at: Optional[datetime] = Field(
        default=None,
        description="When the goal was last moved to the completed bucket"
    )

    @field_validator('progress', mode='before')
    def clamp_progress_to_percentage(cls, value):
        if value is None:
            return PROGRESS_MIN
        return clamp_progress(value)

    def get_milestone(self, milestone_id: str) -> Optional[Milestone]:
        for milestone in self.milestones:
            if milestone.id == milestone_id:
                return milestone
        return None
