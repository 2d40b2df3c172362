import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class Milestone(BaseModel):
    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique identifier for the milestone"
    )
    goal_id: str = Field(
        description="ID of the goal this milestone belongs to"
    )
    title: str = Field(
        description="Short descriptive title of the milestone"
    )
    description: str = Field(
        default="",
        description="What finishing this milestone looks like"
    )
    target_date: Optional[date] = Field(
        default=None,
        description="Date the milestone should be reached by"
    )
    completed_at: Optional[datetime] = Field(
        default=None,
        description="When the milestone was marked complete, None while open"
    )
    order: int = Field(
        default=0,
        description="Position of the milestone within its goal"
    )
    created_at: datetime = Field(
        default_factory=datetime.now,
        description="When the milestone was created"
    )
    updated_at: datetime = Field(
        default_factory=datetime.now,
        description="When the milestone was last modified"
    )

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def mark_complete(self) -> "Milestone":
        now = datetime.now()
        return self.model_copy(update={"completed_at": now, "updated_at": now})
