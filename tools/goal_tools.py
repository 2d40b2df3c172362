from datetime import date
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from goals import DragController, GoalSnapshot, GoalStore, MutationResult
from models import Goal, GoalCategory, GoalStatus
from tools.model_utils import create_subset_model
from tools.tool import Tool, tool


_DETAIL_FIELDS = ["title", "description", "category", "target_date", "linked_value_ids"]

# Parameter models for goal operations
CreateGoalParams = create_subset_model(
    Goal,
    _DETAIL_FIELDS + ["progress"],
    model_name="CreateGoalParams"
)

UpdateGoalParams = create_subset_model(
    Goal,
    _DETAIL_FIELDS,
    model_name="UpdateGoalParams",
    make_optional=_DETAIL_FIELDS,
    overrides={"description": {"default": None}, "category": {"default": None}},
    extra_fields={"goal_id": (str, Field(description="ID of the goal to update"))}
)

class GetGoalParams(BaseModel):
    goal_id: str = Field(description="ID of the goal to retrieve")

class ListGoalsParams(BaseModel):
    status: Optional[GoalStatus] = Field(default=None, description="Only list goals in this bucket")

class MoveGoalParams(BaseModel):
    goal_id: str = Field(description="ID of the goal to move")
    target_status: GoalStatus = Field(description="Bucket to move the goal into")
    target_index: Optional[int] = Field(default=None, description="Position in the target bucket (defaults to the end)")

class ReorderGoalsParams(BaseModel):
    status: GoalStatus = Field(description="Bucket to reorder (active or backlog)")
    old_index: int = Field(description="Current position of the goal")
    new_index: int = Field(description="Position to move the goal to")

class UpdateProgressParams(BaseModel):
    goal_id: str = Field(description="ID of the goal")
    progress: int = Field(description="Progress percentage; values outside 0-100 are clamped")

class CompleteGoalParams(BaseModel):
    goal_id: str = Field(description="ID of the goal to mark completed")

class DeleteGoalParams(BaseModel):
    goal_id: str = Field(description="ID of the goal to delete")

class DragGoalParams(BaseModel):
    goal_id: str = Field(description="ID of the goal being dragged")
    target_status: GoalStatus = Field(description="Bucket the goal is dropped on")
    offset_y: Optional[float] = Field(default=None, description="Vertical pointer offset inside the target bucket, in pixels")

class AddMilestoneParams(BaseModel):
    goal_id: str = Field(description="ID of the goal")
    title: str = Field(description="Short title of the milestone")
    description: str = Field(default="", description="What finishing this milestone looks like")
    target_date: Optional[date] = Field(default=None, description="Date the milestone should be reached by")

class UpdateMilestoneParams(BaseModel):
    goal_id: str = Field(description="ID of the goal")
    milestone_id: str = Field(description="ID of the milestone to update")
    title: Optional[str] = Field(default=None, description="Updated title")
    description: Optional[str] = Field(default=None, description="Updated description")
    target_date: Optional[date] = Field(default=None, description="Updated target date")

class MilestoneParams(BaseModel):
    goal_id: str = Field(description="ID of the goal")
    milestone_id: str = Field(description="ID of the milestone")


def build_goal_tools(store: GoalStore, drag: Optional[DragController] = None) -> List[Tool]:
    """Create the goal toolset bound to a store"""
    drag = drag or DragController(store)

    @tool(parameter_model=CreateGoalParams)
    def add_goal(title: str, description: str = "",
                 category: GoalCategory = GoalCategory.PERSONAL,
                 target_date: Optional[date] = None,
                 linked_value_ids: Optional[List[str]] = None,
                 progress: int = 0) -> MutationResult:
        return store.add_goal(
            title=title,
            description=description,
            category=category,
            target_date=target_date,
            linked_value_ids=linked_value_ids,
            progress=progress
        )

    @tool(parameter_model=UpdateGoalParams)
    def update_goal(goal_id: str, title: Optional[str] = None,
                    description: Optional[str] = None,
                    category: Optional[GoalCategory] = None,
                    target_date: Optional[date] = None,
                    linked_value_ids: Optional[List[str]] = None) -> MutationResult:
        return store.update_goal_details(
            goal_id,
            title=title,
            description=description,
            category=category,
            target_date=target_date,
            linked_value_ids=linked_value_ids
        )

    @tool(parameter_model=GetGoalParams)
    def get_goal(goal_id: str) -> Optional[Goal]:
        return store.get_goal_by_id(goal_id)

    @tool(parameter_model=ListGoalsParams)
    def list_goals(status: Optional[GoalStatus] = None) -> Union[GoalSnapshot, List[Goal]]:
        if status is None:
            return store.snapshot()
        return store.get_goals_by_status(status)

    @tool(parameter_model=MoveGoalParams)
    def move_goal(goal_id: str, target_status: GoalStatus,
                  target_index: Optional[int] = None) -> MutationResult:
        return store.move_goal_to_status(goal_id, target_status, target_index)

    @tool(parameter_model=ReorderGoalsParams)
    def reorder_goals(status: GoalStatus, old_index: int, new_index: int) -> MutationResult:
        return store.reorder_goals(status, old_index, new_index)

    @tool(parameter_model=UpdateProgressParams)
    def update_progress(goal_id: str, progress: int) -> MutationResult:
        return store.update_progress(goal_id, progress)

    @tool(parameter_model=CompleteGoalParams)
    def complete_goal(goal_id: str) -> MutationResult:
        return store.move_goal_to_status(goal_id, GoalStatus.COMPLETED)

    @tool(parameter_model=DeleteGoalParams)
    def delete_goal(goal_id: str) -> MutationResult:
        return store.delete_goal(goal_id)

    @tool(parameter_model=DragGoalParams)
    def drag_goal(goal_id: str, target_status: GoalStatus,
                  offset_y: Optional[float] = None) -> MutationResult:
        drag.begin(goal_id)
        try:
            if offset_y is not None:
                drag.hover(goal_id, target_status, offset_y)
            return drag.release(goal_id, target_status)
        finally:
            drag.cancel(goal_id)

    @tool(parameter_model=AddMilestoneParams)
    def add_milestone(goal_id: str, title: str, description: str = "",
                      target_date: Optional[date] = None) -> MutationResult:
        return store.add_milestone(goal_id, title, description, target_date)

    @tool(parameter_model=UpdateMilestoneParams)
    def update_milestone(goal_id: str, milestone_id: str, title: Optional[str] = None,
                         description: Optional[str] = None,
                         target_date: Optional[date] = None) -> MutationResult:
        return store.update_milestone(goal_id, milestone_id, title, description, target_date)

    @tool(parameter_model=MilestoneParams)
    def complete_milestone(goal_id: str, milestone_id: str) -> MutationResult:
        return store.complete_milestone(goal_id, milestone_id)

    @tool(parameter_model=MilestoneParams)
    def delete_milestone(goal_id: str, milestone_id: str) -> MutationResult:
        return store.delete_milestone(goal_id, milestone_id)

    return [
        Tool("add_goal", add_goal, CreateGoalParams, "Create a new goal at the end of the backlog"),
        Tool("update_goal", update_goal, UpdateGoalParams, "Update the title, description, category, target date or linked values of a goal"),
        Tool("get_goal", get_goal, GetGoalParams, "Get a goal by ID"),
        Tool("list_goals", list_goals, ListGoalsParams, "List goals, all buckets or a single one"),
        Tool("move_goal", move_goal, MoveGoalParams, "Move a goal to another bucket (at most 2 active goals)"),
        Tool("reorder_goals", reorder_goals, ReorderGoalsParams, "Move a goal to a new position within its bucket"),
        Tool("update_progress", update_progress, UpdateProgressParams, "Set the progress percentage of a goal"),
        Tool("complete_goal", complete_goal, CompleteGoalParams, "Mark a goal as completed"),
        Tool("delete_goal", delete_goal, DeleteGoalParams, "Delete a goal"),
        Tool("drag_goal", drag_goal, DragGoalParams, "Drop a goal on a bucket at a pointer offset, like a drag gesture"),
        Tool("add_milestone", add_milestone, AddMilestoneParams, "Add a milestone to a goal"),
        Tool("update_milestone", update_milestone, UpdateMilestoneParams, "Update a milestone of a goal"),
        Tool("complete_milestone", complete_milestone, MilestoneParams, "Mark a milestone as completed"),
        Tool("delete_milestone", delete_milestone, MilestoneParams, "Delete a milestone from a goal")
    ]
