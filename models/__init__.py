from models.milestone import Milestone
from models.goal import Goal, GoalCategory, GoalStatus, clamp_progress

__all__ = [
    'Goal',
    'GoalCategory',
    'GoalStatus',
    'Milestone',
    'clamp_progress'
]
