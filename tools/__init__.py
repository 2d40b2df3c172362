from typing import Optional

from goals import DragController, GoalStore
from tools.tool import Tool, ToolSet, tool
from tools.goal_tools import build_goal_tools


def build_toolset(store: GoalStore, drag: Optional[DragController] = None) -> ToolSet:
    """Create the toolset the CLI dispatches commands to"""
    return ToolSet(build_goal_tools(store, drag))


__all__ = [
    'Tool',
    'ToolSet',
    'tool',
    'build_goal_tools',
    'build_toolset'
]
