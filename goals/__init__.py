from goals.errors import (
    CapacityExceededError,
    DragInProgressError,
    GoalStoreError,
    NotFoundError,
    OutOfRangeError,
    PersistenceError,
    ValidationError,
)
from goals.ordering_index import OrderingIndex
from goals.results import GoalSnapshot, MutationResult
from goals.goal_store import FOCUS_CAP, GoalStore
from goals.drag_resolver import (
    DEFAULT_ITEM_HEIGHT,
    DragController,
    DragState,
    effective_insertion_index,
    resolve_hover_index,
)

__all__ = [
    'CapacityExceededError',
    'DragInProgressError',
    'GoalStoreError',
    'NotFoundError',
    'OutOfRangeError',
    'PersistenceError',
    'ValidationError',
    'OrderingIndex',
    'GoalSnapshot',
    'MutationResult',
    'FOCUS_CAP',
    'GoalStore',
    'DEFAULT_ITEM_HEIGHT',
    'DragController',
    'DragState',
    'effective_insertion_index',
    'resolve_hover_index'
]
