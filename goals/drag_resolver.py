import logging
import math
import threading
from dataclasses import dataclass
from typing import Dict, Optional

from goals.errors import DragInProgressError, NotFoundError, ValidationError
from goals.goal_store import GoalStore
from goals.results import MutationResult
from models import GoalStatus

logger = logging.getLogger(__name__)

# Rough height of a rendered goal card, in pixels
DEFAULT_ITEM_HEIGHT = 130.0


def resolve_hover_index(offset_y: float, bucket_length: int,
                        item_height: float = DEFAULT_ITEM_HEIGHT) -> int:
    """
    Estimate the insertion slot under the pointer.

    floor(offset_y / item_height), clamped to [0, bucket_length]. This is an
    estimate from a fixed card height, not a layout measurement.
    """
    if item_height <= 0:
        raise ValueError("item_height must be positive")
    candidate = math.floor(offset_y / item_height)
    return max(0, min(candidate, bucket_length))


def effective_insertion_index(hover_index: int, original_index: int) -> int:
    """
    Index to pass to a same-bucket reorder.

    When dropping below the original position the dragged card's own
    removal shifts every later slot up by one.
    """
    if hover_index > original_index:
        return hover_index - 1
    return hover_index


@dataclass
class DragState:
    goal_id: str
    source_status: GoalStatus
    hover_status: Optional[GoalStatus] = None
    hover_index: Optional[int] = None


class DragController:
    """Tracks in-flight drags and dispatches drops to the store, one per bucket"""

    def __init__(self, store: GoalStore, item_height: float = DEFAULT_ITEM_HEIGHT):
        if item_height <= 0:
            raise ValueError("item_height must be positive")
        self.store = store
        self.item_height = item_height
        self._drags: Dict[str, DragState] = {}
        self._busy: Dict[GoalStatus, str] = {}
        self._lock = threading.Lock()

    def begin(self, goal_id: str) -> DragState:
        goal = self.store.get_goal_by_id(goal_id)
        if goal is None:
            logger.warning("Drag started on unknown goal %s", goal_id)
            raise NotFoundError("Goal", goal_id)
        with self._lock:
            holder = self._busy.get(goal.status)
            if holder is not None:
                raise DragInProgressError(f"A drag is already in progress in {goal.status.value}")
            state = DragState(goal_id=goal_id, source_status=goal.status)
            self._drags[goal_id] = state
            self._busy[goal.status] = goal_id
            return state

    def hover(self, goal_id: str, target_status: GoalStatus, offset_y: float) -> int:
        """Record the slot under the pointer in target_status and return it"""
        target_status = GoalStatus(target_status)
        bucket_length = self.store.counts()[target_status]
        index = resolve_hover_index(offset_y, bucket_length, self.item_height)
        with self._lock:
            state = self._state(goal_id)
            state.hover_status = target_status
            state.hover_index = index
        return index

    def leave(self, goal_id: str):
        """The pointer left every drop target; forget the hover slot"""
        with self._lock:
            state = self._state(goal_id)
            state.hover_status = None
            state.hover_index = None

    def cancel(self, goal_id: str):
        with self._lock:
            self._finish(goal_id)

    def release(self, goal_id: str, target_status: GoalStatus) -> MutationResult:
        """
        Drop the dragged goal onto target_status.

        Same bucket: reorder to the compensated hover slot (no-op without a
        hover slot). Other bucket: move to the hover slot if one was tracked
        for that bucket, otherwise to its end.
        """
        target_status = GoalStatus(target_status)
        with self._lock:
            state = self._state(goal_id)
            holder = self._busy.get(target_status)
            if holder is not None and holder != goal_id:
                self._finish(goal_id)
                raise DragInProgressError(f"A drag is already in progress in {target_status.value}")
            self._busy[target_status] = goal_id

        try:
            return self._dispatch(state, target_status)
        finally:
            with self._lock:
                self._finish(goal_id)

    def _dispatch(self, state: DragState, target_status: GoalStatus) -> MutationResult:
        goal = self.store.get_goal_by_id(state.goal_id)
        if goal is None:
            return self.store.move_goal_to_status(state.goal_id, target_status)
        hover_index = state.hover_index if state.hover_status == target_status else None

        if goal.status != target_status:
            logger.debug("Drop %s into %s at %s", goal.id, target_status.value, hover_index)
            return self.store.move_goal_to_status(goal.id, target_status, hover_index)

        if hover_index is None or target_status == GoalStatus.COMPLETED:
            return MutationResult.unchanged(goal)
        ordered_ids = [g.id for g in self.store.get_goals_by_status(target_status)]
        original_index = ordered_ids.index(goal.id)
        new_index = effective_insertion_index(hover_index, original_index)
        if new_index == original_index:
            return MutationResult.unchanged(goal)
        logger.debug("Drop %s within %s: %d -> %d", goal.id, target_status.value, original_index, new_index)
        return self.store.reorder_goals(target_status, original_index, new_index)

    def _state(self, goal_id: str) -> DragState:
        state = self._drags.get(goal_id)
        if state is None:
            raise ValidationError(f"No drag in progress for goal {goal_id}")
        return state

    def _finish(self, goal_id: str):
        self._drags.pop(goal_id, None)
        for status in [s for s, holder in self._busy.items() if holder == goal_id]:
            del self._busy[status]
