import logging
import threading
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError as ModelValidationError

from goals.errors import (
    CapacityExceededError,
    NotFoundError,
    OutOfRangeError,
    PersistenceError,
    ValidationError,
)
from goals.ordering_index import OrderingIndex
from goals.results import GoalSnapshot, MutationResult
from models import Goal, GoalCategory, GoalStatus, Milestone
from storage.storage_interface import StorageError, StorageInterface

logger = logging.getLogger(__name__)

FOCUS_CAP = 2

Observer = Callable[[GoalSnapshot], None]


def _require_title(title: Optional[str], kind: str = "Goal") -> str:
    if title is None or not title.strip():
        raise ValidationError(f"{kind} title cannot be empty")
    return title.strip()


def _coerce_status(status) -> GoalStatus:
    try:
        return GoalStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown goal status: {status}")


class GoalStore:
    """
    Manages goals across the active, backlog and completed buckets.

    The active bucket never holds more than focus_cap goals. Callers only
    ever receive copies; all changes go through the methods below. A change
    is applied in memory, observers are notified, and then storage is
    written. A failed write comes back in MutationResult.error and the
    in-memory change stays.
    """

    def __init__(self, storage: StorageInterface[Goal], focus_cap: int = FOCUS_CAP):
        self.storage = storage
        self.focus_cap = focus_cap
        self._goals: Dict[str, Goal] = {}
        self._indexes: Dict[GoalStatus, OrderingIndex] = {
            status: OrderingIndex(status.value) for status in GoalStatus
        }
        self._observers: List[Observer] = []
        self._lock = threading.RLock()

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer and return a function that unregisters it"""
        with self._lock:
            self._observers.append(observer)

        def unsubscribe():
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def _notify(self):
        snapshot = self._snapshot()
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception("Goal observer %r failed", observer)

    def load(self) -> MutationResult:
        """
        Replace the in-memory state with what storage holds.

        Buckets are ordered by (sort_order, created_at) and renumbered.
        Active goals beyond the focus cap are moved to the front of the
        backlog. Any goal whose status or order changed is written back.
        """
        with self._lock:
            try:
                loaded = self.storage.get_all()
            except StorageError as e:
                logger.error("Failed to load goals: %s", e)
                raise PersistenceError(f"Failed to load goals: {e}") from e

            self._goals = {}
            for goal in loaded:
                if goal.id in self._goals:
                    logger.warning("Duplicate goal id %s in storage, keeping the last copy", goal.id)
                self._goals[goal.id] = goal

            for status, index in self._indexes.items():
                bucket = sorted(
                    (g for g in self._goals.values() if g.status == status),
                    key=lambda g: (g.sort_order, g.created_at),
                )
                index.replace(g.id for g in bucket)

            changed = self._demote_overflow()
            for status in GoalStatus:
                changed.extend(self._renumber(status))

            logger.info(
                "Loaded %d goal(s): %s",
                len(self._goals),
                ", ".join(f"{s.value}={len(self._indexes[s])}" for s in GoalStatus),
            )
            self._notify()
            return self._persist(changed)

    def reload(self) -> MutationResult:
        """Reload goals from storage (e.g. after an import or restore)"""
        return self.load()

    def _demote_overflow(self) -> List[Goal]:
        active = self._indexes[GoalStatus.ACTIVE]
        overflow = active.ids()[self.focus_cap:]
        if not overflow:
            return []

        logger.warning(
            "Storage held %d active goals, moving %d to the backlog",
            len(active), len(overflow),
        )
        backlog = self._indexes[GoalStatus.BACKLOG]
        demoted = []
        for goal_id in reversed(overflow):
            active.remove(goal_id)
            backlog.insert(0, goal_id)
            goal = self._goals[goal_id]
            goal.status = GoalStatus.BACKLOG
            demoted.append(goal)
        return demoted

    @property
    def goals(self) -> List[Goal]:
        with self._lock:
            return [g.model_copy(deep=True) for g in self._goals.values()]

    def get_goal_by_id(self, goal_id: str) -> Optional[Goal]:
        with self._lock:
            goal = self._goals.get(goal_id)
            return goal.model_copy(deep=True) if goal else None

    def get_goals_by_status(self, status: GoalStatus) -> List[Goal]:
        """
        Goals in one bucket, in display order.

        Active and backlog follow their ordering index. Completed goals are
        shown newest first by completion time (creation time when missing).
        """
        status = _coerce_status(status)
        with self._lock:
            return [g.model_copy(deep=True) for g in self._ordered(status)]

    def get_goals_by_category(self, category: GoalCategory,
                              status: Optional[GoalStatus] = None) -> List[Goal]:
        category = GoalCategory(category)
        statuses = [_coerce_status(status)] if status is not None else list(GoalStatus)
        with self._lock:
            return [
                g.model_copy(deep=True)
                for s in statuses
                for g in self._ordered(s)
                if g.category == category
            ]

    def counts(self) -> Dict[GoalStatus, int]:
        with self._lock:
            return {status: len(index) for status, index in self._indexes.items()}

    def snapshot(self) -> GoalSnapshot:
        with self._lock:
            return self._snapshot()

    def _snapshot(self) -> GoalSnapshot:
        return GoalSnapshot(**{
            status.value: [g.model_copy(deep=True) for g in self._ordered(status)]
            for status in GoalStatus
        })

    def _ordered(self, status: GoalStatus) -> List[Goal]:
        goals = [self._goals[goal_id] for goal_id in self._indexes[status]]
        if status != GoalStatus.COMPLETED:
            return goals
        # Later insertion wins ties on equal timestamps
        positions = sorted(
            range(len(goals)),
            key=lambda i: (goals[i].completed_at or goals[i].created_at, i),
            reverse=True,
        )
        return [goals[i] for i in positions]

    def _require(self, goal_id: str) -> Goal:
        goal = self._goals.get(goal_id)
        if goal is None:
            logger.warning("Operation referenced unknown goal %s", goal_id)
            raise NotFoundError("Goal", goal_id)
        return goal

    def add_goal(self, title: str, description: str = "",
                 category: GoalCategory = GoalCategory.PERSONAL,
                 target_date: Optional[date] = None,
                 linked_value_ids: Optional[List[str]] = None,
                 progress: int = 0) -> MutationResult:
        """Create a goal at the end of the backlog. result.goal is the new goal."""
        title = _require_title(title)
        try:
            goal = Goal(
                title=title,
                description=description or "",
                category=category,
                target_date=target_date,
                linked_value_ids=linked_value_ids,
                progress=progress,
                status=GoalStatus.BACKLOG,
            )
        except ModelValidationError as e:
            raise ValidationError(str(e)) from e

        with self._lock:
            if goal.id in self._goals:
                raise ValidationError(f"Goal id {goal.id} already exists")
            self._goals[goal.id] = goal
            self._indexes[GoalStatus.BACKLOG].append(goal.id)
            goal.sort_order = len(self._indexes[GoalStatus.BACKLOG]) - 1
            logger.debug("Added goal %s (%s) to backlog", goal.id, goal.title)
            self._notify()
            return self._persist([goal], goal)

    def move_goal_to_status(self, goal_id: str, target_status: GoalStatus,
                            target_index: Optional[int] = None) -> MutationResult:
        """
        Move a goal into another bucket at a clamped position (default end).

        Moving into the active bucket fails with CapacityExceededError when it
        already holds focus_cap other goals; nothing changes in that case.
        Moving to the goal's current bucket is a no-op.
        """
        target_status = _coerce_status(target_status)
        with self._lock:
            goal = self._require(goal_id)
            source_status = goal.status
            if source_status == target_status:
                return MutationResult.unchanged(goal.model_copy(deep=True))

            if target_status == GoalStatus.ACTIVE:
                self._check_capacity(goal_id)

            self._indexes[source_status].remove(goal_id)
            position = self._indexes[target_status].insert(target_index, goal_id)
            goal.status = target_status
            if target_status == GoalStatus.COMPLETED:
                goal.completed_at = datetime.now()
            elif source_status == GoalStatus.COMPLETED:
                goal.completed_at = None

            changed = {goal.id: goal}
            for status in (source_status, target_status):
                changed.update((g.id, g) for g in self._renumber(status))

            logger.debug(
                "Moved goal %s from %s to %s at %d",
                goal_id, source_status.value, target_status.value, position,
            )
            self._notify()
            return self._persist(changed.values(), goal)

    def _check_capacity(self, goal_id: str):
        others = [i for i in self._indexes[GoalStatus.ACTIVE] if i != goal_id]
        if len(others) >= self.focus_cap:
            logger.info("Rejected move of %s: active bucket is full (%d)", goal_id, self.focus_cap)
            raise CapacityExceededError(self.focus_cap)

    def reorder_goals(self, status: GoalStatus, old_index: int, new_index: int) -> MutationResult:
        """
        Move the goal at old_index to new_index within one bucket.

        The goal is removed first and then inserted at new_index of the
        shortened sequence, so [A, B, C] with (0, 2) becomes [B, C, A].
        """
        status = _coerce_status(status)
        if status == GoalStatus.COMPLETED:
            raise ValidationError("Completed goals keep their history order and cannot be reordered")

        with self._lock:
            index = self._indexes[status]
            for position in (old_index, new_index):
                if not index.in_bounds(position):
                    logger.warning(
                        "Reorder index %d out of range for %s (length %d)",
                        position, status.value, len(index),
                    )
                    raise OutOfRangeError(status.value, position, len(index))

            if old_index == new_index:
                return MutationResult.unchanged()

            index.move(old_index, new_index)
            changed = self._renumber(status)
            moved = self._goals[index.ids()[new_index]]
            logger.debug("Reordered %s: %d -> %d", status.value, old_index, new_index)
            self._notify()
            return self._persist(changed, moved)

    def update_progress(self, goal_id: str, progress: int) -> MutationResult:
        """Set progress, clamped to 0..100. Bucket membership is untouched."""
        with self._lock:
            goal = self._require(goal_id)
            try:
                goal.progress = progress
            except ModelValidationError as e:
                raise ValidationError(str(e)) from e
            self._notify()
            return self._persist([goal], goal)

    def update_goal_details(self, goal_id: str, title: Optional[str] = None,
                            description: Optional[str] = None,
                            category: Optional[GoalCategory] = None,
                            target_date: Optional[date] = None,
                            linked_value_ids: Optional[List[str]] = None) -> MutationResult:
        """Update plain fields; only the arguments that are not None change"""
        updates = {}
        if title is not None:
            updates["title"] = _require_title(title)
        if description is not None:
            updates["description"] = description
        if category is not None:
            updates["category"] = category
        if target_date is not None:
            updates["target_date"] = target_date
        if linked_value_ids is not None:
            updates["linked_value_ids"] = list(linked_value_ids)

        with self._lock:
            goal = self._require(goal_id)
            if not updates:
                return MutationResult.unchanged(goal.model_copy(deep=True))
            try:
                validated = Goal.model_validate({**goal.model_dump(), **updates})
            except ModelValidationError as e:
                raise ValidationError(str(e)) from e
            for name in updates:
                setattr(goal, name, getattr(validated, name))
            self._notify()
            return self._persist([goal], goal)

    def delete_goal(self, goal_id: str) -> MutationResult:
        with self._lock:
            goal = self._require(goal_id)
            self._indexes[goal.status].remove(goal_id)
            del self._goals[goal_id]
            changed = self._renumber(goal.status)
            logger.debug("Deleted goal %s", goal_id)
            self._notify()
            return self._persist(changed, goal, deleted_id=goal_id)

    def add_milestone(self, goal_id: str, title: str, description: str = "",
                      target_date: Optional[date] = None) -> MutationResult:
        title = _require_title(title, "Milestone")
        with self._lock:
            goal = self._require(goal_id)
            milestone = Milestone(
                goal_id=goal_id,
                title=title,
                description=description or "",
                target_date=target_date,
                order=len(goal.milestones),
            )
            goal.milestones = [*goal.milestones, milestone]
            self._notify()
            return self._persist([goal], goal)

    def update_milestone(self, goal_id: str, milestone_id: str,
                         title: Optional[str] = None,
                         description: Optional[str] = None,
                         target_date: Optional[date] = None) -> MutationResult:
        updates = {}
        if title is not None:
            updates["title"] = _require_title(title, "Milestone")
        if description is not None:
            updates["description"] = description
        if target_date is not None:
            updates["target_date"] = target_date
        updates["updated_at"] = datetime.now()
        return self._replace_milestone(goal_id, milestone_id, lambda m: m.model_copy(update=updates))

    def complete_milestone(self, goal_id: str, milestone_id: str) -> MutationResult:
        return self._replace_milestone(goal_id, milestone_id, lambda m: m.mark_complete())

    def _replace_milestone(self, goal_id: str, milestone_id: str,
                           change: Callable[[Milestone], Milestone]) -> MutationResult:
        with self._lock:
            goal = self._require(goal_id)
            if goal.get_milestone(milestone_id) is None:
                logger.warning("Goal %s has no milestone %s", goal_id, milestone_id)
                raise NotFoundError("Milestone", milestone_id)
            goal.milestones = [
                change(m) if m.id == milestone_id else m for m in goal.milestones
            ]
            self._notify()
            return self._persist([goal], goal)

    def delete_milestone(self, goal_id: str, milestone_id: str) -> MutationResult:
        with self._lock:
            goal = self._require(goal_id)
            if goal.get_milestone(milestone_id) is None:
                logger.warning("Goal %s has no milestone %s", goal_id, milestone_id)
                raise NotFoundError("Milestone", milestone_id)
            remaining = [m for m in goal.milestones if m.id != milestone_id]
            goal.milestones = [
                m.model_copy(update={"order": i}) for i, m in enumerate(remaining)
            ]
            self._notify()
            return self._persist([goal], goal)

    def _renumber(self, status: GoalStatus) -> List[Goal]:
        """Write index positions into sort_order; return the goals that changed"""
        changed = []
        for position, goal_id in enumerate(self._indexes[status]):
            goal = self._goals[goal_id]
            if goal.sort_order != position:
                goal.sort_order = position
                changed.append(goal)
        return changed

    def _persist(self, goals: Iterable[Goal], goal: Optional[Goal] = None,
                 deleted_id: Optional[str] = None) -> MutationResult:
        unique = {g.id: g for g in goals}
        to_save = [g.model_copy(deep=True) for g in unique.values()]
        result_goal = goal.model_copy(deep=True) if goal else None
        try:
            if deleted_id is not None:
                self.storage.delete(deleted_id)
            if to_save:
                self.storage.save_all(to_save)
        except StorageError as e:
            logger.error("Failed to persist goal changes: %s", e)
            return MutationResult(ok=False, goal=result_goal, error=PersistenceError(str(e)))
        return MutationResult(goal=result_goal)
