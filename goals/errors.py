class GoalStoreError(Exception):
    """Base class for errors raised by the goal store and drag controller"""


class ValidationError(GoalStoreError, ValueError):
    """A field value was empty or otherwise invalid"""


class NotFoundError(GoalStoreError, LookupError):
    """An operation referenced an unknown goal or milestone"""

    def __init__(self, kind: str, id_value: str):
        super().__init__(f"{kind} not found: {id_value}")
        self.kind = kind
        self.id_value = id_value


class CapacityExceededError(GoalStoreError):
    """Moving a goal into the active bucket would exceed the focus cap"""

    def __init__(self, cap: int):
        super().__init__(f"Cannot have more than {cap} active goals")
        self.cap = cap


class OutOfRangeError(GoalStoreError, IndexError):
    """A reorder index was outside the bounds of its bucket"""

    def __init__(self, status: str, index: int, length: int):
        super().__init__(f"Index {index} is out of range for {status} (length {length})")
        self.status = status
        self.index = index
        self.length = length


class PersistenceError(GoalStoreError):
    """The storage backend failed after the in-memory change was applied"""


class DragInProgressError(GoalStoreError):
    """Another drag gesture is already in flight for the bucket"""
