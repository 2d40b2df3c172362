from abc import ABC, abstractmethod
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

T = TypeVar('T')


class StorageError(Exception):
    """Raised by storage implementations when a read or write fails"""


class StorageInterface(Generic[T], ABC):
    """Abstract base class for storage implementations"""

    @abstractmethod
    def get_all(self) -> List[T]:
        """Retrieve all items from storage"""
        pass

    @abstractmethod
    def get_by_id(self, id_value: str) -> Optional[T]:
        """Retrieve a specific item by ID"""
        pass

    @abstractmethod
    def save(self, item: T) -> T:
        """Create or replace a single item"""
        pass

    @abstractmethod
    def save_all(self, items: Sequence[T]) -> List[T]:
        """Create or replace a batch of items in one write"""
        pass

    @abstractmethod
    def delete(self, id_value: str) -> bool:
        """Delete an item from storage"""
        pass

    def query(self, filter_func: Callable[[T], bool]) -> List[T]:
        """Query items matching a filter function"""
        return [item for item in self.get_all() if filter_func(item)]
