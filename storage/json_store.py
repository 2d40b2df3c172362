import json
import logging
import os
import tempfile
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from storage.storage_interface import StorageError, StorageInterface

T = TypeVar('T', bound=BaseModel)

logger = logging.getLogger(__name__)


class JsonStore(StorageInterface[T]):
    """JSON file-based storage implementation"""

    def __init__(self, model_class: Type[T], file_path: str):
        """
        Initialize a JSON storage for a specific model type

        Args:
            model_class: The Pydantic model class to store
            file_path: Path to the JSON file
        """
        self.model_class = model_class
        self.file_path = file_path
        self.id_field = self._get_id_field()
        self._ensure_file_exists()

    def _get_id_field(self) -> str:
        """Determine the ID field for the model"""
        if 'id' not in self.model_class.model_fields:
            raise ValueError(f"Model {self.model_class.__name__} must have an 'id' field")
        return 'id'

    def _ensure_file_exists(self):
        """Create the JSON file if it doesn't exist"""
        try:
            directory = os.path.dirname(self.file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create {self.file_path}: {e}") from e
        if not os.path.exists(self.file_path):
            self._write_data([])

    def _read_data(self) -> List[Dict[str, Any]]:
        """Read all data from the JSON file"""
        try:
            with open(self.file_path, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError:
            self._set_aside("Corrupted JSON")
            return []
        except OSError as e:
            raise StorageError(f"Cannot read {self.file_path}: {e}") from e
        if not isinstance(data, list):
            self._set_aside("Unexpected JSON layout")
            return []
        return data

    def _set_aside(self, reason: str):
        """Move an unreadable file out of the way and start from an empty one"""
        corrupt_path = f"{self.file_path}.corrupt"
        if os.path.exists(corrupt_path):
            corrupt_path = f"{corrupt_path}.{datetime.now():%Y%m%d%H%M%S%f}"
        logger.warning("%s in %s, moved it to %s and starting empty", reason, self.file_path, corrupt_path)
        try:
            os.replace(self.file_path, corrupt_path)
        except OSError as e:
            raise StorageError(f"Cannot move {self.file_path} aside: {e}") from e
        self._write_data([])

    def _write_data(self, data: List[Dict[str, Any]]):
        """Write data to a temporary file in the same directory, then swap it in"""
        directory = os.path.dirname(self.file_path) or "."
        try:
            fd, temp_path = tempfile.mkstemp(dir=directory, prefix=".goals-", suffix=".tmp")
        except OSError as e:
            raise StorageError(f"Cannot write {self.file_path}: {e}") from e
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(data, f, indent=2, default=str)
            os.replace(temp_path, self.file_path)
        except OSError as e:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise StorageError(f"Cannot write {self.file_path}: {e}") from e

    def _validate(self, item: Dict[str, Any]) -> Optional[T]:
        try:
            return self.model_class.model_validate(item)
        except ModelValidationError as e:
            logger.warning("Skipping invalid %s record in %s: %s", self.model_class.__name__, self.file_path, e)
            return None

    def get_all(self) -> List[T]:
        """Retrieve all items from storage"""
        items = [self._validate(item) for item in self._read_data()]
        return [item for item in items if item is not None]

    def get_by_id(self, id_value: str) -> Optional[T]:
        """Retrieve a specific item by ID"""
        for item in self._read_data():
            if item.get(self.id_field) == id_value:
                return self._validate(item)
        return None

    def save(self, item: T) -> T:
        """Create or replace a single item"""
        self.save_all([item])
        return item

    def save_all(self, items: Sequence[T]) -> List[T]:
        """Create or replace a batch of items in one write"""
        data = self._read_data()
        positions = {entry.get(self.id_field): i for i, entry in enumerate(data)}

        for item in items:
            item_dict = item.model_dump(mode='json')
            id_value = item_dict[self.id_field]
            if id_value in positions:
                data[positions[id_value]] = item_dict
            else:
                positions[id_value] = len(data)
                data.append(item_dict)

        self._write_data(data)
        return list(items)

    def delete(self, id_value: str) -> bool:
        """Delete an item from storage"""
        data = self._read_data()
        initial_length = len(data)

        filtered_data = [item for item in data if item.get(self.id_field) != id_value]

        if len(filtered_data) < initial_length:
            self._write_data(filtered_data)
            return True

        return False
