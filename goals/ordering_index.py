from typing import Iterable, Iterator, List, Optional


class OrderingIndex:
    """Ordered, duplicate-free sequence of goal IDs for one bucket"""

    def __init__(self, name: str, ids: Optional[Iterable[str]] = None):
        self.name = name
        self._ids: List[str] = []
        for id_value in ids or []:
            self.append(id_value)

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    def __contains__(self, id_value: object) -> bool:
        return id_value in self._ids

    def __repr__(self) -> str:
        return f"OrderingIndex({self.name!r}, {self._ids!r})"

    def ids(self) -> List[str]:
        """Return a copy of the ordered IDs"""
        return list(self._ids)

    def position(self, id_value: str) -> int:
        """Return the position of an ID, or -1 when absent"""
        try:
            return self._ids.index(id_value)
        except ValueError:
            return -1

    def in_bounds(self, index: int) -> bool:
        return 0 <= index < len(self._ids)

    def append(self, id_value: str):
        if id_value in self._ids:
            raise ValueError(f"'{id_value}' is already in the {self.name} index")
        self._ids.append(id_value)

    def insert(self, index: Optional[int], id_value: str) -> int:
        """
        Insert an ID at a clamped position and return where it landed

        Args:
            index: Requested position; None means the end. Values outside
                [0, len] are clamped rather than rejected.
            id_value: The goal ID to insert
        """
        if id_value in self._ids:
            raise ValueError(f"'{id_value}' is already in the {self.name} index")
        length = len(self._ids)
        position = length if index is None else max(0, min(index, length))
        self._ids.insert(position, id_value)
        return position

    def remove(self, id_value: str) -> int:
        """Remove an ID and return the position it occupied"""
        position = self.position(id_value)
        if position == -1:
            raise ValueError(f"'{id_value}' is not in the {self.name} index")
        del self._ids[position]
        return position

    def move(self, old_index: int, new_index: int):
        """
        Single-element list move: take the ID out of old_index, then insert
        it at new_index of the shortened sequence. Not a swap.
        """
        if not self.in_bounds(old_index) or not self.in_bounds(new_index):
            raise IndexError(f"Move {old_index} -> {new_index} outside {self.name} (length {len(self._ids)})")
        id_value = self._ids.pop(old_index)
        self._ids.insert(new_index, id_value)

    def replace(self, ids: Iterable[str]):
        """Replace the whole sequence, rejecting duplicates"""
        new_ids = list(ids)
        if len(set(new_ids)) != len(new_ids):
            raise ValueError(f"Duplicate IDs in the {self.name} index")
        self._ids = new_ids
