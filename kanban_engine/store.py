"""
Kanban Entity Store

Owns kanban records for the life of the process. The backing mapping is
injected so a caller can supply a shared or instrumented dict; by default a
plain dict is used. Iteration follows insertion order.
"""

from typing import Dict, Iterator, List, MutableMapping, Optional

from core.errors import KanbanNotFound
from core.models import Kanban, KanbanStatus, KanbanType


class KanbanStore:
    """Keyed collection of Kanban records."""

    def __init__(self, storage: Optional[MutableMapping[str, Kanban]] = None):
        self._items: MutableMapping[str, Kanban] = storage if storage is not None else {}

    def add(self, kanban: Kanban) -> Kanban:
        if kanban.id in self._items:
            raise ValueError(f"Kanban {kanban.id} already stored")
        self._items[kanban.id] = kanban
        return kanban

    def get(self, kanban_id: str) -> Optional[Kanban]:
        return self._items.get(kanban_id)

    def require(self, kanban_id: str) -> Kanban:
        kanban = self._items.get(kanban_id)
        if kanban is None:
            raise KanbanNotFound(kanban_id)
        return kanban

    def update(self, kanban: Kanban) -> Kanban:
        """Replace the stored record with the same id."""
        if kanban.id not in self._items:
            raise KanbanNotFound(kanban.id)
        self._items[kanban.id] = kanban
        return kanban

    def remove(self, kanban_id: str) -> Optional[Kanban]:
        return self._items.pop(kanban_id, None)

    def all(self) -> List[Kanban]:
        return list(self._items.values())

    def by_type(self, kanban_type: KanbanType) -> List[Kanban]:
        return [k for k in self._items.values() if k.type == kanban_type]

    def by_status(self, status: KanbanStatus) -> List[Kanban]:
        return [k for k in self._items.values() if k.status == status]

    def counts_by_status(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in KanbanStatus}
        for kanban in self._items.values():
            counts[kanban.status.value] += 1
        return counts

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, kanban_id: object) -> bool:
        return kanban_id in self._items

    def __iter__(self) -> Iterator[Kanban]:
        return iter(list(self._items.values()))
