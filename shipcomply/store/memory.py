"""
In-memory rule store.

Entities are kept as deep copies so callers never share mutable state with
the store. A lock serializes access, which makes the store safe for
concurrent shipment evaluations.
"""

import threading
from typing import Any

from pydantic import BaseModel

from .base import EntityKind, RuleStore, check_entity, index_attribute


class InMemoryRuleStore(RuleStore):
    """Dict-backed RuleStore, the default backend for tests and local runs."""

    def __init__(self):
        self._data: dict[EntityKind, dict[str, BaseModel]] = {kind: {} for kind in EntityKind}
        self._lock = threading.RLock()

    def get_all(self, kind: EntityKind) -> list[Any]:
        with self._lock:
            return [entity.model_copy(deep=True) for entity in self._data[kind].values()]

    def get_by_id(self, kind: EntityKind, entity_id: str) -> Any | None:
        with self._lock:
            entity = self._data[kind].get(entity_id)
            return entity.model_copy(deep=True) if entity is not None else None

    def get_by_index(self, kind: EntityKind, index_name: str, value: Any) -> list[Any]:
        attribute = index_attribute(kind, index_name)
        with self._lock:
            return [
                entity.model_copy(deep=True)
                for entity in self._data[kind].values()
                if getattr(entity, attribute) == value
            ]

    def put(self, kind: EntityKind, entity: BaseModel) -> None:
        check_entity(kind, entity)
        with self._lock:
            self._data[kind][entity.id] = entity.model_copy(deep=True)

    def put_many(self, kind: EntityKind, entities: list[BaseModel]) -> None:
        # Type-check everything before touching the table
        for entity in entities:
            check_entity(kind, entity)
        staged = {entity.id: entity.model_copy(deep=True) for entity in entities}
        with self._lock:
            self._data[kind].update(staged)

    def delete(self, kind: EntityKind, entity_id: str) -> None:
        with self._lock:
            self._data[kind].pop(entity_id, None)

    def clear_all(self) -> None:
        with self._lock:
            for table in self._data.values():
                table.clear()

    def count(self, kind: EntityKind) -> int:
        with self._lock:
            return len(self._data[kind])
