"""In-memory record store, used as session fallback and in tests."""

import copy
from typing import Optional

from cashbook.database.base import EntityType, Record, RecordStore, record_key


class MemoryRecordStore(RecordStore):
    """Dict-backed RecordStore. Contents are lost when the process exits."""

    def __init__(self):
        self._collections: dict[EntityType, dict[str, Record]] = {
            entity_type: {} for entity_type in EntityType
        }

    def get_all(self, entity_type: EntityType) -> list[Record]:
        return [copy.deepcopy(r) for r in self._collections[entity_type].values()]

    def get(self, entity_type: EntityType, record_id: str) -> Optional[Record]:
        record = self._collections[entity_type].get(str(record_id))
        return None if record is None else copy.deepcopy(record)

    def put(self, entity_type: EntityType, record: Record) -> None:
        self._collections[entity_type][record_key(record)] = copy.deepcopy(record)

    def delete(self, entity_type: EntityType, record_id: str) -> None:
        self._collections[entity_type].pop(str(record_id), None)

    def clear(self, entity_type: EntityType) -> None:
        self._collections[entity_type].clear()
