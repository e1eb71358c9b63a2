"""Record store wrapper that survives a failing storage medium."""

import logging
from typing import Callable, Optional, TypeVar

from cashbook.database.base import EntityType, Record, RecordStore
from cashbook.database.memory import MemoryRecordStore
from cashbook.domain.errors import StorageUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResilientRecordStore(RecordStore):
    """Delegate to a durable store, falling back to memory on failure.

    Once the primary store raises StorageUnavailable, every later operation in
    this process goes to an in-memory store instead, seeded with whatever the
    primary can still read. Callers never see the storage error.
    """

    def __init__(self, primary: Optional[RecordStore]):
        self._primary = primary
        self._fallback: Optional[MemoryRecordStore] = None
        if primary is None:
            self._fallback = MemoryRecordStore()

    @property
    def degraded(self) -> bool:
        """True once the store is running on in-memory state only."""
        return self._fallback is not None

    def _call(self, operation: Callable[[RecordStore], T]) -> T:
        if self._fallback is None:
            try:
                return operation(self._primary)
            except StorageUnavailable as e:
                logger.warning("Local store unavailable, keeping data in memory for this session: %s", e)
                self._fallback = self._snapshot_primary()
        return operation(self._fallback)

    def _snapshot_primary(self) -> MemoryRecordStore:
        memory = MemoryRecordStore()
        for entity_type in EntityType:
            try:
                records = self._primary.get_all(entity_type)
            except StorageUnavailable as e:
                logger.warning("Could not copy %s into memory: %s", entity_type.value, e)
                continue
            for record in records:
                memory.put(entity_type, record)
        return memory

    def get_all(self, entity_type: EntityType) -> list[Record]:
        return self._call(lambda store: store.get_all(entity_type))

    def get(self, entity_type: EntityType, record_id: str) -> Optional[Record]:
        return self._call(lambda store: store.get(entity_type, record_id))

    def put(self, entity_type: EntityType, record: Record) -> None:
        self._call(lambda store: store.put(entity_type, record))

    def delete(self, entity_type: EntityType, record_id: str) -> None:
        self._call(lambda store: store.delete(entity_type, record_id))

    def clear(self, entity_type: EntityType) -> None:
        self._call(lambda store: store.clear(entity_type))

    def clear_all(self) -> None:
        self._call(lambda store: store.clear_all())

    def close(self) -> None:
        if self._primary is not None:
            self._primary.close()
