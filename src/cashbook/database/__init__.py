"""Local record store for cashbook."""

from cashbook.database.base import EntityType, Record, RecordStore
from cashbook.database.factories import create_sqlite_store
from cashbook.database.memory import MemoryRecordStore

__all__ = ["EntityType", "Record", "RecordStore", "MemoryRecordStore", "create_sqlite_store"]
