"""Abstract local record store interface."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional

Record = dict[str, Any]


class EntityType(str, Enum):
    """Named collections kept in the local store."""

    ACCOUNTS = "accounts"
    CUSTOMERS = "customers"
    CUSTOMER_ACCOUNTS = "customer_accounts"
    TRANSACTIONS = "transactions"
    PENDING_TRANSACTIONS = "pending_transactions"
    CASH_POSITIONS = "cash_positions"

    @property
    def remote_collection(self) -> str:
        """Name of the matching remote collection."""
        if self == EntityType.PENDING_TRANSACTIONS:
            return EntityType.TRANSACTIONS.value
        return self.value


class RecordStore(ABC):
    """Durable key-value persistence, one collection per entity type.

    Records are JSON-compatible dicts keyed by their ``"id"`` value. The store
    applies no ordering and no schema validation.
    """

    @abstractmethod
    def get_all(self, entity_type: EntityType) -> list[Record]:
        """Return every record of a type, in no particular order."""
        pass

    @abstractmethod
    def get(self, entity_type: EntityType, record_id: str) -> Optional[Record]:
        """Return one record or None if absent."""
        pass

    @abstractmethod
    def put(self, entity_type: EntityType, record: Record) -> None:
        """Insert or replace a record by its id."""
        pass

    @abstractmethod
    def delete(self, entity_type: EntityType, record_id: str) -> None:
        """Remove a record. No-op if absent."""
        pass

    @abstractmethod
    def clear(self, entity_type: EntityType) -> None:
        """Remove every record of a type."""
        pass

    def clear_all(self) -> None:
        """Remove every record of every type."""
        for entity_type in EntityType:
            self.clear(entity_type)

    def close(self) -> None:
        """Release any underlying resources."""
        pass


def record_key(record: Record) -> str:
    """Return the identifier a record is stored under."""
    record_id = record.get("id")
    if record_id is None or str(record_id) == "":
        raise ValueError("Record has no 'id' field")
    return str(record_id)
