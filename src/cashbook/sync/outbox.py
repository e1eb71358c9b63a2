"""Queue of transactions waiting to be delivered to the remote store."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from cashbook.database.base import EntityType, RecordStore
from cashbook.database.mappers import pending_to_domain, pending_to_record
from cashbook.domain.entities import PendingTransaction
from cashbook.domain.errors import ValidationError
from cashbook.domain.identifiers import RecordId

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 5


class Outbox:
    """Pending transactions kept in the local store.

    Entries stay until removed explicitly. Each failed delivery bumps the
    entry's retry count; at ``max_retries`` the entry is marked failed and
    skipped by later drains until it is requeued.
    """

    def __init__(self, store: RecordStore, max_retries: int = DEFAULT_MAX_RETRIES):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.store = store
        self.max_retries = max_retries

    def enqueue(self, pending: PendingTransaction) -> None:
        """Append an entry.

        Raises:
            ValidationError: If the entry does not carry a temporary id
        """
        if not pending.id.is_local:
            raise ValidationError(f"Only unsynced transactions can be queued, got id {pending.id}")
        self.store.put(EntityType.PENDING_TRANSACTIONS, pending_to_record(pending))
        logger.info("Queued transaction %s for later delivery", pending.id)

    def list(self) -> list[PendingTransaction]:
        """All entries, oldest first."""
        entries = [pending_to_domain(r) for r in self.store.get_all(EntityType.PENDING_TRANSACTIONS)]
        return sorted(entries, key=lambda p: (p.created_at, str(p.id)))

    def ready(self) -> list[PendingTransaction]:
        """Entries still eligible for delivery, oldest first."""
        return [p for p in self.list() if not p.failed]

    def failed(self) -> list[PendingTransaction]:
        """Entries that ran out of retries."""
        return [p for p in self.list() if p.failed]

    def get(self, record_id: RecordId) -> Optional[PendingTransaction]:
        record = self.store.get(EntityType.PENDING_TRANSACTIONS, str(record_id))
        return None if record is None else pending_to_domain(record)

    def count(self) -> int:
        return len(self.store.get_all(EntityType.PENDING_TRANSACTIONS))

    def remove(self, record_id: RecordId) -> None:
        self.store.delete(EntityType.PENDING_TRANSACTIONS, str(record_id))

    def record_failure(self, record_id: RecordId, error: str) -> Optional[PendingTransaction]:
        """Count a failed delivery attempt. Returns the updated entry."""
        pending = self.get(record_id)
        if pending is None:
            return None
        retry_count = pending.retry_count + 1
        updated = replace(
            pending,
            retry_count=retry_count,
            failed=retry_count >= self.max_retries,
            last_error=error,
        )
        self.store.put(EntityType.PENDING_TRANSACTIONS, pending_to_record(updated))
        if updated.failed:
            logger.warning(
                "Transaction %s gave up after %d attempts: %s", record_id, retry_count, error
            )
        return updated

    def requeue(self, record_id: RecordId) -> PendingTransaction:
        """Reset the retry state of an entry.

        Raises:
            ValidationError: If no such entry exists
        """
        pending = self.get(record_id)
        if pending is None:
            raise ValidationError(f"No pending transaction {record_id}")
        updated = replace(pending, retry_count=0, failed=False, last_error=None)
        self.store.put(EntityType.PENDING_TRANSACTIONS, pending_to_record(updated))
        return updated
