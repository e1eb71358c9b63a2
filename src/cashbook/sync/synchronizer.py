"""Reconciliation between the local store and the remote store."""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from cashbook.database.base import EntityType, RecordStore
from cashbook.database.mappers import to_remote_payload, transaction_to_record
from cashbook.domain.errors import DomainError
from cashbook.remote.base import RemoteStore
from cashbook.sync.connectivity import Connectivity
from cashbook.sync.outbox import Outbox

logger = logging.getLogger(__name__)


class SyncStrategy(str, Enum):
    """How pulled rows are applied to the local store."""

    REPLACE = "replace"  # clear the collection, then store the pulled rows
    MERGE = "merge"  # upsert pulled rows, keep everything else


@dataclass
class DrainResult:
    """Outcome of one outbox drain."""

    attempted: int = 0
    delivered: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    exhausted: list[str] = field(default_factory=list)
    skipped: bool = False

    @property
    def remaining(self) -> int:
        return len(self.failed)


class Synchronizer:
    """Pulls authoritative rows and drains the outbox.

    This is the only component that replaces a temporary transaction id with
    the server-assigned one.
    """

    def __init__(
        self,
        store: RecordStore,
        remote: RemoteStore,
        connectivity: Connectivity,
        outbox: Outbox,
    ):
        self.store = store
        self.remote = remote
        self.connectivity = connectivity
        self.outbox = outbox
        self._drain_lock = threading.Lock()

    def pull(
        self,
        entity_type: EntityType,
        filters: Optional[dict[str, Any]] = None,
        strategy: SyncStrategy = SyncStrategy.MERGE,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> Optional[int]:
        """Refresh one local collection from the remote store.

        Rows are fetched before anything local is touched, so a failed fetch
        leaves the local collection as it was.

        Returns:
            Number of rows applied, or None if offline or the fetch failed
        """
        if not self.connectivity.is_online():
            logger.debug("Offline, skipping pull of %s", entity_type.value)
            return None

        try:
            rows = self.remote.select(
                entity_type.remote_collection, filters=filters, order_by=order_by, descending=descending
            )
        except DomainError as e:
            logger.warning("Pull of %s failed, keeping local data: %s", entity_type.value, e)
            return None

        if strategy == SyncStrategy.REPLACE:
            self.store.clear(entity_type)
        for row in rows:
            self.store.put(entity_type, row)
        logger.info("Pulled %d %s (%s)", len(rows), entity_type.value, strategy.value)
        return len(rows)

    def drain_outbox(self) -> DrainResult:
        """Deliver queued transactions, oldest first.

        Each entry is independent: a failure is recorded on that entry and the
        drain moves on. A drain already in progress makes this call return
        immediately with ``skipped=True``.
        """
        if not self._drain_lock.acquire(blocking=False):
            logger.info("Outbox drain already running, skipping")
            return DrainResult(skipped=True)
        try:
            return self._drain()
        finally:
            self._drain_lock.release()

    def _drain(self) -> DrainResult:
        result = DrainResult()
        if not self.connectivity.is_online():
            logger.debug("Offline, not draining outbox")
            return result

        for pending in self.outbox.ready():
            result.attempted += 1
            temp_id = str(pending.id)
            try:
                payload = to_remote_payload(transaction_to_record(pending.transaction))
                row = self.remote.insert(EntityType.TRANSACTIONS.remote_collection, payload)
            except DomainError as e:
                updated = self.outbox.record_failure(pending.id, str(e))
                result.failed[temp_id] = str(e)
                if updated is not None and updated.failed:
                    result.exhausted.append(temp_id)
                logger.warning("Delivery of transaction %s failed: %s", temp_id, e)
                continue

            self.outbox.remove(pending.id)
            self.store.delete(EntityType.TRANSACTIONS, temp_id)
            self.store.put(EntityType.TRANSACTIONS, row)
            result.delivered.append(temp_id)
            logger.info("Delivered transaction %s as %s", temp_id, row.get("id"))

        return result
