"""Transaction domain service."""

import logging
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Optional

from cashbook.database.base import EntityType
from cashbook.database.mappers import (
    customer_to_domain,
    to_remote_payload,
    transaction_to_domain,
    transaction_to_record,
)
from cashbook.domain.entities import (
    PendingTransaction,
    Transaction as TransactionEntity,
    TransactionType,
)
from cashbook.domain.errors import (
    ConflictError,
    NotFoundError,
    RemoteUnavailable,
    account_not_found,
    customer_not_found,
    synced_transaction_delete,
    transaction_not_found,
)
from cashbook.domain.identifiers import RecordId, new_local_id, parse_optional_id, parse_record_id
from cashbook.domain.validation import (
    coerce_decimal,
    coerce_enum,
    optional_text,
    resolve_subcategory,
    validate_amount,
    validate_counterparts,
    validate_non_negative,
)
from cashbook.sync.synchronizer import SyncStrategy
from cashbook.workspace import Workspace

logger = logging.getLogger(__name__)


class TransactionService:
    """Service for recording transactions, online or offline."""

    def __init__(self, workspace: Workspace):
        """Initialize transaction service.

        Args:
            workspace: Shared store, remote client and sync registry
        """
        self.workspace = workspace
        self.store = workspace.store

    def _require_reference(self, entity_type: EntityType, record_id: Optional[RecordId], message: str) -> None:
        if record_id is not None and self.store.get(entity_type, str(record_id)) is None:
            raise NotFoundError(message)

    def create_transaction(
        self,
        transaction_type: TransactionType | str,
        amount: Decimal | str,
        fee_amount: Optional[Decimal | str] = None,
        customer_id: Optional[RecordId | str] = None,
        from_account_id: Optional[RecordId | str] = None,
        to_account_id: Optional[RecordId | str] = None,
        customer_account_id: Optional[RecordId | str] = None,
        subcategory: Optional[str] = None,
        description: Optional[str] = None,
        transaction_date: Optional[date] = None,
    ) -> TransactionEntity:
        """Record a transaction.

        Online, the transaction is inserted remotely and the server's record
        is cached. Offline, or when the server cannot be reached, it is cached
        under a temporary id and queued in the outbox for later delivery.

        Args:
            transaction_type: Kind of transaction
            amount: Transaction amount
            fee_amount: Fee charged; defaults to the customer's fee policy
            customer_id: Customer involved, where the type needs one
            from_account_id: Account money leaves
            to_account_id: Account money enters
            customer_account_id: Customer's bank or wallet account
            subcategory: physical or digital, personal types only
            description: Optional free text
            transaction_date: Business date (defaults to today)

        Returns:
            The stored transaction; ``is_synced`` tells whether it reached the server

        Raises:
            ValidationError: If any field is invalid
            NotFoundError: If a referenced account or customer is unknown
            RemoteRejected: If the server refuses the transaction
        """
        owner_id = self.workspace.require_owner()
        txn_type = coerce_enum(TransactionType, transaction_type, "transaction type")
        amount = validate_amount(coerce_decimal(amount, "Amount"))
        sub = resolve_subcategory(txn_type, subcategory)
        customer_ref = parse_optional_id(customer_id)
        from_ref = parse_optional_id(from_account_id)
        to_ref = parse_optional_id(to_account_id)
        customer_account_ref = parse_optional_id(customer_account_id)
        validate_counterparts(txn_type, sub, customer_ref, from_ref, to_ref)

        self._require_reference(EntityType.ACCOUNTS, from_ref, account_not_found(from_ref))
        self._require_reference(EntityType.ACCOUNTS, to_ref, account_not_found(to_ref))
        self._require_reference(EntityType.CUSTOMERS, customer_ref, customer_not_found(customer_ref))
        self._require_reference(
            EntityType.CUSTOMER_ACCOUNTS,
            customer_account_ref,
            f"Customer account {customer_account_ref} not found",
        )

        if fee_amount is None or fee_amount == "":
            fee = self._default_fee(customer_ref, amount)
        else:
            fee = validate_non_negative(coerce_decimal(fee_amount, "Fee"), "Fee")

        transaction = TransactionEntity(
            id=new_local_id(),
            user_id=owner_id,
            type=txn_type,
            amount=amount,
            fee_amount=fee,
            transaction_date=transaction_date or date.today(),
            created_at=datetime.now(UTC),
            subcategory=sub,
            from_account_id=from_ref,
            to_account_id=to_ref,
            customer_id=customer_ref,
            customer_account_id=customer_account_ref,
            description=optional_text(description, "Description", 500),
        )

        if self.workspace.is_online():
            try:
                return self._insert_remote(transaction)
            except RemoteUnavailable as e:
                logger.warning("Server unreachable, queueing transaction: %s", e)
            except ConflictError as e:
                # references records that have not been synced yet
                logger.info("Queueing transaction with unsynced references: %s", e)
        return self._queue(transaction)

    def _default_fee(self, customer_id: Optional[RecordId], amount: Decimal) -> Decimal:
        if customer_id is None:
            return Decimal("0")
        record = self.store.get(EntityType.CUSTOMERS, str(customer_id))
        if record is None:
            return Decimal("0")
        return customer_to_domain(record).calculate_fee(amount)

    def _insert_remote(self, transaction: TransactionEntity) -> TransactionEntity:
        row = self.workspace.remote.insert(
            EntityType.TRANSACTIONS.remote_collection,
            to_remote_payload(transaction_to_record(transaction)),
        )
        self.store.put(EntityType.TRANSACTIONS, row)
        logger.info("Transaction %s recorded on the server", row.get("id"))
        return transaction_to_domain(row)

    def _queue(self, transaction: TransactionEntity) -> TransactionEntity:
        self.store.put(EntityType.TRANSACTIONS, transaction_to_record(transaction))
        self.workspace.outbox.enqueue(PendingTransaction(transaction=transaction))
        return transaction

    def get_transaction(self, transaction_id: RecordId | str) -> Optional[TransactionEntity]:
        record = self.store.get(EntityType.TRANSACTIONS, str(transaction_id))
        return None if record is None else transaction_to_domain(record)

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        transaction_type: Optional[TransactionType | str] = None,
        limit: Optional[int] = None,
    ) -> list[TransactionEntity]:
        """List cached transactions, newest first.

        Args:
            start_date: Optional inclusive start date
            end_date: Optional inclusive end date
            transaction_type: Optional type filter
            limit: Optional maximum number of results
        """
        txn_type = None
        if transaction_type is not None:
            txn_type = coerce_enum(TransactionType, transaction_type, "transaction type")

        result = []
        for record in self.store.get_all(EntityType.TRANSACTIONS):
            txn = transaction_to_domain(record)
            if start_date is not None and txn.transaction_date < start_date:
                continue
            if end_date is not None and txn.transaction_date > end_date:
                continue
            if txn_type is not None and txn.type != txn_type:
                continue
            result.append(txn)

        result.sort(key=lambda t: (t.transaction_date, t.created_at), reverse=True)
        if limit is not None:
            result = result[:limit]
        return result

    def transactions_for_day(self, day: date) -> list[TransactionEntity]:
        return self.list_transactions(start_date=day, end_date=day)

    def pending(self) -> list[PendingTransaction]:
        """Transactions waiting in the outbox, oldest first."""
        return self.workspace.outbox.list()

    def discard_pending(self, transaction_id: RecordId | str) -> None:
        """Drop a transaction that has not reached the server.

        Raises:
            ConflictError: If the transaction has already been synced
            NotFoundError: If no such unsynced transaction exists
        """
        record_id = parse_record_id(transaction_id)
        if not record_id.is_local:
            raise ConflictError(synced_transaction_delete(record_id))
        outbox = self.workspace.outbox
        if outbox.get(record_id) is None and self.get_transaction(record_id) is None:
            raise NotFoundError(transaction_not_found(record_id))
        outbox.remove(record_id)
        self.store.delete(EntityType.TRANSACTIONS, str(record_id))
        logger.info("Discarded unsynced transaction %s", record_id)

    def refresh(self, day: Optional[date] = None) -> Optional[int]:
        """Merge server transactions for one day, or the whole history, into the cache."""
        owner_id = self.workspace.require_owner()
        filters: dict[str, object] = {"user_id": owner_id}
        if day is not None:
            filters["transaction_date"] = day.isoformat()
        return self.workspace.synchronizer.pull(
            EntityType.TRANSACTIONS,
            filters=filters,
            strategy=SyncStrategy.MERGE,
            order_by="created_at",
            descending=True,
        )
