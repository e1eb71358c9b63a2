"""Customer domain service."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, UTC
from decimal import Decimal
from typing import Any, Optional

from cashbook.database.base import EntityType
from cashbook.database.mappers import (
    customer_account_to_domain,
    customer_account_to_record,
    customer_to_domain,
    customer_to_record,
    to_remote_payload,
)
from cashbook.domain.entities import (
    Customer as CustomerEntity,
    CustomerAccount as CustomerAccountEntity,
    FeeType,
)
from cashbook.domain.errors import (
    NotFoundError,
    OfflineError,
    customer_not_found,
    offline_edit,
)
from cashbook.domain.identifiers import RecordId, new_local_id
from cashbook.domain.validation import (
    require_text,
    validate_customer_account_fields,
    validate_fee_policy,
    validate_phone,
)
from cashbook.sync.synchronizer import SyncStrategy
from cashbook.workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerAccountInput:
    """Details of a customer's bank or wallet account, supplied at creation."""

    account_number: str
    account_title: Optional[str] = None
    bank_name: Optional[str] = None
    type: str = "bank"


class CustomerService:
    """Service for managing customers and their payout accounts."""

    def __init__(self, workspace: Workspace):
        """Initialize customer service.

        Args:
            workspace: Shared store, remote client and sync registry
        """
        self.workspace = workspace
        self.store = workspace.store

    def _insert_or_keep_local(self, entity_type: EntityType, record: dict[str, Any]) -> dict[str, Any]:
        if self.workspace.is_online():
            record = self.workspace.remote.insert(entity_type.remote_collection, to_remote_payload(record))
        else:
            logger.info("Offline: %s %s kept locally", entity_type.value, record["id"])
        self.store.put(entity_type, record)
        return record

    def create_customer(
        self,
        name: str,
        phone: Optional[str] = None,
        fee_type: FeeType | str = FeeType.FIXED,
        fee_value: Decimal | str = Decimal("0"),
        account: Optional[CustomerAccountInput] = None,
    ) -> CustomerEntity:
        """Create a customer, optionally with a payout account.

        Args:
            name: Customer name
            phone: Optional phone number
            fee_type: percentage or fixed
            fee_value: Percentage (0-100) or fixed fee amount
            account: Optional nested customer account, created after the customer

        Returns:
            The stored customer

        Raises:
            ValidationError: If any field is invalid
            RemoteRejected: If the server refuses the customer
        """
        owner_id = self.workspace.require_owner()
        name = require_text(name, "Customer name", 100)
        phone = validate_phone(phone)
        fee_type, fee_value = validate_fee_policy(fee_type, fee_value)
        account_fields = None
        if account is not None and account.account_number:
            account_fields = validate_customer_account_fields(
                account.account_title or name,
                account.account_number,
                account.bank_name or "Bank",
                account.type,
            )

        customer = CustomerEntity(
            id=new_local_id(),
            user_id=owner_id,
            name=name,
            fee_type=fee_type,
            fee_value=fee_value,
            created_at=datetime.now(UTC),
            phone=phone,
        )
        stored = customer_to_domain(
            self._insert_or_keep_local(EntityType.CUSTOMERS, customer_to_record(customer))
        )

        if account_fields is not None:
            self._create_customer_account(stored.id, account_fields)
        return stored

    def add_customer_account(
        self,
        customer_id: RecordId | str,
        account_number: str,
        account_title: Optional[str] = None,
        bank_name: Optional[str] = None,
        account_type: str = "bank",
    ) -> CustomerAccountEntity:
        """Attach a payout account to an existing customer."""
        customer = self.require_customer(customer_id)
        fields = validate_customer_account_fields(
            account_title or customer.name, account_number, bank_name or "Bank", account_type
        )
        return self._create_customer_account(customer.id, fields)

    def _create_customer_account(self, customer_id: RecordId, fields: dict[str, Any]) -> CustomerAccountEntity:
        account = CustomerAccountEntity(
            id=new_local_id(),
            customer_id=customer_id,
            account_title=fields["account_title"],
            account_number=fields["account_number"],
            bank_name=fields["bank_name"],
            type=fields["type"],
            created_at=datetime.now(UTC),
        )
        record = customer_account_to_record(account)
        return customer_account_to_domain(self._insert_or_keep_local(EntityType.CUSTOMER_ACCOUNTS, record))

    def get_customer(self, customer_id: RecordId | str) -> Optional[CustomerEntity]:
        record = self.store.get(EntityType.CUSTOMERS, str(customer_id))
        return None if record is None else customer_to_domain(record)

    def require_customer(self, customer_id: RecordId | str) -> CustomerEntity:
        customer = self.get_customer(customer_id)
        if customer is None:
            raise NotFoundError(customer_not_found(customer_id))
        return customer

    def list_customers(self) -> list[CustomerEntity]:
        """List cached customers alphabetically."""
        customers = [customer_to_domain(r) for r in self.store.get_all(EntityType.CUSTOMERS)]
        return sorted(customers, key=lambda c: (c.name.lower(), str(c.id)))

    def search_customers(self, text: str) -> list[CustomerEntity]:
        """Customers whose name or phone contains ``text`` (case-insensitive)."""
        needle = (text or "").strip().lower()
        if not needle:
            return self.list_customers()
        return [
            c
            for c in self.list_customers()
            if needle in c.name.lower() or (c.phone is not None and needle in c.phone.lower())
        ]

    def find_customer(self, name_or_id: str) -> CustomerEntity:
        """Resolve a customer by id or exact (case-insensitive) name.

        Raises:
            NotFoundError: If nothing matches
        """
        customer = self.get_customer(name_or_id)
        if customer is not None:
            return customer
        wanted = name_or_id.strip().lower()
        for c in self.list_customers():
            if c.name.lower() == wanted:
                return c
        raise NotFoundError(f"Customer '{name_or_id}' not found")

    def list_customer_accounts(self, customer_id: Optional[RecordId | str] = None) -> list[CustomerAccountEntity]:
        accounts = [customer_account_to_domain(r) for r in self.store.get_all(EntityType.CUSTOMER_ACCOUNTS)]
        if customer_id is not None:
            accounts = [a for a in accounts if str(a.customer_id) == str(customer_id)]
        return sorted(accounts, key=lambda a: a.created_at)

    def get_customer_account(self, account_id: RecordId | str) -> Optional[CustomerAccountEntity]:
        record = self.store.get(EntityType.CUSTOMER_ACCOUNTS, str(account_id))
        return None if record is None else customer_account_to_domain(record)

    def update_customer(
        self,
        customer_id: RecordId | str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        fee_type: Optional[FeeType | str] = None,
        fee_value: Optional[Decimal | str] = None,
    ) -> CustomerEntity:
        """Update customer details or fee policy.

        Raises:
            OfflineError: If the customer is synced and the connection is down
        """
        customer = self.require_customer(customer_id)
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = require_text(name, "Customer name", 100)
        if phone is not None:
            changes["phone"] = validate_phone(phone)
        if fee_type is not None or fee_value is not None:
            new_type, new_value = validate_fee_policy(
                fee_type if fee_type is not None else customer.fee_type,
                fee_value if fee_value is not None else customer.fee_value,
            )
            changes["fee_type"] = new_type
            changes["fee_value"] = new_value
        if not changes:
            return customer

        updated = customer_to_record(replace(customer, **changes))
        if not customer.id.is_local:
            if not self.workspace.is_online():
                raise OfflineError(offline_edit("customer", customer.id))
            remote_fields = {k: updated[k] for k in changes}
            echoed = self.workspace.remote.update(
                EntityType.CUSTOMERS.remote_collection, str(customer.id), remote_fields
            )
            if echoed:
                updated = echoed

        self.store.put(EntityType.CUSTOMERS, updated)
        return customer_to_domain(updated)

    def delete_customer(self, customer_id: RecordId | str) -> None:
        """Delete a customer and their cached payout accounts.

        Synced customers are hard-deleted remotely while online; the local
        copy is always removed.
        """
        customer = self.require_customer(customer_id)
        if self.workspace.is_online() and not customer.id.is_local:
            self.workspace.remote.delete(EntityType.CUSTOMERS.remote_collection, str(customer.id))
        for account in self.list_customer_accounts(customer.id):
            self.store.delete(EntityType.CUSTOMER_ACCOUNTS, str(account.id))
        self.store.delete(EntityType.CUSTOMERS, str(customer.id))

    def refresh(self) -> Optional[int]:
        """Merge the server's customers and their payout accounts into the cache."""
        owner_id = self.workspace.require_owner()
        synchronizer = self.workspace.synchronizer
        count = synchronizer.pull(
            EntityType.CUSTOMERS,
            filters={"user_id": owner_id},
            strategy=SyncStrategy.MERGE,
            order_by="name",
        )
        if count is None:
            return None
        for customer in self.list_customers():
            if customer.id.is_local:
                continue
            synchronizer.pull(
                EntityType.CUSTOMER_ACCOUNTS,
                filters={"customer_id": str(customer.id)},
                strategy=SyncStrategy.MERGE,
            )
        return count
