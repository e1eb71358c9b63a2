"""Account domain service."""

import logging
from dataclasses import replace
from datetime import datetime, UTC
from decimal import Decimal
from typing import Any, Optional, Sequence

from cashbook.database.base import EntityType
from cashbook.database.mappers import account_to_domain, account_to_record, to_remote_payload
from cashbook.domain.entities import Account as AccountEntity, AccountType
from cashbook.domain.errors import (
    NotFoundError,
    OfflineError,
    account_not_found,
    offline_edit,
)
from cashbook.domain.identifiers import RecordId, new_local_id
from cashbook.domain.validation import optional_text, require_text, validate_account_fields
from cashbook.sync.synchronizer import SyncStrategy
from cashbook.workspace import Workspace

logger = logging.getLogger(__name__)


def total_balance(accounts: Sequence[AccountEntity]) -> Decimal:
    """Sum of current balances; independent of iteration order."""
    return sum((acc.current_balance for acc in accounts), Decimal("0"))


class AccountService:
    """Service for managing accounts."""

    def __init__(self, workspace: Workspace):
        """Initialize account service.

        Args:
            workspace: Shared store, remote client and sync registry
        """
        self.workspace = workspace
        self.store = workspace.store

    def create_account(
        self,
        name: str,
        account_type: AccountType | str,
        opening_balance: Decimal | str = Decimal("0"),
        account_number: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> AccountEntity:
        """Create a new account.

        Online, the account is inserted remotely and cached under its server
        id. Offline, it is cached under a temporary id.

        Args:
            name: Account name
            account_type: cash, bank or wallet
            opening_balance: Starting balance (also the initial current balance)
            account_number: Optional account number
            provider: Optional bank or wallet provider

        Returns:
            The stored account

        Raises:
            ValidationError: If any field is invalid
            RemoteRejected: If the server refuses the account
            RemoteUnavailable: If the server cannot be reached while online
        """
        owner_id = self.workspace.require_owner()
        fields = validate_account_fields(name, account_type, opening_balance, account_number, provider)
        account = AccountEntity(
            id=new_local_id(),
            user_id=owner_id,
            name=fields["name"],
            type=fields["type"],
            opening_balance=fields["opening_balance"],
            current_balance=fields["opening_balance"],
            is_active=True,
            created_at=datetime.now(UTC),
            account_number=fields["account_number"],
            provider=fields["provider"],
        )
        record = account_to_record(account)

        if self.workspace.is_online():
            record = self.workspace.remote.insert(
                EntityType.ACCOUNTS.remote_collection, to_remote_payload(record)
            )
        else:
            logger.info("Offline: account '%s' kept locally as %s", account.name, account.id)

        self.store.put(EntityType.ACCOUNTS, record)
        return account_to_domain(record)

    def get_account(self, account_id: RecordId | str) -> Optional[AccountEntity]:
        """Get account by ID.

        Returns:
            Account entity or None if not found
        """
        record = self.store.get(EntityType.ACCOUNTS, str(account_id))
        return None if record is None else account_to_domain(record)

    def require_account(self, account_id: RecordId | str) -> AccountEntity:
        account = self.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self, include_inactive: bool = False) -> list[AccountEntity]:
        """List cached accounts, newest first.

        Args:
            include_inactive: If True, include soft-deleted accounts
        """
        accounts = [account_to_domain(r) for r in self.store.get_all(EntityType.ACCOUNTS)]
        if not include_inactive:
            accounts = [acc for acc in accounts if acc.is_active]
        return sorted(accounts, key=lambda acc: acc.created_at, reverse=True)

    def find_account(self, name_or_id: str) -> AccountEntity:
        """Resolve an account by id or case-insensitive name.

        Raises:
            NotFoundError: If no active account matches
        """
        account = self.get_account(name_or_id)
        if account is not None:
            return account
        wanted = name_or_id.strip().lower()
        for acc in self.list_accounts():
            if acc.name.lower() == wanted:
                return acc
        raise NotFoundError(f"Account '{name_or_id}' not found")

    def update_account(
        self,
        account_id: RecordId | str,
        name: Optional[str] = None,
        account_number: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> AccountEntity:
        """Update descriptive account fields.

        Balances are owned by the server and cannot be edited here.

        Raises:
            NotFoundError: If the account is not cached locally
            OfflineError: If the account is synced and the connection is down
        """
        account = self.require_account(account_id)
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = require_text(name, "Account name", 100)
        if account_number is not None:
            changes["account_number"] = optional_text(account_number, "Account number", 50)
        if provider is not None:
            changes["provider"] = optional_text(provider, "Provider name", 100)
        if not changes:
            return account

        updated = account_to_record(replace(account, **changes))
        if not account.id.is_local:
            if not self.workspace.is_online():
                raise OfflineError(offline_edit("account", account.id))
            echoed = self.workspace.remote.update(
                EntityType.ACCOUNTS.remote_collection, str(account.id), changes
            )
            if echoed:
                updated = echoed

        self.store.put(EntityType.ACCOUNTS, updated)
        return account_to_domain(updated)

    def delete_account(self, account_id: RecordId | str) -> None:
        """Delete an account.

        A synced account is soft-deleted remotely (``is_active`` cleared) while
        online; the local copy is always removed. An account that never left
        this device needs no remote call.

        Raises:
            NotFoundError: If the account is not cached locally
        """
        account = self.require_account(account_id)
        if self.workspace.is_online() and not account.id.is_local:
            self.workspace.remote.update(
                EntityType.ACCOUNTS.remote_collection, str(account.id), {"is_active": False}
            )
        self.store.delete(EntityType.ACCOUNTS, str(account.id))

    def refresh(self) -> Optional[int]:
        """Replace the cached accounts with the active accounts on the server.

        Accounts that only exist locally (temporary ids) are dropped by the
        replace; see ``local_only_accounts``.
        """
        owner_id = self.workspace.require_owner()
        local_only = self.local_only_accounts()
        count = self.workspace.synchronizer.pull(
            EntityType.ACCOUNTS,
            filters={"user_id": owner_id, "is_active": True},
            strategy=SyncStrategy.REPLACE,
            order_by="created_at",
            descending=True,
        )
        if count is not None and local_only:
            logger.warning(
                "Refresh dropped %d local-only account(s): %s",
                len(local_only),
                ", ".join(acc.name for acc in local_only),
            )
        return count

    def local_only_accounts(self) -> list[AccountEntity]:
        """Accounts created offline that the server has never seen."""
        return [acc for acc in self.list_accounts(include_inactive=True) if acc.id.is_local]

    def total_balance(self) -> Decimal:
        return total_balance(self.list_accounts())

    def cash_on_hand(self) -> Decimal:
        """Balance of the first cash account, or zero if there is none."""
        for acc in self.list_accounts():
            if acc.type == AccountType.CASH:
                return acc.current_balance
        return Decimal("0")
