"""Domain model entities for cashbook.

These are pure data classes representing business concepts, independent of
how records are laid out in the local store or on the remote backend.
"""

from dataclasses import dataclass
from datetime import datetime, date
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional

from cashbook.domain.identifiers import RecordId

CENT = Decimal("0.01")


class AccountType(str, Enum):
    CASH = "cash"
    BANK = "bank"
    WALLET = "wallet"


class FeeType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class CustomerAccountType(str, Enum):
    BANK = "bank"
    WALLET = "wallet"


class Subcategory(str, Enum):
    PHYSICAL = "physical"
    DIGITAL = "digital"


class TransactionType(str, Enum):
    """Kinds of ledger movement a shop operator records."""

    CASH_IN = "cash_in"  # receive cash from customer, send to their bank/wallet
    CASH_OUT = "cash_out"  # receive in bank/wallet, hand cash to customer
    CASH_IN_PHYSICAL = "cash_in_physical"
    CASH_OUT_PHYSICAL = "cash_out_physical"
    CASH_IN_PERSONAL = "cash_in_personal"
    CASH_OUT_PERSONAL = "cash_out_personal"
    ACCOUNT_TRANSFER = "account_transfer"
    LOAN_GIVEN = "loan_given"
    LOAN_RECEIVED = "loan_received"
    EXPENSE = "expense"
    INCOME = "income"

    @property
    def is_personal(self) -> bool:
        return self in (TransactionType.CASH_IN_PERSONAL, TransactionType.CASH_OUT_PERSONAL)

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


@dataclass(frozen=True)
class Account:
    """Cash box, bank or wallet account owned by the operator."""

    id: RecordId
    user_id: str
    name: str
    type: AccountType
    opening_balance: Decimal
    current_balance: Decimal
    is_active: bool
    created_at: datetime
    account_number: Optional[str] = None
    provider: Optional[str] = None


@dataclass(frozen=True)
class Customer:
    """Customer with a fee policy."""

    id: RecordId
    user_id: str
    name: str
    fee_type: FeeType
    fee_value: Decimal
    created_at: datetime
    phone: Optional[str] = None

    def calculate_fee(self, amount: Decimal) -> Decimal:
        """Fee owed for a transaction of ``amount`` under this customer's policy."""
        if self.fee_type == FeeType.PERCENTAGE:
            return (amount * self.fee_value / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
        return self.fee_value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CustomerAccount:
    """Bank or wallet account belonging to a customer."""

    id: RecordId
    customer_id: RecordId
    account_title: str
    account_number: str
    bank_name: str
    type: CustomerAccountType
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Ledger entry."""

    id: RecordId
    user_id: str
    type: TransactionType
    amount: Decimal
    fee_amount: Decimal
    transaction_date: date
    created_at: datetime
    subcategory: Optional[Subcategory] = None
    from_account_id: Optional[RecordId] = None
    to_account_id: Optional[RecordId] = None
    customer_id: Optional[RecordId] = None
    customer_account_id: Optional[RecordId] = None
    description: Optional[str] = None

    @property
    def is_synced(self) -> bool:
        return not self.id.is_local


@dataclass(frozen=True)
class PendingTransaction:
    """Outbox entry: a transaction awaiting delivery to the remote store."""

    transaction: Transaction
    synced: bool = False
    retry_count: int = 0
    failed: bool = False
    last_error: Optional[str] = None

    @property
    def id(self) -> RecordId:
        return self.transaction.id

    @property
    def created_at(self) -> datetime:
        return self.transaction.created_at


@dataclass(frozen=True)
class CashPosition:
    """Daily cash box position, supplied by the backend."""

    id: RecordId
    user_id: str
    date: date
    opening_balance: Decimal
    closing_balance: Decimal
    total_cash_received: Decimal
    total_cash_given: Decimal
    created_at: datetime


@dataclass(frozen=True)
class DailySummary:
    """Cash movement totals for a single day."""

    day: date
    cash_received: Decimal
    cash_given: Decimal
    fees: Decimal
    cash_received_count: int
    cash_given_count: int
    totals_by_type: dict[TransactionType, Decimal]
    transaction_count: int


@dataclass(frozen=True)
class ReportSummary:
    """Totals over a reporting period."""

    start_date: Optional[date]
    end_date: Optional[date]
    cash_in: Decimal
    cash_out: Decimal
    fees: Decimal
    count: int
