"""Summary domain service."""

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from cashbook.database.base import EntityType
from cashbook.database.mappers import account_to_domain, cash_position_to_domain
from cashbook.domain.account import total_balance
from cashbook.domain.entities import (
    CashPosition,
    DailySummary,
    ReportSummary,
    Subcategory,
    Transaction,
    TransactionType,
)
from cashbook.domain.transaction import TransactionService
from cashbook.sync.synchronizer import SyncStrategy
from cashbook.workspace import Workspace

ZERO = Decimal("0")


def is_cash_received(txn: Transaction) -> bool:
    """Physical cash coming into the shop's cash box."""
    if txn.type in (TransactionType.CASH_IN, TransactionType.CASH_IN_PHYSICAL):
        return True
    return txn.type == TransactionType.CASH_IN_PERSONAL and txn.subcategory == Subcategory.PHYSICAL


def is_cash_given(txn: Transaction) -> bool:
    """Physical cash leaving the shop's cash box."""
    if txn.type in (TransactionType.CASH_OUT, TransactionType.CASH_OUT_PHYSICAL):
        return True
    return txn.type == TransactionType.CASH_OUT_PERSONAL and txn.subcategory == Subcategory.PHYSICAL


def summarize_day(day: date, transactions: Sequence[Transaction]) -> DailySummary:
    """Aggregate one day's transactions into dashboard totals."""
    received = [t for t in transactions if is_cash_received(t)]
    given = [t for t in transactions if is_cash_given(t)]

    totals_by_type: dict[TransactionType, Decimal] = {}
    for txn in transactions:
        totals_by_type[txn.type] = totals_by_type.get(txn.type, ZERO) + txn.amount

    return DailySummary(
        day=day,
        cash_received=sum((t.amount for t in received), ZERO),
        cash_given=sum((t.amount for t in given), ZERO),
        fees=sum((t.fee_amount for t in transactions), ZERO),
        cash_received_count=len(received),
        cash_given_count=len(given),
        totals_by_type=totals_by_type,
        transaction_count=len(transactions),
    )


def summarize_period(
    transactions: Sequence[Transaction],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> ReportSummary:
    """Totals of cash-in and cash-out transactions and all fees in a period."""
    return ReportSummary(
        start_date=start_date,
        end_date=end_date,
        cash_in=sum((t.amount for t in transactions if t.type == TransactionType.CASH_IN), ZERO),
        cash_out=sum((t.amount for t in transactions if t.type == TransactionType.CASH_OUT), ZERO),
        fees=sum((t.fee_amount for t in transactions), ZERO),
        count=len(transactions),
    )


class SummaryService:
    """Service for building dashboard and report totals from the local store."""

    def __init__(self, workspace: Workspace):
        """Initialize summary service.

        Args:
            workspace: Shared store, remote client and sync registry
        """
        self.workspace = workspace
        self.store = workspace.store
        self.transactions = TransactionService(workspace)

    def daily_summary(self, day: Optional[date] = None) -> DailySummary:
        """Cash received, cash given and fees for one day (defaults to today)."""
        day = day or date.today()
        return summarize_day(day, self.transactions.transactions_for_day(day))

    def report_summary(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> ReportSummary:
        """Totals over an inclusive date range.

        Args:
            start_date: Optional start date
            end_date: Optional end date

        Returns:
            ReportSummary for the cached transactions in the range
        """
        txns = self.transactions.list_transactions(start_date=start_date, end_date=end_date)
        return summarize_period(txns, start_date, end_date)

    def total_balance(self) -> Decimal:
        accounts = [account_to_domain(r) for r in self.store.get_all(EntityType.ACCOUNTS)]
        return total_balance([acc for acc in accounts if acc.is_active])

    def cash_position(self, day: Optional[date] = None) -> Optional[CashPosition]:
        """Cached cash box position for a day, if the server has supplied one."""
        day = day or date.today()
        for record in self.store.get_all(EntityType.CASH_POSITIONS):
            position = cash_position_to_domain(record)
            if position.date == day:
                return position
        return None

    def refresh_cash_positions(self, day: Optional[date] = None) -> Optional[int]:
        """Merge the server's cash positions (one day, or all) into the cache."""
        owner_id = self.workspace.require_owner()
        filters: dict[str, object] = {"user_id": owner_id}
        if day is not None:
            filters["date"] = day.isoformat()
        return self.workspace.synchronizer.pull(
            EntityType.CASH_POSITIONS, filters=filters, strategy=SyncStrategy.MERGE
        )
