"""Domain layer for cashbook application.

Services are imported from their own modules (``cashbook.domain.account`` and
so on); this package only exposes the entity types.
"""

from cashbook.domain.entities import (
    Account,
    AccountType,
    CashPosition,
    Customer,
    CustomerAccount,
    FeeType,
    PendingTransaction,
    Subcategory,
    Transaction,
    TransactionType,
)

__all__ = [
    "Account",
    "AccountType",
    "CashPosition",
    "Customer",
    "CustomerAccount",
    "FeeType",
    "PendingTransaction",
    "Subcategory",
    "Transaction",
    "TransactionType",
]
