"""Export transactions to CSV and Excel files."""

import csv
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Optional, Sequence, TextIO

from openpyxl import Workbook

from cashbook.domain.entities import Account, Customer, CustomerAccount, Transaction
from cashbook.domain.identifiers import RecordId

CSV_HEADERS = ["Date", "Type", "Customer", "Amount", "Fee", "From Account", "To Account", "Description"]
EXCEL_HEADERS = [
    "Date",
    "Type",
    "Subcategory",
    "Customer",
    "Customer Account",
    "Amount",
    "Fee",
    "From Account",
    "To Account",
    "Description",
]
SHEET_TITLE = "Transactions"


@dataclass
class NameLookup:
    """Display names for the records a transaction references."""

    accounts: dict[str, str] = field(default_factory=dict)
    customers: dict[str, str] = field(default_factory=dict)
    customer_accounts: dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        accounts: Sequence[Account] = (),
        customers: Sequence[Customer] = (),
        customer_accounts: Sequence[CustomerAccount] = (),
    ) -> "NameLookup":
        return cls(
            accounts={str(a.id): a.name for a in accounts},
            customers={str(c.id): c.name for c in customers},
            customer_accounts={str(ca.id): ca.account_title for ca in customer_accounts},
        )

    @staticmethod
    def _name(names: dict[str, str], record_id: Optional[RecordId]) -> str:
        if record_id is None:
            return ""
        return names.get(str(record_id), "")

    def account(self, record_id: Optional[RecordId]) -> str:
        return self._name(self.accounts, record_id)

    def customer(self, record_id: Optional[RecordId]) -> str:
        return self._name(self.customers, record_id)

    def customer_account(self, record_id: Optional[RecordId]) -> str:
        return self._name(self.customer_accounts, record_id)


def default_export_name(start_date: date, end_date: date, extension: str) -> str:
    """File name used when no output path is given, e.g. transactions-2024-01-01-to-2024-01-31.csv."""
    return f"transactions-{start_date.isoformat()}-to-{end_date.isoformat()}.{extension.lstrip('.')}"


def export_csv(transactions: Sequence[Transaction], lookup: NameLookup, stream: TextIO) -> int:
    """Write transactions as CSV.

    Args:
        transactions: Transactions to write, in output order
        lookup: Names for referenced accounts and customers
        stream: Open text stream (use ``newline=""`` for files)

    Returns:
        Number of data rows written
    """
    writer = csv.writer(stream)
    writer.writerow(CSV_HEADERS)
    for txn in transactions:
        writer.writerow(
            [
                txn.transaction_date.isoformat(),
                txn.type.value,
                lookup.customer(txn.customer_id),
                str(txn.amount),
                str(txn.fee_amount),
                lookup.account(txn.from_account_id),
                lookup.account(txn.to_account_id),
                txn.description or "",
            ]
        )
    return len(transactions)


def export_excel(transactions: Sequence[Transaction], lookup: NameLookup, path: Path | str) -> int:
    """Write transactions to an .xlsx workbook with a single Transactions sheet.

    Amounts are written as numbers so the sheet can total them.

    Returns:
        Number of data rows written
    """
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE
    sheet.append(EXCEL_HEADERS)
    for txn in transactions:
        sheet.append(
            [
                txn.transaction_date.isoformat(),
                txn.type.label,
                txn.subcategory.value if txn.subcategory else "",
                lookup.customer(txn.customer_id),
                lookup.customer_account(txn.customer_account_id),
                float(txn.amount),
                float(txn.fee_amount),
                lookup.account(txn.from_account_id),
                lookup.account(txn.to_account_id),
                txn.description or "",
            ]
        )
    workbook.save(str(path))
    return len(transactions)
