"""Mapper functions to convert between domain entities and stored records.

Records are the JSON-compatible dicts held by the local store and exchanged
with the remote store: ids as strings, money as decimal strings, dates and
timestamps as ISO-8601 text.
"""

from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Any, Optional

from cashbook.database.base import Record
from cashbook.domain import entities as domain
from cashbook.domain.errors import ConflictError, unsynced_reference
from cashbook.domain.identifiers import id_str, parse_optional_id, parse_record_id

# Fields the remote store assigns itself or that only exist in the outbox.
LOCAL_ONLY_FIELDS = ("id", "created_at", "synced", "retry_count", "failed", "last_error")
REFERENCE_FIELDS = ("from_account_id", "to_account_id", "customer_id", "customer_account_id")


def _decimal(value: Any, default: str = "0") -> Decimal:
    if value is None or value == "":
        return Decimal(default)
    return Decimal(str(value))


def _money(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def _datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif value:
        parsed = datetime.fromisoformat(str(value))
    else:
        return datetime.now(UTC)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def account_to_domain(record: Record) -> domain.Account:
    """Convert a stored account record to an Account entity."""
    return domain.Account(
        id=parse_record_id(record["id"]),
        user_id=record.get("user_id") or "",
        name=record["name"],
        type=domain.AccountType(record["type"]),
        opening_balance=_decimal(record.get("opening_balance")),
        current_balance=_decimal(record.get("current_balance")),
        is_active=bool(record.get("is_active", True)),
        created_at=_datetime(record.get("created_at")),
        account_number=record.get("account_number"),
        provider=record.get("provider"),
    )


def account_to_record(account: domain.Account) -> Record:
    return {
        "id": str(account.id),
        "user_id": account.user_id,
        "name": account.name,
        "type": account.type.value,
        "opening_balance": _money(account.opening_balance),
        "current_balance": _money(account.current_balance),
        "is_active": account.is_active,
        "account_number": account.account_number,
        "provider": account.provider,
        "created_at": account.created_at.isoformat(),
    }


def customer_to_domain(record: Record) -> domain.Customer:
    """Convert a stored customer record to a Customer entity."""
    return domain.Customer(
        id=parse_record_id(record["id"]),
        user_id=record.get("user_id") or "",
        name=record["name"],
        fee_type=domain.FeeType(record.get("fee_type") or domain.FeeType.FIXED.value),
        fee_value=_decimal(record.get("fee_value")),
        created_at=_datetime(record.get("created_at")),
        phone=record.get("phone"),
    )


def customer_to_record(customer: domain.Customer) -> Record:
    return {
        "id": str(customer.id),
        "user_id": customer.user_id,
        "name": customer.name,
        "phone": customer.phone,
        "fee_type": customer.fee_type.value,
        "fee_value": _money(customer.fee_value),
        "created_at": customer.created_at.isoformat(),
    }


def customer_account_to_domain(record: Record) -> domain.CustomerAccount:
    return domain.CustomerAccount(
        id=parse_record_id(record["id"]),
        customer_id=parse_record_id(record["customer_id"]),
        account_title=record["account_title"],
        account_number=record["account_number"],
        bank_name=record["bank_name"],
        type=domain.CustomerAccountType(record.get("type") or "bank"),
        created_at=_datetime(record.get("created_at")),
    )


def customer_account_to_record(account: domain.CustomerAccount) -> Record:
    return {
        "id": str(account.id),
        "customer_id": str(account.customer_id),
        "account_title": account.account_title,
        "account_number": account.account_number,
        "bank_name": account.bank_name,
        "type": account.type.value,
        "created_at": account.created_at.isoformat(),
    }


def transaction_to_domain(record: Record) -> domain.Transaction:
    """Convert a stored transaction record to a Transaction entity."""
    subcategory = record.get("subcategory")
    return domain.Transaction(
        id=parse_record_id(record["id"]),
        user_id=record.get("user_id") or "",
        type=domain.TransactionType(record["type"]),
        amount=_decimal(record.get("amount")),
        fee_amount=_decimal(record.get("fee_amount")),
        transaction_date=_date(record["transaction_date"]),
        created_at=_datetime(record.get("created_at")),
        subcategory=domain.Subcategory(subcategory) if subcategory else None,
        from_account_id=parse_optional_id(record.get("from_account_id")),
        to_account_id=parse_optional_id(record.get("to_account_id")),
        customer_id=parse_optional_id(record.get("customer_id")),
        customer_account_id=parse_optional_id(record.get("customer_account_id")),
        description=record.get("description"),
    )


def transaction_to_record(transaction: domain.Transaction) -> Record:
    return {
        "id": str(transaction.id),
        "user_id": transaction.user_id,
        "type": transaction.type.value,
        "subcategory": transaction.subcategory.value if transaction.subcategory else None,
        "from_account_id": id_str(transaction.from_account_id),
        "to_account_id": id_str(transaction.to_account_id),
        "customer_id": id_str(transaction.customer_id),
        "customer_account_id": id_str(transaction.customer_account_id),
        "amount": _money(transaction.amount),
        "fee_amount": _money(transaction.fee_amount),
        "description": transaction.description,
        "transaction_date": transaction.transaction_date.isoformat(),
        "created_at": transaction.created_at.isoformat(),
    }


def pending_to_domain(record: Record) -> domain.PendingTransaction:
    return domain.PendingTransaction(
        transaction=transaction_to_domain(record),
        synced=bool(record.get("synced", False)),
        retry_count=int(record.get("retry_count") or 0),
        failed=bool(record.get("failed", False)),
        last_error=record.get("last_error"),
    )


def pending_to_record(pending: domain.PendingTransaction) -> Record:
    record = transaction_to_record(pending.transaction)
    record.update(
        {
            "synced": pending.synced,
            "retry_count": pending.retry_count,
            "failed": pending.failed,
            "last_error": pending.last_error,
        }
    )
    return record


def cash_position_to_domain(record: Record) -> domain.CashPosition:
    return domain.CashPosition(
        id=parse_record_id(record["id"]),
        user_id=record.get("user_id") or "",
        date=_date(record["date"]),
        opening_balance=_decimal(record.get("opening_balance")),
        closing_balance=_decimal(record.get("closing_balance")),
        total_cash_received=_decimal(record.get("total_cash_received")),
        total_cash_given=_decimal(record.get("total_cash_given")),
        created_at=_datetime(record.get("created_at")),
    )


def to_remote_payload(record: Record) -> Record:
    """Strip identifiers and outbox metadata before a remote insert.

    Raises:
        ConflictError: If a reference field points at a record that has not
            been synced yet
    """
    payload = {key: value for key, value in record.items() if key not in LOCAL_ONLY_FIELDS}
    for field in REFERENCE_FIELDS:
        ref = parse_optional_id(payload.get(field))
        if ref is not None and ref.is_local:
            raise ConflictError(unsynced_reference(field, ref))
    return payload
