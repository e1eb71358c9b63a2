"""Tests for TransactionService."""

from datetime import date
from decimal import Decimal

import pytest

from cashbook.database.base import EntityType
from cashbook.database.mappers import transaction_to_record
from cashbook.domain.entities import Subcategory, TransactionType
from cashbook.domain.errors import (
    ConflictError,
    NotFoundError,
    RemoteRejected,
    RemoteUnavailable,
    ValidationError,
)


def test_online_create_stores_server_record(transaction_service, workspace, remote, cash_account):
    txn = transaction_service.create_transaction("expense", "300", from_account_id=cash_account.id, description="Tea")

    assert txn.is_synced
    assert workspace.outbox.count() == 0
    assert transaction_service.get_transaction(txn.id) == txn
    (call,) = remote.calls_to("insert", "transactions")
    assert call[2]["from_account_id"] == str(cash_account.id)
    assert "id" not in call[2]


def test_offline_create_queues_identical_entry(transaction_service, workspace, remote, connectivity, cash_account):
    connectivity.go_offline()
    remote.calls.clear()

    txn = transaction_service.create_transaction("expense", "300", from_account_id=cash_account.id)

    assert txn.id.is_local
    assert remote.calls == []
    (pending,) = workspace.outbox.list()
    assert pending.transaction == txn
    stored = workspace.store.get(EntityType.TRANSACTIONS, str(txn.id))
    assert stored == transaction_to_record(txn)


def test_unreachable_server_queues_transaction(transaction_service, workspace, remote, cash_account):
    remote.fail_next(RemoteUnavailable("Cannot reach server: timed out"))

    txn = transaction_service.create_transaction("expense", "300", from_account_id=cash_account.id)

    assert txn.id.is_local
    assert workspace.outbox.count() == 1


def test_rejected_transaction_is_not_stored(transaction_service, workspace, remote, cash_account):
    remote.fail_next(RemoteRejected("insufficient balance"))

    with pytest.raises(RemoteRejected):
        transaction_service.create_transaction("expense", "300", from_account_id=cash_account.id)
    assert workspace.store.get_all(EntityType.TRANSACTIONS) == []
    assert workspace.outbox.count() == 0


def test_fee_defaults_to_customer_policy(transaction_service, sample_customer, bank_account):
    txn = transaction_service.create_transaction(
        "cash_in", "5000", customer_id=sample_customer.id, from_account_id=bank_account.id
    )
    assert txn.fee_amount == Decimal("50.00")


def test_explicit_fee_overrides_policy(transaction_service, sample_customer, bank_account):
    txn = transaction_service.create_transaction(
        "cash_in", "5000", fee_amount="0", customer_id=sample_customer.id, from_account_id=bank_account.id
    )
    assert txn.fee_amount == Decimal("0")


@pytest.mark.parametrize(
    "transaction_type, missing",
    [
        ("cash_in", "customer"),
        ("cash_out", "customer"),
        ("loan_given", "customer"),
        ("account_transfer", "from account"),
        ("income", "to account"),
        ("expense", "from account"),
    ],
)
def test_counterpart_rules(transaction_service, remote, transaction_type, missing):
    with pytest.raises(ValidationError, match=missing):
        transaction_service.create_transaction(transaction_type, "100")
    assert remote.calls_to("insert", "transactions") == []


def test_transfer_between_same_account_rejected(transaction_service, cash_account):
    with pytest.raises(ValidationError, match="same account"):
        transaction_service.create_transaction(
            "account_transfer", "100", from_account_id=cash_account.id, to_account_id=cash_account.id
        )


def test_digital_personal_cash_in_needs_to_account(transaction_service, sample_customer, bank_account):
    with pytest.raises(ValidationError, match="to account"):
        transaction_service.create_transaction(
            "cash_in_personal", "100", customer_id=sample_customer.id, subcategory="digital"
        )

    txn = transaction_service.create_transaction(
        "cash_in_personal",
        "100",
        customer_id=sample_customer.id,
        subcategory="digital",
        to_account_id=bank_account.id,
    )
    assert txn.subcategory == Subcategory.DIGITAL


def test_personal_types_default_to_physical(transaction_service, sample_customer):
    txn = transaction_service.create_transaction("cash_in_personal", "100", customer_id=sample_customer.id)
    assert txn.subcategory == Subcategory.PHYSICAL


def test_subcategory_ignored_for_other_types(transaction_service, cash_account):
    txn = transaction_service.create_transaction(
        "expense", "100", from_account_id=cash_account.id, subcategory="digital"
    )
    assert txn.subcategory is None


@pytest.mark.parametrize(
    "amount", ["0", "-5", "1000000000", "abc", "nan", "NaN", "sNaN", "inf", "-Infinity", Decimal("NaN")]
)
def test_amount_limits(transaction_service, cash_account, amount):
    with pytest.raises(ValidationError):
        transaction_service.create_transaction("expense", amount, from_account_id=cash_account.id)


@pytest.mark.parametrize("fee", ["nan", "Infinity"])
def test_fee_must_be_finite(transaction_service, cash_account, fee):
    with pytest.raises(ValidationError, match="must be a number"):
        transaction_service.create_transaction("expense", "10", fee_amount=fee, from_account_id=cash_account.id)


def test_description_limit(transaction_service, cash_account):
    with pytest.raises(ValidationError):
        transaction_service.create_transaction(
            "expense", "10", from_account_id=cash_account.id, description="x" * 501
        )


def test_unknown_account_reference(transaction_service):
    with pytest.raises(NotFoundError):
        transaction_service.create_transaction("expense", "10", from_account_id="acc-missing")


def test_list_transactions_filters_and_orders(transaction_service, cash_account, bank_account):
    old = transaction_service.create_transaction(
        "expense", "10", from_account_id=cash_account.id, transaction_date=date(2024, 1, 5)
    )
    new = transaction_service.create_transaction(
        "income", "20", to_account_id=bank_account.id, transaction_date=date(2024, 1, 20)
    )

    assert transaction_service.list_transactions() == [new, old]
    assert transaction_service.list_transactions(start_date=date(2024, 1, 10)) == [new]
    assert transaction_service.list_transactions(end_date=date(2024, 1, 10)) == [old]
    assert transaction_service.list_transactions(transaction_type=TransactionType.EXPENSE) == [old]
    assert transaction_service.transactions_for_day(date(2024, 1, 20)) == [new]
    assert transaction_service.list_transactions(limit=1) == [new]


def test_discard_pending(transaction_service, workspace, connectivity, cash_account):
    connectivity.go_offline()
    txn = transaction_service.create_transaction("expense", "10", from_account_id=cash_account.id)

    transaction_service.discard_pending(txn.id)

    assert transaction_service.pending() == []
    assert transaction_service.get_transaction(txn.id) is None


def test_synced_transactions_cannot_be_discarded(transaction_service, cash_account):
    txn = transaction_service.create_transaction("expense", "10", from_account_id=cash_account.id)

    with pytest.raises(ConflictError):
        transaction_service.discard_pending(txn.id)
    assert transaction_service.get_transaction(txn.id) is not None


def test_discard_unknown(transaction_service):
    with pytest.raises(NotFoundError):
        transaction_service.discard_pending("temp-unknown")


def test_refresh_merges_day(transaction_service, remote, cash_account):
    remote.seed(
        "transactions",
        {
            "id": "t-remote",
            "user_id": "user-1",
            "type": "income",
            "amount": 500,
            "fee_amount": 0,
            "to_account_id": str(cash_account.id),
            "transaction_date": "2024-02-02",
            "created_at": "2024-02-02T08:00:00+00:00",
        },
    )
    remote.seed(
        "transactions",
        {
            "id": "t-other-day",
            "user_id": "user-1",
            "type": "income",
            "amount": 1,
            "fee_amount": 0,
            "to_account_id": str(cash_account.id),
            "transaction_date": "2024-02-03",
            "created_at": "2024-02-03T08:00:00+00:00",
        },
    )

    assert transaction_service.refresh(date(2024, 2, 2)) == 1
    (txn,) = transaction_service.list_transactions()
    assert txn.amount == Decimal("500")
    assert transaction_service.refresh() == 2
