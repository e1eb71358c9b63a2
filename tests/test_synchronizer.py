"""Tests for pulling from and pushing to the remote store."""

import threading

import pytest

from cashbook.database.base import EntityType
from cashbook.database.memory import MemoryRecordStore
from cashbook.domain.account import AccountService
from cashbook.domain.errors import RemoteRejected, RemoteUnavailable
from cashbook.domain.identifiers import parse_record_id
from cashbook.domain.transaction import TransactionService
from cashbook.sync.connectivity import StaticConnectivity
from cashbook.sync.synchronizer import SyncStrategy
from cashbook.workspace import build_workspace

from conftest import OWNER_ID, FakeRemoteStore


def _record_offline_expenses(workspace, connectivity, account, amounts):
    connectivity.go_offline()
    service = TransactionService(workspace)
    txns = [service.create_transaction("expense", amount, from_account_id=account.id) for amount in amounts]
    connectivity.go_online()
    return txns


def test_drain_delivers_queue_and_swaps_ids(workspace, remote, connectivity, cash_account):
    txns = _record_offline_expenses(workspace, connectivity, cash_account, ["100", "250"])

    result = workspace.synchronizer.drain_outbox()

    assert result.attempted == 2
    assert result.delivered == [str(t.id) for t in txns]
    assert workspace.outbox.count() == 0
    local_ids = [parse_record_id(r["id"]) for r in workspace.store.get_all(EntityType.TRANSACTIONS)]
    assert len(local_ids) == 2
    assert not any(record_id.is_local for record_id in local_ids)


def test_drain_payload_never_carries_temporary_id(workspace, remote, connectivity, cash_account):
    _record_offline_expenses(workspace, connectivity, cash_account, ["100"])

    workspace.synchronizer.drain_outbox()

    inserts = remote.calls_to("insert", "transactions")
    assert len(inserts) == 1
    payload = inserts[0][2]
    assert "id" not in payload
    assert "retry_count" not in payload
    assert payload["amount"] == "100"


def test_drain_is_oldest_first(workspace, remote, connectivity, cash_account):
    _record_offline_expenses(workspace, connectivity, cash_account, ["1", "2", "3"])

    workspace.synchronizer.drain_outbox()

    assert [c[2]["amount"] for c in remote.calls_to("insert", "transactions")] == ["1", "2", "3"]


def test_failed_entry_does_not_block_the_rest(workspace, remote, connectivity, cash_account):
    first, second = _record_offline_expenses(workspace, connectivity, cash_account, ["100", "200"])
    remote.fail_next(RemoteUnavailable("Server error (503): unavailable"))

    result = workspace.synchronizer.drain_outbox()

    assert result.delivered == [str(second.id)]
    assert str(first.id) in result.failed
    entry = workspace.outbox.get(first.id)
    assert entry.retry_count == 1
    assert "503" in entry.last_error
    # the queued copy is still visible locally
    assert workspace.store.get(EntityType.TRANSACTIONS, str(first.id)) is not None


def test_rejected_entry_is_retried_until_cap(workspace, remote, connectivity, cash_account):
    (txn,) = _record_offline_expenses(workspace, connectivity, cash_account, ["100"])

    for attempt in range(3):
        remote.fail_next(RemoteRejected("violates check constraint"))
        result = workspace.synchronizer.drain_outbox()
        assert result.attempted == 1

    assert result.exhausted == [str(txn.id)]
    assert workspace.outbox.get(txn.id).failed

    # exhausted entries are skipped until requeued
    assert workspace.synchronizer.drain_outbox().attempted == 0
    workspace.outbox.requeue(txn.id)
    assert workspace.synchronizer.drain_outbox().delivered == [str(txn.id)]


def test_entry_referencing_unsynced_account_is_not_sent(workspace, remote, connectivity):
    connectivity.go_offline()
    local_account = AccountService(workspace).create_account("Drawer", "cash")
    txn = TransactionService(workspace).create_transaction(
        "expense", "50", from_account_id=local_account.id
    )
    connectivity.go_online()

    result = workspace.synchronizer.drain_outbox()

    assert remote.calls_to("insert", "transactions") == []
    assert "unsynced" in result.failed[str(txn.id)]
    assert workspace.outbox.get(txn.id).retry_count == 1


def test_drain_offline_attempts_nothing(workspace, remote, connectivity, cash_account):
    _record_offline_expenses(workspace, connectivity, cash_account, ["100"])
    connectivity.go_offline()
    remote.calls.clear()

    result = workspace.synchronizer.drain_outbox()

    assert result.attempted == 0
    assert remote.calls == []
    assert workspace.outbox.count() == 1


class BlockingRemote(FakeRemoteStore):
    """Remote whose inserts wait until released."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def insert(self, collection, payload):
        self.entered.set()
        self.release.wait(timeout=5)
        return super().insert(collection, payload)


def test_concurrent_drain_is_skipped():
    remote = BlockingRemote()
    connectivity = StaticConnectivity(online=True)
    workspace = build_workspace(MemoryRecordStore(), remote, connectivity, user_id=OWNER_ID)
    account_row = remote.seed(
        "accounts",
        {"id": "acc-1", "user_id": OWNER_ID, "name": "Cash", "type": "cash", "is_active": True},
    )
    workspace.store.put(EntityType.ACCOUNTS, account_row)
    _record_offline_expenses(workspace, connectivity, AccountService(workspace).get_account("acc-1"), ["10"])

    results = []
    worker = threading.Thread(target=lambda: results.append(workspace.synchronizer.drain_outbox()))
    worker.start()
    assert remote.entered.wait(timeout=5)

    second = workspace.synchronizer.drain_outbox()
    remote.release.set()
    worker.join(timeout=5)

    assert second.skipped
    assert second.attempted == 0
    assert results[0].attempted == 1
    assert len(remote.calls_to("insert")) == 1
    assert workspace.outbox.count() == 0


def test_pull_replace_drops_stale_rows(workspace, remote):
    workspace.store.put(EntityType.ACCOUNTS, {"id": "stale", "name": "Old", "type": "cash"})
    remote.seed("accounts", {"id": "a1", "user_id": OWNER_ID, "name": "Cash", "type": "cash", "is_active": True})

    count = workspace.synchronizer.pull(
        EntityType.ACCOUNTS, filters={"user_id": OWNER_ID}, strategy=SyncStrategy.REPLACE
    )

    assert count == 1
    assert [r["id"] for r in workspace.store.get_all(EntityType.ACCOUNTS)] == ["a1"]


def test_pull_merge_keeps_local_rows(workspace, remote):
    workspace.store.put(EntityType.CUSTOMERS, {"id": "temp-c", "name": "Walk-in"})
    remote.seed("customers", {"id": "c1", "user_id": OWNER_ID, "name": "Ali"})

    workspace.synchronizer.pull(EntityType.CUSTOMERS, filters={"user_id": OWNER_ID})

    ids = sorted(r["id"] for r in workspace.store.get_all(EntityType.CUSTOMERS))
    assert ids == ["c1", "temp-c"]


@pytest.mark.parametrize("strategy", [SyncStrategy.REPLACE, SyncStrategy.MERGE])
def test_failed_pull_leaves_local_state(workspace, remote, strategy):
    workspace.store.put(EntityType.ACCOUNTS, {"id": "a1", "name": "Cash", "type": "cash"})
    remote.down = True

    assert workspace.synchronizer.pull(EntityType.ACCOUNTS, strategy=strategy) is None
    assert workspace.store.get(EntityType.ACCOUNTS, "a1") is not None


def test_pull_offline_is_noop(workspace, remote, connectivity):
    connectivity.go_offline()

    assert workspace.synchronizer.pull(EntityType.ACCOUNTS) is None
    assert remote.calls == []
