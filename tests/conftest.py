"""Shared pytest fixtures for cashbook tests."""

import itertools
from datetime import datetime, UTC
from typing import Any, Optional

import pytest

from cashbook.database.factories import create_sqlite_store
from cashbook.domain.account import AccountService
from cashbook.domain.customer import CustomerService
from cashbook.domain.errors import RemoteUnavailable
from cashbook.domain.summary import SummaryService
from cashbook.domain.transaction import TransactionService
from cashbook.remote.base import RemoteStore, Row
from cashbook.sync.connectivity import StaticConnectivity
from cashbook.workspace import build_workspace

OWNER_ID = "user-1"


class FakeRemoteStore(RemoteStore):
    """In-memory remote store that records calls and can be told to fail."""

    def __init__(self):
        self.collections: dict[str, dict[str, Row]] = {}
        self.calls: list[tuple[str, str, Any]] = []
        self.down = False
        self._failures: list[Exception] = []
        self._ids = itertools.count(1)

    def fail_next(self, *errors: Exception) -> None:
        """Make the next calls raise the given errors, in order."""
        self._failures.extend(errors)

    def _check(self) -> None:
        if self._failures:
            raise self._failures.pop(0)
        if self.down:
            raise RemoteUnavailable("Cannot reach server: connection refused")

    def rows(self, collection: str) -> list[Row]:
        return [dict(r) for r in self.collections.get(collection, {}).values()]

    def seed(self, collection: str, row: Row) -> Row:
        """Put a row on the server without recording a call."""
        self.collections.setdefault(collection, {})[str(row["id"])] = dict(row)
        return row

    def select(self, collection, filters=None, order_by=None, descending=False):
        self.calls.append(("select", collection, dict(filters or {})))
        self._check()
        rows = [
            dict(r)
            for r in self.collections.get(collection, {}).values()
            if all(r.get(k) == v for k, v in (filters or {}).items())
        ]
        if order_by:
            rows.sort(key=lambda r: str(r.get(order_by) or ""), reverse=descending)
        return rows

    def insert(self, collection, payload):
        self.calls.append(("insert", collection, dict(payload)))
        self._check()
        row = dict(payload)
        row["id"] = f"srv-{next(self._ids)}"
        row.setdefault("created_at", datetime.now(UTC).isoformat())
        self.collections.setdefault(collection, {})[row["id"]] = row
        return dict(row)

    def update(self, collection, record_id, fields):
        self.calls.append(("update", collection, (record_id, dict(fields))))
        self._check()
        row = self.collections.get(collection, {}).get(str(record_id))
        if row is None:
            return None
        row.update(fields)
        return dict(row)

    def delete(self, collection, record_id):
        self.calls.append(("delete", collection, record_id))
        self._check()
        self.collections.get(collection, {}).pop(str(record_id), None)

    def calls_to(self, operation: str, collection: Optional[str] = None) -> list[tuple[str, str, Any]]:
        return [c for c in self.calls if c[0] == operation and (collection is None or c[1] == collection)]


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep settings, session and log files inside the test's temp dir."""
    home = tmp_path / "home"
    monkeypatch.setenv("CASHBOOK_HOME", str(home))
    for name in ("CASHBOOK_DB_PATH", "CASHBOOK_REMOTE_URL", "CASHBOOK_API_KEY", "CASHBOOK_OFFLINE"):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def temp_store(tmp_path):
    """Create a temporary SQLite record store for testing."""
    store = create_sqlite_store(str(tmp_path / "cashbook.db"))
    yield store
    store.close()


@pytest.fixture
def remote():
    return FakeRemoteStore()


@pytest.fixture
def connectivity():
    return StaticConnectivity(online=True)


@pytest.fixture
def workspace(temp_store, remote, connectivity):
    """Workspace signed in as OWNER_ID, online against the fake remote."""
    return build_workspace(temp_store, remote, connectivity, max_retries=3, user_id=OWNER_ID)


@pytest.fixture
def account_service(workspace):
    return AccountService(workspace)


@pytest.fixture
def customer_service(workspace):
    return CustomerService(workspace)


@pytest.fixture
def transaction_service(workspace):
    return TransactionService(workspace)


@pytest.fixture
def summary_service(workspace):
    return SummaryService(workspace)


@pytest.fixture
def cash_account(account_service):
    """A synced cash account."""
    return account_service.create_account("Cash Box", "cash", opening_balance="10000")


@pytest.fixture
def bank_account(account_service):
    """A synced bank account."""
    return account_service.create_account(
        "Meezan Current", "bank", opening_balance="50000", account_number="0123456789", provider="Meezan"
    )


@pytest.fixture
def sample_customer(customer_service):
    """A synced customer charging 1% per transaction."""
    return customer_service.create_customer("Ali Khan", phone="0300-1234567", fee_type="percentage", fee_value="1")


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
