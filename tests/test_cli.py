"""Tests for the command line interface."""

import csv
from datetime import datetime, timedelta, UTC

import pytest

from cashbook.cli.main import cli
from cashbook.database.base import EntityType
from cashbook.domain.errors import RemoteRejected
from cashbook.remote.auth import AuthSession, SessionFile


@pytest.fixture
def invoke(cli_runner, workspace):
    """Run the CLI against the test workspace."""

    def run(*args, input=None):
        return cli_runner.invoke(cli, list(args), obj={"workspace": workspace}, input=input)

    return run


def test_help_does_not_need_a_workspace(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "transaction" in result.output


def test_account_create_and_list(invoke):
    result = invoke("account", "create", "Cash Box", "--opening-balance", "Rs. 25,000")
    assert result.exit_code == 0
    assert "Created account 'Cash Box'" in result.output

    result = invoke("account", "list")
    assert result.exit_code == 0
    assert "Cash Box" in result.output
    assert "Rs. 25,000.00" in result.output


def test_account_create_invalid_type(invoke):
    result = invoke("account", "create", "Cash Box", "--type", "crypto")
    assert result.exit_code != 0


def test_account_balance(invoke, cash_account, bank_account):
    result = invoke("account", "balance")
    assert result.exit_code == 0
    assert "Rs. 60,000.00" in result.output
    assert "Rs. 10,000.00" in result.output


def test_account_delete_with_confirmation(invoke, account_service, cash_account):
    result = invoke("account", "delete", "Cash Box", input="n\n")
    assert "Deletion cancelled" in result.output
    assert account_service.get_account(cash_account.id) is not None

    result = invoke("account", "delete", "Cash Box", "--yes")
    assert result.exit_code == 0
    assert account_service.get_account(cash_account.id) is None


def test_customer_create_with_account_and_search(invoke):
    result = invoke(
        "customer", "create", "Ali Khan", "--phone", "0300-1234567",
        "--fee-type", "percentage", "--fee", "1",
        "--account-number", "PK36MEZN0001", "--bank", "Meezan",
    )
    assert result.exit_code == 0
    assert "Created customer 'Ali Khan'" in result.output

    result = invoke("customer", "search", "0300")
    assert result.exit_code == 0
    assert "Ali Khan" in result.output
    assert "PK36MEZN0001" in result.output


def test_customer_create_invalid_fee(invoke):
    result = invoke("customer", "create", "Ali", "--fee-type", "percentage", "--fee", "150")
    assert result.exit_code == 1
    assert "Error: Percentage fee cannot exceed 100" in result.output


def test_transaction_add_online(invoke, sample_customer, bank_account):
    result = invoke(
        "transaction", "add", "cash_in", "--amount", "5000",
        "--customer", "Ali Khan", "--from", "Meezan Current",
    )
    assert result.exit_code == 0
    assert "Recorded cash in of Rs. 5,000.00" in result.output
    assert "Fee: Rs. 50.00" in result.output


def test_transaction_add_missing_counterpart(invoke, bank_account):
    result = invoke("transaction", "add", "cash_in", "--amount", "5000", "--from", "Meezan Current")
    assert result.exit_code == 1
    assert "customer is required" in result.output


def test_transaction_add_bad_amount(invoke, cash_account):
    result = invoke("transaction", "add", "expense", "--amount", "lots", "--from", "Cash Box")
    assert result.exit_code == 1
    assert "Invalid amount" in result.output


def test_transaction_add_non_finite_amount(invoke, cash_account):
    result = invoke("transaction", "add", "expense", "--amount", "nan", "--from", "Cash Box")
    assert result.exit_code == 1
    assert "Error: Invalid amount" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)


def test_offline_transaction_then_push(invoke, workspace, connectivity, cash_account):
    connectivity.go_offline()
    result = invoke("transaction", "add", "expense", "--amount", "300", "--from", "Cash Box")
    assert result.exit_code == 0
    assert "offline" in result.output

    result = invoke("sync", "status")
    assert "Connection: offline" in result.output
    assert "Pending:    1" in result.output

    result = invoke("sync", "push")
    assert "Offline: 1 transaction(s) waiting" in result.output

    connectivity.go_online()
    result = invoke("sync", "push")
    assert result.exit_code == 0
    assert "Pushed 1 of 1" in result.output

    result = invoke("transaction", "pending")
    assert "No pending transactions." in result.output


def test_transaction_list_marks_unsynced(invoke, connectivity, cash_account):
    connectivity.go_offline()
    invoke("transaction", "add", "expense", "--amount", "300", "--from", "Cash Box", "--date", "2024-03-01")

    result = invoke("transaction", "list", "--start-date", "2024-03-01", "--end-date", "2024-03-01")
    assert result.exit_code == 0
    assert "expense" in result.output
    assert "not synced yet" in result.output


def test_transaction_list_rejects_period_with_dates(invoke):
    result = invoke("transaction", "list", "--period", "today", "--start-date", "2024-01-01")
    assert result.exit_code == 1
    assert "cannot be combined" in result.output


def test_transaction_discard(invoke, transaction_service, connectivity, cash_account):
    connectivity.go_offline()
    txn = transaction_service.create_transaction("expense", "10", from_account_id=cash_account.id)

    result = invoke("transaction", "discard", str(txn.id), "--yes")
    assert result.exit_code == 0
    assert transaction_service.pending() == []


def test_sync_retry_requeues_failed(invoke, workspace, remote, connectivity, transaction_service, cash_account):
    connectivity.go_offline()
    txn = transaction_service.create_transaction("expense", "10", from_account_id=cash_account.id)
    connectivity.go_online()
    for _ in range(3):
        remote.fail_next(RemoteRejected("constraint"))
        workspace.synchronizer.drain_outbox()
    assert workspace.outbox.get(txn.id).failed

    result = invoke("sync", "status")
    assert "Failed:     1" in result.output

    result = invoke("sync", "retry")
    assert result.exit_code == 0
    assert "Reset 1 transaction(s)" in result.output
    assert "Pushed 1 of 1" in result.output


def test_sync_pull(invoke, remote):
    remote.seed("accounts", {"id": "a1", "user_id": "user-1", "name": "Cash", "type": "cash", "is_active": True})

    result = invoke("sync", "pull")
    assert result.exit_code == 0
    assert "accounts: 1" in result.output


def test_account_create_offline_mentions_local_only(invoke, connectivity):
    connectivity.go_offline()
    result = invoke("account", "create", "Drawer")
    assert result.exit_code == 0
    assert "(not synced)" in result.output
    assert "stay on this device" in result.output


def test_sync_pull_warns_about_removed_local_accounts(invoke, connectivity, remote):
    connectivity.go_offline()
    invoke("account", "create", "Drawer")
    connectivity.go_online()
    remote.seed("accounts", {"id": "a1", "user_id": "user-1", "name": "Cash", "type": "cash", "is_active": True})

    result = invoke("sync", "pull")

    assert result.exit_code == 0
    assert "Warning: removed local-only account(s) not on the server: Drawer" in result.output


def test_sync_watch_runs_cycles(invoke, connectivity, workspace, cash_account, transaction_service):
    connectivity.go_offline()
    transaction_service.create_transaction("expense", "10", from_account_id=cash_account.id)
    connectivity.go_online()

    result = invoke("sync", "watch", "--cycles", "1", "--interval", "0")
    assert result.exit_code == 0
    assert "Online: syncing." in result.output
    assert workspace.outbox.count() == 0


def test_sync_reset(invoke, workspace, cash_account):
    result = invoke("sync", "reset", "--yes")
    assert result.exit_code == 0
    assert workspace.store.get_all(EntityType.ACCOUNTS) == []


def test_report_today_and_summary(invoke, transaction_service, sample_customer, bank_account):
    transaction_service.create_transaction(
        "cash_in", "5000", customer_id=sample_customer.id, from_account_id=bank_account.id
    )

    result = invoke("report", "today")
    assert result.exit_code == 0
    assert "Cash received: " in result.output
    assert "Rs. 5,000.00" in result.output

    result = invoke("report", "summary", "--period", "today")
    assert result.exit_code == 0
    assert "Fees earned:" in result.output
    assert "Rs. 50.00" in result.output


def test_report_export_csv(invoke, tmp_path, transaction_service, cash_account):
    transaction_service.create_transaction("expense", "300", from_account_id=cash_account.id, description="Tea")
    output = tmp_path / "export.csv"

    result = invoke("report", "export", "--period", "today", "--output", str(output))

    assert result.exit_code == 0
    assert "Exported 1 transaction(s)" in result.output
    with output.open(newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0][0] == "Date"
    assert rows[1][5] == "Cash Box"
    assert rows[1][7] == "Tea"


def test_report_export_xlsx(invoke, tmp_path, transaction_service, cash_account):
    transaction_service.create_transaction("expense", "300", from_account_id=cash_account.id)
    output = tmp_path / "export.xlsx"

    result = invoke("report", "export", "--period", "today", "--format", "xlsx", "-o", str(output))

    assert result.exit_code == 0
    assert output.exists()


def test_commands_require_sign_in(cli_runner, tmp_path):
    result = cli_runner.invoke(
        cli, ["--db-path", str(tmp_path / "c.db"), "--offline", "account", "create", "Cash Box"]
    )
    assert result.exit_code == 1
    assert "Not signed in" in result.output


def test_auth_without_server(cli_runner, tmp_path):
    result = cli_runner.invoke(
        cli, ["--db-path", str(tmp_path / "c.db"), "auth", "login", "--email", "a@b.co", "--password", "x"]
    )
    assert result.exit_code == 1
    assert "No server configured" in result.output

    result = cli_runner.invoke(cli, ["--db-path", str(tmp_path / "c.db"), "auth", "whoami"])
    assert result.exit_code == 0
    assert "Not signed in." in result.output


def test_offline_run_persists_queue_between_invocations(cli_runner, tmp_path, isolated_home):
    SessionFile(isolated_home / "session.json").save(
        AuthSession("user-1", "owner@example.com", "tok", "ref", datetime.now(UTC) + timedelta(hours=1))
    )
    db = str(tmp_path / "c.db")

    result = cli_runner.invoke(cli, ["--db-path", db, "--offline", "account", "create", "Drawer"])
    assert result.exit_code == 0
    assert "(not synced)" in result.output

    result = cli_runner.invoke(
        cli, ["--db-path", db, "--offline", "transaction", "add", "expense", "--amount", "20", "--from", "Drawer"]
    )
    assert result.exit_code == 0

    result = cli_runner.invoke(cli, ["--db-path", db, "--offline", "sync", "status"])
    assert "Pending:    1" in result.output
