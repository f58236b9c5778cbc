"""Tests for CLI commands."""

import json
import re
from datetime import datetime

import pytest

from conftest import make_order
from onchaincounting.cli.main import cli
from onchaincounting.config import Settings
from onchaincounting.domain.entities import OrderKind, PaymentStandard
from onchaincounting.domain.errors import SyncError

INVOICE_ARGS = [
    "invoice",
    "add",
    "--date",
    "2024-06-15",
    "--number",
    "42",
    "--client",
    "Acme",
    "--currency",
    "USD",
    "--before-tax",
    "100",
    "--after-tax",
    "120",
    "--vat-rate",
    "20",
    "--exchange-rate",
    "1.1",
]


class FakeClient:
    def __init__(self, orders=None, error=None):
        self.orders = orders or []
        self.error = error

    def get_orders(self):
        if self.error is not None:
            raise self.error
        return list(self.orders)


@pytest.fixture
def run(cli_runner, temp_db):
    """Invoke the CLI against the temporary database without Monerium credentials."""

    def _run(args, input=None, **obj):
        context = {"settings": Settings()}
        context.update(obj)
        return cli_runner.invoke(
            cli, ["--db-path", temp_db.database_path, *args], input=input, obj=context
        )

    return _run


def _created_id(output: str) -> str:
    match = re.search(r"\(ID: (\w+)\)", output)
    assert match is not None, output
    return match.group(1)


def test_help_does_not_need_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "invoice" in result.output
    assert "orders" in result.output


class TestInvoiceCommands:
    def test_add_invoice(self, run):
        result = run(INVOICE_ARGS)

        assert result.exit_code == 0, result.output
        assert "Created invoice 42" in result.output
        assert "120.00 USD = 109.09 EUR" in result.output

    def test_add_invoice_missing_values(self, run):
        result = run(INVOICE_ARGS[:-2])

        assert result.exit_code == 1
        assert "Missing required values: --exchange-rate" in result.output

    def test_add_invoice_derives_vat_rate(self, run, temp_db):
        args = [a for a in INVOICE_ARGS if a not in ("--vat-rate", "20")]

        result = run(args)

        assert result.exit_code == 0, result.output
        invoice = temp_db.get_invoice(_created_id(result.output))
        assert invoice.vat_rate == pytest.approx(20.0)

    def test_add_invoice_unreadable_pdf_falls_back(self, run, tmp_path):
        result = run(INVOICE_ARGS + ["--pdf", str(tmp_path / "missing.pdf")])

        assert result.exit_code == 0, result.output
        assert "Falling back to manual entry" in result.output
        assert "Created invoice 42" in result.output

    def test_add_invoice_with_payment(self, run, temp_db):
        result = run(INVOICE_ARGS + ["--payment", "120:usdc:starknet"])

        assert result.exit_code == 0, result.output
        invoice = temp_db.get_invoice(_created_id(result.output))
        assert invoice.crypto_payments[0].amount == 120.0

    def test_add_invoice_bad_payment(self, run):
        result = run(INVOICE_ARGS + ["--payment", "120-usdc"])

        assert result.exit_code == 1
        assert "expected AMOUNT:TOKEN:NETWORK" in result.output

    def test_list_invoices(self, run):
        run(INVOICE_ARGS)

        result = run(["invoice", "list", "--year", "2024"])

        assert result.exit_code == 0
        assert "June 2024" in result.output
        assert "109.09 EUR" in result.output

    def test_list_invoices_empty(self, run):
        result = run(["invoice", "list", "--year", "2019"])

        assert "No invoices found for 2019." in result.output

    def test_show_edit_delete(self, run):
        invoice_id = _created_id(run(INVOICE_ARGS).output)

        shown = run(["invoice", "show", invoice_id])
        assert shown.exit_code == 0
        assert "Client:        Acme" in shown.output

        edited = run(["invoice", "edit", invoice_id, "--exchange-rate", "1.2"])
        assert edited.exit_code == 0, edited.output
        assert "Updated invoice 42" in edited.output
        assert "100.00 EUR" in run(["invoice", "show", invoice_id]).output

        cancelled = run(["invoice", "delete", invoice_id], input="n\n")
        assert "Deletion cancelled." in cancelled.output

        deleted = run(["invoice", "delete", invoice_id], input="y\n")
        assert deleted.exit_code == 0
        assert "Deleted invoice 42" in deleted.output

        missing = run(["invoice", "show", invoice_id])
        assert missing.exit_code == 1
        assert f"Error: Invoice {invoice_id} not found" in missing.output


class TestExpenseCommands:
    def test_add_list_delete(self, run):
        added = run(
            ["expense", "add", "--date", "2024-03-01", "--description", "Laptop", "--amount", "1500", "--deductible"]
        )
        assert added.exit_code == 0, added.output
        expense_id = _created_id(added.output)

        listed = run(["expense", "list", "--year", "2024"])
        assert "Laptop" in listed.output
        assert "(VAT deductible)" in listed.output

        deleted = run(["expense", "delete", expense_id], input="y\n")
        assert "Deleted expense 'Laptop'" in deleted.output
        assert "No expenses found." in run(["expense", "list"]).output

    def test_negative_amount(self, run):
        result = run(["expense", "add", "--description", "Refund", "--amount=-5"])

        assert result.exit_code == 1
        assert "must not be negative" in result.output


class TestWithdrawalCommands:
    def test_add_and_change_status(self, run):
        added = run(
            ["withdrawal", "add", "--date", "2024-05-02", "--source-amount", "1000", "--target-amount", "920", "--status", "pending"]
        )
        assert added.exit_code == 0, added.output
        withdrawal_id = _created_id(added.output)

        result = run(["withdrawal", "status", withdrawal_id, "completed"])

        assert result.exit_code == 0
        assert f"Withdrawal {withdrawal_id} is now completed" in result.output
        listed = run(["withdrawal", "list"])
        assert "rate 0.9200 | completed" in listed.output

    def test_status_of_missing_withdrawal(self, run):
        result = run(["withdrawal", "status", "nope", "failed"])

        assert result.exit_code == 1
        assert "Withdrawal nope not found" in result.output


class TestReporting:
    def test_dashboard(self, run, temp_db):
        run(INVOICE_ARGS)
        temp_db.upsert_orders([make_order(amount=400, placed_at=datetime(2024, 7, 3))])

        result = run(["dashboard", "--year", "2024"])

        assert result.exit_code == 0, result.output
        assert "Dashboard 2024" in result.output
        assert "Invoices: 1" in result.output
        assert "Offramps: 1, 400.00 EUR" in result.output
        assert "December" in result.output

    def test_report_without_withdrawals(self, run):
        run(INVOICE_ARGS)

        result = run(["report", "--year", "2024"])

        assert result.exit_code == 0, result.output
        assert "Total income:          109.09 EUR" in result.output
        assert "Average rate:          n/a" in result.output

    def test_report_uses_configured_vat_rate(self, run):
        run(["expense", "add", "--date", "2024-03-01", "--description", "Laptop", "--amount", "100", "--deductible"])

        result = run(["report", "--year", "2024"], settings=Settings(deductible_vat_rate=10.0))

        assert "Deductible VAT (10%): 10.00 EUR" in result.output


class TestDatabaseCommands:
    def test_export_and_import(self, run, tmp_path):
        run(INVOICE_ARGS)
        backup = tmp_path / "backup.json"

        exported = run(["db", "export", "-o", str(backup)])
        assert exported.exit_code == 0, exported.output
        assert len(json.loads(backup.read_text())["invoices"]) == 1

        imported = run(["db", "import", str(backup)], input="y\n")
        assert imported.exit_code == 0, imported.output
        assert "Database imported successfully" in imported.output

        merged = run(["db", "import", str(backup), "--merge"])
        assert "Database merged successfully" in merged.output
        assert "June 2024" in run(["invoice", "list", "--year", "2024"]).output

    def test_import_cancelled(self, run, tmp_path):
        backup = tmp_path / "backup.json"
        run(["db", "export", "-o", str(backup)])

        result = run(["db", "import", str(backup)], input="n\n")

        assert "Import cancelled." in result.output

    def test_import_invalid_file(self, run, tmp_path):
        backup = tmp_path / "broken.json"
        backup.write_text("{broken")

        result = run(["db", "import", str(backup)], input="y\n")

        assert result.exit_code == 1
        assert "Error: Failed to import database. Please check the file format." in result.output

    def test_refresh(self, run):
        run(INVOICE_ARGS)

        result = run(["db", "refresh", "--year", "2024"])

        assert result.exit_code == 0
        assert "Refreshed 12 monthly summaries for 2024" in result.output


class TestOrderCommands:
    def test_sync_without_token_is_offline(self, run):
        result = run(["orders", "sync"])

        assert result.exit_code == 0
        assert "MONERIUM_ACCESS_TOKEN" in result.output
        assert "Offline mode: 0 orders available locally." in result.output

    def test_sync_with_unreachable_remote(self, run, temp_db):
        temp_db.upsert_orders([make_order("kept")])

        result = run(
            ["orders", "sync"], monerium_client=FakeClient(error=SyncError("Could not reach Monerium"))
        )

        assert result.exit_code == 0
        assert "Offline mode: 1 orders available locally." in result.output

    def test_sync_and_list(self, run):
        orders = [
            make_order("out", kind=OrderKind.REDEEM, placed_at=datetime(2024, 6, 10), counterpart_name="Landlord"),
            make_order("in", kind=OrderKind.ISSUE, placed_at=datetime(2024, 6, 11), counterpart_name="Client"),
            make_order(
                "chain",
                kind=OrderKind.REDEEM,
                standard=PaymentStandard.CHAIN,
                placed_at=datetime(2024, 6, 12),
                counterpart_name="Wallet",
            ),
        ]

        synced = run(["orders", "sync"], monerium_client=FakeClient(orders=orders))
        assert "Synced 3 orders." in synced.output

        listed = run(["orders", "list", "--year", "2024"])
        assert "June 2024" in listed.output
        assert "Landlord" in listed.output
        assert "Client" not in listed.output
        assert "Wallet" not in listed.output

        everything = run(["orders", "list", "--direction", "all", "--type", "all"])
        assert "Client" in everything.output
        assert "Wallet" in everything.output

        status = run(["orders", "status"])
        assert "Last synced:" in status.output
        assert "Local data: yes" in status.output

    def test_status_never_synced(self, run):
        result = run(["orders", "status"])

        assert "Never synced." in result.output
        assert "Local data: no" in result.output

    def test_balance_requires_address(self, run):
        result = run(["orders", "balance"])

        assert result.exit_code == 1
        assert "No address given" in result.output

    def test_balance_without_token_shows_hint(self, run):
        result = run(["orders", "balance", "--address", "0xabc"])

        assert result.exit_code == 1
        assert "Error: No Monerium access token configured" in result.output
        assert "request a new token" in result.output
