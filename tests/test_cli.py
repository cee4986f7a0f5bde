"""Tests for CLI commands."""

import json

import pytest

from finstate.cli.main import cli

YEAR_2024 = ["--start-date", "2024-01-01", "--end-date", "2024-12-31"]


@pytest.fixture
def invoke(cli_runner, cli_env):
    """Invoke the CLI against the temporary database."""

    def run(*args):
        return cli_runner.invoke(cli, [*cli_env, *args])

    return run


@pytest.fixture
def company(invoke):
    """A company with the default chart of accounts."""
    assert invoke("company", "create", "Acme Ltd", "--currency", "usd").exit_code == 0
    assert invoke("init-accounts").exit_code == 0


@pytest.fixture
def ledger(invoke, company):
    """Capital, a sale and rent posted in 2024."""
    for debit, credit, amount, day in (
        ("1010", "3000", "10000", "2024-01-01"),
        ("1010", "4000", "3000", "2024-02-01"),
        ("6100", "1010", "500", "2024-03-01"),
    ):
        result = invoke(
            "entry", "add", "--date", day, "--debit", debit, amount, "--credit", credit, amount
        )
        assert result.exit_code == 0, result.output


class TestCompanyCommands:
    """Tests for company and chart of accounts commands."""

    def test_company_create(self, invoke):
        result = invoke("company", "create", "Acme Ltd", "--currency", "eur")

        assert result.exit_code == 0
        assert "Created company 'Acme Ltd'" in result.output
        assert "currency EUR" in result.output

    def test_company_create_duplicate(self, invoke):
        invoke("company", "create", "Acme Ltd")
        result = invoke("company", "create", "Acme Ltd")

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "already exists" in result.output

    def test_company_list(self, invoke):
        assert "No companies found." in invoke("company", "list").output
        invoke("company", "create", "Acme Ltd")
        assert "Acme Ltd" in invoke("company", "list").output

    def test_command_without_company(self, invoke):
        result = invoke("account", "list")
        assert result.exit_code == 1
        assert "No companies found" in result.output

    def test_several_companies_need_option(self, invoke):
        invoke("company", "create", "Acme Ltd")
        invoke("company", "create", "Beta GmbH")

        assert invoke("account", "list").exit_code == 1
        result = invoke("account", "list", "--company", "Beta GmbH")
        assert result.exit_code == 0
        assert "No accounts found." in result.output

    def test_init_accounts(self, invoke):
        invoke("company", "create", "Acme Ltd")

        result = invoke("init-accounts")
        assert result.exit_code == 0
        assert "Created 29 accounts" in result.output

        again = invoke("init-accounts")
        assert "Created 0 accounts" in again.output
        assert "Skipped 29 existing accounts" in again.output

    def test_account_create_and_deactivate(self, invoke, company):
        result = invoke(
            "account", "create", "6500", "Travel", "--type", "expense", "--category", "Travel"
        )
        assert result.exit_code == 0
        assert "Created account 6500 'Travel'" in result.output

        assert invoke("account", "deactivate", "6500").exit_code == 0
        assert "Travel" not in invoke("account", "list").output
        assert "Travel" in invoke("account", "list", "--all").output

    def test_unknown_account(self, invoke, company):
        result = invoke("entry", "add", "--debit", "9999", "10", "--credit", "4000", "10")
        assert result.exit_code == 1
        assert "Account '9999' not found" in result.output


class TestEntryCommands:
    """Tests for entry commands."""

    def test_entry_add(self, invoke, company):
        result = invoke(
            "entry", "add", "--date", "2024-01-01",
            "--debit", "1010", "5000", "--credit", "3000", "5000",
            "--description", "Capital injection",
        )

        assert result.exit_code == 0
        assert "Posted journal with 2 entries" in result.output

    def test_entry_add_unbalanced(self, invoke, company):
        result = invoke("entry", "add", "--debit", "1010", "100", "--credit", "4000", "90")

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "difference" in result.output

    def test_entry_list(self, invoke, ledger):
        result = invoke("entry", "list", "--start-date", "2024-02-01", "--end-date", "2024-02-29")

        assert result.exit_code == 0
        assert result.output.count("2024-02-01") == 2
        assert "2024-01-01" not in result.output

    def test_entry_reverse(self, invoke, ledger):
        result = invoke("entry", "reverse", "1", "--date", "2024-04-01")
        assert result.exit_code == 0
        assert "Reversed entry 1" in result.output

        again = invoke("entry", "reverse", "2", "--date", "2024-04-02")
        assert again.exit_code == 1
        assert "already been reversed" in again.output

    def test_transaction_and_balance(self, invoke, company):
        created = invoke(
            "money-account", "create", "Main account",
            "--ledger-account", "1010", "--currency", "USD", "--bank-name", "Test Bank",
        )
        assert created.exit_code == 0
        assert "Created bank 'Main account'" in created.output

        result = invoke(
            "entry", "transaction", "1", "--date", "2024-03-01", "--in", "1500", "--counter", "4100"
        )
        assert result.exit_code == 0, result.output

        balance = invoke("balance", "--as-of", "2024-03-31")
        assert balance.exit_code == 0
        assert "Main account" in balance.output
        assert "1,500.00" in balance.output

    def test_invoice_payment(self, invoke, company):
        result = invoke("entry", "payment", "INV-42", "--amount", "4248 USD", "--date", "2024-03-01")
        assert result.exit_code == 0
        assert "Recorded payment of invoice INV-42" in result.output


class TestStatementCommands:
    """Tests for statement commands."""

    def test_all_statements(self, invoke, ledger):
        result = invoke("statement", "all", *YEAR_2024)

        assert result.exit_code == 0, result.output
        assert "Statement of Profit or Loss" in result.output
        assert "Statement of Financial Position" in result.output
        assert "Statement of Cash Flows" in result.output
        assert "Statement of Changes in Equity" in result.output
        assert "All statements reconcile." in result.output

    def test_all_statements_json(self, invoke, ledger):
        result = invoke("statement", "all", *YEAR_2024, "--json", "--jobs", "4")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["reconciliation"] == []
        net_income = data["profit_loss"]["data"]["net_income"]["amount"]
        assert float(net_income) == 2500
        assert data["balance_sheet"]["available"] is True

    def test_single_statement(self, invoke, ledger):
        result = invoke("statement", "bs", *YEAR_2024, "--strict")

        assert result.exit_code == 0
        assert "Statement of Financial Position as of 2024-12-31" in result.output
        assert "Statement of Profit or Loss" not in result.output

    def test_compare_with_prior_period(self, invoke, ledger):
        result = invoke("statement", "pl", "--start-date", "2024-02-01", "--end-date", "2024-02-29", "--compare")

        assert result.exit_code == 0
        assert "Prior" in result.output

    def test_unknown_currency_hint(self, invoke, ledger):
        invoke(
            "entry", "add", "--date", "2024-05-01", "--currency", "EUR",
            "--debit", "1010", "100", "--credit", "4000", "100",
        )
        result = invoke("statement", "pl", *YEAR_2024)

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "finstate rate set" in result.output

    def test_period_id(self, invoke, ledger):
        assert invoke("period", "create-year", "2024").exit_code == 0

        result = invoke("statement", "pl", "--period-id", "2")
        assert result.exit_code == 0
        assert "2024-01-01 to 2024-03-31" in result.output

    def test_period_id_with_dates(self, invoke, ledger):
        invoke("period", "create-year", "2024")
        result = invoke("statement", "pl", "--period-id", "1", "--this-year")
        assert result.exit_code == 1
        assert "cannot be combined" in result.output


class TestPeriodCommands:
    """Tests for period commands."""

    def test_create_year_and_list(self, invoke, company):
        result = invoke("period", "create-year", "2024")
        assert result.exit_code == 0
        assert "Created FY2024 with 5 periods" in result.output

        listing = invoke("period", "list")
        assert "FY2024 Q4" in listing.output
        assert "open" in listing.output

    def test_close_and_reopen(self, invoke, ledger):
        invoke("period", "create-year", "2024")

        closed = invoke("period", "close", "2", "--by", "cfo")
        assert closed.exit_code == 0
        assert "Closed period 'FY2024 Q1'" in closed.output
        assert "2,500.00 USD" in closed.output

        blocked = invoke("entry", "add", "--date", "2024-02-15", "--debit", "1010", "1", "--credit", "4000", "1")
        assert blocked.exit_code == 1
        assert "closed" in blocked.output

        reopened = invoke("period", "reopen", "2")
        assert reopened.exit_code == 1
        assert "prior period adjustments" in reopened.output

    def test_reopen_allowed_by_config(self, invoke, ledger, tmp_path):
        config = tmp_path / "finstate.toml"
        config.write_text("[reporting]\nallow_prior_period_adjustments = true\n", encoding="utf-8")
        invoke("period", "create-year", "2024")
        invoke("period", "close", "2")

        result = invoke("--config", str(config), "period", "reopen", "2")
        assert result.exit_code == 0, result.output
        assert "Reopened period 'FY2024 Q1'" in result.output

    def test_close_year_with_open_quarters(self, invoke, company):
        invoke("period", "create-year", "2024")
        result = invoke("period", "close", "1")
        assert result.exit_code == 1
        assert "close FY2024 Q1" in result.output


class TestRateAndInvoiceCommands:
    """Tests for rate and invoice commands."""

    def test_init_rates_and_set(self, invoke):
        result = invoke("init-rates", "--base", "USD")
        assert result.exit_code == 0
        assert "Created 18 rates against USD" in result.output

        assert invoke("rate", "set", "EUR", "1.2").exit_code == 0
        listing = invoke("rate", "list")
        assert "EUR" in listing.output
        assert "1.2" in listing.output

    def test_rate_set_without_base(self, invoke):
        result = invoke("rate", "set", "EUR", "1.2")
        assert result.exit_code == 1
        assert "base currency first" in result.output

    def test_invoice_totals(self, invoke):
        result = invoke("invoice", "totals", "--item", "Consulting", "1200 USD", "3", "--tax-rate", "18")

        assert result.exit_code == 0
        assert "3,600.00 USD" in result.output
        assert "648.00 USD" in result.output
        assert "4,248.00 USD" in result.output

    def test_invoice_foreign_item_needs_rates(self, invoke):
        result = invoke(
            "invoice", "totals",
            "--item", "Consulting", "100 USD", "1",
            "--item", "Licence", "100 EUR", "1",
        )
        assert result.exit_code == 1
        assert "init-rates" in result.output

    def test_invalid_config(self, invoke, tmp_path):
        config = tmp_path / "finstate.toml"
        config.write_text("[fiscal_year]\nstart_month = 13\n", encoding="utf-8")

        result = invoke("--config", str(config), "company", "list")
        assert result.exit_code == 1
        assert "start_month must be 1-12" in result.output
