"""End-to-end tests for the fundflow CLI."""

from datetime import date
from pathlib import Path

import pytest
from typer.testing import CliRunner

from fundflow import cli
from fundflow.commands import records
from fundflow.domain.models import Money
from fundflow.services.attribution import AttributionLedger
from fundflow.services.household import Household
from fundflow.store.schema import get_db_path

runner = CliRunner()


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setattr(cli, "configure_logging", lambda level, json: None)
    return tmp_path


@pytest.fixture
def initialized(home: Path) -> Path:
    result = runner.invoke(cli.app, ["init"])
    assert result.exit_code == 0, result.output
    return get_db_path()


class TestInit:
    """Tests for fundflow init."""

    def test_creates_database_and_config(self, home: Path) -> None:
        """Should create both files."""
        result = runner.invoke(cli.app, ["init"])

        assert result.exit_code == 0
        assert (home / "data" / "fundflow" / "fundflow.db").exists()
        assert (home / "config" / "fundflow" / "config.toml").exists()

    def test_refuses_to_overwrite(self, initialized: Path) -> None:
        """Should exit 1 without --force when files exist."""
        result = runner.invoke(cli.app, ["init"])

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_force(self, initialized: Path) -> None:
        """Should recreate an empty database with --force."""
        Household(initialized).add_income("Paycheck", Money(100), date(2025, 1, 1))

        result = runner.invoke(cli.app, ["init", "--force"])

        assert result.exit_code == 0
        assert Household(initialized).list_incomes() == []

    def test_commands_need_database(self, home: Path) -> None:
        """Should tell the user to run init first."""
        result = runner.invoke(cli.app, ["category", "list"])

        assert result.exit_code == 1
        assert "fundflow init" in result.output


class TestCategories:
    """Tests for fundflow category."""

    def test_add_and_list(self, initialized: Path) -> None:
        """Should add categories and list them."""
        assert runner.invoke(cli.app, ["category", "add", "Needs", "50"]).exit_code == 0
        assert runner.invoke(cli.app, ["category", "add", "Wants", "30"]).exit_code == 0

        result = runner.invoke(cli.app, ["category", "list"])

        assert result.exit_code == 0
        assert "Needs" in result.output
        assert "Wants" in result.output

    def test_rejects_over_budget(self, initialized: Path) -> None:
        """Should exit 1 when the total would pass 100%."""
        runner.invoke(cli.app, ["category", "add", "Needs", "90"])

        result = runner.invoke(cli.app, ["category", "add", "Wants", "15"])

        assert result.exit_code == 1
        assert "Needs" in runner.invoke(cli.app, ["category", "list"]).output
        assert "Wants" not in runner.invoke(cli.app, ["category", "list"]).output

    def test_bad_percentage(self, initialized: Path) -> None:
        """Should exit 1 for a percentage that does not parse."""
        result = runner.invoke(cli.app, ["category", "add", "Needs", "lots"])

        assert result.exit_code == 1
        assert "Invalid percentage" in result.output


class TestRecords:
    """Tests for fundflow income and fundflow payment."""

    def test_date_defaults_to_today(self, initialized: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should schedule on today's date when none is given."""
        monkeypatch.setattr(records, "today", lambda: date(2025, 3, 14))

        result = runner.invoke(cli.app, ["payment", "add", "Phone", "50"])

        assert result.exit_code == 0, result.output
        assert Household(initialized).list_payments()[0].due_date == date(2025, 3, 14)

    def test_list_month(self, initialized: Path) -> None:
        """Should only list income scheduled in the month."""
        runner.invoke(cli.app, ["income", "add", "January", "100", "2025-01-31"])
        runner.invoke(cli.app, ["income", "add", "February", "100", "2025-02-01"])

        result = runner.invoke(cli.app, ["income", "list", "--month", "2025-01"])

        assert result.exit_code == 0
        assert "January" in result.output
        assert "February" not in result.output

    def test_list_bad_month(self, initialized: Path) -> None:
        """Should exit 1 for a malformed month."""
        result = runner.invoke(cli.app, ["income", "list", "--month", "January"])

        assert result.exit_code == 1
        assert "Invalid month" in result.output


class TestReconciliationFlow:
    """Tests for the income, allocation and attribution commands."""

    def test_generate_and_distribute(self, initialized: Path) -> None:
        """Should allocate income and attribute a payment to it."""
        runner.invoke(cli.app, ["category", "add", "Needs", "50"])
        runner.invoke(cli.app, ["category", "add", "Wants", "30"])
        runner.invoke(cli.app, ["category", "add", "Savings", "20"])
        assert runner.invoke(cli.app, ["income", "add", "Paycheck", "1000.00", "2025-01-01"]).exit_code == 0
        assert runner.invoke(cli.app, ["payment", "add", "Rent", "400.00", "2025-01-05"]).exit_code == 0
        household = Household(initialized)
        income = household.list_incomes()[0]
        payment = household.list_payments()[0]

        generated = runner.invoke(cli.app, ["allocate", "generate", str(income.id)])
        distributed = runner.invoke(cli.app, ["attribute", "distribute", str(payment.id), str(income.id)])

        assert generated.exit_code == 0, generated.output
        assert distributed.exit_code == 0, distributed.output
        assert AttributionLedger(initialized).for_payment(payment.id).remaining == Money(0)

    def test_distribute_twice_is_a_no_op(self, initialized: Path) -> None:
        """Should report that nothing is left to attribute."""
        runner.invoke(cli.app, ["income", "add", "Paycheck", "100", "2025-01-01"])
        runner.invoke(cli.app, ["payment", "add", "Phone", "50", "2025-01-05"])
        household = Household(initialized)
        income_id = str(household.list_incomes()[0].id)
        payment_id = str(household.list_payments()[0].id)
        runner.invoke(cli.app, ["attribute", "distribute", payment_id, income_id])

        result = runner.invoke(cli.app, ["attribute", "distribute", payment_id, income_id])

        assert result.exit_code == 0
        assert "already fully attributed" in result.output

    def test_attribution_over_payment(self, initialized: Path) -> None:
        """Should exit 1 and name the failure."""
        runner.invoke(cli.app, ["income", "add", "Paycheck", "100", "2025-01-01"])
        runner.invoke(cli.app, ["payment", "add", "Phone", "50", "2025-01-05"])
        household = Household(initialized)
        income_id = str(household.list_incomes()[0].id)
        payment_id = str(household.list_payments()[0].id)

        result = runner.invoke(cli.app, ["attribute", "add", payment_id, income_id, "60"])

        assert result.exit_code == 1
        assert "ExceedsPayment" in result.output

    def test_unknown_income(self, initialized: Path) -> None:
        """Should exit 1 for a missing income event."""
        result = runner.invoke(cli.app, ["allocate", "generate", "999"])

        assert result.exit_code == 1
        assert "NotFound" in result.output


class TestTransactions:
    """Tests for transaction import and matching."""

    def test_import_and_match(self, initialized: Path, tmp_path: Path) -> None:
        """Should import a CSV export and match it to an open payment."""
        csv_file = tmp_path / "export.csv"
        csv_file.write_text(
            "Date,Description,Amount\n"
            "15/01/2025,WHOLE FOODS MARKET #123,-85.32\n"
            "not a date,BROKEN,-1.00\n"
        )
        runner.invoke(cli.app, ["payment", "add", "Whole Foods", "85.32", "2025-01-15"])

        imported = runner.invoke(cli.app, ["transactions", "import", str(csv_file), "--account", "checking"])
        again = runner.invoke(cli.app, ["transactions", "import", str(csv_file), "--account", "checking"])
        matched = runner.invoke(cli.app, ["match"])

        assert imported.exit_code == 0, imported.output
        assert "Imported 1" in imported.output
        assert "unreadable" in imported.output
        assert "duplicate" in again.output
        stored = Household(initialized).list_transactions()
        assert [t.account_id for t in stored] == ["checking"]
        assert matched.exit_code == 0, matched.output
        assert "exact_amount" in matched.output

    def test_import_missing_columns(self, initialized: Path, tmp_path: Path) -> None:
        """Should exit 1 when the export lacks required columns."""
        csv_file = tmp_path / "export.csv"
        csv_file.write_text("Foo,Bar\n1,2\n")

        result = runner.invoke(cli.app, ["transactions", "import", str(csv_file)])

        assert result.exit_code == 1
        assert "Could not read" in result.output

    def test_match_inverted_range(self, initialized: Path) -> None:
        """Should exit 1 for a start after the end."""
        result = runner.invoke(cli.app, ["match", "--start", "2025-02-01", "--end", "2025-01-01"])

        assert result.exit_code == 1
        assert "InvalidDateRange" in result.output
