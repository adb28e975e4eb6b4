"""Tests for the ledger store."""

from decimal import Decimal

import pytest

from ledger_core.exceptions import (
    EmptyCategory,
    FileReadError,
    FileWriteError,
    IndexOutOfRange,
    InvalidFormat,
    NegativeLimit,
    NoBudgetsDefined,
    ValidationError,
)
from ledger_core.ledger import Ledger
from ledger_core.models import Budget, SearchMode, SortKey, Transaction


def _snapshot(ledger):
    return [transaction for _, transaction in ledger.list()]


class TestAddDeleteList:
    """Test positional addressing of transactions."""

    def test_add_appends_and_returns_position(self, ledger):
        index = ledger.add(Transaction("2024-05-01", "Rent", Decimal("-700"), ""))
        assert index == 3
        assert len(ledger) == 4

    def test_delete_renumbers_later_positions(self, ledger, march_transactions):
        removed = ledger.delete_at(0)
        assert removed == march_transactions[0]
        assert list(ledger.list()) == [(0, march_transactions[1]), (1, march_transactions[2])]

    @pytest.mark.parametrize("index", [-1, 3, 100])
    def test_delete_out_of_range_leaves_sequence(self, ledger, march_transactions, index):
        with pytest.raises(IndexOutOfRange):
            ledger.delete_at(index)
        assert _snapshot(ledger) == march_transactions

    def test_list_is_restartable(self, ledger, march_transactions):
        entries = ledger.list()
        first = list(entries)
        assert list(entries) == first
        assert len(entries) == 3
        assert [transaction for _, transaction in first] == march_transactions

    def test_list_reflects_later_changes(self, ledger):
        entries = ledger.list()
        ledger.delete_at(0)
        assert [index for index, _ in entries] == [0, 1]

    def test_empty_ledger(self):
        ledger = Ledger()
        assert ledger.is_empty()
        assert list(ledger.list()) == []


class TestSearch:
    """Test category and date search."""

    def test_category_substring_keeps_positions(self):
        ledger = Ledger([
            Transaction("2024-01-01", "FooBar", Decimal("1"), ""),
            Transaction("2024-01-02", "Rent", Decimal("-1"), ""),
            Transaction("2024-01-03", "Foo", Decimal("2"), ""),
        ])
        matches = ledger.search(SearchMode.CATEGORY, "Foo")
        assert [index for index, _ in matches] == [0, 2]

    def test_category_match_is_case_sensitive(self, ledger):
        assert ledger.search("category", "food") == []

    def test_exact_date(self, ledger, march_transactions):
        assert ledger.search(SearchMode.DATE, "2024-03-10") == [(1, march_transactions[1])]

    def test_no_matches_is_empty_list(self, ledger):
        assert ledger.search(SearchMode.DATE, "2020-01-01") == []

    def test_malformed_date_query(self, ledger):
        with pytest.raises(InvalidFormat):
            ledger.search(SearchMode.DATE, "2024-3-10")

    def test_unknown_mode(self, ledger):
        with pytest.raises(ValidationError, match="search mode"):
            ledger.search("payee", "x")


class TestSort:
    """Test in-place stable sorting."""

    def test_sort_by_date(self):
        ledger = Ledger([
            Transaction("2024-03-02", "B", Decimal("1"), ""),
            Transaction("2024-03-01", "A", Decimal("2"), ""),
            Transaction("2024-03-02", "C", Decimal("3"), ""),
        ])
        ledger.sort(SortKey.DATE)
        assert [t.category for t in _snapshot(ledger)] == ["A", "B", "C"]

    def test_sort_by_amount_is_stable(self):
        ledger = Ledger([
            Transaction("2024-03-01", "first", Decimal("5"), ""),
            Transaction("2024-03-02", "low", Decimal("-5"), ""),
            Transaction("2024-03-03", "second", Decimal("5.0"), ""),
        ])
        ledger.sort("amount")
        assert [t.category for t in _snapshot(ledger)] == ["low", "first", "second"]

    def test_last_sort_criterion_wins(self, ledger):
        ledger.sort(SortKey.DATE)
        ledger.sort(SortKey.AMOUNT)
        amounts = [t.amount for t in _snapshot(ledger)]
        assert amounts == sorted(amounts)

    def test_amount_sort_is_numeric(self):
        ledger = Ledger([
            Transaction("2024-03-01", "x", Decimal("10"), ""),
            Transaction("2024-03-01", "y", Decimal("9"), ""),
        ])
        ledger.sort(SortKey.AMOUNT)
        assert [t.amount for t in _snapshot(ledger)] == [Decimal("9"), Decimal("10")]

    def test_unknown_key(self, ledger):
        with pytest.raises(ValidationError, match="sort key"):
            ledger.sort("category")


class TestMonthlySummary:
    """Test income/expense aggregation."""

    def test_march_totals(self, ledger):
        summary = ledger.monthly_summary("2024-03")
        assert summary.income == Decimal("1000")
        assert summary.expense == Decimal("-20")
        assert summary.net == Decimal("980")

    def test_zero_amount_counts_as_income(self):
        ledger = Ledger([Transaction("2024-03-01", "x", Decimal("0"), "")])
        summary = ledger.monthly_summary("2024-03")
        assert summary.income == 0 and summary.expense == 0

    def test_month_without_transactions(self, ledger):
        summary = ledger.monthly_summary("1999-01")
        assert (summary.income, summary.expense, summary.net) == (0, 0, 0)

    @pytest.mark.parametrize("value", ["2024-3", "2024_03", "202403", "2024-03-01"])
    def test_invalid_format(self, ledger, value):
        with pytest.raises(InvalidFormat):
            ledger.monthly_summary(value)


class TestBudgets:
    """Test budget maintenance and checks."""

    def test_add_then_update_in_place(self):
        ledger = Ledger()
        _, created = ledger.add_or_update_budget("Food", Decimal("15"))
        ledger.add_or_update_budget("Rent", Decimal("700"))
        budget, created_again = ledger.add_or_update_budget("Food", Decimal("25"))
        assert created and not created_again
        assert budget.limit == Decimal("25")
        assert [b.category for b in ledger.list_budgets()] == ["Food", "Rent"]

    def test_budget_listing_is_restartable(self):
        ledger = Ledger()
        ledger.add_or_update_budget("Food", Decimal("15"))
        budgets = ledger.list_budgets()
        assert list(budgets) == list(budgets) == [Budget("Food", Decimal("15"))]

    def test_limit_text_is_parsed(self):
        budget, _ = Ledger().add_or_update_budget("Food", "15.5")
        assert budget.limit == Decimal("15.5")

    def test_non_numeric_limit_is_validation_error(self):
        with pytest.raises(ValidationError, match="limit must be a numeric value"):
            Ledger().add_or_update_budget("Food", "lots")

    def test_category_match_is_exact(self):
        ledger = Ledger()
        ledger.add_or_update_budget("Food", Decimal("15"))
        ledger.add_or_update_budget("food", Decimal("5"))
        assert len(list(ledger.list_budgets())) == 2

    def test_category_is_trimmed(self):
        ledger = Ledger()
        ledger.add_or_update_budget("  Food ", Decimal("15"))
        ledger.add_or_update_budget("Food", Decimal("20"))
        assert list(ledger.list_budgets()) == [Budget("Food", Decimal("20"))]

    def test_empty_category(self):
        with pytest.raises(EmptyCategory):
            Ledger().add_or_update_budget("   ", Decimal("1"))

    def test_negative_limit(self):
        with pytest.raises(NegativeLimit):
            Ledger().add_or_update_budget("Food", Decimal("-0.01"))

    def test_zero_limit_allowed(self):
        budget, _ = Ledger().add_or_update_budget("Food", Decimal("0"))
        assert budget.limit == 0

    def test_check_reports_exceeded(self):
        ledger = Ledger([Transaction("2024-03-05", "Food", Decimal("-20"), "")])
        ledger.add_or_update_budget("Food", Decimal("15"))
        [status] = ledger.check_budgets()
        assert status.exceeded
        assert status.spent == Decimal("20")
        assert status.limit == Decimal("15")

    def test_check_ignores_income_and_other_categories(self, ledger):
        ledger.add(Transaction("2024-03-06", "Food", Decimal("50"), "refund"))
        ledger.add_or_update_budget("Food", Decimal("100"))
        ledger.add_or_update_budget("Travel", Decimal("10"))
        statuses = {status.category: status for status in ledger.check_budgets()}
        assert statuses["Food"].spent == Decimal("25")
        assert not statuses["Food"].exceeded
        assert statuses["Travel"].spent == 0

    def test_check_without_budgets(self, ledger):
        with pytest.raises(NoBudgetsDefined):
            ledger.check_budgets()


class TestPersistence:
    """Test saving and loading the transaction file."""

    def test_round_trip(self, ledger, march_transactions, temp_dir):
        path = temp_dir / "data.csv"
        assert ledger.save_to(path) == 3

        reloaded = Ledger()
        report = reloaded.load_from(path)
        assert report.loaded == 3
        assert report.skipped == []
        assert _snapshot(reloaded) == march_transactions

    def test_round_trip_replaces_description_commas(self, temp_dir):
        path = temp_dir / "data.csv"
        Ledger([Transaction("2024-03-05", "Food", Decimal("-2.50"), "tea, milk")]).save_to(path)
        reloaded = Ledger()
        reloaded.load_from(path)
        [(_, transaction)] = reloaded.list()
        assert transaction.description == "tea; milk"
        assert transaction.amount == Decimal("-2.5")

    def test_comma_in_category_misparses_on_reload(self, temp_dir):
        """Categories are not escaped, so a comma shifts the remaining fields."""
        path = temp_dir / "data.csv"
        Ledger([Transaction("2024-03-05", "Food,Drink", Decimal("-3"), "x")]).save_to(path)
        reloaded = Ledger()
        report = reloaded.load_from(path)
        assert report.loaded == 0
        assert report.skipped[0].reason == "Invalid amount"

    def test_load_skips_malformed_lines(self, temp_dir):
        path = temp_dir / "data.csv"
        path.write_text(
            "2024-03-05,Food,-20,lunch\n"
            "2024-13-01,Food,-1,bad month\n"
            "2024-03-06,Salary,1000,pay, with comma\n",
            encoding="utf-8",
        )
        ledger = Ledger()
        report = ledger.load_from(path)
        assert len(ledger) == 2
        assert report.loaded == 2
        assert [(skip.line_number, skip.reason) for skip in report.skipped] == [
            (2, "Invalid date format")
        ]
        assert _snapshot(ledger)[1].description == "pay, with comma"

    def test_load_skips_bad_amount(self, temp_dir):
        path = temp_dir / "data.csv"
        path.write_text("2024-03-05,Food,twenty,lunch\n", encoding="utf-8")
        report = Ledger().load_from(path)
        assert report.loaded == 0
        assert report.skipped[0].reason == "Invalid amount"

    def test_load_skips_overflowing_amount(self, temp_dir):
        path = temp_dir / "data.csv"
        path.write_text("2024-03-05,Food,1e5000000,x\n2024-03-06,Food,-2,y\n", encoding="utf-8")
        ledger = Ledger()
        report = ledger.load_from(path)
        assert report.loaded == 1
        assert [(skip.line_number, skip.reason) for skip in report.skipped] == [
            (1, "Invalid amount")
        ]

    def test_load_skips_undecodable_line(self, temp_dir):
        path = temp_dir / "data.csv"
        path.write_bytes(b"2024-03-05,Food,-20,lunch\n2024-03-06,Food,-3,caf\xe9\n")
        ledger = Ledger()
        report = ledger.load_from(path)
        assert _snapshot(ledger) == [
            Transaction("2024-03-05", "Food", Decimal("-20"), "lunch")
        ]
        [skip] = report.skipped
        assert (skip.line_number, skip.reason) == (2, "Invalid encoding")
        assert skip.line.startswith("2024-03-06,Food,-3,caf")

    def test_load_trims_fields_and_defaults_blank_category(self, temp_dir):
        path = temp_dir / "data.csv"
        path.write_text(" 2024-03-05 ,  , -4 , note\n", encoding="utf-8")
        ledger = Ledger()
        ledger.load_from(path)
        [(_, transaction)] = ledger.list()
        assert transaction == Transaction("2024-03-05", "Miscellaneous", Decimal("-4"), " note")

    def test_load_replaces_existing_sequence(self, ledger, temp_dir):
        path = temp_dir / "data.csv"
        path.write_text("2024-06-01,Gift,50,\n", encoding="utf-8")
        ledger.load_from(path)
        assert len(ledger) == 1

    def test_load_updates_existing_views(self, ledger, temp_dir):
        path = temp_dir / "data.csv"
        path.write_text("2024-06-01,Gift,50,\n", encoding="utf-8")
        entries = ledger.list()
        ledger.load_from(path)
        assert len(entries) == 1

    def test_unreadable_file_keeps_sequence(self, ledger, march_transactions, temp_dir):
        with pytest.raises(FileReadError):
            ledger.load_from(temp_dir / "missing.csv")
        assert _snapshot(ledger) == march_transactions

    def test_unwritable_destination(self, ledger, temp_dir):
        with pytest.raises(FileWriteError):
            ledger.save_to(temp_dir / "missing-dir" / "data.csv")


class TestSnapshot:
    """Test capturing and restoring ledger state."""

    def test_restore_undoes_transaction_and_budget_changes(self, ledger, march_transactions):
        ledger.add_or_update_budget("Food", Decimal("15"))
        state = ledger.snapshot()

        ledger.delete_at(0)
        ledger.sort(SortKey.AMOUNT)
        ledger.add_or_update_budget("Food", Decimal("99"))
        ledger.add_or_update_budget("Rent", Decimal("700"))

        ledger.restore(state)
        assert _snapshot(ledger) == march_transactions
        assert list(ledger.list_budgets()) == [Budget("Food", Decimal("15"))]
