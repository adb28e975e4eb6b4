"""The ledger store: ordered transactions, per-category budgets and derived aggregates."""

from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from .exceptions import IndexOutOfRange, NegativeLimit, NoBudgetsDefined, ValidationError
from .models import (
    Budget,
    BudgetStatus,
    LoadReport,
    MonthlySummary,
    RowSkip,
    SearchMode,
    SortKey,
    Transaction,
)
from .storage import LedgerFile, decode_line, split_line
from .validators import (
    is_number,
    normalize_category,
    parse_amount,
    require_date,
    require_year_month,
    trim,
    validate_budget_category,
    validate_date,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

Positioned = Tuple[int, Transaction]
PathLike = Union[str, Path]


class TransactionView:
    """Re-iterable (position, transaction) pairs over the live sequence."""

    def __init__(self, transactions: List[Transaction]) -> None:
        self._transactions = transactions

    def __iter__(self) -> Iterator[Positioned]:
        return enumerate(self._transactions)

    def __len__(self) -> int:
        return len(self._transactions)


class BudgetView:
    def __init__(self, budgets: Dict[str, Budget]) -> None:
        self._budgets = budgets

    def __iter__(self) -> Iterator[Budget]:
        return iter(self._budgets.values())

    def __len__(self) -> int:
        return len(self._budgets)


class Ledger:
    """Owns the transaction sequence and the budgets keyed by category.

    Transactions have no identity beyond their position: deleting or sorting
    renumbers every later position. Budgets keep insertion order, and updating a
    limit does not move the budget.
    """

    def __init__(
        self,
        transactions: Optional[Iterable[Transaction]] = None,
        budgets: Optional[Iterable[Budget]] = None,
    ) -> None:
        self._transactions: List[Transaction] = list(transactions or [])
        self._budgets: Dict[str, Budget] = {}
        for budget in budgets or []:
            self._budgets[budget.category] = budget

    # Transactions ---------------------------------------------------------
    def __len__(self) -> int:
        return len(self._transactions)

    def is_empty(self) -> bool:
        return not self._transactions

    def add(self, transaction: Transaction) -> int:
        """Append a transaction and return its position."""
        self._transactions.append(transaction)
        return len(self._transactions) - 1

    def delete_at(self, index: int) -> Transaction:
        if not 0 <= index < len(self._transactions):
            raise IndexOutOfRange(
                f"Index {index} is out of range for {len(self._transactions)} transactions"
            )
        removed = self._transactions.pop(index)
        logger.info("Deleted transaction %d (%s)", index, removed.date)
        return removed

    def list(self) -> TransactionView:
        """Return ``(position, transaction)`` pairs in current order; iterable repeatedly."""
        return TransactionView(self._transactions)

    def search(self, mode: Union[SearchMode, str], query: str) -> List[Positioned]:
        """Return matches with their original positions, in sequence order.

        Category search is a case-sensitive substring match. Date search requires a
        valid ``YYYY-MM-DD`` query and matches exactly.
        """
        search_mode = _coerce(SearchMode, mode, "search mode")
        if search_mode is SearchMode.CATEGORY:
            return [(i, t) for i, t in self.list() if query in t.category]
        require_date(query)
        return [(i, t) for i, t in self.list() if t.date == query]

    def sort(self, key: Union[SortKey, str]) -> None:
        """Stably reorder the stored sequence in place."""
        sort_key = _coerce(SortKey, key, "sort key")
        if sort_key is SortKey.DATE:
            self._transactions.sort(key=lambda transaction: transaction.date)
        else:
            self._transactions.sort(key=lambda transaction: transaction.amount)

    # Aggregates -----------------------------------------------------------
    def monthly_summary(self, year_month: str) -> MonthlySummary:
        require_year_month(year_month)
        income = expense = ZERO
        for _, transaction in self.list():
            if transaction.date[:7] != year_month:
                continue
            if transaction.amount >= 0:
                income += transaction.amount
            else:
                expense += transaction.amount
        return MonthlySummary(year_month=year_month, income=income, expense=expense)

    # Budgets --------------------------------------------------------------
    def add_or_update_budget(self, category: str, limit: Decimal) -> Tuple[Budget, bool]:
        """Create or update the budget for ``category``; returns ``(budget, created)``."""
        name = validate_budget_category(category)
        if not isinstance(limit, Decimal):
            limit = parse_amount(limit, "limit")
        if limit < 0:
            raise NegativeLimit("Limit cannot be negative")

        existing = self._budgets.get(name)
        if existing is not None:
            existing.set_limit(limit)
            logger.info("Budget updated for category '%s'", name)
            return existing, False

        budget = Budget(name, limit)
        self._budgets[name] = budget
        logger.info("Budget added for category '%s'", name)
        return budget, True

    def list_budgets(self) -> BudgetView:
        return BudgetView(self._budgets)

    def check_budgets(self) -> List[BudgetStatus]:
        if not self._budgets:
            raise NoBudgetsDefined("No budgets defined.")

        spent_per_category: Dict[str, Decimal] = {}
        for _, transaction in self.list():
            if transaction.is_expense:
                spent_per_category[transaction.category] = (
                    spent_per_category.get(transaction.category, ZERO) - transaction.amount
                )

        return [
            BudgetStatus(
                category=budget.category,
                spent=spent_per_category.get(budget.category, ZERO),
                limit=budget.limit,
            )
            for budget in self.list_budgets()
        ]

    # Persistence ----------------------------------------------------------
    def save_to(self, path: PathLike) -> int:
        """Write every transaction to ``path``; returns the number written."""
        count = LedgerFile(Path(path)).write_transactions(self._transactions)
        logger.info("Data saved to %s (%d transactions)", path, count)
        return count

    def load_from(self, path: PathLike) -> LoadReport:
        """Replace the transaction sequence with the contents of ``path``.

        Malformed lines, including lines that are not valid UTF-8, are skipped and
        reported; an unreadable file leaves the current sequence untouched.
        """
        lines = LedgerFile(Path(path)).read_lines()

        report = LoadReport()
        loaded: List[Transaction] = []
        for line_number, raw in enumerate(lines, start=1):
            parsed = _parse_line(line_number, raw)
            if isinstance(parsed, RowSkip):
                logger.warning("%s", parsed)
                report.skipped.append(parsed)
            else:
                loaded.append(parsed)

        self._transactions[:] = loaded
        report.loaded = len(loaded)
        logger.info("File loaded with %d transactions.", report.loaded)
        return report

    # State ----------------------------------------------------------------
    def snapshot(self) -> Any:
        """Capture transactions and budget limits for a later :meth:`restore`."""
        return (
            list(self._transactions),
            [(budget, budget.limit) for budget in self._budgets.values()],
        )

    def restore(self, state: Any) -> None:
        transactions, budgets = state
        self._transactions[:] = transactions
        self._budgets.clear()
        for budget, limit in budgets:
            budget.set_limit(limit)
            self._budgets[budget.category] = budget


def _parse_line(line_number: int, raw: bytes) -> Union[Transaction, RowSkip]:
    line = decode_line(raw)
    if line is None:
        return RowSkip(line_number, "Invalid encoding", raw.decode("utf-8", errors="replace"))

    date, category, amount, description = split_line(line)
    date, category, amount = trim(date), trim(category), trim(amount)
    if not validate_date(date):
        return RowSkip(line_number, "Invalid date format", line)
    if not is_number(amount):
        return RowSkip(line_number, "Invalid amount", line)
    return Transaction(
        date=date,
        category=normalize_category(category),
        amount=Decimal(amount),
        description=description,
    )


def _coerce(enum_type, value, field: str):
    try:
        return enum_type(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(f"{field} must be one of: {allowed}") from exc
