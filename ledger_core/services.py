"""Command interface used by the console and HTTP shells.

Every command runs under a lock and returns a :class:`CommandResult`; ledger errors are
captured in the result rather than raised to the shell.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from decimal import InvalidOperation
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

from .exceptions import FileReadError, LedgerError
from .ledger import Ledger, PathLike, Positioned
from .models import Budget, BudgetStatus, LoadReport, MonthlySummary, RowSkip, Transaction, format_row
from .storage import JSONStorage
from .validators import normalize_category, parse_amount, require_date

logger = logging.getLogger(__name__)

TRANSACTIONS_FILE = "transactions.csv"
BUDGETS_RESOURCE = "budgets.json"


@dataclass
class CommandResult:
    value: Any = None
    error: Optional[LedgerError] = None
    warnings: List[RowSkip] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the value, re-raising the captured error if the command failed."""
        if self.error is not None:
            raise self.error
        return self.value


def render_rows(entries: List[Positioned]) -> List[str]:
    return [format_row(index, transaction) for index, transaction in entries]


class LedgerService:
    """Serialises access to one :class:`Ledger` and optionally keeps it on disk.

    With ``storage`` set, the ledger is hydrated from the working transaction file and
    the budgets resource on construction, and both are rewritten after every
    mutating command.
    """

    def __init__(
        self,
        ledger: Optional[Ledger] = None,
        storage: Optional[JSONStorage] = None,
        *,
        transactions_file: str = TRANSACTIONS_FILE,
        budgets_resource: str = BUDGETS_RESOURCE,
    ) -> None:
        self._ledger = ledger if ledger is not None else Ledger()
        self._storage = storage
        self._transactions_file = transactions_file
        self._budgets_resource = budgets_resource
        self._lock = threading.Lock()
        if storage is not None:
            self.load()  # Hydrate in-memory ledger from persistence on construction.

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def working_file(self) -> Optional[Path]:
        if self._storage is None:
            return None
        return self._storage.base_path / self._transactions_file

    def load(self) -> List[RowSkip]:
        """Reload the working file and budgets; raises PersistenceError on failure."""
        if self._storage is None:
            return []
        skipped: List[RowSkip] = []
        with self._lock:
            working_file = self.working_file
            if working_file.is_file():
                skipped = self._ledger.load_from(working_file).skipped
            for payload in self._storage.load(self._budgets_resource):
                try:
                    budget = Budget.from_dict(payload)
                except (KeyError, TypeError, InvalidOperation) as exc:
                    raise FileReadError(f"Malformed budget record: {payload!r}") from exc
                self._ledger.add_or_update_budget(budget.category, budget.limit)
        return skipped

    # Public API -----------------------------------------------------------
    def add_transaction(
        self, date: str, category: Optional[str], amount: object, description: str = ""
    ) -> CommandResult:
        def command() -> Tuple[int, Transaction]:
            transaction = Transaction(
                date=require_date(date),
                category=normalize_category(category),
                amount=parse_amount(amount),
                description="" if description is None else str(description),
            )
            index = self._ledger.add(transaction)
            self._persist()
            return index, transaction

        return self._run("add_transaction", command, mutates=True)

    def delete_transaction(self, index: int) -> CommandResult:
        def command() -> Transaction:
            removed = self._ledger.delete_at(index)
            self._persist()
            return removed

        return self._run("delete_transaction", command, mutates=True)

    def list_transactions(self) -> CommandResult:
        """Return ``(position, transaction)`` pairs; render them with :func:`render_rows`."""
        return self._run("list_transactions", lambda: list(self._ledger.list()))

    def save_to_file(self, path: PathLike) -> CommandResult:
        return self._run("save_to_file", lambda: self._ledger.save_to(path))

    def load_from_file(self, path: PathLike) -> CommandResult:
        def command() -> LoadReport:
            report = self._ledger.load_from(path)
            self._persist()
            return report

        result = self._run("load_from_file", command, mutates=True)
        if result.ok:
            result.warnings = list(result.value.skipped)
        return result

    def monthly_summary(self, year_month: str) -> CommandResult:
        def command() -> MonthlySummary:
            return self._ledger.monthly_summary(year_month)

        return self._run("monthly_summary", command)

    def search_transactions(self, mode: str, query: str) -> CommandResult:
        return self._run("search_transactions", lambda: self._ledger.search(mode, query))

    def sort_transactions(self, key: str) -> CommandResult:
        def command() -> None:
            self._ledger.sort(key)
            self._persist()

        return self._run("sort_transactions", command, mutates=True)

    def add_or_update_budget(self, category: str, limit: object) -> CommandResult:
        def command() -> Tuple[Budget, bool]:
            outcome = self._ledger.add_or_update_budget(category, parse_amount(limit, "limit"))
            self._persist()
            return outcome

        return self._run("add_or_update_budget", command, mutates=True)

    def list_budgets(self) -> CommandResult:
        return self._run("list_budgets", lambda: list(self._ledger.list_budgets()))

    def check_budgets(self) -> CommandResult:
        def command() -> List[BudgetStatus]:
            return self._ledger.check_budgets()

        return self._run("check_budgets", command)

    # Internal helpers -----------------------------------------------------
    def _run(
        self, name: str, command: Callable[[], Any], *, mutates: bool = False
    ) -> CommandResult:
        with self._lock:
            state = self._ledger.snapshot() if mutates else None
            try:
                return CommandResult(value=command())
            except LedgerError as exc:
                if state is not None:
                    # A failed persist must not leave the change in memory.
                    self._ledger.restore(state)
                logger.debug("%s failed with %s: %s", name, exc.code, exc)
                return CommandResult(error=exc)

    def _persist(self) -> None:
        if self._storage is None:
            return
        # Persist current snapshot; storage layer handles atomic writes.
        self._ledger.save_to(self.working_file)
        self._storage.save(
            self._budgets_resource, [budget.to_dict() for budget in self._ledger.list_budgets()]
        )
