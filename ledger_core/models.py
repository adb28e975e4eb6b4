"""Data models for the personal finance ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List

__all__ = [
    "Budget",
    "BudgetStatus",
    "LISTING_HEADER",
    "LISTING_RULE",
    "LoadReport",
    "MonthlySummary",
    "RowSkip",
    "SearchMode",
    "SortKey",
    "Transaction",
    "format_money",
    "format_row",
]

LISTING_HEADER = "Idx | Date        | Category       |    Amount | Description"
LISTING_RULE = "-" * 67


def format_money(amount: Decimal) -> str:
    return f"{amount:.2f}"


class SearchMode(str, Enum):
    CATEGORY = "category"
    DATE = "date"


class SortKey(str, Enum):
    DATE = "date"
    AMOUNT = "amount"


@dataclass(frozen=True)
class Transaction:
    """One dated monetary movement. Positive amounts are income, negative expenses."""

    date: str
    category: str
    amount: Decimal
    description: str = ""

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    def __str__(self) -> str:
        return (
            f"{self.date:>10} | {self.category:>15} | "
            f"{self.amount:>10.2f} | {self.description}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the transaction to JSON-friendly natives."""
        return {
            "date": self.date,
            "category": self.category,
            "amount": str(self.amount),
            "description": self.description,
        }


def format_row(index: int, transaction: Transaction) -> str:
    """Render a listing row the same way for listings and search results."""
    return f"{index:>3} | {transaction}"


class Budget:
    """A spending ceiling for one category. Only the limit can change."""

    __slots__ = ("_category", "_limit")

    def __init__(self, category: str, limit: Decimal) -> None:
        self._category = category
        self._limit = limit

    @property
    def category(self) -> str:
        return self._category

    @property
    def limit(self) -> Decimal:
        return self._limit

    def set_limit(self, limit: Decimal) -> None:
        self._limit = limit

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Budget):
            return NotImplemented
        return (self._category, self._limit) == (other._category, other._limit)

    def __repr__(self) -> str:
        return f"Budget(category={self._category!r}, limit={self._limit!r})"

    def __str__(self) -> str:
        return f"{self._category:>18} | ${self._limit:.2f}"

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self._category, "limit": str(self._limit)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Budget":
        return cls(category=data["category"], limit=Decimal(str(data["limit"])))


@dataclass(frozen=True)
class MonthlySummary:
    year_month: str
    income: Decimal
    expense: Decimal

    @property
    def net(self) -> Decimal:
        return self.income + self.expense

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year_month": self.year_month,
            "income": format_money(self.income),
            "expense": format_money(self.expense),
            "net": format_money(self.net),
        }


@dataclass(frozen=True)
class BudgetStatus:
    category: str
    spent: Decimal
    limit: Decimal

    @property
    def exceeded(self) -> bool:
        return self.spent > self.limit

    def __str__(self) -> str:
        if self.exceeded:
            return (
                f"ALERT! Category '{self.category}' has exceeded the budget! "
                f"Spent: ${self.spent:.2f}, Limit: ${self.limit:.2f}"
            )
        return (
            f"Category '{self.category}' is within budget. "
            f"Spent: ${self.spent:.2f}, Limit: ${self.limit:.2f}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "spent": format_money(self.spent),
            "limit": format_money(self.limit),
            "exceeded": self.exceeded,
        }


@dataclass(frozen=True)
class RowSkip:
    """A malformed line rejected during a load."""

    line_number: int
    reason: str
    line: str

    def __str__(self) -> str:
        return f"{self.reason} on line {self.line_number}. Skipping."

    def to_dict(self) -> Dict[str, Any]:
        return {"line_number": self.line_number, "reason": self.reason, "line": self.line}


@dataclass
class LoadReport:
    loaded: int = 0
    skipped: List[RowSkip] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "loaded": self.loaded,
            "skipped": [skip.to_dict() for skip in self.skipped],
        }
