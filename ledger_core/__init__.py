"""Core business logic package for the personal finance ledger."""

from .exceptions import (
    EmptyCategory,
    FileReadError,
    FileWriteError,
    IndexOutOfRange,
    InvalidFormat,
    LedgerError,
    NegativeLimit,
    NoBudgetsDefined,
    PersistenceError,
    ValidationError,
)
from .ledger import Ledger
from .models import Budget, BudgetStatus, LoadReport, MonthlySummary, RowSkip, SearchMode, SortKey, Transaction
from .services import CommandResult, LedgerService, render_rows
from .storage import JSONStorage, LedgerFile
from .validators import is_number, trim, validate_date

__all__ = [
    "Budget",
    "BudgetStatus",
    "CommandResult",
    "EmptyCategory",
    "FileReadError",
    "FileWriteError",
    "IndexOutOfRange",
    "InvalidFormat",
    "JSONStorage",
    "Ledger",
    "LedgerError",
    "LedgerFile",
    "LedgerService",
    "LoadReport",
    "MonthlySummary",
    "NegativeLimit",
    "NoBudgetsDefined",
    "PersistenceError",
    "RowSkip",
    "SearchMode",
    "SortKey",
    "Transaction",
    "ValidationError",
    "is_number",
    "render_rows",
    "trim",
    "validate_date",
]
