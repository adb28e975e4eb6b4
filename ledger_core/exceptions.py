"""Domain-specific exceptions for the personal finance ledger."""


class LedgerError(Exception):
    """Base class for every failure the ledger reports to its callers."""

    code = "LedgerError"


class ValidationError(LedgerError, ValueError):
    """Raised when provided data does not meet validation requirements."""

    code = "InputValidationError"


class InvalidFormat(ValidationError):
    """Raised when a date or year-month query is malformed."""

    code = "InvalidFormat"


class EmptyCategory(ValidationError):
    """Raised when a budget category is blank after trimming."""

    code = "EmptyCategory"


class NegativeLimit(ValidationError):
    """Raised when a budget limit is below zero."""

    code = "NegativeLimit"


class IndexOutOfRange(LedgerError, IndexError):
    """Raised when a transaction position does not exist."""

    code = "IndexOutOfRange"


class NoBudgetsDefined(LedgerError, LookupError):
    """Raised when a budget check is requested with no budgets present."""

    code = "NoBudgetsDefined"


class PersistenceError(LedgerError, IOError):
    """Raised when the persistence layer encounters unrecoverable issues."""

    code = "PersistenceError"


class FileReadError(PersistenceError):
    """Raised when a ledger or budget file cannot be opened or read."""

    code = "FileReadError"


class FileWriteError(PersistenceError):
    """Raised when a ledger or budget file cannot be written."""

    code = "FileWriteError"
