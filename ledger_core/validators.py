"""Validation helpers shared across the ledger store and its shells."""

from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from .exceptions import EmptyCategory, InvalidFormat, ValidationError

WHITESPACE = " \t\n\r"
DEFAULT_CATEGORY = "Miscellaneous"

# Optional sign, digits with optional fraction or a bare fraction, optional exponent.
NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

MIN_YEAR = 1900
MAX_YEAR = 2100


def trim(value: str) -> str:
    """Strip spaces, tabs, newlines and carriage returns from both ends."""
    return value.strip(WHITESPACE)


def is_number(value: str) -> bool:
    """Return True when the whole of ``value`` is a single decimal literal.

    The literal must also fit a double, so overflowing exponents such as ``1e400``
    are rejected.
    """
    text = value.strip()
    if NUMBER_PATTERN.fullmatch(text) is None:
        return False
    return math.isfinite(float(text))


def _is_ascii_digit(char: str) -> bool:
    return "0" <= char <= "9"


def validate_date(value: str) -> bool:
    """Check ``YYYY-MM-DD`` shape and field ranges.

    Only the month (1-12), day (1-31) and year (1900-2100) ranges are checked, so a
    date such as ``2023-02-31`` is accepted. Day-of-month is never compared against
    the length of the month.
    """
    if len(value) != 10:
        return False
    if value[4] != "-" or value[7] != "-":
        return False
    for position, char in enumerate(value):
        if position in (4, 7):
            continue
        if not _is_ascii_digit(char):
            return False

    year, month, day = int(value[0:4]), int(value[5:7]), int(value[8:10])
    if not 1 <= month <= 12:
        return False
    if not 1 <= day <= 31:
        return False
    return MIN_YEAR <= year <= MAX_YEAR


def parse_amount(raw: object, field: str = "amount") -> Decimal:
    """Convert raw text to a Decimal, keeping the value exactly as written."""
    text = str(raw) if raw is not None else ""
    if not is_number(text):
        raise ValidationError(f"{field} must be a numeric value")
    try:
        return Decimal(text.strip())
    except InvalidOperation as exc:  # pragma: no cover - guarded by is_number
        raise ValidationError(f"{field} must be a numeric value") from exc


def require_date(value: object, field: str = "date") -> str:
    if not isinstance(value, str) or not validate_date(value):
        raise InvalidFormat(f"{field} must be a valid date in YYYY-MM-DD format")
    return value


def require_year_month(value: object) -> str:
    if not isinstance(value, str) or len(value) != 7 or value[4] != "-":
        raise InvalidFormat("Invalid format, must be YYYY-MM")
    return value


def normalize_category(value: Optional[str]) -> str:
    """Trim a category, falling back to the default for blank input."""
    category = trim(value or "")
    return category or DEFAULT_CATEGORY


def validate_budget_category(value: object) -> str:
    if not isinstance(value, str):
        raise ValidationError("category must be a string")
    category = trim(value)
    if not category:
        raise EmptyCategory("Category cannot be empty")
    return category


def validate_relative_path(raw: object, root: Path, field: str) -> Path:
    """Resolve a caller-supplied relative path, refusing anything outside ``root``."""
    if not isinstance(raw, str):
        raise ValidationError(f"{field} must be a string path")
    candidate = Path(raw.strip())
    if not candidate.parts:
        raise ValidationError(f"{field} cannot be empty")
    if candidate.is_absolute():
        raise ValidationError(f"{field} must be a relative path")
    try:
        resolved = (root / candidate).resolve()
    except OSError as exc:
        raise ValidationError(f"{field} points to an invalid path") from exc
    base_root = root.resolve()
    if base_root not in resolved.parents:
        raise ValidationError(f"{field} must be located within {root}")
    return resolved
