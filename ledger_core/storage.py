"""Persistence utilities for the ledger: the delimited transaction file and JSON records."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .exceptions import FileReadError, FileWriteError
from .models import Transaction

FIELD_SEPARATOR = ","
DESCRIPTION_SEPARATOR_REPLACEMENT = ";"
FIELD_COUNT = 4


def format_line(transaction: Transaction) -> str:
    """Render ``date,category,amount,description``.

    Commas in the description become semicolons. The category is written as-is, so a
    category containing a comma will not survive a reload.
    """
    description = transaction.description.replace(
        FIELD_SEPARATOR, DESCRIPTION_SEPARATOR_REPLACEMENT
    )
    return FIELD_SEPARATOR.join(
        [transaction.date, transaction.category, str(transaction.amount), description]
    )


def split_line(line: str) -> Tuple[str, str, str, str]:
    """Split a line into date, category, amount and the remainder as description."""
    parts = line.split(FIELD_SEPARATOR, FIELD_COUNT - 1)
    parts.extend([""] * (FIELD_COUNT - len(parts)))
    date, category, amount, description = parts
    return date, category, amount, description


def decode_line(raw: bytes) -> Optional[str]:
    """Decode one UTF-8 line, or return None when the bytes are not valid UTF-8."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _temp_path(path: Path) -> Path:
    return path.with_name(path.name + ".tmp")


def _write_atomically(path: Path, text: str) -> None:
    temp_path = _temp_path(path)
    try:
        with temp_path.open("w", encoding="utf-8") as handle:
            handle.write(text)
            handle.flush()
        # Use replace for atomic move on POSIX; last full save wins.
        temp_path.replace(path)
    except OSError as exc:
        raise FileWriteError(f"Unable to write to {path}") from exc


class LedgerFile:
    """The flat transaction file: one line per transaction, no header row."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def read_lines(self) -> List[bytes]:
        """Return the raw lines without terminators; decoding is left per line."""
        try:
            with self._path.open("rb") as handle:
                return handle.read().splitlines()
        except OSError as exc:
            raise FileReadError(f"Unable to read from {self._path}") from exc

    def write_transactions(self, transactions: Iterable[Transaction]) -> int:
        lines = [format_line(transaction) for transaction in transactions]
        _write_atomically(self._path, "".join(line + "\n" for line in lines))
        return len(lines)


class JSONStorage:
    """Simple file-based JSON storage with crash-safe writes."""

    def __init__(self, base_path: Path) -> None:
        self._base_path = Path(base_path)
        self._base_path.mkdir(parents=True, exist_ok=True)

    def load(self, resource: str) -> List[Dict[str, Any]]:
        path = self._base_path / resource
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise FileReadError(f"Corrupted JSON data in {path}") from exc
        except OSError as exc:
            raise FileReadError(f"Unable to read from {path}") from exc

        if not isinstance(payload, list):
            raise FileReadError(f"Expected list payload in {path}")
        return payload

    def save(self, resource: str, records: Iterable[Dict[str, Any]]) -> None:
        path = self._base_path / resource
        _write_atomically(path, json.dumps(list(records), indent=2))

    @property
    def base_path(self) -> Path:
        return self._base_path
