"""
Pytest Configuration and Shared Fixtures

Provides common ledger fixtures for the unit and integration suites.
"""

import tempfile
from decimal import Decimal
from pathlib import Path

import pytest

from ledger_core.ledger import Ledger
from ledger_core.models import Transaction


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def march_transactions():
    """Two March entries and one April expense."""
    return [
        Transaction("2024-03-05", "Food", Decimal("-20"), "Groceries"),
        Transaction("2024-03-10", "Salary", Decimal("1000"), "March pay"),
        Transaction("2024-04-01", "Food", Decimal("-5"), "Coffee"),
    ]


@pytest.fixture
def ledger(march_transactions):
    """Ledger populated with the March/April sample transactions."""
    return Ledger(march_transactions)
