"""Console interface for the personal finance ledger."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ledger_core.exceptions import (
    IndexOutOfRange,
    LedgerError,
    NoBudgetsDefined,
    PersistenceError,
    ValidationError,
)
from ledger_core.models import LISTING_HEADER, LISTING_RULE, SearchMode, SortKey
from ledger_core.services import CommandResult, LedgerService, render_rows
from ledger_core.storage import JSONStorage
from ledger_core.validators import is_number, validate_date

BUDGET_HEADER = "Category          | Limit"
BUDGET_RULE = "-" * 28


def _parse_date(value: str) -> str:
    if not validate_date(value):
        raise argparse.ArgumentTypeError(
            f"Invalid date '{value}'. Expected format YYYY-MM-DD."
        )
    return value


def _parse_amount(value: str) -> str:
    if not is_number(value):
        raise argparse.ArgumentTypeError("Amount must be a numeric value")
    return value


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _print_rows(rows: List[str]) -> None:
    print(LISTING_HEADER)
    print(LISTING_RULE)
    for row in rows:
        print(row)


def _report_error(exc: LedgerError) -> int:
    if isinstance(exc, ValidationError):
        print(f"Validation error: {exc}", file=sys.stderr)
    elif isinstance(exc, IndexOutOfRange):
        print(f"Invalid index. {exc}", file=sys.stderr)
    elif isinstance(exc, PersistenceError):
        print(f"Storage error: {exc}", file=sys.stderr)
    else:
        print(str(exc), file=sys.stderr)
    return 1


def handle_transactions(args: argparse.Namespace, service: LedgerService) -> CommandResult:
    if args.entity == "add":
        result = service.add_transaction(
            args.date, args.category, args.amount, args.description
        )
        if result.ok:
            index, transaction = result.value
            print("Transaction added successfully.")
            _print_rows(render_rows([(index, transaction)]))
    elif args.entity == "delete":
        result = service.delete_transaction(args.index)
        if result.ok:
            print("Transaction deleted successfully.")
    elif args.entity == "list":
        result = service.list_transactions()
        if result.ok:
            if not result.value:
                print("No transactions recorded.")
            else:
                _print_rows(render_rows(result.value))
    elif args.entity == "search":
        result = service.search_transactions(args.mode, args.query)
        if result.ok:
            if not result.value:
                target = "for that category" if args.mode == SearchMode.CATEGORY.value else "on that date"
                print(f"No transactions found {target}.")
            else:
                print("Results found:")
                _print_rows(render_rows(result.value))
    elif args.entity == "sort":
        result = service.sort_transactions(args.key)
        if result.ok:
            print(f"Transactions sorted by {args.key} ascending.")
    else:  # pragma: no cover - argparse should prevent this
        raise ValueError(f"Unknown command: {args.entity}")
    return result


def handle_files(args: argparse.Namespace, service: LedgerService) -> CommandResult:
    if args.entity == "save":
        result = service.save_to_file(args.path)
        if result.ok:
            print(f"Data saved to {args.path}")
    else:
        result = service.load_from_file(args.path)
        if result.ok:
            message = f"File loaded with {result.value.loaded} transactions."
            if result.warnings:
                message += f" Skipped {len(result.warnings)} malformed line(s)."
            print(message)
    return result


def handle_summary(args: argparse.Namespace, service: LedgerService) -> CommandResult:
    result = service.monthly_summary(args.year_month)
    if result.ok:
        summary = result.value
        print(f"Summary for {summary.year_month}:")
        print(f"Income:   ${summary.income:.2f}")
        print(f"Expenses: ${summary.expense:.2f}")
        print(f"Net:      ${summary.net:.2f}")
    return result


def handle_budget(args: argparse.Namespace, service: LedgerService) -> CommandResult:
    if args.command == "set":
        result = service.add_or_update_budget(args.category, args.limit)
        if result.ok:
            budget, created = result.value
            verb = "added" if created else "updated"
            print(f"Budget {verb} for category '{budget.category}'.")
    elif args.command == "list":
        result = service.list_budgets()
        if result.ok:
            if not result.value:
                print("No budgets defined.")
            else:
                print(BUDGET_HEADER)
                print(BUDGET_RULE)
                for budget in result.value:
                    print(budget)
    else:
        result = service.check_budgets()
        if isinstance(result.error, NoBudgetsDefined):
            print("No budgets defined.")
            return CommandResult()
        if result.ok:
            print("Budget check:")
            for status in result.value:
                print(status)
            if not any(status.exceeded for status in result.value):
                print("All budgets are within limits.")
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Personal Finance Ledger CLI")
    parser.add_argument(
        "--data-dir",
        default="data",
        type=Path,
        help="Directory holding transactions.csv and budgets.json (default: ./data)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="entity", required=True)

    add = subparsers.add_parser("add", help="Add a new transaction")
    add.add_argument("date", type=_parse_date)
    add.add_argument("amount", type=_parse_amount, help="Positive income, negative expense")
    add.add_argument("--category", default="")
    add.add_argument("--description", default="")

    delete = subparsers.add_parser("delete", help="Delete a transaction by index")
    delete.add_argument("index", type=int)

    subparsers.add_parser("list", help="List transactions")

    save = subparsers.add_parser("save", help="Save transactions to a file")
    save.add_argument("path", type=Path)

    load = subparsers.add_parser("load", help="Replace transactions with a file's contents")
    load.add_argument("path", type=Path)

    summary = subparsers.add_parser("summary", help="Monthly income/expense summary")
    summary.add_argument("year_month", metavar="YYYY-MM")

    search = subparsers.add_parser("search", help="Search transactions")
    search.add_argument("mode", choices=[mode.value for mode in SearchMode])
    search.add_argument("query")

    sort = subparsers.add_parser("sort", help="Sort transactions in place")
    sort.add_argument("key", choices=[key.value for key in SortKey])

    budget_parser = subparsers.add_parser("budget", help="Manage budgets")
    budget_sub = budget_parser.add_subparsers(dest="command", required=True)

    budget_set = budget_sub.add_parser("set", help="Add or update a category budget")
    budget_set.add_argument("category")
    budget_set.add_argument("limit")

    budget_sub.add_parser("list", help="List budgets")
    budget_sub.add_parser("check", help="Compare spending against budgets")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        service = LedgerService(storage=JSONStorage(args.data_dir))
    except LedgerError as exc:
        return _report_error(exc)

    if args.entity in {"add", "delete", "list", "search", "sort"}:
        result = handle_transactions(args, service)
    elif args.entity in {"save", "load"}:
        result = handle_files(args, service)
    elif args.entity == "summary":
        result = handle_summary(args, service)
    elif args.entity == "budget":
        result = handle_budget(args, service)
    else:  # pragma: no cover - argparse should prevent this
        parser.error(f"Unknown command: {args.entity}")
        return 2

    if result.error is not None:
        return _report_error(result.error)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
