"""Flask REST API exposing the ledger command interface."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from ledger_core.exceptions import (
    IndexOutOfRange,
    LedgerError,
    NoBudgetsDefined,
    PersistenceError,
    ValidationError,
)
from ledger_core.ledger import Positioned
from ledger_core.services import LedgerService
from ledger_core.storage import JSONStorage
from ledger_core.validators import validate_relative_path


def _entries(entries: List[Positioned]) -> List[Dict[str, Any]]:
    return [{"index": index, **transaction.to_dict()} for index, transaction in entries]


def create_app(data_dir: Optional[Path] = None) -> Flask:
    app = Flask(__name__)

    env_name = os.getenv("FINANCE_LEDGER_ENV", "prod").lower()
    if env_name in {"dev", "development"}:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    else:
        allowed_origins = os.getenv("FINANCE_LEDGER_ALLOWED_ORIGINS")
        if allowed_origins:
            origins = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
            CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=True)
        else:
            CORS(app)

    root = Path(data_dir or os.getenv("FINANCE_LEDGER_DATA_DIR", "data"))
    storage = JSONStorage(root)
    service = LedgerService(storage=storage)

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _handle_error(exc: LedgerError, status: int, message: str):
        app.logger.error("%s: %s", message, exc)
        return jsonify({"error": message, "code": exc.code, "details": str(exc)}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error")

    @app.errorhandler(IndexOutOfRange)
    def handle_index_error(exc: IndexOutOfRange):
        return _handle_error(exc, 404, "Transaction not found")

    @app.errorhandler(NoBudgetsDefined)
    def handle_no_budgets(exc: NoBudgetsDefined):
        return _handle_error(exc, 404, "No budgets defined")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _handle_error(exc, 500, "Persistence error")

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    def _data_path(payload: Dict[str, Any]) -> Path:
        return validate_relative_path(payload.get("path"), root, "path")

    @app.get("/transactions")
    def list_transactions():
        entries = service.list_transactions().unwrap()
        return _success({"items": _entries(entries)})

    @app.post("/transactions")
    def create_transaction():
        payload = _json_body()
        index, transaction = service.add_transaction(
            payload.get("date"),
            payload.get("category"),
            payload.get("amount"),
            payload.get("description") or "",
        ).unwrap()
        return _success({"index": index, **transaction.to_dict()}, 201)

    @app.delete("/transactions/<int(signed=True):index>")
    def delete_transaction(index: int):
        service.delete_transaction(index).unwrap()
        return _success({}, 204)

    @app.post("/transactions/sort")
    def sort_transactions():
        payload = _json_body()
        service.sort_transactions(payload.get("key")).unwrap()
        entries = service.list_transactions().unwrap()
        return _success({"items": _entries(entries)})

    @app.get("/transactions/search")
    def search_transactions():
        mode = request.args.get("mode", "category")
        query = request.args.get("query", "")
        entries = service.search_transactions(mode, query).unwrap()
        return _success({"items": _entries(entries)})

    @app.get("/summary/<year_month>")
    def monthly_summary(year_month: str):
        summary = service.monthly_summary(year_month).unwrap()
        return _success(summary.to_dict())

    @app.post("/files/save")
    def save_file():
        path = _data_path(_json_body())
        count = service.save_to_file(path).unwrap()
        return _success({"saved": count})

    @app.post("/files/load")
    def load_file():
        path = _data_path(_json_body())
        report = service.load_from_file(path).unwrap()
        return _success(report.to_dict())

    @app.get("/budgets")
    def list_budgets():
        budgets = service.list_budgets().unwrap()
        return _success({"items": [budget.to_dict() for budget in budgets]})

    @app.put("/budgets")
    def set_budget():
        payload = _json_body()
        budget, created = service.add_or_update_budget(
            payload.get("category"), payload.get("limit")
        ).unwrap()
        return _success(budget.to_dict(), 201 if created else 200)

    @app.get("/budgets/check")
    def check_budgets():
        statuses = service.check_budgets().unwrap()
        return _success({
            "items": [status.to_dict() for status in statuses],
            "all_within_limits": not any(status.exceeded for status in statuses),
        })

    return app
