"""Flask REST API exposing the spending tracker services."""

from __future__ import annotations

import logging
import os
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from spendcore.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from spendcore.services import CategoryService, ExpenseService, LimitService
from spendcore.storage import JSONStorage
from spendcore.summary import SummaryAggregator


def create_app(data_dir: Optional[Path] = None) -> Flask:
    app = Flask(__name__)
    # Keep summary rows in date, categories, total order.
    app.json.sort_keys = False

    env_name = os.getenv("SPEND_TRACKER_ENV", "prod").lower()
    if env_name in {"dev", "development"}:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    else:
        allowed_origins = os.getenv("SPEND_TRACKER_ALLOWED_ORIGINS")
        if allowed_origins:
            origins = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
            CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=True)
        else:
            CORS(app)

    storage = JSONStorage(Path(data_dir or os.getenv("SPEND_TRACKER_DATA_DIR", "data")))
    expense_service = ExpenseService(storage)
    limit_service = LimitService(storage)
    category_service = CategoryService(storage)
    aggregator = SummaryAggregator(storage)

    def _success(payload: Any, status: int = 200):
        return jsonify(payload), status

    def _error(message: str, status: int):
        return jsonify({"error": message}), status

    def _handle_error(exc: Exception, status: int, message: str):
        app.logger.error("%s: %s", message, exc)
        return _error(message, status)

    def failure_message(message: str) -> Callable:
        """Answer store failures inside a view with a generic 500 ``message``."""

        def decorator(view: Callable) -> Callable:
            @wraps(view)
            def wrapper(*args: Any, **kwargs: Any):
                try:
                    return view(*args, **kwargs)
                except PersistenceError as exc:
                    return _handle_error(exc, 500, message)

            return wrapper

        return decorator

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _error(str(exc), 400)

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _error(str(exc), 404)

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _handle_error(exc, 500, "Internal server error.")

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return _error(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        return _error("Internal server error.", 500)

    def _json_body() -> Dict[str, Any]:
        data = request.get_json(silent=True)
        # Anything but a JSON object reads as an empty payload.
        return data if isinstance(data, dict) else {}

    @app.post("/api/expenses")
    @failure_message("Failed to add expense.")
    def create_expense():
        expense = expense_service.add(_json_body())
        return _success({"message": "Expense added", "expenseId": expense.id}, 201)

    @app.get("/api/expenses")
    @failure_message("Failed to fetch expenses.")
    def list_expenses():
        return _success([expense.to_dict() for expense in expense_service.list()])

    @app.put("/api/expenses/<expense_id>")
    @failure_message("Failed to update expense.")
    def update_expense(expense_id: str):
        expense_service.update(expense_id, _json_body())
        return _success({"message": "Expense updated successfully."})

    @app.delete("/api/expenses/<expense_id>")
    @failure_message("Failed to delete expense.")
    def delete_expense(expense_id: str):
        expense_service.delete(expense_id)
        return _success({"message": "Expense deleted successfully."})

    @app.get("/api/expenses/summary")
    @failure_message("Failed to generate expense summary.")
    def expense_summary():
        summary = aggregator.summarize(request.args.get("month"), request.args.get("year"))
        return _success(summary.to_dict())

    @app.post("/api/limits")
    @failure_message("Failed to set limit.")
    def set_limit():
        limit_service.set(_json_body())
        return _success({"message": "Limit set successfully."})

    @app.get("/api/limits")
    @failure_message("Failed to fetch limits.")
    def list_limits():
        return _success([limit.to_dict() for limit in limit_service.list()])

    @app.put("/api/limits/<category>")
    @failure_message("Failed to update limit.")
    def update_limit(category: str):
        limit_service.update(category, _json_body())
        return _success({"message": "Limit updated successfully."})

    @app.delete("/api/categories/<limit_id>")
    @failure_message("Server error while deleting category and expenses.")
    def delete_category(limit_id: str):
        category_service.delete(limit_id)
        return _success({"message": "All expenses and the category limit deleted successfully!"})

    return app


def main() -> None:
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("SPEND_TRACKER_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    app = create_app()
    port = int(os.getenv("PORT", "5000"))
    app.run(host=os.getenv("HOST", "127.0.0.1"), port=port)


if __name__ == "__main__":
    main()
