"""Console interface for the spending tracker."""

from __future__ import annotations

import argparse
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

from spendcore.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from spendcore.services import CategoryService, ExpenseService, LimitService
from spendcore.storage import JSONStorage
from spendcore.summary import MonthlySummary, SummaryAggregator


def _parse_amount(value: str) -> str:
    try:
        Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError("Amount must be a numeric value") from exc
    return value


def _parse_month(value: str) -> int:
    try:
        month = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Month must be a whole number") from exc
    if not 1 <= month <= 12:
        raise argparse.ArgumentTypeError("Month must be between 1 and 12")
    return month


def _format_expense(expense: Dict[str, Any]) -> str:
    return (
        f"[{expense['id']}] {expense['date']} {expense['amount']}\n"
        f"  Category: {expense['category']}\n"
        f"  Purpose: {expense['purpose']}\n"
    )


def _format_limit(limit: Dict[str, Any]) -> str:
    return f"[{limit['id']}] {limit['category']}: {limit['amount']}"


def format_summary(summary: MonthlySummary) -> str:
    """Render a monthly summary as a fixed-width text table."""
    headers = ["date", *summary.categories, "total"]
    table = [headers] + [[str(row[column]) for column in headers] for row in summary.rows]
    widths = [max(len(line[index]) for line in table) for index in range(len(headers))]
    lines = ["  ".join(cell.ljust(width) for cell, width in zip(line, widths)).rstrip() for line in table]
    lines.insert(1, "  ".join("-" * width for width in widths))
    return "\n".join(lines)


def handle_expense(args: argparse.Namespace, service: ExpenseService) -> None:
    if args.command == "add":
        payload = {"category": args.category, "amount": args.amount, "purpose": args.purpose}
        expense = service.add(payload)
        print("Expense added:\n" + _format_expense(expense.to_dict()))
    elif args.command == "list":
        expenses = service.list(args.category)
        if not expenses:
            print("No expenses found.")
            return
        print(f"Found {len(expenses)} expenses:")
        for expense in expenses:
            print(_format_expense(expense.to_dict()))
    elif args.command == "edit":
        changes = {"category": args.category, "amount": args.amount, "purpose": args.purpose}
        cleaned = {k: v for k, v in changes.items() if v is not None}
        expense = service.update(args.id, cleaned)
        print("Expense updated:\n" + _format_expense(expense.to_dict()))
    elif args.command == "delete":
        service.delete(args.id)
        print(f"Expense {args.id} deleted.")


def handle_limit(args: argparse.Namespace, service: LimitService) -> None:
    if args.command == "set":
        limit = service.set({"category": args.category, "amount": args.amount})
        print("Limit set: " + _format_limit(limit.to_dict()))
    elif args.command == "list":
        limits = service.list()
        if not limits:
            print("No limits found.")
            return
        for limit in limits:
            print(_format_limit(limit.to_dict()))
    elif args.command == "edit":
        limit = service.update(args.category, {"amount": args.amount})
        print("Limit updated: " + _format_limit(limit.to_dict()))


def handle_category(args: argparse.Namespace, service: CategoryService) -> None:
    removed = service.delete(args.limit_id)
    print(f"Category limit {args.limit_id} deleted along with {removed} expenses.")


def handle_summary(args: argparse.Namespace, aggregator: SummaryAggregator) -> None:
    print(format_summary(aggregator.summarize(args.month, args.year)))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Spending Tracker CLI")
    parser.add_argument(
        "--data-dir",
        default="data",
        type=Path,
        help="Directory to store JSON data (default: ./data)",
    )

    subparsers = parser.add_subparsers(dest="entity", required=True)

    expense_parser = subparsers.add_parser("expense", help="Manage expenses")
    expense_sub = expense_parser.add_subparsers(dest="command", required=True)

    expense_add = expense_sub.add_parser("add", help="Record a new expense")
    expense_add.add_argument("category")
    expense_add.add_argument("amount", type=_parse_amount)
    expense_add.add_argument("purpose")

    expense_list = expense_sub.add_parser("list", help="List expenses")
    expense_list.add_argument("--category")

    expense_edit = expense_sub.add_parser("edit", help="Edit an existing expense")
    expense_edit.add_argument("id")
    expense_edit.add_argument("--category")
    expense_edit.add_argument("--amount", type=_parse_amount)
    expense_edit.add_argument("--purpose")

    expense_delete = expense_sub.add_parser("delete", help="Delete an expense")
    expense_delete.add_argument("id")

    limit_parser = subparsers.add_parser("limit", help="Manage spending limits")
    limit_sub = limit_parser.add_subparsers(dest="command", required=True)

    limit_set = limit_sub.add_parser("set", help="Create or replace a category limit")
    limit_set.add_argument("category")
    limit_set.add_argument("amount", type=_parse_amount)

    limit_sub.add_parser("list", help="List limits")

    limit_edit = limit_sub.add_parser("edit", help="Change an existing category limit")
    limit_edit.add_argument("category")
    limit_edit.add_argument("amount", type=_parse_amount)

    category_parser = subparsers.add_parser("category", help="Manage categories")
    category_sub = category_parser.add_subparsers(dest="command", required=True)
    category_delete = category_sub.add_parser(
        "delete", help="Delete a category limit and all of its expenses"
    )
    category_delete.add_argument("limit_id")

    summary_parser = subparsers.add_parser("summary", help="Show a monthly category-by-day summary")
    summary_parser.add_argument("month", type=_parse_month)
    summary_parser.add_argument("year", type=int)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    storage = JSONStorage(args.data_dir)

    try:
        if args.entity == "expense":
            handle_expense(args, ExpenseService(storage))
        elif args.entity == "limit":
            handle_limit(args, LimitService(storage))
        elif args.entity == "category":
            handle_category(args, CategoryService(storage))
        elif args.entity == "summary":
            handle_summary(args, SummaryAggregator(storage))
        else:  # pragma: no cover - argparse should prevent this
            parser.error(f"Unknown entity: {args.entity}")
            return 2
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
