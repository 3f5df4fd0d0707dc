"""Monthly category-by-day spending summaries."""

from __future__ import annotations

import calendar
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Tuple

from .models import Expense, hydrate, json_number
from .services import EXPENSES_RESOURCE
from .storage import JSONStorage
from .validators import parse_period

__all__ = ["MonthlySummary", "SummaryAggregator", "month_bounds"]


def month_bounds(month: int, year: int) -> Tuple[datetime, datetime]:
    """Return the first and the last instant (millisecond resolution) of a month in UTC."""
    days_in_month = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = datetime(year, month, days_in_month, 23, 59, 59, 999000, tzinfo=timezone.utc)
    return start, end


@dataclass(frozen=True)
class MonthlySummary:
    month: int
    year: int
    categories: List[str]
    rows: List[Dict[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return {"categories": list(self.categories), "summary": [dict(row) for row in self.rows]}


class SummaryAggregator:
    """Builds a dense pivot of spending: one row per day, one column per category.

    Columns cover every category ever recorded, in first-seen order, so a
    category without activity in the month still shows up with blank cells.
    """

    def __init__(self, storage: JSONStorage, resource: str = EXPENSES_RESOURCE) -> None:
        self._storage = storage
        self._resource = resource

    def summarize(self, month: object, year: object) -> MonthlySummary:
        month_number, year_number = parse_period(month, year)
        start, end = month_bounds(month_number, year_number)

        expenses = [
            hydrate(Expense.from_dict, doc) for doc in self._storage.find(self._resource)
        ]
        categories = list(dict.fromkeys(expense.category for expense in expenses))

        spent: Dict[Tuple[date, str], Decimal] = defaultdict(Decimal)
        for expense in expenses:
            if start <= expense.date <= end:
                spent[(expense.date.date(), expense.category)] += expense.amount

        rows = []
        for day in range(1, end.day + 1):
            current = date(year_number, month_number, day)
            row: Dict[str, Any] = {"date": current.isoformat()}
            total = Decimal("0")
            for category in categories:
                amount = spent.get((current, category), Decimal("0"))
                row[category] = json_number(amount) if amount else ""
                total += amount
            row["total"] = json_number(total)
            rows.append(row)

        return MonthlySummary(
            month=month_number, year=year_number, categories=categories, rows=rows
        )
