"""Data models for the spending tracker domain."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, TypeVar, Union

from .exceptions import PersistenceError

__all__ = ["Expense", "Limit", "hydrate", "isoformat_utc", "json_number", "parse_datetime"]

T = TypeVar("T")


def isoformat_utc(dt: datetime) -> str:
    """Return an ISO 8601 string with millisecond precision and a trailing Z."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    iso = dt.isoformat(timespec="milliseconds")
    # datetime.isoformat renders +00:00 for UTC; replace with the shorter Z form.
    return iso.replace("+00:00", "Z")


def parse_datetime(value: str) -> datetime:
    """Parse ISO 8601 date or datetime strings into a UTC-aware datetime."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        # Treat naive datetimes as UTC to avoid accidental timezone drift.
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def json_number(amount: Decimal) -> Union[int, float]:
    """Render a Decimal as the plainest JSON number that represents it."""
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


@dataclass(frozen=True)
class Expense:
    id: str
    category: str
    amount: Decimal
    purpose: str
    date: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the expense to JSON-friendly natives."""
        return {
            "id": self.id,
            "category": self.category,
            "amount": json_number(self.amount),
            "purpose": self.purpose,
            "date": isoformat_utc(self.date),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Expense":
        """Hydrate an Expense from a stored document."""
        return cls(
            id=data["id"],
            category=data["category"],
            amount=Decimal(str(data["amount"])),
            purpose=data.get("purpose") or "",
            date=parse_datetime(data["date"]),
        )


@dataclass(frozen=True)
class Limit:
    id: str
    category: str
    amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "amount": json_number(self.amount),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Limit":
        return cls(
            id=data["id"],
            category=data["category"],
            amount=Decimal(str(data["amount"])),
        )


def hydrate(factory: Callable[[Dict[str, Any]], T], document: Dict[str, Any]) -> T:
    """Build a model from a stored document, reporting malformed records as store failures."""
    try:
        return factory(document)
    except (AttributeError, KeyError, TypeError, ValueError, InvalidOperation) as exc:
        raise PersistenceError(f"Malformed record in store: {document.get('id')!r}") from exc
