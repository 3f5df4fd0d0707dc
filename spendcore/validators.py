"""Validation helpers shared across spending tracker services."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Iterable, Mapping, Tuple

from .exceptions import ValidationError

FIELDS_REQUIRED_MESSAGE = "All fields are required."
PERIOD_REQUIRED_MESSAGE = "Month and year are required."
MAX_AMOUNT_EXPONENT = 15


def is_missing(value: object) -> bool:
    """Presence check: absent, blank and zero-like values all count as missing."""
    if isinstance(value, str):
        return not value.strip()
    return not value


def require_fields(payload: Mapping[str, object], fields: Iterable[str]) -> None:
    if any(is_missing(payload.get(field)) for field in fields):
        raise ValidationError(FIELDS_REQUIRED_MESSAGE)


def parse_amount(raw: object, field: str) -> Decimal:
    """Convert raw input to a finite Decimal. The sign is not checked."""
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be a numeric value")
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, TypeError) as exc:  # type: ignore[arg-type]
        raise ValidationError(f"{field} must be a numeric value") from exc

    # Magnitudes beyond 1e15 cannot round-trip through a JSON number.
    if not amount.is_finite() or (amount and amount.adjusted() > MAX_AMOUNT_EXPONENT):
        raise ValidationError(f"{field} must be a numeric value")
    return amount


def validate_text(value: object, field: str) -> str:
    if isinstance(value, (dict, list)):
        raise ValidationError(f"{field} must be text")
    trimmed = str(value).strip()
    if not trimmed:
        raise ValidationError(f"{field} cannot be empty")
    return trimmed


def parse_period(month: object, year: object) -> Tuple[int, int]:
    """Return ``(month, year)`` as integers, month constrained to 1-12."""
    if is_missing(month) or is_missing(year):
        raise ValidationError(PERIOD_REQUIRED_MESSAGE)
    try:
        month_number = int(str(month).strip())
        year_number = int(str(year).strip())
    except ValueError as exc:
        raise ValidationError("Month and year must be whole numbers.") from exc
    if not 1 <= month_number <= 12:
        raise ValidationError("Month must be between 1 and 12.")
    if not 1 <= year_number <= 9999:
        raise ValidationError("Year must be between 1 and 9999.")
    return month_number, year_number
