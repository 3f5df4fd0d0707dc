"""Framework-agnostic business services for the spending tracker."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, List, Mapping, Optional, TypeVar

from .exceptions import LimitExceededError, RecordNotFoundError
from .models import Expense, Limit, hydrate, isoformat_utc, json_number
from .storage import JSONStorage
from .validators import is_missing, parse_amount, require_fields, validate_text

logger = logging.getLogger(__name__)

EXPENSES_RESOURCE = "expenses.json"
LIMITS_RESOURCE = "limits.json"

T = TypeVar("T")


@dataclass(frozen=True)
class GuardDecision:
    """Outcome of a limit check for a proposed expense."""

    category: str
    proposed: Decimal
    total_spent: Decimal
    limit: Optional[Decimal]

    @property
    def accepted(self) -> bool:
        if self.limit is None:
            return True
        return self.total_spent + self.proposed <= self.limit


class LimitGuard:
    """Decides whether a new expense fits under its category's spending limit.

    The spent total is recomputed from the stored expenses on every check.
    Check and insert are separate store calls, so two concurrent requests for
    the same category can both pass before either expense lands.
    """

    def __init__(
        self,
        storage: JSONStorage,
        *,
        expenses_resource: str = EXPENSES_RESOURCE,
        limits_resource: str = LIMITS_RESOURCE,
    ) -> None:
        self._storage = storage
        self._expenses_resource = expenses_resource
        self._limits_resource = limits_resource

    def check(self, category: str, proposed_amount: Decimal) -> GuardDecision:
        limit_doc = self._storage.find_one(self._limits_resource, {"category": category})
        limit = hydrate(Limit.from_dict, limit_doc) if limit_doc else None
        expenses = self._storage.find(self._expenses_resource, {"category": category})
        total_spent = sum(
            (hydrate(Expense.from_dict, doc).amount for doc in expenses),
            start=Decimal("0"),
        )
        return GuardDecision(
            category=category,
            proposed=proposed_amount,
            total_spent=total_spent,
            limit=limit.amount if limit else None,
        )

    def check_and_record(self, category: str, proposed_amount: Decimal, record: Callable[[], T]) -> T:
        """Run ``record`` only when the proposed amount fits under the limit."""
        decision = self.check(category, proposed_amount)
        if not decision.accepted:
            logger.info(
                "Rejected %s for %r: spent %s of %s",
                proposed_amount,
                category,
                decision.total_spent,
                decision.limit,
            )
            raise LimitExceededError(category)
        return record()


class ExpenseService:
    """Manages expense records; creation goes through the limit guard."""

    def __init__(
        self,
        storage: JSONStorage,
        resource: str = EXPENSES_RESOURCE,
        *,
        guard: Optional[LimitGuard] = None,
    ) -> None:
        self._storage = storage
        self._resource = resource
        self._guard = guard or LimitGuard(storage, expenses_resource=resource)

    # Public API -----------------------------------------------------------
    def add(self, payload: Mapping[str, object], *, now: Optional[datetime] = None) -> Expense:
        require_fields(payload, ("category", "amount", "purpose"))
        category = validate_text(payload["category"], "category")
        amount = parse_amount(payload["amount"], "amount")
        purpose = validate_text(payload["purpose"], "purpose")
        recorded = now or datetime.now(timezone.utc)

        def insert() -> Expense:
            document = {
                "category": category,
                "amount": json_number(amount),
                "purpose": purpose,
                "date": isoformat_utc(recorded),
            }
            expense_id = self._storage.insert_one(self._resource, document)
            return hydrate(Expense.from_dict, {"id": expense_id, **document})

        return self._guard.check_and_record(category, amount, insert)

    def update(self, expense_id: str, changes: Mapping[str, object]) -> Expense:
        """Overwrite the supplied fields; limits are not re-checked on edit."""
        fields: Dict[str, object] = {}
        if not is_missing(changes.get("category")):
            fields["category"] = validate_text(changes["category"], "category")
        if not is_missing(changes.get("amount")):
            fields["amount"] = json_number(parse_amount(changes["amount"], "amount"))
        if not is_missing(changes.get("purpose")):
            fields["purpose"] = validate_text(changes["purpose"], "purpose")

        result = self._storage.update_one(self._resource, {"id": expense_id}, fields)
        if result.matched_count == 0:
            raise RecordNotFoundError("Expense not found.")
        return self.get(expense_id)

    def delete(self, expense_id: str) -> None:
        if self._storage.delete_one(self._resource, {"id": expense_id}) == 0:
            raise RecordNotFoundError("Expense not found.")

    def get(self, expense_id: str) -> Expense:
        document = self._storage.find_one(self._resource, {"id": expense_id})
        if document is None:
            raise RecordNotFoundError("Expense not found.")
        return hydrate(Expense.from_dict, document)

    def list(self, category: Optional[str] = None) -> List[Expense]:
        criteria = {"category": category} if category is not None else None
        return [
            hydrate(Expense.from_dict, doc)
            for doc in self._storage.find(self._resource, criteria)
        ]

    def total(self, category: str) -> Decimal:
        return sum((expense.amount for expense in self.list(category)), start=Decimal("0"))


class LimitService:
    """Manages per-category spending limits, keyed by category name."""

    def __init__(self, storage: JSONStorage, resource: str = LIMITS_RESOURCE) -> None:
        self._storage = storage
        self._resource = resource

    def set(self, payload: Mapping[str, object]) -> Limit:
        """Create or replace the limit for a category."""
        require_fields(payload, ("category", "amount"))
        category = validate_text(payload["category"], "category")
        amount = parse_amount(payload["amount"], "amount")
        self._storage.update_one(
            self._resource,
            {"category": category},
            {"amount": json_number(amount)},
            upsert=True,
        )
        return self.get_for_category(category)

    def update(self, category: str, changes: Mapping[str, object]) -> Limit:
        require_fields(changes, ("amount",))
        amount = parse_amount(changes["amount"], "amount")
        result = self._storage.update_one(
            self._resource, {"category": category}, {"amount": json_number(amount)}
        )
        if result.matched_count == 0:
            raise RecordNotFoundError("Limit not found.")
        return self.get_for_category(category)

    def delete(self, limit_id: str) -> None:
        if self._storage.delete_one(self._resource, {"id": limit_id}) == 0:
            raise RecordNotFoundError("Limit not found.")

    def get(self, limit_id: str) -> Limit:
        document = self._storage.find_one(self._resource, {"id": limit_id})
        if document is None:
            raise RecordNotFoundError("Limit not found")
        return hydrate(Limit.from_dict, document)

    def get_for_category(self, category: str) -> Limit:
        document = self._storage.find_one(self._resource, {"category": category})
        if document is None:
            raise RecordNotFoundError("Limit not found.")
        return hydrate(Limit.from_dict, document)

    def list(self) -> List[Limit]:
        return [hydrate(Limit.from_dict, doc) for doc in self._storage.find(self._resource)]


class CategoryService:
    """Removes a category as a whole: its limit plus every expense filed under it."""

    def __init__(
        self,
        storage: JSONStorage,
        *,
        expenses_resource: str = EXPENSES_RESOURCE,
        limits_resource: str = LIMITS_RESOURCE,
    ) -> None:
        self._storage = storage
        self._expenses_resource = expenses_resource
        self._limits = LimitService(storage, limits_resource)

    def delete(self, limit_id: str) -> int:
        """Delete the limit ``limit_id`` and its category's expenses.

        Returns the number of expenses removed.
        """
        limit = self._limits.get(limit_id)
        removed = self._storage.delete_many(self._expenses_resource, {"category": limit.category})
        self._limits.delete(limit_id)
        logger.info("Deleted category %r with %d expenses", limit.category, removed)
        return removed
