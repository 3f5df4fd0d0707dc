"""Core business logic package for the spending tracker."""

from .models import Expense, Limit
from .services import CategoryService, ExpenseService, GuardDecision, LimitGuard, LimitService
from .storage import JSONStorage
from .summary import MonthlySummary, SummaryAggregator
from .exceptions import LimitExceededError, PersistenceError, RecordNotFoundError, ValidationError

__all__ = [
    "Expense",
    "Limit",
    "CategoryService",
    "ExpenseService",
    "GuardDecision",
    "LimitGuard",
    "LimitService",
    "JSONStorage",
    "MonthlySummary",
    "SummaryAggregator",
    "LimitExceededError",
    "PersistenceError",
    "RecordNotFoundError",
    "ValidationError",
]
