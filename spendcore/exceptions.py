"""Domain-specific exceptions for the spending tracker core services."""

class ValidationError(ValueError):
    """Raised when a request is missing required data or carries unusable values."""


class LimitExceededError(ValidationError):
    """Raised when recording an expense would push a category past its limit."""

    def __init__(self, category: str) -> None:
        super().__init__(f"Spending limit exceeded for {category}.")
        self.category = category


class RecordNotFoundError(LookupError):
    """Raised when an expense or limit record cannot be located."""


class PersistenceError(IOError):
    """Raised when the record store encounters unrecoverable issues."""
