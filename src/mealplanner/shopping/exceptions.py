"""Exceptions raised by the shopping list engine."""

from datetime import date


class ShoppingListError(Exception):
    """Base exception for shopping list errors."""


class ListStateConflictError(ShoppingListError):
    """Raised when a week's list state changed between load and save."""

    def __init__(self, start_date: date, expected_version: int | None = None):
        super().__init__(
            f"Shopping list state for week {start_date.isoformat()} was modified concurrently"
        )
        self.start_date = start_date
        self.expected_version = expected_version


class CorruptListStateError(ShoppingListError):
    """Raised when persisted list state cannot be decoded."""

    def __init__(self, message: str, start_date: date | None = None):
        super().__init__(message)
        self.start_date = start_date


class InvalidCategoryError(ShoppingListError, ValueError):
    """Raised when a category tag names no known category."""

    def __init__(self, value: str):
        super().__init__(f"Unknown category {value!r}; expected Produce, Dairy, Meat or Pantry")
        self.value = value
