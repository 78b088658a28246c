"""Household meal planning: weekly shopping list generation."""

__version__ = "0.1.0"
