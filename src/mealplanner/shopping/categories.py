"""Purchase categories and keyword-based ingredient classification."""

from collections.abc import Callable
from enum import Enum

from mealplanner.shopping.exceptions import InvalidCategoryError


class Category(str, Enum):
    """Supermarket section an item is bought in, in display order."""

    PRODUCE = "Produce"
    DAIRY = "Dairy"
    MEAT = "Meat"
    PANTRY = "Pantry"

    @classmethod
    def parse(cls, value: str) -> "Category":
        """
        Resolve a category tag case-insensitively.

        Raises:
            InvalidCategoryError: If the tag names no category.
        """
        normalized = (value or "").strip().lower()
        for category in cls:
            if category.value.lower() == normalized:
                return category
        raise InvalidCategoryError(value)


# Display order; also the order used to group a shopping list
CATEGORY_ORDER: tuple[Category, ...] = (
    Category.PRODUCE,
    Category.DAIRY,
    Category.MEAT,
    Category.PANTRY,
)

PRODUCE_KEYWORDS: frozenset[str] = frozenset(
    {
        "lettuce",
        "tomato",
        "cucumber",
        "onion",
        "garlic",
        "berries",
        "berry",
        "avocado",
        "lemon",
        "asparagus",
        "broccoli",
        "ginger",
        "dill",
        "greens",
        "fruit",
    }
)

DAIRY_KEYWORDS: frozenset[str] = frozenset(
    {"milk", "cheese", "parmesan", "butter", "yogurt", "cream", "egg"}
)

MEAT_KEYWORDS: frozenset[str] = frozenset(
    {"chicken", "beef", "salmon", "fish", "pork", "meat", "tofu"}
)


def _contains_any(keywords: frozenset[str]) -> Callable[[str], bool]:
    def matches(name: str) -> bool:
        return any(keyword in name for keyword in keywords)

    return matches


_has_produce_keyword = _contains_any(PRODUCE_KEYWORDS)


def _is_produce(name: str) -> bool:
    # "red pepper flakes" is a spice, "bell pepper" is a vegetable
    is_fresh_pepper = "pepper" in name and "pepper flakes" not in name
    return is_fresh_pepper or _has_produce_keyword(name)


# Checked in order, first match wins. Pantry is the fallback.
CATEGORY_RULES: tuple[tuple[Category, Callable[[str], bool]], ...] = (
    (Category.PRODUCE, _is_produce),
    (Category.DAIRY, _contains_any(DAIRY_KEYWORDS)),
    (Category.MEAT, _contains_any(MEAT_KEYWORDS)),
)


def classify(ingredient_name: str) -> Category:
    """
    Assign an ingredient to a purchase category.

    Matching is case-insensitive substring matching; an ingredient matching
    several categories lands in the one checked first.

    Examples:
        "Bell pepper" -> Produce
        "red pepper flakes" -> Pantry
        "cream cheese" -> Dairy
    """
    name = (ingredient_name or "").lower()
    for category, matches in CATEGORY_RULES:
        if matches(name):
            return category
    return Category.PANTRY
