"""Data types flowing through the shopping list engine."""

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any

from mealplanner.shopping.categories import Category

CUSTOM_ID_PREFIX = "custom-"
COMPUTED_ID_PREFIX = "item-"


@dataclass(frozen=True)
class Ingredient:
    """An ingredient line of a recipe, as entered by the recipe author."""

    name: str
    quantity: str
    unit: str | None = None

    @classmethod
    def from_raw(cls, raw: Any) -> "Ingredient":
        """Build an ingredient from a stored dict, or a bare ingredient name."""
        if isinstance(raw, str):
            return cls(name=raw, quantity="")
        if isinstance(raw, dict):
            return cls(
                name=str(raw.get("name", "")),
                quantity=str(raw.get("quantity") or ""),
                unit=raw.get("unit") or None,
            )
        return cls(name=str(raw), quantity="")


@dataclass
class Recipe:
    """A named dish with an ordered ingredient list."""

    id: str
    name: str
    ingredients: list[Ingredient] = field(default_factory=list)


@dataclass
class Meal:
    """A recipe (or an empty slot) assigned to a date and meal type."""

    scheduled_date: date
    meal_type: str = "dinner"
    recipe: Recipe | None = None


@dataclass(frozen=True)
class ShoppingItem:
    """A single line of a shopping list; also the persisted custom-item shape."""

    id: str
    name: str
    quantity: str
    unit: str | None
    category: Category
    is_checked: bool = False
    is_custom: bool = False

    def with_checked(self, is_checked: bool) -> "ShoppingItem":
        """Copy of this item with a different checked flag."""
        return replace(self, is_checked=is_checked)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the category as its string tag."""
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "category": self.category.value,
            "is_checked": self.is_checked,
            "is_custom": self.is_custom,
        }


def is_custom_id(item_id: str) -> bool:
    """Check whether an id belongs to a user-added item."""
    return item_id.startswith(CUSTOM_ID_PREFIX)


@dataclass
class ShoppingCategory:
    """All items of one category, sorted by name."""

    category: Category
    items: list[ShoppingItem] = field(default_factory=list)


@dataclass
class ShoppingList:
    """Shopping list for one week."""

    start_date: date
    end_date: date
    categories: list[ShoppingCategory] = field(default_factory=list)

    @property
    def items(self) -> list[ShoppingItem]:
        """All items across categories, in display order."""
        return [item for group in self.categories for item in group.items]

    def find(self, name: str) -> ShoppingItem | None:
        """Find an item by its display name."""
        for item in self.items:
            if item.name == name:
                return item
        return None
