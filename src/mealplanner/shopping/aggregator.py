"""Merge the ingredients of a week's meals into category-grouped line items."""

from collections.abc import Iterable
from dataclasses import dataclass
from urllib.parse import quote

from mealplanner.logging_config import get_logger
from mealplanner.shopping.categories import CATEGORY_ORDER, Category, classify
from mealplanner.shopping.models import (
    COMPUTED_ID_PREFIX,
    Ingredient,
    Meal,
    ShoppingCategory,
    ShoppingItem,
)
from mealplanner.shopping.quantity import combine

logger = get_logger(__name__)


def normalize_ingredient_name(name: str) -> str:
    """Merge key for an ingredient: lower-cased and trimmed."""
    return (name or "").lower().strip()


def item_id_for(name: str) -> str:
    """
    Stable id of the computed item for an ingredient name.

    Derived from the normalized name only, so the same ingredient gets the
    same id every time the list is regenerated. Spaces become "-" and every
    other character outside [a-z0-9.~] becomes "_" plus its UTF-8 hex, so
    distinct names never share an id and ids are safe in URL paths:

        "Chicken Breast" -> "item-chicken-breast"
        "chicken-breast" -> "item-chicken_2Dbreast"
    """
    encoded = quote(normalize_ingredient_name(name), safe="")
    encoded = encoded.replace("_", "%5F").replace("-", "%2D")
    return COMPUTED_ID_PREFIX + encoded.replace("%20", "-").replace("%", "_")


@dataclass
class AggregatedIngredient:
    """An ingredient merged across every recipe of the week."""

    display_name: str
    normalized_name: str
    quantity: str
    unit: str | None
    category: Category

    @property
    def item_id(self) -> str:
        return item_id_for(self.normalized_name)

    def to_shopping_item(self) -> ShoppingItem:
        return ShoppingItem(
            id=self.item_id,
            name=self.display_name,
            quantity=self.quantity,
            unit=self.unit,
            category=self.category,
        )


def flatten_meals(meals: Iterable[Meal]) -> list[Ingredient]:
    """All ingredients of all meals, in meal order then recipe order."""
    ingredients: list[Ingredient] = []
    for meal in meals:
        if meal.recipe is None:
            continue
        ingredients.extend(meal.recipe.ingredients)
    return ingredients


def merge_ingredients(ingredients: Iterable[Ingredient]) -> dict[str, AggregatedIngredient]:
    """
    Merge ingredients sharing a normalized name.

    The first occurrence fixes display name, unit and category; later
    occurrences only fold their quantity in via combine().

    Returns:
        Dict mapping normalized names to AggregatedIngredient, in first-seen order.
    """
    aggregated: dict[str, AggregatedIngredient] = {}

    for ingredient in ingredients:
        key = normalize_ingredient_name(ingredient.name)

        existing = aggregated.get(key)
        if existing is None:
            aggregated[key] = AggregatedIngredient(
                display_name=ingredient.name,
                normalized_name=key,
                quantity=ingredient.quantity,
                unit=ingredient.unit,
                category=classify(ingredient.name),
            )
            continue

        existing.quantity = combine(
            existing.quantity,
            existing.unit,
            ingredient.quantity,
            ingredient.unit,
        )

    return aggregated


def group_items(items: Iterable[ShoppingItem]) -> list[ShoppingCategory]:
    """
    Group items by category in display order, sorting each group by name.

    Categories without items are left out.
    """
    buckets: dict[Category, list[ShoppingItem]] = {category: [] for category in CATEGORY_ORDER}
    for item in items:
        buckets[item.category].append(item)

    return [
        ShoppingCategory(category=category, items=sorted(buckets[category], key=lambda i: i.name))
        for category in CATEGORY_ORDER
        if buckets[category]
    ]


def aggregate(meals: Iterable[Meal]) -> list[ShoppingCategory]:
    """
    Build the computed part of a shopping list from planned meals.

    Args:
        meals: Planned meals; meals without a recipe contribute nothing.

    Returns:
        Non-empty categories in display order, each sorted by item name.
    """
    ingredients = flatten_meals(meals)
    aggregated = merge_ingredients(ingredients)

    logger.debug(f"Merged {len(ingredients)} ingredients into {len(aggregated)} items")

    return group_items(entry.to_shopping_item() for entry in aggregated.values())
