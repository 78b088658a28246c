"""Shopping list engine: quantity parsing, categorization, aggregation and list state."""

from mealplanner.shopping.aggregator import (
    AggregatedIngredient,
    aggregate,
    item_id_for,
    merge_ingredients,
    normalize_ingredient_name,
)
from mealplanner.shopping.base import ListStateStore, MealPlanReader
from mealplanner.shopping.categories import Category, classify
from mealplanner.shopping.exceptions import (
    CorruptListStateError,
    InvalidCategoryError,
    ListStateConflictError,
    ShoppingListError,
)
from mealplanner.shopping.models import (
    Ingredient,
    Meal,
    Recipe,
    ShoppingCategory,
    ShoppingItem,
    ShoppingList,
)
from mealplanner.shopping.quantity import combine, format_quantity, try_parse
from mealplanner.shopping.service import ShoppingListService, WeekLocks
from mealplanner.shopping.state import ListState
from mealplanner.shopping.sync import SyncStatus, SyncTracker

__all__ = [
    "AggregatedIngredient",
    "Category",
    "CorruptListStateError",
    "Ingredient",
    "InvalidCategoryError",
    "ListState",
    "ListStateConflictError",
    "ListStateStore",
    "Meal",
    "MealPlanReader",
    "Recipe",
    "ShoppingCategory",
    "ShoppingItem",
    "ShoppingList",
    "ShoppingListError",
    "ShoppingListService",
    "SyncStatus",
    "SyncTracker",
    "WeekLocks",
    "aggregate",
    "classify",
    "combine",
    "format_quantity",
    "item_id_for",
    "merge_ingredients",
    "normalize_ingredient_name",
    "try_parse",
]
