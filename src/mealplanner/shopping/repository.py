"""Meal-plan readers and list-state stores (in-memory and SQLAlchemy)."""

from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mealplanner.logging_config import get_logger
from mealplanner.models import PlannedMeal, ShoppingListStateRecord
from mealplanner.models import Recipe as RecipeRecord
from mealplanner.shopping.base import ListStateStore, MealPlanReader
from mealplanner.shopping.exceptions import ListStateConflictError
from mealplanner.shopping.models import Ingredient, Meal, Recipe
from mealplanner.shopping.state import (
    ListState,
    checked_items_from_raw,
    custom_item_to_dict,
    custom_items_from_raw,
)

logger = get_logger(__name__)

# Slot order within a day
MEAL_TYPE_ORDER: dict[str, int] = {"breakfast": 0, "lunch": 1, "dinner": 2}


def _meal_sort_key(meal: Meal) -> tuple[date, int]:
    return meal.scheduled_date, MEAL_TYPE_ORDER.get(meal.meal_type.lower(), len(MEAL_TYPE_ORDER))


# =============================================================================
# In-memory implementations
# =============================================================================


class InMemoryMealPlanReader(MealPlanReader):
    """Meal plan held in a list, for tests and local development."""

    def __init__(self, meals: list[Meal] | None = None):
        self.meals: list[Meal] = list(meals or [])

    def add_meal(self, meal: Meal) -> None:
        self.meals.append(meal)

    def clear(self) -> None:
        self.meals.clear()

    async def get_meals_in_range(self, start_date: date, end_date: date) -> list[Meal]:
        in_range = [m for m in self.meals if start_date <= m.scheduled_date <= end_date]
        return sorted(in_range, key=_meal_sort_key)


class InMemoryListStateStore(ListStateStore):
    """
    List states kept as serialized snapshots in a dict.

    Snapshots are decoded on every load, so a loaded state never aliases the
    stored one and unsaved edits are invisible to other callers, just like
    with a database.
    """

    def __init__(self) -> None:
        self._snapshots: dict[date, dict[str, Any]] = {}

    async def get_or_create(self, start_date: date) -> ListState:
        snapshot = self._snapshots.get(start_date)
        if snapshot is None:
            return ListState(start_date=start_date)
        return ListState.from_dict(snapshot)

    async def save(self, state: ListState) -> None:
        stored = self._snapshots.get(state.start_date)
        stored_version = stored["version"] if stored is not None else 0

        if stored_version != state.version:
            raise ListStateConflictError(state.start_date, state.version)

        state.version += 1
        self._snapshots[state.start_date] = state.to_dict()

    def __contains__(self, start_date: date) -> bool:
        return start_date in self._snapshots


# =============================================================================
# SQLAlchemy implementations
# =============================================================================


def _meal_from_record(record: PlannedMeal) -> Meal:
    recipe = None
    if record.recipe is not None:
        recipe = _recipe_from_record(record.recipe)
    return Meal(scheduled_date=record.scheduled_date, meal_type=record.meal_type, recipe=recipe)


def _recipe_from_record(record: RecipeRecord) -> Recipe:
    return Recipe(
        id=record.id,
        name=record.name,
        ingredients=[Ingredient.from_raw(raw) for raw in record.ingredients or []],
    )


class SqlMealPlanReader(MealPlanReader):
    """Reads planned meals and their recipes from the database."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_meals_in_range(self, start_date: date, end_date: date) -> list[Meal]:
        result = await self.session.execute(
            select(PlannedMeal)
            .where(PlannedMeal.scheduled_date >= start_date)
            .where(PlannedMeal.scheduled_date <= end_date)
            .options(selectinload(PlannedMeal.recipe))
            .order_by(PlannedMeal.scheduled_date, PlannedMeal.id)
        )
        records = result.scalars().all()

        meals = [_meal_from_record(record) for record in records]
        logger.debug(f"Loaded {len(meals)} planned meals for {start_date} to {end_date}")
        return sorted(meals, key=_meal_sort_key)


class SqlListStateStore(ListStateStore):
    """
    List states in the shopping_list_states table.

    Saves are optimistic: the first save inserts the row, later saves update
    it only if its version still matches the version the state was loaded
    at. A mismatch raises ListStateConflictError and leaves the row alone.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_record(self, start_date: date) -> ShoppingListStateRecord | None:
        result = await self.session.execute(
            select(ShoppingListStateRecord)
            .where(ShoppingListStateRecord.start_date == start_date)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_or_create(self, start_date: date) -> ListState:
        record = await self._get_record(start_date)
        if record is None:
            return ListState(start_date=start_date)

        return ListState(
            start_date=record.start_date,
            checked_items=checked_items_from_raw(record.checked_items, start_date),
            custom_items=custom_items_from_raw(record.custom_items, start_date),
            version=record.version,
        )

    async def save(self, state: ListState) -> None:
        checked_items = dict(state.checked_items)
        custom_items = [custom_item_to_dict(item) for item in state.custom_items]

        if state.version == 0:
            self.session.add(
                ShoppingListStateRecord(
                    start_date=state.start_date,
                    end_date=state.end_date,
                    checked_items=checked_items,
                    custom_items=custom_items,
                    version=1,
                )
            )
            try:
                await self.session.commit()
            except IntegrityError as e:
                await self.session.rollback()
                raise ListStateConflictError(state.start_date, state.version) from e
        else:
            result = await self.session.execute(
                update(ShoppingListStateRecord)
                .where(ShoppingListStateRecord.start_date == state.start_date)
                .where(ShoppingListStateRecord.version == state.version)
                .values(
                    end_date=state.end_date,
                    checked_items=checked_items,
                    custom_items=custom_items,
                    version=state.version + 1,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await self.session.rollback()
                raise ListStateConflictError(state.start_date, state.version)
            await self.session.commit()

        state.version += 1
        logger.debug(f"Saved list state for week {state.start_date} at version {state.version}")
