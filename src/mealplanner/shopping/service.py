"""Shopping list generation and editing for a planned week."""

import asyncio
import weakref
from collections.abc import Callable
from datetime import date
from typing import TypeVar

from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt

from mealplanner.logging_config import LoggingContext, get_logger
from mealplanner.shopping.aggregator import aggregate, group_items
from mealplanner.shopping.base import ListStateStore, MealPlanReader
from mealplanner.shopping.categories import Category
from mealplanner.shopping.exceptions import ListStateConflictError
from mealplanner.shopping.models import ShoppingCategory, ShoppingItem, ShoppingList
from mealplanner.shopping.state import ListState, week_end
from mealplanner.shopping.sync import SyncStatus, SyncTracker

logger = get_logger(__name__)

T = TypeVar("T")


def _log_conflict_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        f"List state changed concurrently, retrying (attempt {retry_state.attempt_number})"
    )


class WeekLocks:
    """
    One asyncio.Lock per week, serializing read-modify-write of its state.

    Locks are held weakly, so a week's entry disappears once no caller holds
    or waits on its lock.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[date, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def get(self, start_date: date) -> asyncio.Lock:
        lock = self._locks.get(start_date)
        if lock is None:
            lock = self._locks[start_date] = asyncio.Lock()
        return lock

    def __len__(self) -> int:
        return len(self._locks)


def build_shopping_list(
    start_date: date,
    computed: list[ShoppingCategory],
    state: ListState,
) -> ShoppingList:
    """
    Overlay a week's list state onto the computed items.

    Checked flags are applied by item id and custom items are merged into
    their categories; the result is regrouped and resorted.
    """
    computed_items = [
        item.with_checked(state.is_checked(item.id)) for group in computed for item in group.items
    ]
    custom_items = [item.with_checked(state.is_checked(item.id)) for item in state.custom_items]

    return ShoppingList(
        start_date=start_date,
        end_date=week_end(start_date),
        categories=group_items(computed_items + custom_items),
    )


class ShoppingListService:
    """
    Builds a week's shopping list from the meal plan and applies user edits.

    Mutations of the same week are serialized through WeekLocks. On top of
    that, a save rejected by the store because another process changed the
    state (ListStateConflictError) is retried on freshly loaded state up to
    `max_save_retries` times before the conflict is raised to the caller.
    """

    def __init__(
        self,
        meal_reader: MealPlanReader,
        state_store: ListStateStore,
        sync_tracker: SyncTracker | None = None,
        week_locks: WeekLocks | None = None,
        max_save_retries: int = 3,
        prune_stale_checks: bool = False,
    ):
        self.meal_reader = meal_reader
        self.state_store = state_store
        self.sync_tracker = sync_tracker or SyncTracker()
        self.week_locks = week_locks or WeekLocks()
        self.max_save_retries = max_save_retries
        self.prune_stale_checks = prune_stale_checks

    async def generate(self, start_date: date) -> ShoppingList:
        """
        Generate the shopping list for the week starting at start_date.

        Args:
            start_date: First day of the week; the list covers seven days.

        Returns:
            Category-grouped list of computed and custom items.
        """
        end_date = week_end(start_date)

        with LoggingContext(week_start=start_date.isoformat()):
            meals = await self.meal_reader.get_meals_in_range(start_date, end_date)
            computed = aggregate(meals)

            if self.prune_stale_checks:
                live_ids = {item.id for group in computed for item in group.items}
                pruned, state = await self._mutate(
                    start_date,
                    lambda s: s.prune_checked(live_ids),
                    should_save=bool,
                )
                if pruned:
                    logger.info(f"Pruned {len(pruned)} stale checked flags")
            else:
                state = await self.state_store.get_or_create(start_date)

            shopping_list = build_shopping_list(start_date, computed, state)
            self.sync_tracker.mark_synced(start_date)

            logger.info(
                f"Generated shopping list for {start_date} to {end_date}: "
                f"{len(meals)} meals, {len(shopping_list.items)} items, "
                f"{len(state.custom_items)} custom"
            )
            return shopping_list

    async def toggle(self, start_date: date, item_id: str, is_checked: bool) -> None:
        """Check or uncheck an item."""
        with LoggingContext(week_start=start_date.isoformat()):
            await self._mutate(start_date, lambda s: s.set_checked(item_id, is_checked))
            logger.info(f"Set {item_id} checked={is_checked}")

    async def add_custom_item(
        self,
        start_date: date,
        name: str,
        quantity: str,
        unit: str | None,
        category: Category,
    ) -> ShoppingItem:
        """
        Add a user item to the week's list.

        The category must already be resolved; use Category.parse() on
        user input.
        """
        with LoggingContext(week_start=start_date.isoformat()):
            item, _ = await self._mutate(
                start_date,
                lambda s: s.add_custom_item(name, quantity, unit, category),
            )
            logger.info(f"Added custom item {item.id} ({name!r}, {category.value})")
            return item

    async def remove_item(self, start_date: date, item_id: str) -> bool:
        """
        Remove an item from the week's list.

        Returns:
            False only for a custom id that matches no custom item.
        """
        with LoggingContext(week_start=start_date.isoformat()):
            removed, _ = await self._mutate(start_date, lambda s: s.remove_item(item_id))
            logger.info(f"Removed {item_id}: {removed}")
            return removed

    def record_meal_change(self, affected_date: date) -> None:
        """Note that the meal plan changed on affected_date."""
        self.sync_tracker.mark_pending(affected_date)

    def sync_status(self, start_date: date) -> SyncStatus:
        return self.sync_tracker.status(start_date)

    async def _mutate(
        self,
        start_date: date,
        operation: Callable[[ListState], T],
        should_save: Callable[[T], bool] | None = None,
    ) -> tuple[T, ListState]:
        """Load, modify and save a week's state under its lock."""

        @retry(
            retry=retry_if_exception_type(ListStateConflictError),
            stop=stop_after_attempt(self.max_save_retries + 1),
            before_sleep=_log_conflict_retry,
            reraise=True,
        )
        async def _attempt() -> tuple[T, ListState]:
            state = await self.state_store.get_or_create(start_date)
            result = operation(state)
            if should_save is None or should_save(result):
                await self.state_store.save(state)
            return result, state

        async with self.week_locks.get(start_date):
            try:
                return await _attempt()
            except ListStateConflictError:
                logger.error(
                    f"Giving up on list state save after {self.max_save_retries + 1} attempts"
                )
                raise
