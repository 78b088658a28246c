"""Interfaces of the collaborators the shopping list engine depends on."""

from abc import ABC, abstractmethod
from datetime import date

from mealplanner.shopping.models import Meal
from mealplanner.shopping.state import ListState


class MealPlanReader(ABC):
    """Read access to the meal plan."""

    @abstractmethod
    async def get_meals_in_range(self, start_date: date, end_date: date) -> list[Meal]:
        """
        Get planned meals scheduled between two dates.

        Args:
            start_date: First day, inclusive.
            end_date: Last day, inclusive.

        Returns:
            Meals with their recipes (if any) and ingredient lists.
        """
        pass


class ListStateStore(ABC):
    """Durable storage for per-week list state."""

    @abstractmethod
    async def get_or_create(self, start_date: date) -> ListState:
        """
        Load the state for a week, or a fresh empty one if none was saved.

        The returned object is a private copy; changes only become durable
        through save().

        Raises:
            CorruptListStateError: If the stored state cannot be decoded.
        """
        pass

    @abstractmethod
    async def save(self, state: ListState) -> None:
        """
        Persist a state and bump its version.

        Raises:
            ListStateConflictError: If the stored version no longer matches
                the version the state was loaded at.
        """
        pass
