"""Pytest configuration and shared fixtures."""

from datetime import date, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from mealplanner.database import Base
from mealplanner.shopping.models import Ingredient, Meal, Recipe
from mealplanner.shopping.repository import InMemoryListStateStore, InMemoryMealPlanReader
from mealplanner.shopping.service import ShoppingListService
from mealplanner.shopping.sync import SyncTracker

# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow running")


# Monday
WEEK_START = date(2026, 10, 19)


def make_recipe(recipe_id: str, *ingredients: tuple[str, str, str | None]) -> Recipe:
    """Build a recipe from (name, quantity, unit) tuples."""
    return Recipe(
        id=recipe_id,
        name=recipe_id.replace("-", " ").title(),
        ingredients=[Ingredient(name=n, quantity=q, unit=u) for n, q, u in ingredients],
    )


def make_meal(day_offset: int, recipe: Recipe | None, meal_type: str = "dinner") -> Meal:
    """Build a meal scheduled day_offset days after WEEK_START."""
    return Meal(
        scheduled_date=WEEK_START + timedelta(days=day_offset),
        meal_type=meal_type,
        recipe=recipe,
    )


# =============================================================================
# Meal Plan Fixtures
# =============================================================================


@pytest.fixture
def week_start() -> date:
    return WEEK_START


@pytest.fixture
def milk_and_chicken_meals() -> list[Meal]:
    """Two meals using milk and one using chicken breast."""
    return [
        make_meal(0, make_recipe("pancakes", ("Milk", "1", "cup"))),
        make_meal(2, make_recipe("porridge", ("Milk", "1", "cup"))),
        make_meal(4, make_recipe("roast-chicken", ("Chicken breast", "200", "g"))),
    ]


@pytest.fixture
def mixed_week_meals() -> list[Meal]:
    """A week touching every category, with repeated and unparseable quantities."""
    return [
        make_meal(
            0,
            make_recipe(
                "chicken-stir-fry",
                ("Chicken breast", "400", "g"),
                ("Bell pepper", "2", None),
                ("Soy sauce", "3", "tbsp"),
                ("Salt", "to taste", None),
            ),
        ),
        make_meal(0, None, meal_type="lunch"),
        make_meal(
            3,
            make_recipe(
                "salmon-bowl",
                ("Salmon fillet", "2", None),
                ("Soy sauce", "1/2", "cup"),
                ("salt", "to taste", None),
                ("Greek yogurt", "1/2", "cup"),
            ),
        ),
        make_meal(
            5,
            make_recipe(
                "pasta",
                ("Parmesan", "50", "g"),
                ("Red pepper flakes", "1/2", "tsp"),
                ("Bell Pepper ", "1", None),
            ),
        ),
    ]


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def meal_reader() -> InMemoryMealPlanReader:
    return InMemoryMealPlanReader()


@pytest.fixture
def state_store() -> InMemoryListStateStore:
    return InMemoryListStateStore()


@pytest.fixture
def sync_tracker() -> SyncTracker:
    return SyncTracker()


@pytest.fixture
def service(meal_reader, state_store, sync_tracker) -> ShoppingListService:
    return ShoppingListService(
        meal_reader=meal_reader,
        state_store=state_store,
        sync_tracker=sync_tracker,
    )


# =============================================================================
# SQLite Test Database Fixtures
# =============================================================================


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    """URL of a throwaway SQLite database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'mealplanner_test.db'}"


@pytest_asyncio.fixture
async def db_engine(sqlite_url):
    """Async engine with all tables created."""
    engine = create_async_engine(sqlite_url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """A database session for a single test."""
    async with session_factory() as session:
        yield session
