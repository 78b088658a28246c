"""API routes for a week's shopping list."""

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from mealplanner.config import settings
from mealplanner.database import get_db
from mealplanner.logging_config import get_logger
from mealplanner.shopping.categories import Category
from mealplanner.shopping.exceptions import ListStateConflictError
from mealplanner.shopping.models import ShoppingItem, ShoppingList
from mealplanner.shopping.repository import SqlListStateStore, SqlMealPlanReader
from mealplanner.shopping.service import ShoppingListService, WeekLocks
from mealplanner.shopping.sync import SyncStatus, SyncTracker

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/shopping-list", tags=["shopping-list"])

# Shared across requests so that locking and sync tracking span the process
week_locks = WeekLocks()
sync_tracker = SyncTracker(week_start_day=settings.week_start_day)


# =============================================================================
# Request/Response Schemas
# =============================================================================


class ShoppingItemResponse(BaseModel):
    """Single line of a shopping list."""

    id: str
    name: str
    quantity: str
    unit: str | None = None
    category: Category
    is_checked: bool = False
    is_custom: bool = False

    @classmethod
    def from_item(cls, item: ShoppingItem) -> "ShoppingItemResponse":
        return cls(
            id=item.id,
            name=item.name,
            quantity=item.quantity,
            unit=item.unit,
            category=item.category,
            is_checked=item.is_checked,
            is_custom=item.is_custom,
        )


class ShoppingCategoryResponse(BaseModel):
    """Items of one category, sorted by name."""

    category: Category
    items: list[ShoppingItemResponse]


class ShoppingListResponse(BaseModel):
    """Shopping list for one week."""

    start_date: date
    end_date: date
    categories: list[ShoppingCategoryResponse]

    @classmethod
    def from_list(cls, shopping_list: ShoppingList) -> "ShoppingListResponse":
        return cls(
            start_date=shopping_list.start_date,
            end_date=shopping_list.end_date,
            categories=[
                ShoppingCategoryResponse(
                    category=group.category,
                    items=[ShoppingItemResponse.from_item(item) for item in group.items],
                )
                for group in shopping_list.categories
            ],
        )


class ToggleItemRequest(BaseModel):
    """Check or uncheck an item."""

    is_checked: bool


class AddCustomItemRequest(BaseModel):
    """Add a user item to the list."""

    name: str = Field(max_length=100)
    quantity: str = Field(max_length=50)
    unit: str | None = Field(None, max_length=30)
    category: Category = Field(description="Produce, Dairy, Meat or Pantry (any case)")

    @field_validator("name", "quantity")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("category", mode="before")
    @classmethod
    def parse_category(cls, value: object) -> Category:
        if isinstance(value, Category):
            return value
        if not isinstance(value, str):
            raise ValueError("must be a string")
        return Category.parse(value)


class MealChangeRequest(BaseModel):
    """A meal plan change on one day."""

    scheduled_date: date


class SyncStatusResponse(BaseModel):
    """Meal-plan changes since the list was last generated."""

    week_start: date
    pending_changes: int
    has_pending_changes: bool
    last_change_at: datetime | None = None
    last_synced_at: datetime | None = None


# =============================================================================
# Dependencies
# =============================================================================


async def get_shopping_list_service(
    db: AsyncSession = Depends(get_db),
) -> ShoppingListService:
    """Service bound to the request's database session."""
    return ShoppingListService(
        meal_reader=SqlMealPlanReader(db),
        state_store=SqlListStateStore(db),
        sync_tracker=sync_tracker,
        week_locks=week_locks,
        max_save_retries=settings.state_save_retries,
        prune_stale_checks=settings.prune_stale_checks,
    )


def _sync_status_response(sync_status: SyncStatus) -> SyncStatusResponse:
    return SyncStatusResponse(
        week_start=sync_status.week_start,
        pending_changes=sync_status.pending_changes,
        has_pending_changes=sync_status.has_pending_changes,
        last_change_at=sync_status.last_change_at,
        last_synced_at=sync_status.last_synced_at,
    )


def _conflict(e: ListStateConflictError) -> HTTPException:
    logger.warning(f"Rejecting update: {e}")
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Shopping list was modified concurrently, please retry",
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/{start_date}", response_model=ShoppingListResponse)
async def get_shopping_list(
    start_date: date,
    service: ShoppingListService = Depends(get_shopping_list_service),
) -> ShoppingListResponse:
    """
    Generate the shopping list for the week starting at start_date.

    Ingredients of all meals planned in the seven days are merged per
    ingredient, grouped by category and combined with the week's checked
    flags and custom items.
    """
    try:
        shopping_list = await service.generate(start_date)
    except ListStateConflictError as e:
        raise _conflict(e) from e
    return ShoppingListResponse.from_list(shopping_list)


@router.patch("/{start_date}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def toggle_item(
    start_date: date,
    item_id: str,
    request: ToggleItemRequest,
    service: ShoppingListService = Depends(get_shopping_list_service),
) -> Response:
    """Check or uncheck an item."""
    try:
        await service.toggle(start_date, item_id, request.is_checked)
    except ListStateConflictError as e:
        raise _conflict(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{start_date}/items",
    response_model=ShoppingItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_custom_item(
    start_date: date,
    request: AddCustomItemRequest,
    response: Response,
    service: ShoppingListService = Depends(get_shopping_list_service),
) -> ShoppingItemResponse:
    """Add a custom item to the week's list."""
    try:
        item = await service.add_custom_item(
            start_date,
            name=request.name,
            quantity=request.quantity,
            unit=request.unit,
            category=request.category,
        )
    except ListStateConflictError as e:
        raise _conflict(e) from e

    response.headers["Location"] = f"{router.prefix}/{start_date.isoformat()}/items/{item.id}"
    return ShoppingItemResponse.from_item(item)


@router.delete("/{start_date}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_item(
    start_date: date,
    item_id: str,
    service: ShoppingListService = Depends(get_shopping_list_service),
) -> Response:
    """Remove a custom item, or clear the checked flag of a computed one."""
    try:
        removed = await service.remove_item(start_date, item_id)
    except ListStateConflictError as e:
        raise _conflict(e) from e

    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Item {item_id} not found",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{start_date}/sync-status", response_model=SyncStatusResponse)
async def get_sync_status(
    start_date: date,
    service: ShoppingListService = Depends(get_shopping_list_service),
) -> SyncStatusResponse:
    """Report meal-plan changes recorded since the list was last generated."""
    return _sync_status_response(service.sync_status(start_date))


@router.post("/meal-changes", response_model=SyncStatusResponse)
async def record_meal_change(
    request: MealChangeRequest,
    service: ShoppingListService = Depends(get_shopping_list_service),
) -> SyncStatusResponse:
    """
    Record that a meal was added, swapped or removed.

    Called by the meal plan when it changes, so the week's sync status shows
    that its shopping list needs regenerating.
    """
    service.record_meal_change(request.scheduled_date)
    return _sync_status_response(service.sync_status(request.scheduled_date))
