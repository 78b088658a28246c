"""API routers for the mealplanner application."""

from mealplanner.routers.shopping_list import router as shopping_list_router

__all__ = [
    "shopping_list_router",
]
