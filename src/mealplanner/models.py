"""SQLAlchemy database models."""

from datetime import date, datetime, timezone

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mealplanner.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Recipe(Base):
    """Recipe with its ordered ingredient list."""

    __tablename__ = "recipes"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # [{"name": "Milk", "quantity": "1", "unit": "cup"}, ...]
    ingredients: Mapped[list] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    planned_meals: Mapped[list["PlannedMeal"]] = relationship(
        "PlannedMeal", back_populates="recipe"
    )


class PlannedMeal(Base):
    """A meal slot on the calendar, optionally filled with a recipe."""

    __tablename__ = "planned_meals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipe_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("recipes.id"), nullable=True
    )
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    meal_type: Mapped[str] = mapped_column(String, nullable=False)  # breakfast, lunch, dinner

    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="planned_meals")

    __table_args__ = (Index("idx_planned_meals_scheduled_date", "scheduled_date"),)


class ShoppingListStateRecord(Base):
    """Persisted user edits (checked flags, custom items) for one week."""

    __tablename__ = "shopping_list_states"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, unique=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    checked_items: Mapped[dict] = mapped_column(JSON, default=dict)  # item id -> bool
    custom_items: Mapped[list] = mapped_column(JSON, default=list)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)
