"""Editable per-week overlay on top of the computed shopping list."""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from mealplanner.shopping.categories import Category
from mealplanner.shopping.exceptions import CorruptListStateError, InvalidCategoryError
from mealplanner.shopping.models import CUSTOM_ID_PREFIX, ShoppingItem, is_custom_id

WEEK_LENGTH_DAYS = 7


def week_end(start_date: date) -> date:
    """Last day of the week starting at start_date."""
    return start_date + timedelta(days=WEEK_LENGTH_DAYS - 1)


def new_custom_id() -> str:
    return f"{CUSTOM_ID_PREFIX}{uuid.uuid4().hex}"


@dataclass
class ListState:
    """
    User edits for one week's shopping list.

    Holds checked flags keyed by item id (for computed and custom items
    alike) and the list of user-added custom items. `version` counts
    successful saves and is used by stores to detect lost updates; a state
    that was never saved has version 0.
    """

    start_date: date
    checked_items: dict[str, bool] = field(default_factory=dict)
    custom_items: list[ShoppingItem] = field(default_factory=list)
    version: int = 0

    @property
    def end_date(self) -> date:
        return week_end(self.start_date)

    def set_checked(self, item_id: str, is_checked: bool) -> None:
        """Record a checked flag, even for ids not currently on the list."""
        self.checked_items[item_id] = is_checked

    def is_checked(self, item_id: str) -> bool:
        return self.checked_items.get(item_id, False)

    def add_custom_item(
        self,
        name: str,
        quantity: str,
        unit: str | None,
        category: Category,
    ) -> ShoppingItem:
        """Append a user-added item under a fresh custom id."""
        item = ShoppingItem(
            id=new_custom_id(),
            name=name,
            quantity=quantity,
            unit=unit,
            category=category,
            is_checked=False,
            is_custom=True,
        )
        self.custom_items.append(item)
        return item

    def remove_custom_item(self, item_id: str) -> bool:
        for index, item in enumerate(self.custom_items):
            if item.id == item_id:
                del self.custom_items[index]
                self.checked_items.pop(item_id, None)
                return True
        return False

    def remove_item(self, item_id: str) -> bool:
        """
        Remove an item from the overlay.

        Custom ids are removed from the custom items (False if there was no
        such item). For computed ids only the checked flag is cleared, and
        the result is always True: an untracked item and an unchecked one
        look the same.
        """
        if is_custom_id(item_id):
            return self.remove_custom_item(item_id)
        self.checked_items.pop(item_id, None)
        return True

    def prune_checked(self, live_item_ids: Iterable[str]) -> list[str]:
        """
        Drop checked flags of computed items that are no longer on the list.

        Flags of custom items are left alone.

        Returns:
            The pruned item ids.
        """
        live = set(live_item_ids)
        stale = [
            item_id
            for item_id in self.checked_items
            if not is_custom_id(item_id) and item_id not in live
        ]
        for item_id in stale:
            del self.checked_items[item_id]
        return stale

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "checked_items": dict(self.checked_items),
            "custom_items": [custom_item_to_dict(item) for item in self.custom_items],
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ListState":
        """
        Rebuild a state from its serialized form.

        Raises:
            CorruptListStateError: If the data is not a valid serialized state.
        """
        try:
            start_date = date.fromisoformat(data["start_date"])
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptListStateError(f"Invalid list state start date: {e}") from e

        try:
            version = int(data.get("version", 0))
        except (TypeError, ValueError) as e:
            raise CorruptListStateError(f"Invalid list state version: {e}", start_date) from e

        return cls(
            start_date=start_date,
            checked_items=checked_items_from_raw(data.get("checked_items"), start_date),
            custom_items=custom_items_from_raw(data.get("custom_items"), start_date),
            version=version,
        )


def custom_item_to_dict(item: ShoppingItem) -> dict[str, Any]:
    """Persisted shape of a custom item. Checked flags live in checked_items."""
    return {
        "id": item.id,
        "name": item.name,
        "quantity": item.quantity,
        "unit": item.unit,
        "category": item.category.value,
    }


def checked_items_from_raw(raw: Any, start_date: date | None = None) -> dict[str, bool]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise CorruptListStateError("checked_items must be a mapping", start_date)
    checked: dict[str, bool] = {}
    for item_id, value in raw.items():
        if not isinstance(value, bool):
            raise CorruptListStateError(
                f"Checked flag for {item_id!r} is not a boolean", start_date
            )
        checked[str(item_id)] = value
    return checked


def custom_items_from_raw(raw: Any, start_date: date | None = None) -> list[ShoppingItem]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise CorruptListStateError("custom_items must be a list", start_date)

    items: list[ShoppingItem] = []
    for entry in raw:
        try:
            items.append(
                ShoppingItem(
                    id=entry["id"],
                    name=entry["name"],
                    quantity=entry["quantity"],
                    unit=entry.get("unit"),
                    category=Category.parse(entry["category"]),
                    is_checked=False,
                    is_custom=True,
                )
            )
        except (KeyError, TypeError, AttributeError, InvalidCategoryError) as e:
            raise CorruptListStateError(f"Invalid custom item {entry!r}: {e}", start_date) from e
    return items
