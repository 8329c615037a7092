"""
Item repository (persistence).

This module provides *only* persistence operations for the Item domain entity.
It does not enforce business rules (ownership, price or time validity); it only
reads, writes and clears the listing stored for an item identifier.

Two stores share the same interface:
- InMemoryItemRepository: process-local dictionary (default backend, tests)
- SupabaseItemRepository: `marketplace_items` table
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol

from domain.item import Item

# Supabase table name for listings.
# Keep this aligned with your database schema.
_ITEMS_TABLE: str = "marketplace_items"


class ItemRepository(Protocol):
    def get(self, item_id: int) -> Item: ...

    def save(self, item_id: int, item: Item) -> None: ...

    def delete(self, item_id: int) -> None: ...


class InMemoryItemRepository:
    """Keyed store of Items; unknown identifiers read as unlisted."""

    def __init__(self) -> None:
        self._items: Dict[int, Item] = {}

    def get(self, item_id: int) -> Item:
        return self._items.get(item_id, Item.unlisted())

    def save(self, item_id: int, item: Item) -> None:
        if not item.is_listed:
            self._items.pop(item_id, None)
            return
        self._items[item_id] = item

    def delete(self, item_id: int) -> None:
        self._items.pop(item_id, None)

    def __len__(self) -> int:
        return len(self._items)


def _row_to_item(row: Mapping[str, Any]) -> Item:
    """Convert a Supabase row into an Item (uint256 columns are decimal strings)."""

    return Item(
        seller=str(row["seller"]),
        price=int(str(row["price"])),
        start_time=int(str(row["start_time"])),
    )


class SupabaseItemRepository:
    """Items stored one row per item identifier."""

    def __init__(self, client: Optional[Any] = None) -> None:
        if client is None:
            from repositories.client import get_supabase

            client = get_supabase()
        self._client = client

    def get(self, item_id: int) -> Item:
        response = (
            self._client.table(_ITEMS_TABLE)
            .select("*")
            .eq("item_id", str(item_id))
            .limit(1)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to get item: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            return Item.unlisted()
        return _row_to_item(rows[0])

    def save(self, item_id: int, item: Item) -> None:
        if not item.is_listed:
            self.delete(item_id)
            return

        payload: dict[str, Any] = {
            "item_id": str(item_id),
            "seller": item.seller,
            "price": str(item.price),
            "start_time": str(item.start_time),
        }

        response = self._client.table(_ITEMS_TABLE).upsert(payload).execute()
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to save item: {error}")

    def delete(self, item_id: int) -> None:
        response = (
            self._client.table(_ITEMS_TABLE)
            .delete()
            .eq("item_id", str(item_id))
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to delete item: {error}")


__all__ = [
    "ItemRepository",
    "InMemoryItemRepository",
    "SupabaseItemRepository",
]
