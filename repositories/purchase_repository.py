"""
Purchase record repository (persistence).

This module provides *only* persistence operations for the PurchaseRecord
domain entity, keyed by beneficiary. It does not compute rewards or decide
when records are consumed; it appends, lists and deletes.

Two stores share the same interface:
- InMemoryPurchaseRepository: process-local lists per beneficiary
- SupabasePurchaseRepository: `purchase_records` table
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Protocol
from uuid import UUID

from domain.address import normalize_address
from domain.purchase import PurchaseRecord

# Supabase table name for purchase records.
# Keep this aligned with your database schema.
_PURCHASES_TABLE: str = "purchase_records"


class PurchaseRepository(Protocol):
    def append(self, record: PurchaseRecord) -> None: ...

    def list_for(self, beneficiary: str) -> List[PurchaseRecord]: ...

    def remove(self, record_id: UUID) -> None: ...

    def delete_for(self, beneficiary: str) -> int: ...


class InMemoryPurchaseRepository:
    """Purchase records grouped by beneficiary, kept in insertion order."""

    def __init__(self) -> None:
        self._by_beneficiary: Dict[str, List[PurchaseRecord]] = {}

    def append(self, record: PurchaseRecord) -> None:
        self._by_beneficiary.setdefault(record.beneficiary, []).append(record)

    def list_for(self, beneficiary: str) -> List[PurchaseRecord]:
        return list(self._by_beneficiary.get(normalize_address(beneficiary), []))

    def remove(self, record_id: UUID) -> None:
        for beneficiary, records in list(self._by_beneficiary.items()):
            kept = [r for r in records if r.record_id != record_id]
            if len(kept) != len(records):
                if kept:
                    self._by_beneficiary[beneficiary] = kept
                else:
                    del self._by_beneficiary[beneficiary]
                return

    def delete_for(self, beneficiary: str) -> int:
        records = self._by_beneficiary.pop(normalize_address(beneficiary), [])
        return len(records)


def _row_to_record(row: Mapping[str, Any]) -> PurchaseRecord:
    """Convert a Supabase row into a PurchaseRecord."""

    return PurchaseRecord(
        record_id=UUID(str(row["record_id"])),
        beneficiary=str(row["beneficiary"]),
        item_id=int(str(row["item_id"])),
        amount_paid=int(str(row["amount_paid"])),
        purchase_time=int(str(row["purchase_time"])),
    )


class SupabasePurchaseRepository:
    """Purchase records stored one row per buy."""

    def __init__(self, client: Optional[Any] = None) -> None:
        if client is None:
            from repositories.client import get_supabase

            client = get_supabase()
        self._client = client

    def append(self, record: PurchaseRecord) -> None:
        payload: dict[str, Any] = {
            "record_id": str(record.record_id),
            "beneficiary": record.beneficiary,
            "item_id": str(record.item_id),
            "amount_paid": str(record.amount_paid),
            "purchase_time": str(record.purchase_time),
            "created_at_utc": datetime.now(timezone.utc).isoformat(),
        }

        response = self._client.table(_PURCHASES_TABLE).insert(payload).execute()
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to record purchase: {error}")

    def list_for(self, beneficiary: str) -> List[PurchaseRecord]:
        response = (
            self._client.table(_PURCHASES_TABLE)
            .select("*")
            .eq("beneficiary", normalize_address(beneficiary))
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to list purchases: {error}")

        rows = getattr(response, "data", None) or []
        return [_row_to_record(row) for row in rows]

    def remove(self, record_id: UUID) -> None:
        response = (
            self._client.table(_PURCHASES_TABLE)
            .delete()
            .eq("record_id", str(record_id))
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to remove purchase: {error}")

    def delete_for(self, beneficiary: str) -> int:
        response = (
            self._client.table(_PURCHASES_TABLE)
            .delete()
            .eq("beneficiary", normalize_address(beneficiary))
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to delete purchases: {error}")

        rows = getattr(response, "data", None) or []
        return len(rows)


__all__ = [
    "PurchaseRepository",
    "InMemoryPurchaseRepository",
    "SupabasePurchaseRepository",
]
