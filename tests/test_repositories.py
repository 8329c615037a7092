"""
Tests for `repositories/`.

Covers:
- In-memory stores: unknown items read as unlisted, saving an unlisted item
  clears it, records are grouped per beneficiary and removable by id.
- Supabase stores: uint256 columns are written as decimal strings, rows are
  parsed back into domain objects, and response errors raise RuntimeError.

The Supabase client is replaced by a chained MagicMock so no database is needed.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, List, Optional
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from conftest import OTHER, THIRD, WALLET
from domain.item import Item
from domain.purchase import PurchaseRecord
from domain.time import MAX_UINT256
from repositories.item_repository import InMemoryItemRepository, SupabaseItemRepository
from repositories.purchase_repository import InMemoryPurchaseRepository, SupabasePurchaseRepository


def _fake_client(data: Optional[List[dict[str, Any]]] = None, error: Any = None) -> MagicMock:
    query = MagicMock()
    for method in ("select", "eq", "limit", "insert", "upsert", "delete"):
        getattr(query, method).return_value = query
    query.execute.return_value = SimpleNamespace(data=data or [], error=error)

    client = MagicMock()
    client.table.return_value = query
    return client


def test_in_memory_items_default_to_unlisted() -> None:
    repo = InMemoryItemRepository()

    assert repo.get(1) == Item.unlisted()

    repo.save(1, Item(seller=WALLET, price=5, start_time=10))
    assert repo.get(1).price == 5
    assert len(repo) == 1

    repo.save(1, Item.unlisted())
    assert len(repo) == 0

    repo.save(2, Item(seller=WALLET, price=5, start_time=10))
    repo.delete(2)
    repo.delete(2)
    assert repo.get(2) == Item.unlisted()


def test_in_memory_purchases_grouped_by_beneficiary() -> None:
    repo = InMemoryPurchaseRepository()
    first = PurchaseRecord(beneficiary=OTHER, item_id=1, amount_paid=5, purchase_time=100)
    second = PurchaseRecord(beneficiary=OTHER, item_id=2, amount_paid=7, purchase_time=200)
    other = PurchaseRecord(beneficiary=THIRD, item_id=3, amount_paid=9, purchase_time=300)
    for record in (first, second, other):
        repo.append(record)

    assert repo.list_for(OTHER.upper().replace("0X", "0x")) == [first, second]

    repo.remove(first.record_id)
    assert repo.list_for(OTHER) == [second]

    assert repo.delete_for(OTHER) == 1
    assert repo.list_for(OTHER) == []
    assert repo.delete_for(OTHER) == 0
    assert repo.list_for(THIRD) == [other]


def test_supabase_item_get_parses_row() -> None:
    client = _fake_client(data=[{"item_id": "7", "seller": WALLET, "price": str(MAX_UINT256), "start_time": "1700000100"}])
    repo = SupabaseItemRepository(client=client)

    item = repo.get(7)

    assert item == Item(seller=WALLET, price=MAX_UINT256, start_time=1_700_000_100)
    client.table.assert_called_with("marketplace_items")
    client.table.return_value.eq.assert_called_with("item_id", "7")


def test_supabase_item_get_missing_row_is_unlisted() -> None:
    repo = SupabaseItemRepository(client=_fake_client(data=[]))

    assert repo.get(7) == Item.unlisted()


def test_supabase_item_save_writes_decimal_strings() -> None:
    client = _fake_client()
    repo = SupabaseItemRepository(client=client)

    repo.save(7, Item(seller=WALLET, price=10**30, start_time=1_700_000_100))

    client.table.return_value.upsert.assert_called_once_with({
        "item_id": "7",
        "seller": WALLET,
        "price": str(10**30),
        "start_time": "1700000100",
    })


def test_supabase_item_save_unlisted_deletes_row() -> None:
    client = _fake_client()
    repo = SupabaseItemRepository(client=client)

    repo.save(7, Item.unlisted())

    client.table.return_value.delete.assert_called_once_with()
    client.table.return_value.upsert.assert_not_called()


def test_supabase_item_error_raises() -> None:
    repo = SupabaseItemRepository(client=_fake_client(error="permission denied"))

    with pytest.raises(RuntimeError, match="permission denied"):
        repo.get(1)


def test_supabase_purchase_round_trip_fields() -> None:
    record_id = uuid4()
    client = _fake_client(data=[{
        "record_id": str(record_id),
        "beneficiary": OTHER,
        "item_id": "3",
        "amount_paid": "1000000000000000000",
        "purchase_time": "1700000200",
    }])
    repo = SupabasePurchaseRepository(client=client)

    records = repo.list_for(OTHER)

    assert records == [PurchaseRecord(
        record_id=record_id,
        beneficiary=OTHER,
        item_id=3,
        amount_paid=10**18,
        purchase_time=1_700_000_200,
    )]
    client.table.assert_called_with("purchase_records")


def test_supabase_purchase_append_payload() -> None:
    client = _fake_client()
    repo = SupabasePurchaseRepository(client=client)
    record = PurchaseRecord(beneficiary=OTHER, item_id=3, amount_paid=5, purchase_time=200)

    repo.append(record)

    payload = client.table.return_value.insert.call_args.args[0]
    assert payload["record_id"] == str(record.record_id)
    assert payload["beneficiary"] == OTHER
    assert payload["amount_paid"] == "5"
    assert payload["purchase_time"] == "200"
    assert "created_at_utc" in payload


def test_supabase_purchase_delete_counts_rows() -> None:
    repo = SupabasePurchaseRepository(client=_fake_client(data=[{"record_id": "a"}, {"record_id": "b"}]))

    assert repo.delete_for(OTHER) == 2


def test_supabase_purchase_error_raises() -> None:
    repo = SupabasePurchaseRepository(client=_fake_client(error="timeout"))

    with pytest.raises(RuntimeError, match="Failed to delete purchases"):
        repo.delete_for(OTHER)
