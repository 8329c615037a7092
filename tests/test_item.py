"""
Tests for `domain/item.py`.

Covers contract rules:
- An Item is fully zeroed (unlisted) or has a seller.
- Purchasability gates on price > 0 and now >= start_time.
- Postponing returns a new instance and never wraps past uint256.
- Item is immutable (frozen).
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from domain.address import ZERO_ADDRESS
from domain.errors import ArithmeticOverflow
from domain.item import Item
from domain.time import MAX_UINT256

SELLER = "0xF39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def test_unlisted_item_is_fully_zeroed() -> None:
    item = Item.unlisted()

    assert item.seller == ZERO_ADDRESS
    assert item.price == 0
    assert item.start_time == 0
    assert item.is_listed is False


def test_unlisted_item_cannot_carry_terms() -> None:
    """Verify a zero seller with a price or start time is rejected."""

    with pytest.raises(ValueError):
        Item(seller=ZERO_ADDRESS, price=1, start_time=0)

    with pytest.raises(ValueError):
        Item(seller=ZERO_ADDRESS, price=0, start_time=10)


def test_seller_address_is_normalized() -> None:
    item = Item(seller=SELLER, price=1, start_time=10)

    assert item.seller == SELLER.lower()
    assert item.is_sold_by(SELLER.lower())
    assert item.is_sold_by(SELLER)


def test_is_purchasable_requires_start_time_and_price() -> None:
    item = Item(seller=SELLER, price=1, start_time=1000)

    assert item.is_purchasable(999) is False
    assert item.is_purchasable(1000) is True
    assert item.is_purchasable(5000) is True

    free = Item(seller=SELLER, price=0, start_time=1000)
    assert free.is_listed is True
    assert free.is_purchasable(5000) is False


def test_postponed_returns_new_instance() -> None:
    """Verify postponing does not mutate the original Item."""

    item = Item(seller=SELLER, price=1, start_time=1000)
    later = item.postponed(10)

    assert later is not item
    assert item.start_time == 1000
    assert later.start_time == 1010
    assert later.seller == item.seller
    assert later.price == item.price
    assert item.postponed(0) == item


def test_postponed_overflow_raises() -> None:
    """Verify postponing by MAX_UINT256 raises instead of wrapping around."""

    item = Item(seller=SELLER, price=1, start_time=1000)

    with pytest.raises(ArithmeticOverflow):
        item.postponed(MAX_UINT256)

    with pytest.raises(ArithmeticOverflow):
        item.postponed(-1)


def test_item_is_immutable() -> None:
    item = Item(seller=SELLER, price=1, start_time=1000)

    with pytest.raises(FrozenInstanceError):
        item.price = 0  # type: ignore[misc]
