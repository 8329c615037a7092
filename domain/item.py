"""
Domain: Items (sale terms for one non-fungible asset identifier).

Rules implemented here:
- An Item is either fully zeroed (unlisted) or has a non-zero seller.
- A listed Item is purchasable iff price > 0 and now >= start_time.
- Postponing adds to start_time with checked uint256 arithmetic; it never wraps.

This module contains only pure domain entities: no I/O, no collaborators.
Who may list, postpone or discard is enforced by the marketplace service.
"""

from __future__ import annotations

from dataclasses import dataclass

from .address import ZERO_ADDRESS, normalize_address
from .time import checked_add, require_uint256


@dataclass(frozen=True, slots=True)
class Item:
    """
    Immutable listing for a single asset identifier.

    Transitions return a new instance; the original is never mutated.
    """

    seller: str = ZERO_ADDRESS
    price: int = 0
    start_time: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "seller", normalize_address(self.seller))
        require_uint256("price", self.price)
        require_uint256("start_time", self.start_time)
        if self.seller == ZERO_ADDRESS and (self.price != 0 or self.start_time != 0):
            raise ValueError("An unlisted Item must be fully zeroed")

    @staticmethod
    def unlisted() -> "Item":
        return Item()

    @property
    def is_listed(self) -> bool:
        """Listed iff seller is set."""

        return self.seller != ZERO_ADDRESS

    def has_started(self, now: int) -> bool:
        return now >= self.start_time

    def is_purchasable(self, now: int) -> bool:
        """A listing can be bought once it has started, and only at a non-zero price."""

        return self.is_listed and self.price > 0 and self.has_started(now)

    def is_sold_by(self, address: str) -> bool:
        return self.is_listed and self.seller == normalize_address(address)

    def postponed(self, extra_seconds: int) -> "Item":
        """
        Return a new Item whose start_time is pushed back by extra_seconds.

        Raises:
            ArithmeticOverflow: the new start_time would exceed uint256
        """

        new_start = checked_add("start_time", self.start_time, extra_seconds)
        return Item(seller=self.seller, price=self.price, start_time=new_start)


__all__ = ["Item"]
