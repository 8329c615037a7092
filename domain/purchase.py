"""
Domain: Purchase records (reward-eligible buy events).

Rules implemented here:
- One PurchaseRecord is appended per successful buy, keyed by the buyer.
- A beneficiary's records are ordered by purchase time and consumed as a whole
  by that beneficiary's next successful claim (no partial consumption).
- Records are decoupled from listing state: the Item is cleared at purchase
  time, the record keeps the price that was paid.

Indexed access is bounds-checked against the logical record count.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Tuple
from uuid import UUID, uuid4

from .address import normalize_address
from .errors import IndexOutOfRange
from .time import require_uint256


@dataclass(frozen=True, slots=True)
class PurchaseRecord:
    """
    Immutable note of one completed buy.

    amount_paid is the basis for reward weighting; purchase_time is the
    absolute timestamp of the buy.
    """

    beneficiary: str
    item_id: int
    amount_paid: int
    purchase_time: int
    record_id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        object.__setattr__(self, "beneficiary", normalize_address(self.beneficiary))
        require_uint256("item_id", self.item_id)
        require_uint256("amount_paid", self.amount_paid)
        require_uint256("purchase_time", self.purchase_time)


@dataclass(frozen=True, slots=True)
class PurchaseHistory:
    """
    Ordered, read-only view of one beneficiary's outstanding records.
    """

    beneficiary: str
    records: Tuple[PurchaseRecord, ...] = ()

    @staticmethod
    def of(beneficiary: str, records: Iterable[PurchaseRecord]) -> "PurchaseHistory":
        ordered = sorted(records, key=lambda r: r.purchase_time)
        return PurchaseHistory(beneficiary=normalize_address(beneficiary), records=tuple(ordered))

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[PurchaseRecord]:
        return iter(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)

    def at(self, index: int) -> PurchaseRecord:
        """
        Return the record at index.

        Raises:
            IndexOutOfRange: index is negative or not below the record count
        """

        if not 0 <= index < len(self.records):
            raise IndexOutOfRange(
                f"record index {index} out of range for {len(self.records)} record(s)"
            )
        return self.records[index]

    @property
    def total_paid(self) -> int:
        return sum(r.amount_paid for r in self.records)


__all__ = ["PurchaseRecord", "PurchaseHistory"]
