"""
Domain: Reward accrual for purchase records.

Accrual is computed at claim time and never persisted. It is linear in whole
elapsed weeks:

  whole_weeks = floor((as_of - purchase_time) / 1 week)      (0 if as_of <= purchase_time)
  weeks       = min(whole_weeks, max_weeks)                   (max_weeks unset = uncapped)
  reward      = floor(amount_paid * weeks * rate_numerator / rate_denominator)

Invariants:
- The function is total: zero elapsed weeks (purchase day) yields 0 and never divides.
- Partial weeks do not accrue.
- The aggregated reward over all records stays within uint256.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .purchase import PurchaseRecord
from .time import checked_add, checked_div, checked_mul, require_uint256, whole_weeks_between


@dataclass(frozen=True, slots=True)
class RewardPolicy:
    """
    Reward rate per paid unit per whole week, as a fraction.

    The default policy pays one reward unit per paid unit per week.
    """

    rate_numerator: int = 1
    rate_denominator: int = 1
    max_weeks: Optional[int] = None

    def __post_init__(self) -> None:
        if self.rate_numerator < 0:
            raise ValueError("rate_numerator must be >= 0")
        if self.rate_denominator <= 0:
            raise ValueError("rate_denominator must be > 0")
        if self.max_weeks is not None and self.max_weeks < 0:
            raise ValueError("max_weeks must be >= 0")

    def accrual_weeks(self, purchase_time: int, as_of: int) -> int:
        weeks = whole_weeks_between(purchase_time, as_of)
        if self.max_weeks is not None:
            weeks = min(weeks, self.max_weeks)
        return weeks


@dataclass(frozen=True, slots=True)
class RewardAccrual:
    """
    Value object for evaluating the reward of a single record.

    The evaluation time is passed explicitly; no implicit 'now' is used.
    """

    record: PurchaseRecord
    as_of: int
    policy: RewardPolicy = RewardPolicy()

    def weeks(self) -> int:
        return self.policy.accrual_weeks(self.record.purchase_time, self.as_of)

    def amount(self) -> int:
        weeks = self.weeks()
        if weeks == 0 or self.record.amount_paid == 0 or self.policy.rate_numerator == 0:
            return 0

        weighted = checked_mul("reward", self.record.amount_paid, weeks)
        scaled = checked_mul("reward", weighted, self.policy.rate_numerator)
        return checked_div("reward", scaled, self.policy.rate_denominator)


def total_reward(records: Iterable[PurchaseRecord], as_of: int, policy: RewardPolicy) -> int:
    """Sum the accrual of every record at as_of."""

    require_uint256("as_of", as_of)
    total = 0
    for record in records:
        total = checked_add("reward", total, RewardAccrual(record, as_of, policy).amount())
    return total


__all__ = ["RewardPolicy", "RewardAccrual", "total_reward"]
