"""
Marketplace service: listing registry and reward ledger.

Handles:
- Time-gated listings (set_for_sale, postpone_sale, discard_from_sale)
- Purchases with escrowed payment and asset delivery (buy)
- Whole-week reward accrual paid out on claim, callable by anyone for any beneficiary

Execution model:
- Every mutation of an Item is serialized on its item key; every mutation of a
  beneficiary's records on its ledger key. buy takes item then ledger.
- All preconditions are checked before the first side effect.
- Side effects run inside a unit of work that registers a compensation for
  each completed step. Any failure rolls the completed steps back in reverse
  order (all-or-nothing), then the error reaches the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from domain.address import ZERO_ADDRESS, normalize_address
from domain.errors import (
    AlreadyOwner,
    InvalidSale,
    NothingForClaim,
    NotItemOwner,
    TransferFailed,
)
from domain.item import Item
from domain.purchase import PurchaseHistory, PurchaseRecord
from domain.reward import RewardPolicy, total_reward
from domain.time import is_uint256
from repositories.item_repository import InMemoryItemRepository, ItemRepository
from repositories.purchase_repository import InMemoryPurchaseRepository, PurchaseRepository
from services.clock import Clock
from services.locking import KeyedLockManager, item_key, ledger_key
from services.settings import DEFAULT_MARKETPLACE_ADDRESS
from services.tokens import AssetRegistry, PaymentToken, RewardToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ClaimResult:
    """
    Result of a successful claim.

    beneficiary: Address that received the payout
    amount: Reward tokens transferred (0 when nothing has accrued yet)
    records_consumed: Number of purchase records cleared by this claim
    claimed_at: Timestamp the accrual was evaluated at
    """
    beneficiary: str
    amount: int
    records_consumed: int
    claimed_at: int


class _UnitOfWork:
    """
    Ordered side effects with compensations.

    Used as a context manager: if the block raises, every completed step's
    compensation runs in reverse order before the exception propagates.
    """

    def __init__(self, operation: str, **context: object) -> None:
        self._operation = operation
        self._context = context
        self._compensations: List[Tuple[str, Callable[[], object]]] = []

    def __enter__(self) -> "_UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is not None:
            self.rollback(exc)
        return False

    def step(self, description: str, action: Callable[[], object],
             undo: Optional[Callable[[], object]] = None) -> object:
        """Run a state write; its compensation is registered only once it succeeded."""
        result = action()
        if undo is not None:
            self._compensations.append((description, undo))
        return result

    def transfer(self, description: str, action: Callable[[], bool],
                 undo: Optional[Callable[[], bool]] = None) -> None:
        """
        Run a collaborator transfer.

        Raises:
            TransferFailed: the collaborator returned False or raised
        """
        try:
            ok = action()
        except Exception as e:
            raise TransferFailed(f"{self._operation}: {description} failed: {e}") from e
        if not ok:
            raise TransferFailed(f"{self._operation}: {description} was rejected")
        if undo is not None:
            self._compensations.append((description, undo))

    def rollback(self, cause: BaseException) -> None:
        logger.warning(
            f"Rolling back {self._operation}: {cause}",
            extra={"operation": self._operation, "steps": len(self._compensations), **self._context},
        )
        while self._compensations:
            description, undo = self._compensations.pop()
            try:
                outcome = undo()
            except Exception:
                logger.exception(
                    f"Compensation for '{description}' raised during {self._operation} rollback",
                    extra={"operation": self._operation, **self._context},
                )
                continue
            if outcome is False:
                logger.error(
                    f"Compensation for '{description}' was rejected during {self._operation} rollback",
                    extra={"operation": self._operation, **self._context},
                )


class Marketplace:
    """
    Listing registry and reward ledger over one asset contract.

    Collaborators:
        assets: ownership queries and asset transfers (marketplace is the operator)
        payment_token: buyer payments; the marketplace pulls into its own custody
        reward_token: reward payouts from the marketplace's own balance
        clock: current timestamp
    """

    def __init__(
        self,
        assets: AssetRegistry,
        payment_token: PaymentToken,
        reward_token: RewardToken,
        clock: Clock,
        *,
        address: str = DEFAULT_MARKETPLACE_ADDRESS,
        items: Optional[ItemRepository] = None,
        purchases: Optional[PurchaseRepository] = None,
        reward_policy: Optional[RewardPolicy] = None,
        locks: Optional[KeyedLockManager] = None,
    ) -> None:
        self.address = normalize_address(address)
        self._assets = assets
        self._payment_token = payment_token
        self._reward_token = reward_token
        self._clock = clock
        self._items: ItemRepository = items if items is not None else InMemoryItemRepository()
        self._purchases: PurchaseRepository = purchases if purchases is not None else InMemoryPurchaseRepository()
        self.reward_policy = reward_policy or RewardPolicy()
        self._locks = locks or KeyedLockManager()

    # ------------------------------------------------------------------
    # Listing registry
    # ------------------------------------------------------------------

    @staticmethod
    def _require_item_id(item_id: int) -> None:
        if not is_uint256(item_id):
            raise InvalidSale(f"Invalid item id: {item_id!r}")

    def get_item(self, item_id: int) -> Item:
        """Current sale terms for item_id (fully zeroed when unlisted)."""
        self._require_item_id(item_id)
        return self._items.get(item_id)

    def set_for_sale(self, caller: str, item_id: int, price: int, start_time: int) -> Item:
        """
        List (or re-list) an item.

        The caller must currently own the asset. start_time must be strictly in
        the future. A zero price is rejected for an unlisted item but accepted
        when overwriting an existing listing; such a listing cannot be bought.

        Raises:
            NotItemOwner: caller does not own the asset
            InvalidSale: start_time not in the future, or invalid/zero initial price
        """
        seller = normalize_address(caller)
        self._require_item_id(item_id)

        with self._locks.lock(item_key(item_id)):
            owner = normalize_address(self._assets.owner_of(item_id))
            if owner == ZERO_ADDRESS or owner != seller:
                raise NotItemOwner(f"{seller} does not own item {item_id}")

            now = self._clock.now()
            if not is_uint256(start_time) or start_time <= now:
                raise InvalidSale(f"Sale start {start_time!r} must be after {now}")
            if not is_uint256(price):
                raise InvalidSale(f"Invalid price: {price!r}")

            current = self._items.get(item_id)
            if price == 0 and not current.is_listed:
                raise InvalidSale("Initial listing price must be greater than zero")

            item = Item(seller=seller, price=price, start_time=start_time)
            self._items.save(item_id, item)

        logger.info(
            f"Item {item_id} set for sale",
            extra={"item_id": item_id, "seller": seller, "price": price,
                   "start_time": start_time, "relisted": current.is_listed},
        )
        return item

    def postpone_sale(self, caller: str, item_id: int, extra_seconds: int) -> Item:
        """
        Push a listing's start time back by extra_seconds.

        Raises:
            NotItemOwner: caller is not the recorded seller (or the item is unlisted)
            ArithmeticOverflow: the new start time would not fit in uint256
        """
        seller = normalize_address(caller)
        self._require_item_id(item_id)

        with self._locks.lock(item_key(item_id)):
            current = self._items.get(item_id)
            if not current.is_sold_by(seller):
                raise NotItemOwner(f"{seller} is not the seller of item {item_id}")

            item = current.postponed(extra_seconds)
            if item != current:
                self._items.save(item_id, item)

        logger.info(
            f"Item {item_id} sale postponed by {extra_seconds}s",
            extra={"item_id": item_id, "seller": seller, "start_time": item.start_time},
        )
        return item

    def discard_from_sale(self, caller: str, item_id: int) -> None:
        """
        Withdraw a listing.

        Discarding an unlisted item is an idempotent no-op.

        Raises:
            NotItemOwner: the item is listed by someone other than caller
        """
        seller = normalize_address(caller)
        self._require_item_id(item_id)

        with self._locks.lock(item_key(item_id)):
            current = self._items.get(item_id)
            if not current.is_listed:
                logger.debug(f"Item {item_id} is not listed; nothing to discard")
                return
            if current.seller != seller:
                raise NotItemOwner(f"{seller} is not the seller of item {item_id}")
            self._items.delete(item_id)

        logger.info(f"Item {item_id} discarded from sale", extra={"item_id": item_id, "seller": seller})

    def buy(self, caller: str, item_id: int) -> PurchaseRecord:
        """
        Buy a listed item at its current price.

        Process:
        1. Validate the listing (seller, price, start time, seller still owns the asset)
        2. Clear the Item and append a PurchaseRecord for the buyer
        3. Pull the price from the buyer into marketplace custody
        4. Transfer the asset from seller to buyer
        5. Release the price to the seller

        Any failure in 2-5 rolls back every completed step.

        Raises:
            AlreadyOwner: caller is the seller
            InvalidSale: unlisted, zero price, not started yet, or stale listing
            TransferFailed: a token or asset transfer failed (rolled back)
        """
        buyer = normalize_address(caller)
        self._require_item_id(item_id)

        with self._locks.hold(item_key(item_id), ledger_key(buyer)):
            item = self._items.get(item_id)
            if item.is_sold_by(buyer):
                raise AlreadyOwner(f"{buyer} already owns item {item_id}")

            now = self._clock.now()
            if not item.is_listed:
                raise InvalidSale(f"Item {item_id} is not listed")
            if item.price == 0:
                raise InvalidSale(f"Item {item_id} has no price")
            if not item.has_started(now):
                raise InvalidSale(f"Sale of item {item_id} starts at {item.start_time}")
            if normalize_address(self._assets.owner_of(item_id)) != item.seller:
                raise InvalidSale(f"Seller no longer owns item {item_id}")

            record = PurchaseRecord(
                beneficiary=buyer,
                item_id=item_id,
                amount_paid=item.price,
                purchase_time=now,
            )
            seller, price = item.seller, item.price

            with _UnitOfWork("buy", item_id=item_id, buyer=buyer, seller=seller) as uow:
                uow.step("clear listing",
                         lambda: self._items.delete(item_id),
                         undo=lambda: self._items.save(item_id, item))
                uow.step("record purchase",
                         lambda: self._purchases.append(record),
                         undo=lambda: self._purchases.remove(record.record_id))
                uow.transfer("collect payment",
                             lambda: self._payment_token.transfer_from(buyer, self.address, price),
                             undo=lambda: self._payment_token.transfer(buyer, price))
                uow.transfer("deliver asset",
                             lambda: self._assets.transfer_asset(seller, buyer, item_id),
                             undo=lambda: self._assets.transfer_asset(buyer, seller, item_id))
                uow.transfer("pay seller",
                             lambda: self._payment_token.transfer(seller, price))

        logger.info(
            f"Item {item_id} bought for {price}",
            extra={"item_id": item_id, "buyer": buyer, "seller": seller,
                   "price": price, "purchase_time": now, "record_id": str(record.record_id)},
        )
        return record

    # ------------------------------------------------------------------
    # Reward ledger
    # ------------------------------------------------------------------

    def purchase_records(self, beneficiary: str) -> PurchaseHistory:
        """Outstanding purchase records for beneficiary, oldest first."""
        return PurchaseHistory.of(beneficiary, self._purchases.list_for(beneficiary))

    def pending_reward(self, beneficiary: str) -> int:
        """Reward a claim would pay right now (no state change)."""
        with self._locks.lock(ledger_key(beneficiary)):
            history = self.purchase_records(beneficiary)
            return total_reward(history, self._clock.now(), self.reward_policy)

    def claim(self, caller: str, beneficiary: str) -> ClaimResult:
        """
        Pay out the accrued reward of every outstanding record of beneficiary.

        Any address may trigger the claim; the payout always goes to
        beneficiary. All records are consumed together, including records that
        have not accrued a whole week yet.

        Raises:
            NothingForClaim: beneficiary has no outstanding records
            TransferFailed: the reward transfer failed (records restored)
        """
        caller = normalize_address(caller)
        beneficiary = normalize_address(beneficiary)

        with self._locks.lock(ledger_key(beneficiary)):
            history = self.purchase_records(beneficiary)
            if not history:
                raise NothingForClaim(f"No purchases to claim for {beneficiary}")

            now = self._clock.now()
            amount = total_reward(history, now, self.reward_policy)

            with _UnitOfWork("claim", beneficiary=beneficiary, caller=caller) as uow:
                uow.step("consume records",
                         lambda: self._purchases.delete_for(beneficiary),
                         undo=lambda: self._restore_records(history))
                if amount > 0:
                    uow.transfer("pay reward",
                                 lambda: self._reward_token.transfer(beneficiary, amount))

        logger.info(
            f"Claimed {amount} reward for {beneficiary}",
            extra={"beneficiary": beneficiary, "caller": caller, "amount": amount,
                   "records_consumed": len(history), "claimed_at": now},
        )
        return ClaimResult(
            beneficiary=beneficiary,
            amount=amount,
            records_consumed=len(history),
            claimed_at=now,
        )

    def _restore_records(self, history: PurchaseHistory) -> None:
        for record in history:
            self._purchases.append(record)


__all__ = [
    "ClaimResult",
    "Marketplace",
]
