"""
Tests for `services/locking.py` and concurrent marketplace access.

Covers:
- Keys are namespaced per item and per normalized beneficiary.
- A held key blocks other threads until the timeout, then raises LockTimeout.
- Different keys do not block each other; the same thread may re-enter.
- Concurrent buyers of one item: exactly one succeeds.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import ETHER, MARKET, OTHER, START, THIRD, WALLET
from domain.errors import InvalidSale, MarketplaceError
from services.locking import KeyedLockManager, LockTimeout, item_key, ledger_key


def _hold_in_thread(locks: KeyedLockManager, key: str):
    acquired = threading.Event()
    release = threading.Event()

    def worker() -> None:
        with locks.lock(key):
            acquired.set()
            release.wait(timeout=5)

    thread = threading.Thread(target=worker)
    thread.start()
    assert acquired.wait(timeout=5)
    return thread, release


def test_keys_are_namespaced() -> None:
    assert item_key(7) == "item:7"
    assert ledger_key(OTHER) == f"ledger:{OTHER}"
    assert ledger_key("0xF39Fd6e51aad88F6F4ce6aB8827279cffFb92266") == f"ledger:{WALLET}"


def test_timeout_must_be_positive() -> None:
    with pytest.raises(ValueError):
        KeyedLockManager(timeout=0)


def test_held_key_times_out() -> None:
    locks = KeyedLockManager(timeout=0.1)
    thread, release = _hold_in_thread(locks, item_key(1))
    try:
        with pytest.raises(LockTimeout):
            with locks.lock(item_key(1)):
                pass
    finally:
        release.set()
        thread.join()


def test_lock_timeout_is_a_timeout_error() -> None:
    assert issubclass(LockTimeout, TimeoutError)


def test_other_keys_are_independent() -> None:
    locks = KeyedLockManager(timeout=0.1)
    thread, release = _hold_in_thread(locks, item_key(1))
    try:
        with locks.hold(item_key(2), ledger_key(OTHER)):
            pass
    finally:
        release.set()
        thread.join()


def test_same_thread_can_reenter() -> None:
    locks = KeyedLockManager(timeout=0.1)

    with locks.lock(item_key(1)):
        with locks.hold(item_key(1), ledger_key(OTHER)):
            pass


def test_marketplace_operation_times_out_on_busy_item(nft) -> None:
    from services.clock import ManualClock
    from services.marketplace import Marketplace
    from services.tokens import InMemoryFungibleToken

    locks = KeyedLockManager(timeout=0.1)
    marketplace = Marketplace(
        assets=nft,
        payment_token=InMemoryFungibleToken(MARKET, "PAY"),
        reward_token=InMemoryFungibleToken(MARKET, "RWD"),
        clock=ManualClock(START),
        address=MARKET,
        locks=locks,
    )
    item_id = nft.mint(WALLET)

    thread, release = _hold_in_thread(locks, item_key(item_id))
    try:
        with pytest.raises(LockTimeout):
            marketplace.set_for_sale(WALLET, item_id, ETHER, START + 100)
    finally:
        release.set()
        thread.join()

    assert marketplace.get_item(item_id).is_listed is False


def test_concurrent_buyers_only_one_wins(marketplace, nft, payment_token, clock) -> None:
    """Verify two buyers racing for one item produce exactly one purchase."""

    item_id = nft.mint(WALLET)
    marketplace.set_for_sale(WALLET, item_id, ETHER, START + 100)
    nft.approve(WALLET, MARKET, item_id)
    payment_token.mint(THIRD, 10 * ETHER)
    payment_token.approve(OTHER, MARKET, ETHER)
    payment_token.approve(THIRD, MARKET, ETHER)
    clock.advance(200)

    def attempt(buyer: str):
        try:
            return marketplace.buy(buyer, item_id)
        except MarketplaceError as e:
            return e

    with ThreadPoolExecutor(max_workers=2) as pool:
        outcomes = list(pool.map(attempt, [OTHER, THIRD]))

    winners = [o for o in outcomes if not isinstance(o, Exception)]
    losers = [o for o in outcomes if isinstance(o, Exception)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0], InvalidSale)
    assert nft.owner_of(item_id) == winners[0].beneficiary
    assert payment_token.balance_of(WALLET) == 100_001 * ETHER
