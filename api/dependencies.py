"""
API dependencies.

Wires one Marketplace per process from the environment settings and resolves
the calling address from the `X-Caller-Address` header.

Asset and token collaborators default to the in-memory implementations
(sandbox mode); a deployment passes its own collaborators to build_marketplace.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException

from domain.address import normalize_address
from domain.errors import (
    AlreadyOwner,
    ArithmeticOverflow,
    InvalidSale,
    MarketplaceError,
    NothingForClaim,
    NotItemOwner,
    TransferFailed,
)
from repositories.item_repository import InMemoryItemRepository, SupabaseItemRepository
from repositories.purchase_repository import InMemoryPurchaseRepository, SupabasePurchaseRepository
from services.clock import Clock, SystemClock
from services.locking import KeyedLockManager, LockTimeout
from services.marketplace import Marketplace
from services.settings import MarketplaceSettings, load_settings
from services.tokens import (
    AssetRegistry,
    InMemoryFungibleToken,
    InMemoryNonFungibleToken,
    PaymentToken,
    RewardToken,
)


def build_marketplace(
    settings: MarketplaceSettings,
    *,
    assets: Optional[AssetRegistry] = None,
    payment_token: Optional[PaymentToken] = None,
    reward_token: Optional[RewardToken] = None,
    clock: Optional[Clock] = None,
) -> Marketplace:
    """Build a Marketplace from settings, filling missing collaborators with sandbox ones."""

    operator = settings.marketplace_address

    if settings.storage_backend == "supabase":
        items = SupabaseItemRepository()
        purchases = SupabasePurchaseRepository()
    else:
        items = InMemoryItemRepository()
        purchases = InMemoryPurchaseRepository()

    return Marketplace(
        assets=assets if assets is not None else InMemoryNonFungibleToken(operator=operator),
        payment_token=payment_token if payment_token is not None else InMemoryFungibleToken(operator, "PAY"),
        reward_token=reward_token if reward_token is not None else InMemoryFungibleToken(operator, "RWD"),
        clock=clock if clock is not None else SystemClock(),
        address=operator,
        items=items,
        purchases=purchases,
        reward_policy=settings.reward_policy,
        locks=KeyedLockManager(timeout=settings.lock_timeout_seconds),
    )


@lru_cache(maxsize=1)
def get_marketplace() -> Marketplace:
    """Process-wide Marketplace built from the environment."""
    return build_marketplace(load_settings())


def get_caller(x_caller_address: str = Header(..., description="Address performing the call")) -> str:
    try:
        return normalize_address(x_caller_address)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid X-Caller-Address header")


_STATUS_BY_ERROR = (
    (InvalidSale, 400),
    (ArithmeticOverflow, 400),
    (NotItemOwner, 403),
    (NothingForClaim, 404),
    (AlreadyOwner, 409),
    (TransferFailed, 502),
)


def to_http_error(exc: Exception) -> HTTPException:
    """Translate a marketplace failure into an HTTPException."""

    if isinstance(exc, LockTimeout):
        return HTTPException(status_code=503, detail=f"LockTimeout: {exc}")
    if isinstance(exc, MarketplaceError):
        for error_type, status_code in _STATUS_BY_ERROR:
            if isinstance(exc, error_type):
                return HTTPException(status_code=status_code, detail=f"{type(exc).__name__}: {exc}")
    return HTTPException(status_code=500, detail=f"Internal error: {str(exc)}")
