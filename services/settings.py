"""
Marketplace settings.

Read once from the environment (and an optional .env file in the project
root). Invalid values fail fast with RuntimeError naming the variable.

Environment variables:
- MARKETPLACE_ADDRESS: custody/operator address of the marketplace
- MARKETPLACE_STORAGE: "memory" (default) or "supabase"
- REWARD_RATE_NUMERATOR / REWARD_RATE_DENOMINATOR: reward per paid unit per week
- REWARD_MAX_WEEKS: optional cap on accrued weeks
- LOCK_TIMEOUT_SECONDS: per-key lock wait
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from domain.address import normalize_address
from domain.reward import RewardPolicy

DEFAULT_MARKETPLACE_ADDRESS: str = "0x000000000000000000000000000000000000c0de"

STORAGE_BACKENDS = ("memory", "supabase")

env_path = Path(__file__).parent.parent / ".env"


@dataclass(frozen=True, slots=True)
class MarketplaceSettings:
    marketplace_address: str = DEFAULT_MARKETPLACE_ADDRESS
    storage_backend: str = "memory"
    reward_policy: RewardPolicy = RewardPolicy()
    lock_timeout_seconds: float = 5.0


def _int_env(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Invalid environment variable: {name} must be an integer, got {raw!r}")


def load_settings() -> MarketplaceSettings:
    """Build MarketplaceSettings from the environment."""

    load_dotenv(dotenv_path=env_path)

    raw_address = os.getenv("MARKETPLACE_ADDRESS", DEFAULT_MARKETPLACE_ADDRESS)
    try:
        address = normalize_address(raw_address)
    except ValueError:
        raise RuntimeError(f"Invalid environment variable: MARKETPLACE_ADDRESS is not an address, got {raw_address!r}")

    storage = os.getenv("MARKETPLACE_STORAGE", "memory").strip().lower()
    if storage not in STORAGE_BACKENDS:
        raise RuntimeError(
            f"Invalid environment variable: MARKETPLACE_STORAGE must be one of {STORAGE_BACKENDS}, got {storage!r}"
        )

    try:
        policy = RewardPolicy(
            rate_numerator=_int_env("REWARD_RATE_NUMERATOR", 1),
            rate_denominator=_int_env("REWARD_RATE_DENOMINATOR", 1),
            max_weeks=_int_env("REWARD_MAX_WEEKS", None),
        )
    except ValueError as e:
        raise RuntimeError(f"Invalid reward configuration: {e}")

    raw_timeout = os.getenv("LOCK_TIMEOUT_SECONDS", "5")
    try:
        timeout = float(raw_timeout)
    except ValueError:
        raise RuntimeError(f"Invalid environment variable: LOCK_TIMEOUT_SECONDS must be a number, got {raw_timeout!r}")
    if timeout <= 0:
        raise RuntimeError("Invalid environment variable: LOCK_TIMEOUT_SECONDS must be > 0")

    return MarketplaceSettings(
        marketplace_address=address,
        storage_backend=storage,
        reward_policy=policy,
        lock_timeout_seconds=timeout,
    )


__all__ = ["MarketplaceSettings", "load_settings", "DEFAULT_MARKETPLACE_ADDRESS"]
