"""
Pytest configuration for marketplace tests.

Adds the project root to the Python path so tests can import domain,
repositories, services and api, and provides a fresh marketplace wired to
in-memory collaborators for every test.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from services.clock import ManualClock  # noqa: E402
from services.locking import KeyedLockManager  # noqa: E402
from services.marketplace import Marketplace  # noqa: E402
from services.settings import DEFAULT_MARKETPLACE_ADDRESS  # noqa: E402
from services.tokens import InMemoryFungibleToken, InMemoryNonFungibleToken  # noqa: E402

ETHER = 10**18
WEEK = 604_800
START = 1_700_000_000

MARKET = DEFAULT_MARKETPLACE_ADDRESS
WALLET = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
OTHER = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"
THIRD = "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc"


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=START)


@pytest.fixture
def nft() -> InMemoryNonFungibleToken:
    return InMemoryNonFungibleToken(operator=MARKET)


@pytest.fixture
def payment_token() -> InMemoryFungibleToken:
    token = InMemoryFungibleToken(MARKET, "PAY")
    token.mint(WALLET, 100_000 * ETHER)
    token.mint(OTHER, 1_000 * ETHER)
    return token


@pytest.fixture
def reward_token() -> InMemoryFungibleToken:
    token = InMemoryFungibleToken(MARKET, "RWD")
    token.mint(MARKET, 100_000 * ETHER)
    return token


@pytest.fixture
def marketplace(nft, payment_token, reward_token, clock) -> Marketplace:
    return Marketplace(
        assets=nft,
        payment_token=payment_token,
        reward_token=reward_token,
        clock=clock,
        address=MARKET,
        locks=KeyedLockManager(timeout=1.0),
    )
