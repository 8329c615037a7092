"""
Token and asset collaborators.

The marketplace only depends on the capability protocols below. The token
mechanics themselves belong to external asset contracts; the in-memory
implementations here mirror their observable behavior (balances, allowances,
per-token and operator approvals) for tests and the sandbox API.

Every marketplace-facing transfer reports success as a bool. A False return
means nothing moved.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Protocol, Set

from domain.address import ZERO_ADDRESS, normalize_address
from domain.time import MAX_UINT256, require_uint256

logger = logging.getLogger(__name__)


class AssetRegistry(Protocol):
    def owner_of(self, item_id: int) -> str: ...

    def transfer_asset(self, from_address: str, to_address: str, item_id: int) -> bool: ...


class PaymentToken(Protocol):
    def transfer_from(self, payer: str, payee: str, amount: int) -> bool: ...

    def transfer(self, to_address: str, amount: int) -> bool: ...


class RewardToken(Protocol):
    def transfer(self, to_address: str, amount: int) -> bool: ...


class InMemoryFungibleToken:
    """
    Fungible token ledger operated by a single spender (the marketplace).

    transfer() moves the operator's own balance; transfer_from() spends an
    allowance the payer granted to the operator. An allowance of MAX_UINT256
    is treated as unlimited and never decreases.
    """

    def __init__(self, operator: str, symbol: str = "TKN") -> None:
        self.operator = normalize_address(operator)
        self.symbol = symbol
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[str, Dict[str, int]] = {}
        self._lock = threading.RLock()

    def mint(self, to_address: str, amount: int) -> None:
        require_uint256("amount", amount)
        to_address = normalize_address(to_address)
        with self._lock:
            new_balance = self._balances.get(to_address, 0) + amount
            require_uint256("balance", new_balance)
            self._balances[to_address] = new_balance

    def balance_of(self, owner: str) -> int:
        with self._lock:
            return self._balances.get(normalize_address(owner), 0)

    def allowance(self, owner: str, spender: str) -> int:
        with self._lock:
            return self._allowances.get(normalize_address(owner), {}).get(normalize_address(spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        require_uint256("amount", amount)
        with self._lock:
            self._allowances.setdefault(normalize_address(owner), {})[normalize_address(spender)] = amount

    def transfer_as(self, sender: str, to_address: str, amount: int) -> bool:
        """Move sender's own balance (a holder-initiated transfer)."""

        with self._lock:
            return self._move(normalize_address(sender), normalize_address(to_address), amount)

    def transfer(self, to_address: str, amount: int) -> bool:
        with self._lock:
            return self._move(self.operator, normalize_address(to_address), amount)

    def transfer_from(self, payer: str, payee: str, amount: int) -> bool:
        payer = normalize_address(payer)
        with self._lock:
            allowed = self.allowance(payer, self.operator)
            if allowed < amount:
                logger.debug(
                    f"{self.symbol} allowance too low for transfer_from",
                    extra={"payer": payer, "allowance": allowed, "amount": amount},
                )
                return False
            if not self._move(payer, normalize_address(payee), amount):
                return False
            if allowed != MAX_UINT256:
                self._allowances.setdefault(payer, {})[self.operator] = allowed - amount
            return True

    def _move(self, sender: str, recipient: str, amount: int) -> bool:
        if amount < 0 or recipient == ZERO_ADDRESS:
            return False
        balance = self._balances.get(sender, 0)
        if balance < amount:
            return False
        self._balances[sender] = balance - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        return True


class InMemoryNonFungibleToken:
    """
    Non-fungible asset registry with sequential identifiers starting at 1.

    transfer_asset() is performed by the operator (the marketplace) and needs
    either the token's approval or an operator approval from the owner.
    Token approval is cleared on every transfer.
    """

    def __init__(self, operator: str) -> None:
        self.operator = normalize_address(operator)
        self._owners: Dict[int, str] = {}
        self._token_approvals: Dict[int, str] = {}
        self._operator_approvals: Dict[str, Set[str]] = {}
        self._next_id = 1
        self._lock = threading.RLock()

    def mint(self, to_address: str) -> int:
        with self._lock:
            item_id = self._next_id
            self._next_id += 1
            self._owners[item_id] = normalize_address(to_address)
            return item_id

    def owner_of(self, item_id: int) -> str:
        with self._lock:
            return self._owners.get(item_id, ZERO_ADDRESS)

    def approve(self, owner: str, approved: str, item_id: int) -> None:
        with self._lock:
            if self.owner_of(item_id) != normalize_address(owner):
                raise ValueError(f"{owner} does not own item {item_id}")
            self._token_approvals[item_id] = normalize_address(approved)

    def get_approved(self, item_id: int) -> str:
        with self._lock:
            return self._token_approvals.get(item_id, ZERO_ADDRESS)

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None:
        owner = normalize_address(owner)
        with self._lock:
            operators = self._operator_approvals.setdefault(owner, set())
            if approved:
                operators.add(normalize_address(operator))
            else:
                operators.discard(normalize_address(operator))

    def transfer_asset(self, from_address: str, to_address: str, item_id: int) -> bool:
        from_address = normalize_address(from_address)
        to_address = normalize_address(to_address)
        with self._lock:
            owner = self._owners.get(item_id)
            if owner is None or owner != from_address or to_address == ZERO_ADDRESS:
                return False
            authorized = (
                self._token_approvals.get(item_id) == self.operator
                or self.operator in self._operator_approvals.get(owner, set())
            )
            if not authorized:
                logger.debug(
                    "Marketplace is not approved to move asset",
                    extra={"item_id": item_id, "owner": owner},
                )
                return False
            self._owners[item_id] = to_address
            self._token_approvals.pop(item_id, None)
            return True


__all__ = [
    "AssetRegistry",
    "PaymentToken",
    "RewardToken",
    "InMemoryFungibleToken",
    "InMemoryNonFungibleToken",
]
