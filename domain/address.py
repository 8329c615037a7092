"""
Domain: account addresses.

Addresses are opaque strings compared after normalization. Hex addresses
("0x" + 40 hex digits) are lowercased so checksummed and plain spellings
compare equal; any other non-empty identifier is kept as given.
"""

from __future__ import annotations

import re

ZERO_ADDRESS: str = "0x" + "0" * 40

_HEX_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(value: str) -> str:
    """Return the canonical spelling of an address."""

    if not isinstance(value, str) or not value.strip():
        raise ValueError("address must be a non-empty string")
    text = value.strip()
    if _HEX_ADDRESS.match(text):
        return text.lower()
    return text


def is_zero_address(value: str) -> bool:
    return normalize_address(value) == ZERO_ADDRESS
