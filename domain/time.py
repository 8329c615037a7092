"""
Domain time and integer utilities (pure).

Centralized range checks and checked arithmetic for timestamps, durations and
token amounts. All of them are unsigned 256-bit integers on the asset side, so
every value handled by the marketplace must fit in [0, MAX_UINT256].

Behavior and error messages must remain consistent across the domain model.
"""

from __future__ import annotations

from .errors import ArithmeticOverflow, DivisionUndefined

MAX_UINT256: int = 2**256 - 1

SECONDS_PER_DAY: int = 86_400
SECONDS_PER_WEEK: int = 7 * SECONDS_PER_DAY


def is_uint256(value: object) -> bool:
    """True iff value is a plain int (not bool) within [0, MAX_UINT256]."""

    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= MAX_UINT256


def require_uint256(name: str, value: int) -> None:
    """
    Enforces that a quantity is representable as uint256.

    Raises:
        ArithmeticOverflow: value is negative, too large, or not an integer
    """

    if not is_uint256(value):
        raise ArithmeticOverflow(f"{name} must be an integer in [0, 2**256 - 1], got {value!r}")


def checked_add(name: str, a: int, b: int) -> int:
    """Add two uint256 values, raising instead of wrapping."""

    require_uint256(name, a)
    require_uint256(name, b)
    total = a + b
    if total > MAX_UINT256:
        raise ArithmeticOverflow(f"{name} overflows uint256 ({a} + {b})")
    return total


def checked_mul(name: str, a: int, b: int) -> int:
    """Multiply two uint256 values, raising instead of wrapping."""

    require_uint256(name, a)
    require_uint256(name, b)
    product = a * b
    if product > MAX_UINT256:
        raise ArithmeticOverflow(f"{name} overflows uint256 ({a} * {b})")
    return product


def checked_div(name: str, numerator: int, denominator: int) -> int:
    """Floor division that refuses a zero denominator."""

    if denominator == 0:
        raise DivisionUndefined(f"{name}: division by zero")
    return numerator // denominator


def whole_weeks_between(start: int, end: int) -> int:
    """
    Number of whole weeks elapsed from start to end.

    Returns 0 when end <= start; partial weeks round down.
    """

    if end <= start:
        return 0
    return (end - start) // SECONDS_PER_WEEK
