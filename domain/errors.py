"""
Domain: Marketplace error taxonomy.

Every error is raised synchronously to the caller and aborts the operation
with no state mutation and no net token movement. Nothing is retried inside
the marketplace; the caller decides whether to resubmit.
"""

from __future__ import annotations


class MarketplaceError(Exception):
    """Base class for all caller-visible marketplace failures."""
    pass


class InvalidSale(MarketplaceError):
    """Listing, time or price precondition violated on set_for_sale or buy."""
    pass


class NotItemOwner(MarketplaceError):
    """Caller is not the owner/seller required by the operation."""
    pass


class AlreadyOwner(MarketplaceError):
    """Buyer already holds the asset (is the recorded seller)."""
    pass


class NothingForClaim(MarketplaceError):
    """Beneficiary has no outstanding purchase records."""
    pass


class ArithmeticOverflow(MarketplaceError):
    """Integer arithmetic would leave the uint256 range."""
    pass


class TransferFailed(MarketplaceError):
    """
    A token or asset collaborator reported failure (or raised).

    The operation was rolled back before this error reached the caller.
    """
    pass


class InvariantViolation(MarketplaceError):
    """
    Programming-error class.

    Must never occur in a correct deployment; raised instead of producing a
    wrong numeric result.
    """
    pass


class DivisionUndefined(InvariantViolation):
    """Division by zero was attempted."""
    pass


class IndexOutOfRange(InvariantViolation):
    """A collection was indexed past its logical length."""
    pass


__all__ = [
    "MarketplaceError",
    "InvalidSale",
    "NotItemOwner",
    "AlreadyOwner",
    "NothingForClaim",
    "ArithmeticOverflow",
    "TransferFailed",
    "InvariantViolation",
    "DivisionUndefined",
    "IndexOutOfRange",
]
