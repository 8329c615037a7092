"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Token amounts and timestamps are unsigned 256-bit integers.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.time import MAX_UINT256


# ============================================================================
# Item Models
# ============================================================================

class ItemResponse(BaseModel):
    """Current sale terms of one item (all zero when unlisted)."""
    item_id: int
    seller: str
    price: int
    start_time: int
    is_listed: bool

    class Config:
        json_schema_extra = {
            "example": {
                "item_id": 1,
                "seller": "0x70997970c51812dc3a010c7d01b50e0d17dc79c8",
                "price": 1000000000000000000,
                "start_time": 1767225600,
                "is_listed": True
            }
        }


class SetForSaleRequest(BaseModel):
    """Request to list (or re-list) an item."""
    price: int = Field(
        ...,
        ge=0,
        le=MAX_UINT256,
        description="Price in payment-token base units"
    )
    start_time: int = Field(
        ...,
        ge=0,
        le=MAX_UINT256,
        description="Unix timestamp after which the item can be bought (must be in the future)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "price": 1000000000000000000,
                "start_time": 1767225600
            }
        }


class PostponeSaleRequest(BaseModel):
    """Request to push a listing's start time back."""
    extra_seconds: int = Field(
        ...,
        ge=0,
        description="Seconds to add to the current start time"
    )


# ============================================================================
# Purchase / Reward Models
# ============================================================================

class PurchaseRecordResponse(BaseModel):
    """One outstanding purchase record."""
    record_id: UUID
    beneficiary: str
    item_id: int
    amount_paid: int
    purchase_time: int


class RewardStatusResponse(BaseModel):
    """Outstanding records and the reward a claim would pay now."""
    beneficiary: str
    records: List[PurchaseRecordResponse]
    total_paid: int
    pending_reward: int

    class Config:
        json_schema_extra = {
            "example": {
                "beneficiary": "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc",
                "records": [],
                "total_paid": 0,
                "pending_reward": 0
            }
        }


class ClaimResponse(BaseModel):
    """Result of a claim."""
    beneficiary: str
    caller: str
    amount: int
    records_consumed: int
    claimed_at: int

    class Config:
        json_schema_extra = {
            "example": {
                "beneficiary": "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc",
                "caller": "0x70997970c51812dc3a010c7d01b50e0d17dc79c8",
                "amount": 3,
                "records_consumed": 1,
                "claimed_at": 1769040000
            }
        }


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "InvalidSale",
                "detail": "Item 1 is not listed",
                "status_code": 400
            }
        }
