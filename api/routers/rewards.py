"""
Rewards API Endpoints.

Endpoints for inspecting and claiming purchase rewards.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_caller, get_marketplace, to_http_error
from api.models import ClaimResponse, PurchaseRecordResponse, RewardStatusResponse
from domain.address import normalize_address
from services.marketplace import Marketplace

router = APIRouter()


def _beneficiary(value: str) -> str:
    try:
        return normalize_address(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid beneficiary address")


@router.get(
    "/rewards/{beneficiary}",
    response_model=RewardStatusResponse,
    summary="Reward Status",
    description="Outstanding purchase records of a beneficiary and the reward a claim would pay now."
)
def get_reward_status(
    beneficiary: str,
    marketplace: Marketplace = Depends(get_marketplace),
):
    address = _beneficiary(beneficiary)
    try:
        history = marketplace.purchase_records(address)
        return RewardStatusResponse(
            beneficiary=address,
            records=[
                PurchaseRecordResponse(
                    record_id=r.record_id,
                    beneficiary=r.beneficiary,
                    item_id=r.item_id,
                    amount_paid=r.amount_paid,
                    purchase_time=r.purchase_time,
                )
                for r in history
            ],
            total_paid=history.total_paid,
            pending_reward=marketplace.pending_reward(address),
        )
    except Exception as e:
        raise to_http_error(e)


@router.post(
    "/rewards/{beneficiary}/claim",
    response_model=ClaimResponse,
    summary="Claim Rewards",
    description="Pay out the accrued reward of a beneficiary. Any caller may claim on behalf of any beneficiary."
)
def claim_rewards(
    beneficiary: str,
    caller: str = Depends(get_caller),
    marketplace: Marketplace = Depends(get_marketplace),
):
    """
    Claim rewards for a beneficiary.

    **Who can claim:**
    Any caller. The reward is always transferred to the beneficiary in the
    path, so keepers and custodians can trigger payouts for their users.

    **What is consumed:**
    Every outstanding purchase record of the beneficiary, including records
    younger than one week (those contribute zero).
    """
    address = _beneficiary(beneficiary)
    try:
        result = marketplace.claim(caller, address)
        return ClaimResponse(
            beneficiary=result.beneficiary,
            caller=caller,
            amount=result.amount,
            records_consumed=result.records_consumed,
            claimed_at=result.claimed_at,
        )
    except Exception as e:
        raise to_http_error(e)
