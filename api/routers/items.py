"""
Items API Endpoints.

Endpoints for listing, postponing, discarding and buying items.
"""

from fastapi import APIRouter, Depends, Path

from api.dependencies import get_caller, get_marketplace, to_http_error
from api.models import ItemResponse, PostponeSaleRequest, PurchaseRecordResponse, SetForSaleRequest
from domain.item import Item
from services.marketplace import Marketplace

router = APIRouter()


def _item_response(item_id: int, item: Item) -> ItemResponse:
    return ItemResponse(
        item_id=item_id,
        seller=item.seller,
        price=item.price,
        start_time=item.start_time,
        is_listed=item.is_listed,
    )


@router.get(
    "/items/{item_id}",
    response_model=ItemResponse,
    summary="Get Item",
    description="Read the current sale terms of an item. Unlisted items read as all zeros."
)
def get_item(
    item_id: int = Path(..., ge=0),
    marketplace: Marketplace = Depends(get_marketplace),
):
    try:
        return _item_response(item_id, marketplace.get_item(item_id))
    except Exception as e:
        raise to_http_error(e)


@router.put(
    "/items/{item_id}/sale",
    response_model=ItemResponse,
    summary="Set For Sale",
    description="List or re-list an item owned by the caller."
)
def set_for_sale(
    request: SetForSaleRequest,
    item_id: int = Path(..., ge=0),
    caller: str = Depends(get_caller),
    marketplace: Marketplace = Depends(get_marketplace),
):
    """
    List an item at a price, purchasable from start_time on.

    **Rules:**
    - The caller must own the asset
    - start_time must be strictly in the future
    - A first listing needs a price above zero; a re-listing may set it to zero
      (the item then cannot be bought)

    **Example request:**
    ```json
    {"price": 1000000000000000000, "start_time": 1767225600}
    ```
    """
    try:
        item = marketplace.set_for_sale(caller, item_id, request.price, request.start_time)
        return _item_response(item_id, item)
    except Exception as e:
        raise to_http_error(e)


@router.post(
    "/items/{item_id}/postpone",
    response_model=ItemResponse,
    summary="Postpone Sale",
    description="Push the start time of the caller's listing back."
)
def postpone_sale(
    request: PostponeSaleRequest,
    item_id: int = Path(..., ge=0),
    caller: str = Depends(get_caller),
    marketplace: Marketplace = Depends(get_marketplace),
):
    try:
        item = marketplace.postpone_sale(caller, item_id, request.extra_seconds)
        return _item_response(item_id, item)
    except Exception as e:
        raise to_http_error(e)


@router.delete(
    "/items/{item_id}/sale",
    response_model=ItemResponse,
    summary="Discard From Sale",
    description="Withdraw the caller's listing. Discarding an unlisted item is a no-op."
)
def discard_from_sale(
    item_id: int = Path(..., ge=0),
    caller: str = Depends(get_caller),
    marketplace: Marketplace = Depends(get_marketplace),
):
    try:
        marketplace.discard_from_sale(caller, item_id)
        return _item_response(item_id, marketplace.get_item(item_id))
    except Exception as e:
        raise to_http_error(e)


@router.post(
    "/items/{item_id}/buy",
    response_model=PurchaseRecordResponse,
    summary="Buy Item",
    description="Buy a listed item whose sale has started."
)
def buy_item(
    item_id: int = Path(..., ge=0),
    caller: str = Depends(get_caller),
    marketplace: Marketplace = Depends(get_marketplace),
):
    """
    Buy an item at its listed price.

    The caller must have approved the marketplace to spend the price in the
    payment token, and the seller must have approved the marketplace to move
    the asset. The returned purchase record accrues rewards for the caller.
    """
    try:
        record = marketplace.buy(caller, item_id)
        return PurchaseRecordResponse(
            record_id=record.record_id,
            beneficiary=record.beneficiary,
            item_id=record.item_id,
            amount_paid=record.amount_paid,
            purchase_time=record.purchase_time,
        )
    except Exception as e:
        raise to_http_error(e)
