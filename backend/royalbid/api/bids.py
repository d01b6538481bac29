"""Bidding and settlement routes.

Neither is implemented yet: both answer 501 so clients never mistake a
placeholder for an accepted bid.
"""

from fastapi import APIRouter

from royalbid.exceptions import FeatureNotImplemented

router = APIRouter(prefix="/auction/products", tags=["auction"])


@router.post("/{product_id}/bids")
async def place_bid(product_id: str):
    raise FeatureNotImplemented("Bidding")


@router.post("/{product_id}/settlement")
async def settle_auction(product_id: str):
    raise FeatureNotImplemented("Auction settlement")
