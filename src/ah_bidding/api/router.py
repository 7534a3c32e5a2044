"""Bid ingestion endpoint.

POST /auctions/{ledger_auction_id}/bids - the token's wallet is the bidder.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_bidding.application.schemas import BidResponse, PlaceBidRequest
from src.ah_bidding.application.service import BiddingService
from src.ah_common.database import get_db_session
from src.ah_common.response import ApiResponse, success_response
from src.ah_gateway.auth.dependencies import enforce_bid_rate_limit
from src.ah_gateway.user.db_models import UserModel

router = APIRouter(prefix="/auctions", tags=["bids"])

_service = BiddingService()


def get_bidding_service() -> BiddingService:
    return _service


@router.post("/{ledger_auction_id}/bids", status_code=status.HTTP_201_CREATED)
async def place_bid(
    ledger_auction_id: str,
    body: PlaceBidRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(enforce_bid_rate_limit)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BiddingService, Depends(get_bidding_service)],
) -> ApiResponse:
    bid, auction = await service.place_bid(
        db, ledger_auction_id, current_user.wallet, body.amount, body.client_bid_id
    )
    data = BidResponse.from_domain(bid, auction.ledger_auction_id, auction.currency)
    resp = success_response(data.model_dump(mode="json"), message="Bid placed successfully")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
