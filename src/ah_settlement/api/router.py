"""Settlement endpoint.

POST /auctions/{ledger_auction_id}/end - host only; body bidders optional.
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_common.database import get_db_session
from src.ah_common.response import ApiResponse, success_response
from src.ah_gateway.auth.dependencies import get_current_user
from src.ah_gateway.user.db_models import UserModel
from src.ah_settlement.application.schemas import EndAuctionRequest
from src.ah_settlement.application.service import SettlementService

router = APIRouter(prefix="/auctions", tags=["settlement"])

_service = SettlementService()


def get_settlement_service() -> SettlementService:
    return _service


@router.post("/{ledger_auction_id}/end")
async def end_auction(
    ledger_auction_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
    body: Annotated[EndAuctionRequest | None, Body()] = None,
) -> ApiResponse:
    external = (
        [b.to_ledger() for b in body.bidders]
        if body is not None and body.bidders is not None
        else None
    )
    result = await service.settle(db, ledger_auction_id, current_user.wallet, external)
    resp = success_response(
        result.model_dump(mode="json"), message="Auction ended successfully"
    )
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
