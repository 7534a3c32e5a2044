"""ah_auction REST endpoints.

POST /auctions                              - register a ledger-created auction (host)
GET  /auctions/running                      - top-N running, soonest ending first
GET  /auctions/hosted                       - caller's auctions grouped by phase
GET  /auctions/participated                 - auctions the caller bid in
GET  /auctions/{ledger_auction_id}          - detail with the mirrored bid list
GET  /auctions/{ledger_auction_id}/bidders  - the ledger's bidder list, enriched
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_auction.application.schemas import CreateAuctionRequest
from src.ah_auction.application.service import AuctionService
from src.ah_common.database import get_db_session
from src.ah_common.response import ApiResponse, success_response
from src.ah_gateway.auth.dependencies import get_current_user
from src.ah_gateway.user.db_models import UserModel

router = APIRouter(prefix="/auctions", tags=["auctions"])

_service = AuctionService()


def get_auction_service() -> AuctionService:
    return _service


def _with_request_id(resp: ApiResponse, request: Request) -> ApiResponse:
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_auction(
    body: CreateAuctionRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AuctionService, Depends(get_auction_service)],
) -> ApiResponse:
    result = await service.create_auction(db, current_user.wallet, body)
    return _with_request_id(
        success_response(result.model_dump(mode="json"), message="Auction created"), request
    )


@router.get("/running")
async def list_running(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AuctionService, Depends(get_auction_service)],
    limit: int = Query(10, ge=1, le=100),
) -> ApiResponse:
    result = await service.list_running(db, limit)
    return _with_request_id(success_response(result.model_dump(mode="json")), request)


@router.get("/hosted")
async def list_hosted(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AuctionService, Depends(get_auction_service)],
) -> ApiResponse:
    result = await service.list_hosted(db, current_user.wallet)
    return _with_request_id(success_response(result.model_dump(mode="json")), request)


@router.get("/participated")
async def list_participated(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AuctionService, Depends(get_auction_service)],
) -> ApiResponse:
    result = await service.list_participated(db, current_user.wallet)
    return _with_request_id(success_response(result.model_dump(mode="json")), request)


@router.get("/{ledger_auction_id}")
async def get_auction(
    ledger_auction_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AuctionService, Depends(get_auction_service)],
) -> ApiResponse:
    result = await service.get_detail(db, ledger_auction_id)
    return _with_request_id(success_response(result.model_dump(mode="json")), request)


@router.get("/{ledger_auction_id}/bidders")
async def get_ledger_bidders(
    ledger_auction_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AuctionService, Depends(get_auction_service)],
) -> ApiResponse:
    result = await service.get_ledger_bidders(db, ledger_auction_id)
    return _with_request_id(success_response(result.model_dump(mode="json")), request)
