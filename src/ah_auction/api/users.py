"""User profile endpoints over the read-model.

GET /users/me                   - the caller's profile
GET /users/search?q=            - up to 10 users by wallet, fid or display name
GET /users/{user_id}/auctions   - public profile with hosted auctions
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_auction.api.router import get_auction_service
from src.ah_auction.application.service import AuctionService
from src.ah_common.database import get_db_session
from src.ah_common.response import ApiResponse, success_response
from src.ah_gateway.auth.dependencies import get_current_user
from src.ah_gateway.user.db_models import UserModel

router = APIRouter(prefix="/users", tags=["users"])


def _with_request_id(resp: ApiResponse, request: Request) -> ApiResponse:
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/me")
async def get_me(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AuctionService, Depends(get_auction_service)],
) -> ApiResponse:
    result = await service.get_profile(db, current_user.wallet)
    return _with_request_id(success_response(result.model_dump(mode="json")), request)


@router.get("/search")
async def search_users(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AuctionService, Depends(get_auction_service)],
    q: str = Query("", max_length=100),
) -> ApiResponse:
    result = await service.search_users(db, q)
    return _with_request_id(success_response(result.model_dump(mode="json")), request)


@router.get("/{user_id}/auctions")
async def list_user_auctions(
    user_id: uuid.UUID,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AuctionService, Depends(get_auction_service)],
) -> ApiResponse:
    result = await service.list_user_auctions(db, str(user_id))
    return _with_request_id(success_response(result.model_dump(mode="json")), request)
