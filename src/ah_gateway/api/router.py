"""Auth + user API router: nonce, login, refresh, link fid.

All endpoints return ApiResponse. request_id is read from request.state
(injected by RequestLogMiddleware).
"""

from typing import Annotated

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ah_common.database import get_db_session
from src.ah_common.redis_client import get_redis
from src.ah_common.response import ApiResponse, success_response
from src.ah_gateway.auth.dependencies import get_current_user
from src.ah_gateway.user.db_models import UserModel
from src.ah_gateway.user.repository import UserRecord
from src.ah_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    NonceRequest,
    NonceResponse,
    RefreshRequest,
    RefreshResponse,
    UpdateFidRequest,
    UpdateFidResponse,
    UserInfo,
)
from src.ah_gateway.user.service import UserService

router = APIRouter(tags=["auth"])
_service = UserService()


def _get_request_id(request: Request) -> str:
    """Read request_id injected by RequestLogMiddleware, fallback if absent."""
    return getattr(request.state, "request_id", "req_unknown")


def _user_info(user: UserRecord) -> UserInfo:
    return UserInfo(
        user_id=user.id, wallet=user.wallet, fid=user.fid, display_name=user.display_name
    )


@router.post("/auth/nonce", status_code=status.HTTP_200_OK, summary="Issue sign-in nonce")
async def request_nonce(
    request: Request,
    body: NonceRequest,
    redis: Annotated[aioredis.Redis, Depends(get_redis)],
) -> ApiResponse:
    nonce, message = await _service.request_nonce(body.wallet, redis)
    data = NonceResponse(
        wallet=body.wallet,
        nonce=nonce,
        message=message,
        expires_in=settings.AUTH_NONCE_TTL_SECONDS,
    )
    resp = success_response(data.model_dump())
    resp.request_id = _get_request_id(request)
    return resp


@router.post("/auth/login", status_code=status.HTTP_200_OK, summary="Wallet sign-in")
async def login(
    request: Request,
    body: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    redis: Annotated[aioredis.Redis, Depends(get_redis)],
) -> ApiResponse:
    user, access_token, refresh_token = await _service.login(
        body.wallet, body.signature, db, redis
    )
    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        user=_user_info(user),
    )
    resp = success_response(data.model_dump(), message="Login successful")
    resp.request_id = _get_request_id(request)
    return resp


@router.post("/auth/refresh", status_code=status.HTTP_200_OK, summary="Refresh access token")
async def refresh_token(request: Request, body: RefreshRequest) -> ApiResponse:
    new_access_token = await _service.refresh(body.refresh_token)
    data = RefreshResponse(
        access_token=new_access_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
    resp = success_response(data.model_dump(), message="Token refreshed")
    resp.request_id = _get_request_id(request)
    return resp


@router.patch("/users/me/fid", summary="Link a social identity to the signed-in wallet")
async def update_fid(
    request: Request,
    body: UpdateFidRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    updated, user = await _service.link_fid(current_user.wallet, body.fid, db)
    data = UpdateFidResponse(updated=updated, user=_user_info(user))
    message = "FID updated successfully" if updated else "User FID does not need updating"
    resp = success_response(data.model_dump(), message=message)
    resp.request_id = _get_request_id(request)
    return resp
