"""FastAPI dependencies: get_current_user, enforce_bid_rate_limit.

Usage in any protected router:
    from src.ah_gateway.auth.dependencies import get_current_user

    @router.post("/protected")
    async def protected(user: UserModel = Depends(get_current_user)):
        ...
"""

import logging

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from redis.exceptions import RedisError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ah_common.database import get_db_session
from src.ah_common.errors import InvalidCredentialsError, RateLimitError
from src.ah_common.redis_client import get_redis
from src.ah_gateway.auth.jwt_handler import decode_token
from src.ah_gateway.user.db_models import UserModel

logger = logging.getLogger(__name__)

# tokenUrl tells Swagger UI where to get a token (used for the "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Validate the JWT Bearer token and return the signed-in wallet's user row.

    Raises HTTP 401 if the token is missing, invalid, expired, or names a
    user that no longer resolves.
    """
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id: str | None = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION

    # Short transaction: services open their own with `db.begin()` afterwards.
    async with db.begin():
        result = await db.execute(select(UserModel).where(UserModel.id == user_id))
        user = result.scalar_one_or_none()
    if user is None:
        raise _CREDENTIALS_EXCEPTION
    return user


async def enforce_bid_rate_limit(
    current_user: UserModel = Depends(get_current_user),
    redis: aioredis.Redis = Depends(get_redis),
) -> UserModel:
    """Fixed one-minute window per user: "ratelimit:{user_id}:bids".

    Redis being down must not block bidding, so errors are logged and the
    request proceeds.
    """
    limit = settings.BID_RATE_LIMIT_PER_MINUTE
    if limit <= 0:
        return current_user
    key = f"ratelimit:{current_user.id}:bids"
    try:
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, 60)
    except RedisError as exc:
        logger.warning("Rate limiter unavailable, allowing request: %s", exc)
        return current_user
    if count > limit:
        raise RateLimitError()
    return current_user
