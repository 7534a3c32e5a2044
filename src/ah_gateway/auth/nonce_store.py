"""Single-use sign-in nonces kept in Redis.

Key pattern: "auth:nonce:{wallet}", one outstanding nonce per wallet; a new
request overwrites the previous one. Consumption is atomic (GETDEL) so a
signature can be redeemed at most once.
"""

import secrets

import redis.asyncio as aioredis

from config.settings import settings


def _key(wallet: str) -> str:
    return f"auth:nonce:{wallet}"


async def issue_nonce(redis: aioredis.Redis, wallet: str) -> str:
    nonce = secrets.token_hex(16)
    await redis.set(_key(wallet), nonce, ex=settings.AUTH_NONCE_TTL_SECONDS)
    return nonce


async def consume_nonce(redis: aioredis.Redis, wallet: str) -> str | None:
    value = await redis.getdel(_key(wallet))
    return str(value) if value is not None else None
