"""User domain service: wallet sign-in, token refresh, social identity link.

Transactions are opened here (`async with db.begin()`), one per operation.
"""

import logging

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_common.errors import InvalidCredentialsError, UserNotFoundError
from src.ah_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.ah_gateway.auth.nonce_store import consume_nonce, issue_nonce
from src.ah_gateway.auth.wallet_signature import (
    build_sign_in_message,
    verify_wallet_signature,
)
from src.ah_gateway.user.repository import UserRecord, UserRepository
from src.ah_gateway.user.wallet import is_placeholder_fid

logger = logging.getLogger(__name__)


class UserService:
    """Stateless service: instantiate once, reuse across requests."""

    def __init__(self, repo: UserRepository | None = None) -> None:
        self._repo = repo or UserRepository()

    async def request_nonce(self, wallet: str, redis: aioredis.Redis) -> tuple[str, str]:
        """Return (nonce, message_to_sign) for an already-normalized wallet."""
        nonce = await issue_nonce(redis, wallet)
        return nonce, build_sign_in_message(wallet, nonce)

    async def login(
        self,
        wallet: str,
        signature: str,
        db: AsyncSession,
        redis: aioredis.Redis,
    ) -> tuple[UserRecord, str, str]:
        """Verify the signed nonce and return (user, access_token, refresh_token).

        The nonce is consumed before verification, so a failed attempt also
        burns it. First sign-in creates the user row.
        """
        nonce = await consume_nonce(redis, wallet)
        if nonce is None or not verify_wallet_signature(wallet, nonce, signature):
            raise InvalidCredentialsError()

        async with db.begin():
            user = await self._repo.get_or_create(db, wallet)

        logger.info("Wallet signed in: %s", wallet)
        return (
            user,
            create_access_token(user.id, user.wallet),
            create_refresh_token(user.id, user.wallet),
        )

    async def refresh(self, refresh_token: str) -> str:
        payload = decode_token(refresh_token, expected_type="refresh")
        return create_access_token(str(payload["sub"]), str(payload.get("wallet", "")))

    async def link_fid(
        self, wallet: str, fid: str, db: AsyncSession
    ) -> tuple[bool, UserRecord]:
        """Attach a social identity unless a real one is already stored."""
        async with db.begin():
            user = await self._repo.get_by_wallet(db, wallet)
            if user is None:
                raise UserNotFoundError(wallet)
            if not is_placeholder_fid(user.fid):
                return False, user
            updated = await self._repo.set_fid(db, wallet, fid.strip())
        return True, updated or user
