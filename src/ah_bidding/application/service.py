"""BiddingService: records a bid in the read-model (mirror only).

Flow for one bid:
  1. Amount sanity, then a short read: auction exists, idempotent replay,
     early rejection.
  2. USD valuation (external call) with no lock held.
  3. Under the auction's lock and one transaction: lock the row,
     re-validate against fresh state, insert the bid, conditionally raise
     highest_bid, add the participant.

The ledger is never called; the client has already placed the bid there.
"""

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_auction.domain.locks import AuctionLockRegistry, get_lock_registry
from src.ah_auction.domain.models import Auction, Bid
from src.ah_auction.domain.repository import AuctionRepositoryProtocol
from src.ah_auction.domain.validator import check_amount, ensure_accepted, validate_bid
from src.ah_auction.infrastructure.persistence import AuctionRepository
from src.ah_common.datetime_utils import utc_now
from src.ah_common.errors import (
    AuctionNotFoundError,
    BidRaceLostError,
    DuplicateBidError,
)
from src.ah_gateway.user.repository import UserRepository
from src.ah_gateway.user.wallet import normalize_wallet
from src.ah_pricing.application.normalizer import PriceNormalizer
from src.ah_pricing.application.service import get_price_normalizer

logger = logging.getLogger(__name__)


class BiddingService:
    def __init__(
        self,
        repo: AuctionRepositoryProtocol | None = None,
        users: UserRepository | None = None,
        normalizer: PriceNormalizer | None = None,
        locks: AuctionLockRegistry | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo: AuctionRepositoryProtocol = repo or AuctionRepository()
        self._users = users or UserRepository()
        self._normalizer = normalizer
        self._locks = locks or get_lock_registry()
        self._clock = clock

    async def _replay(
        self,
        db: AsyncSession,
        bidder_id: str,
        client_bid_id: str,
        auction: Auction,
        amount: Decimal,
    ) -> Bid | None:
        """The original bid for a repeated client_bid_id, or None if the key is new."""
        existing = await self._repo.get_bid_by_client_id(db, bidder_id, client_bid_id)
        if existing is None:
            return None
        if existing.auction_id != auction.id or existing.amount != amount:
            raise DuplicateBidError(client_bid_id)
        return existing

    async def place_bid(
        self,
        db: AsyncSession,
        ledger_auction_id: str,
        bidder_wallet: str,
        amount: Decimal,
        client_bid_id: str | None = None,
    ) -> tuple[Bid, Auction]:
        """Record an accepted bid; returns (bid, auction as validated).

        Raises AuctionNotFoundError, BidRejectedError (verbatim message),
        DuplicateBidError or BidRaceLostError.
        """
        wallet = normalize_wallet(bidder_wallet)
        ensure_accepted(check_amount(amount))

        async with db.begin():
            auction = await self._repo.get_by_ledger_id(db, ledger_auction_id)
            if auction is None:
                raise AuctionNotFoundError(ledger_auction_id)
            if client_bid_id:
                bidder = await self._users.get_by_wallet(db, wallet)
                if bidder is not None:
                    replayed = await self._replay(db, bidder.id, client_bid_id, auction, amount)
                    if replayed is not None:
                        return replayed, auction

        # State only gets stricter, so a rejection now is final.
        ensure_accepted(validate_bid(amount, auction, self._clock()))

        normalizer = self._normalizer or get_price_normalizer()
        usd_value = await normalizer.to_usd(amount, auction.token_address)

        async with self._locks.bidding(ledger_auction_id):
            async with db.begin():
                bidder = await self._users.get_or_create(db, wallet)
                if client_bid_id:
                    replayed = await self._replay(db, bidder.id, client_bid_id, auction, amount)
                    if replayed is not None:
                        return replayed, auction

                locked = await self._repo.get_by_ledger_id(
                    db, ledger_auction_id, for_update=True
                )
                if locked is None:
                    raise AuctionNotFoundError(ledger_auction_id)
                now = self._clock()
                ensure_accepted(validate_bid(amount, locked, now))

                bid = await self._repo.insert_bid(
                    db, locked.id, bidder.id, amount, usd_value, client_bid_id, now
                )
                if not await self._repo.raise_highest_bid(db, locked.id, amount, bidder.id):
                    raise BidRaceLostError(amount)
                await self._repo.add_participant(db, locked.id, bidder.id)

        logger.info(
            "Bid accepted: auction=%s bidder=%s amount=%s %s usd=%s",
            ledger_auction_id,
            wallet,
            amount,
            locked.currency,
            usd_value,
        )
        return bid, locked
