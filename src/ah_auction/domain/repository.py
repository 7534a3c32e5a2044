"""AuctionRepository Protocol: interface contract for the read-model store.

Every method runs inside the caller's transaction; none of them commits.
"""

from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_auction.domain.models import (
    Auction,
    Bid,
    NewAuction,
    ReplacementBid,
    SettlementOutcome,
)


class AuctionRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, auction: NewAuction) -> Auction | None: ...

    async def get_by_ledger_id(
        self, db: AsyncSession, ledger_auction_id: str, for_update: bool = False
    ) -> Auction | None: ...

    async def list_running(
        self, db: AsyncSession, now: datetime, limit: int
    ) -> list[Auction]: ...

    async def list_by_host(self, db: AsyncSession, host_id: str) -> list[Auction]: ...

    async def list_by_participant(self, db: AsyncSession, user_id: str) -> list[Auction]: ...

    async def list_bids(self, db: AsyncSession, auction_id: str) -> list[Bid]: ...

    async def get_bid_by_client_id(
        self, db: AsyncSession, bidder_id: str, client_bid_id: str
    ) -> Bid | None: ...

    async def insert_bid(
        self,
        db: AsyncSession,
        auction_id: str,
        bidder_id: str,
        amount: Decimal,
        usd_value: Decimal | None,
        client_bid_id: str | None,
        created_at: datetime,
    ) -> Bid: ...

    async def raise_highest_bid(
        self, db: AsyncSession, auction_id: str, amount: Decimal, bidder_id: str
    ) -> bool: ...

    async def add_participant(self, db: AsyncSession, auction_id: str, user_id: str) -> bool: ...

    async def replace_bids(
        self, db: AsyncSession, auction_id: str, bids: list[ReplacementBid]
    ) -> None: ...

    async def mark_settled(
        self, db: AsyncSession, auction_id: str, outcome: SettlementOutcome
    ) -> bool: ...
