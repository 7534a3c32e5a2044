"""AuctionService: registration and read-model queries.

Queries are read-only; each opens one short transaction for its reads and
resolves display identities afterwards, outside the transaction, in a
single batched lookup.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_auction.application.schemas import (
    AuctionCard,
    AuctionDetail,
    CreateAuctionRequest,
    HostedAuctionsResponse,
    HostedCounts,
    IdentityOut,
    LedgerBidderOut,
    LedgerBiddersResponse,
    ParticipatedAuctionsResponse,
    RunningAuctionsResponse,
    UserAuctionsResponse,
    UserProfile,
    UserSearchResponse,
)
from src.ah_auction.domain.lifecycle import auction_phase
from src.ah_auction.domain.models import Auction, Bid, NewAuction
from src.ah_auction.domain.repository import AuctionRepositoryProtocol
from src.ah_auction.infrastructure.persistence import AuctionRepository
from src.ah_common.datetime_utils import ensure_utc, utc_now
from src.ah_common.enums import AuctionPhase
from src.ah_common.errors import (
    AuctionExistsError,
    AuctionNotFoundError,
    LedgerUnavailableError,
    UserNotFoundError,
)
from src.ah_gateway.user.repository import UserRepository
from src.ah_identity.application.resolver import IdentityResolver, get_identity_resolver
from src.ah_identity.domain.models import DisplayIdentity, IdentityRef
from src.ah_ledger.application.pricing import price_ledger_entries
from src.ah_ledger.domain.ports import LedgerReaderProtocol
from src.ah_ledger.infrastructure.factory import get_ledger_reader
from src.ah_pricing.application.normalizer import PriceNormalizer
from src.ah_pricing.application.service import get_price_normalizer

logger = logging.getLogger(__name__)

USER_SEARCH_LIMIT = 10


def _identity_refs(auctions: list[Auction], bids: list[Bid] | None = None) -> list[IdentityRef]:
    refs = [IdentityRef(a.host_wallet, a.host_fid) for a in auctions]
    refs += [
        IdentityRef(a.highest_bidder_wallet, a.highest_bidder_fid)
        for a in auctions
        if a.highest_bidder_wallet
    ]
    refs += [IdentityRef(a.winner_wallet, a.winner_fid) for a in auctions if a.winner_wallet]
    refs += [IdentityRef(b.bidder_wallet, b.bidder_fid) for b in bids or []]
    return refs


class AuctionService:
    def __init__(
        self,
        repo: AuctionRepositoryProtocol | None = None,
        users: UserRepository | None = None,
        resolver: IdentityResolver | None = None,
        normalizer: PriceNormalizer | None = None,
        ledger_reader: LedgerReaderProtocol | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo: AuctionRepositoryProtocol = repo or AuctionRepository()
        self._users = users or UserRepository()
        self._resolver = resolver
        self._normalizer = normalizer
        self._ledger_reader = ledger_reader
        self._clock = clock

    async def _identities(self, refs: list[IdentityRef]) -> dict[str, DisplayIdentity]:
        if not refs:
            return {}
        resolver = self._resolver or get_identity_resolver()
        return await resolver.resolve_many(refs)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def create_auction(
        self, db: AsyncSession, host_wallet: str, body: CreateAuctionRequest
    ) -> AuctionCard:
        """Mirror an auction the host has already created on the ledger."""
        async with db.begin():
            host = await self._users.get_or_create(db, host_wallet)
            auction = await self._repo.create(
                db,
                NewAuction(
                    ledger_auction_id=body.ledger_auction_id,
                    name=body.name,
                    token_address=body.token_address,
                    currency=body.currency,
                    minimum_bid=body.minimum_bid,
                    start_time=ensure_utc(body.start_time),
                    end_time=ensure_utc(body.end_time),
                    host_id=host.id,
                ),
            )
        if auction is None:
            raise AuctionExistsError(body.ledger_auction_id)

        logger.info(
            "Auction registered: %s by %s (%s, min %s)",
            auction.ledger_auction_id,
            host.wallet,
            auction.currency,
            auction.minimum_bid,
        )
        identities = await self._identities(_identity_refs([auction]))
        return AuctionCard.from_domain(auction, self._clock(), identities)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_running(self, db: AsyncSession, limit: int) -> RunningAuctionsResponse:
        """Top-N running auctions, soonest ending first."""
        now = self._clock()
        async with db.begin():
            auctions = await self._repo.list_running(db, now, limit)
        identities = await self._identities(_identity_refs(auctions))
        return RunningAuctionsResponse(
            items=[AuctionCard.from_domain(a, now, identities) for a in auctions]
        )

    async def list_hosted(self, db: AsyncSession, host_wallet: str) -> HostedAuctionsResponse:
        """Host's auctions grouped by phase; ENDING counts as active until settled."""
        now = self._clock()
        async with db.begin():
            host = await self._users.get_by_wallet(db, host_wallet)
            auctions = await self._repo.list_by_host(db, host.id) if host else []
        identities = await self._identities(_identity_refs(auctions))

        active: list[AuctionCard] = []
        upcoming: list[AuctionCard] = []
        ended: list[AuctionCard] = []
        for a in auctions:
            card = AuctionCard.from_domain(a, now, identities)
            phase = auction_phase(a, now)
            if phase == AuctionPhase.UPCOMING:
                upcoming.append(card)
            elif phase == AuctionPhase.ENDED:
                ended.append(card)
            else:
                active.append(card)
        return HostedAuctionsResponse(
            active=active,
            upcoming=upcoming,
            ended=ended,
            counts=HostedCounts(active=len(active), upcoming=len(upcoming), ended=len(ended)),
        )

    async def list_participated(
        self, db: AsyncSession, wallet: str
    ) -> ParticipatedAuctionsResponse:
        now = self._clock()
        async with db.begin():
            user = await self._users.get_by_wallet(db, wallet)
            auctions = await self._repo.list_by_participant(db, user.id) if user else []
        identities = await self._identities(_identity_refs(auctions))
        return ParticipatedAuctionsResponse(
            items=[AuctionCard.from_domain(a, now, identities) for a in auctions]
        )

    async def get_detail(self, db: AsyncSession, ledger_auction_id: str) -> AuctionDetail:
        now = self._clock()
        async with db.begin():
            auction = await self._repo.get_by_ledger_id(db, ledger_auction_id)
            if auction is None:
                raise AuctionNotFoundError(ledger_auction_id)
            bids = await self._repo.list_bids(db, auction.id)
        identities = await self._identities(_identity_refs([auction], bids))
        return AuctionDetail.from_domain_with_bids(auction, bids, now, identities)

    async def get_ledger_bidders(
        self, db: AsyncSession, ledger_auction_id: str
    ) -> LedgerBiddersResponse:
        """The contract's bidder list, priced and enriched; nothing is persisted."""
        async with db.begin():
            auction = await self._repo.get_by_ledger_id(db, ledger_auction_id)
        if auction is None:
            raise AuctionNotFoundError(ledger_auction_id)

        reader = self._ledger_reader or get_ledger_reader()
        if reader is None:
            raise LedgerUnavailableError("no ledger configured")
        entries = await reader.get_bidders(ledger_auction_id)
        priced = await price_ledger_entries(
            entries, auction.token_address, self._normalizer or get_price_normalizer()
        )
        identities = await self._identities([IdentityRef(p.wallet, p.fid) for p in priced])

        now = self._clock()
        running = (
            auction_phase(auction, now) != AuctionPhase.ENDED
            and ensure_utc(auction.end_time) > now
        )
        return LedgerBiddersResponse(
            ledger_auction_id=auction.ledger_auction_id,
            status="Running" if running else "Ended",
            currency=auction.currency,
            bidders=[
                LedgerBidderOut(
                    bidder=IdentityOut.build(p.wallet, p.fid, identities.get(p.wallet)),
                    raw_amount=str(p.raw_amount),
                    amount=p.amount,
                    usd_value=p.usd_value,
                )
                for p in priced
            ],
        )

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    async def get_profile(self, db: AsyncSession, wallet: str) -> UserProfile:
        """The signed-in wallet's profile; the user row is created if missing."""
        async with db.begin():
            user = await self._users.get_or_create(db, wallet)
        identities = await self._identities([IdentityRef(user.wallet, user.fid)])
        return UserProfile.build(user, identities.get(user.wallet))

    async def search_users(self, db: AsyncSession, query: str) -> UserSearchResponse:
        query = query.strip()
        if not query:
            return UserSearchResponse(items=[])
        async with db.begin():
            users = await self._users.search(db, query, USER_SEARCH_LIMIT)
        identities = await self._identities([IdentityRef(u.wallet, u.fid) for u in users])
        return UserSearchResponse(
            items=[UserProfile.build(u, identities.get(u.wallet)) for u in users]
        )

    async def list_user_auctions(self, db: AsyncSession, user_id: str) -> UserAuctionsResponse:
        """Another user's public page: profile plus hosted auctions, active vs ended."""
        now = self._clock()
        async with db.begin():
            user = await self._users.get_by_id(db, user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            auctions = await self._repo.list_by_host(db, user.id)
        identities = await self._identities(
            [IdentityRef(user.wallet, user.fid), *_identity_refs(auctions)]
        )

        active: list[AuctionCard] = []
        ended: list[AuctionCard] = []
        for a in auctions:
            card = AuctionCard.from_domain(a, now, identities)
            (ended if auction_phase(a, now) == AuctionPhase.ENDED else active).append(card)
        return UserAuctionsResponse(
            user=UserProfile.build(user, identities.get(user.wallet)),
            active=active,
            ended=ended,
        )
