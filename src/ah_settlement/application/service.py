"""SettlementService: the host ends an auction and the read-model adopts the ledger.

Two phases:
  * outside any lock: checks on a plain read, ledger read (if the caller did
    not relay one), unit conversion and USD pricing, winner selection;
  * under the settling lock, in ONE transaction: re-check, create bidders,
    replace the bid list, close the auction with the winner.

Anything raised before commit leaves the auction untouched; retrying the
whole call is safe and a second successful call is impossible
(AlreadySettledError).
"""

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_auction.application.schemas import IdentityOut
from src.ah_auction.domain.locks import AuctionLockRegistry, get_lock_registry
from src.ah_auction.domain.models import Auction, ReplacementBid, SettlementOutcome
from src.ah_auction.domain.repository import AuctionRepositoryProtocol
from src.ah_auction.infrastructure.persistence import AuctionRepository
from src.ah_common.datetime_utils import ensure_utc, utc_now
from src.ah_common.enums import AuctionStatus
from src.ah_common.errors import (
    AlreadySettledError,
    AuctionNotFoundError,
    LedgerUnavailableError,
    NotHostError,
    StartsInFutureError,
)
from src.ah_gateway.user.repository import UserRepository
from src.ah_gateway.user.wallet import is_placeholder_fid, normalize_wallet
from src.ah_identity.application.resolver import IdentityResolver, get_identity_resolver
from src.ah_identity.domain.models import DisplayIdentity, placeholder_identity
from src.ah_ledger.application.pricing import PricedLedgerEntry, price_ledger_entries
from src.ah_ledger.domain.models import LedgerBidder
from src.ah_ledger.domain.ports import LedgerReaderProtocol
from src.ah_ledger.infrastructure.factory import get_ledger_reader
from src.ah_pricing.application.normalizer import PriceNormalizer
from src.ah_pricing.application.service import get_price_normalizer
from src.ah_settlement.application.schemas import SettlementResponse, WinnerSummary
from src.ah_settlement.domain.ranking import highest_amount, pick_winner

logger = logging.getLogger(__name__)


def _check_settleable(
    auction: Auction | None, ledger_auction_id: str, host_wallet: str, now: datetime
) -> Auction:
    if auction is None:
        raise AuctionNotFoundError(ledger_auction_id)
    if auction.host_wallet != host_wallet:
        raise NotHostError()
    if auction.status == AuctionStatus.ENDED:
        raise AlreadySettledError(ledger_auction_id)
    if ensure_utc(now) < ensure_utc(auction.start_time):
        raise StartsInFutureError(ledger_auction_id)
    return auction


class SettlementService:
    def __init__(
        self,
        repo: AuctionRepositoryProtocol | None = None,
        users: UserRepository | None = None,
        normalizer: PriceNormalizer | None = None,
        ledger_reader: LedgerReaderProtocol | None = None,
        resolver: IdentityResolver | None = None,
        locks: AuctionLockRegistry | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo: AuctionRepositoryProtocol = repo or AuctionRepository()
        self._users = users or UserRepository()
        self._normalizer = normalizer
        self._ledger_reader = ledger_reader
        self._resolver = resolver
        self._locks = locks or get_lock_registry()
        self._clock = clock

    async def _read_ledger(self, ledger_auction_id: str) -> list[LedgerBidder]:
        reader = self._ledger_reader or get_ledger_reader()
        if reader is None:
            raise LedgerUnavailableError("no ledger configured")
        return await reader.get_bidders(ledger_auction_id)

    async def settle(
        self,
        db: AsyncSession,
        ledger_auction_id: str,
        host_wallet: str,
        external_bidders: list[LedgerBidder] | None = None,
    ) -> SettlementResponse:
        host_wallet = normalize_wallet(host_wallet)

        async with db.begin():
            auction = await self._repo.get_by_ledger_id(db, ledger_auction_id)
        auction = _check_settleable(auction, ledger_auction_id, host_wallet, self._clock())

        entries = (
            external_bidders
            if external_bidders is not None
            else await self._read_ledger(ledger_auction_id)
        )
        priced = await price_ledger_entries(
            entries, auction.token_address, self._normalizer or get_price_normalizer()
        )
        winner, basis = pick_winner(priced)
        top = highest_amount(priced)

        async with self._locks.settling(ledger_auction_id):
            async with db.begin():
                locked = await self._repo.get_by_ledger_id(
                    db, ledger_auction_id, for_update=True
                )
                now = self._clock()
                locked = _check_settleable(locked, ledger_auction_id, host_wallet, now)

                user_ids: dict[str, str] = {}
                for entry in priced:
                    if entry.wallet not in user_ids:
                        fid = None if is_placeholder_fid(entry.fid) else entry.fid
                        user = await self._users.get_or_create(db, entry.wallet, fid)
                        user_ids[entry.wallet] = user.id

                await self._repo.replace_bids(
                    db,
                    locked.id,
                    [
                        ReplacementBid(
                            bidder_id=user_ids[e.wallet],
                            amount=e.amount,
                            usd_value=e.usd_value,
                            created_at=now,
                        )
                        for e in priced
                    ],
                )
                settled = await self._repo.mark_settled(
                    db,
                    locked.id,
                    SettlementOutcome(
                        ended_at=now,
                        highest_bid=top.amount if top else Decimal(0),
                        highest_bidder_id=user_ids[top.wallet] if top else None,
                        bid_count=len(priced),
                        winner_id=user_ids[winner.wallet] if winner else None,
                        winning_amount=winner.amount if winner else None,
                        winning_usd=winner.usd_value if winner else None,
                        ranking_basis=basis.value,
                    ),
                )
                if not settled:
                    raise AlreadySettledError(ledger_auction_id)

        logger.info(
            "Auction settled: %s winner=%s amount=%s %s usd=%s basis=%s bids=%d",
            ledger_auction_id,
            winner.wallet if winner else None,
            winner.amount if winner else None,
            locked.currency,
            winner.usd_value if winner else None,
            basis.value,
            len(priced),
        )
        return await self._build_response(locked, now, priced, winner, basis.value, len(user_ids))

    async def _winner_identity(
        self, auction: Auction, winner: PricedLedgerEntry
    ) -> DisplayIdentity:
        """Runs after commit: never raises, falls back to the wallet placeholder."""
        resolver = self._resolver or get_identity_resolver()
        try:
            return await resolver.resolve_display_identity(winner.wallet, winner.fid)
        except Exception as exc:  # noqa: BLE001 - committed result wins over a display name
            logger.warning(
                "Winner identity unavailable for %s (%s): %s",
                auction.ledger_auction_id,
                winner.wallet,
                exc,
            )
            return placeholder_identity(winner.wallet)

    async def _build_response(
        self,
        auction: Auction,
        ended_at: datetime,
        priced: list[PricedLedgerEntry],
        winner: PricedLedgerEntry | None,
        basis: str,
        participant_count: int,
    ) -> SettlementResponse:
        summary = None
        if winner is not None:
            identity = await self._winner_identity(auction, winner)
            summary = WinnerSummary(
                bidder=IdentityOut.build(winner.wallet, winner.fid, identity),
                amount=winner.amount,
                usd_value=winner.usd_value,
            )
        return SettlementResponse(
            ledger_auction_id=auction.ledger_auction_id,
            status=AuctionStatus.ENDED.value,
            ended_at=ended_at,
            currency=auction.currency,
            ranking_basis=basis,
            total_bids=len(priced),
            participant_count=participant_count,
            winner=summary,
        )
