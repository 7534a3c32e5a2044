"""Auction lifecycle: UPCOMING -> RUNNING -> ENDING -> ENDED.

Only the settlement moves the persisted status to ENDED; the other phases
are derived from the clock.
"""

from datetime import datetime

from src.ah_common.datetime_utils import ensure_utc, whole_hours_between
from src.ah_common.enums import AuctionPhase, AuctionStatus
from src.ah_auction.domain.models import Auction


def auction_phase(auction: Auction, now: datetime) -> AuctionPhase:
    if auction.status == AuctionStatus.ENDED:
        return AuctionPhase.ENDED
    now = ensure_utc(now)
    if now < ensure_utc(auction.start_time):
        return AuctionPhase.UPCOMING
    if now <= ensure_utc(auction.end_time):
        return AuctionPhase.RUNNING
    return AuctionPhase.ENDING


def accepts_bids(auction: Auction, now: datetime) -> bool:
    """Bidding is open until end_time, including before start_time."""
    return auction.status != AuctionStatus.ENDED and ensure_utc(now) <= ensure_utc(
        auction.end_time
    )


def hours_remaining(auction: Auction, now: datetime) -> int:
    return whole_hours_between(now, auction.end_time)
