"""Bid validator: a pure decision over an auction snapshot.

Amounts must be positive and stored exactly (at most 18 fractional and 60
integer digits); anything else is INVALID_AMOUNT.

Rules are evaluated in a fixed order and the first failing rule decides the
reason, so a 5 against minimum 10 is BELOW_MINIMUM even when there is no
highest bid yet, and a 15 against minimum 10 / highest 20 is NOT_HIGH_ENOUGH.

The caller must hold the auction's lock (or row lock) between reading the
snapshot and committing the bid.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.ah_auction.domain.lifecycle import accepts_bids
from src.ah_auction.domain.models import Auction
from src.ah_common.enums import RejectionReason
from src.ah_common.errors import BidRejectedError
from src.ah_common.units import fits_amount_column, format_amount, is_positive_finite


@dataclass(frozen=True)
class BidAccepted:
    amount: Decimal


@dataclass(frozen=True)
class BidRejected:
    reason: RejectionReason
    message: str


BidDecision = BidAccepted | BidRejected


def check_amount(amount: Decimal) -> BidDecision:
    """The auction-independent rule: positive, finite, stored without rounding."""
    if not is_positive_finite(amount) or not fits_amount_column(amount):
        return BidRejected(RejectionReason.INVALID_AMOUNT, "Invalid bid amount")
    return BidAccepted(amount)


def validate_bid(amount: Decimal, auction: Auction, now: datetime) -> BidDecision:
    decision = check_amount(amount)
    if isinstance(decision, BidRejected):
        return decision

    if not accepts_bids(auction, now):
        return BidRejected(RejectionReason.AUCTION_ENDED, "Auction has ended")

    if amount < auction.minimum_bid:
        return BidRejected(
            RejectionReason.BELOW_MINIMUM,
            f"Bid amount must be at least {format_amount(auction.minimum_bid, auction.currency)}",
        )

    if amount <= auction.highest_bid:
        return BidRejected(
            RejectionReason.NOT_HIGH_ENOUGH,
            f"Bid must exceed {format_amount(auction.highest_bid, auction.currency)}",
        )

    return BidAccepted(amount)


def ensure_accepted(decision: BidDecision) -> Decimal:
    """Return the accepted amount or raise the rejection as BidRejectedError."""
    if isinstance(decision, BidRejected):
        raise BidRejectedError(decision.reason, decision.message)
    return decision.amount
