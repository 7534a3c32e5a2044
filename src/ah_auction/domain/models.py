"""Domain models for ah_auction: the read-model (mirror) side.

Amounts are human units (Decimal). `highest_bid`, `bid_count` and
`participant_count` are denormalized and only change together with the bid
list they summarize.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Auction:
    id: str
    ledger_auction_id: str
    name: str
    token_address: str
    currency: str
    minimum_bid: Decimal
    start_time: datetime
    end_time: datetime
    host_id: str
    host_wallet: str
    host_fid: str | None
    status: str
    highest_bid: Decimal
    highest_bidder_id: str | None
    highest_bidder_wallet: str | None
    highest_bidder_fid: str | None
    bid_count: int
    participant_count: int
    winner_id: str | None
    winner_wallet: str | None
    winner_fid: str | None
    winning_amount: Decimal | None
    winning_usd: Decimal | None
    ranking_basis: str | None
    settled_at: datetime | None
    version: int
    created_at: datetime
    updated_at: datetime


@dataclass
class Bid:
    id: int
    auction_id: str
    bidder_id: str
    bidder_wallet: str
    bidder_fid: str | None
    amount: Decimal
    usd_value: Decimal | None
    source: str
    client_bid_id: str | None
    created_at: datetime


@dataclass
class NewAuction:
    ledger_auction_id: str
    name: str
    token_address: str
    currency: str
    minimum_bid: Decimal
    start_time: datetime
    end_time: datetime
    host_id: str


@dataclass
class ReplacementBid:
    """One entry of a settlement's authoritative bid list, ready to persist."""

    bidder_id: str
    amount: Decimal
    usd_value: Decimal | None
    created_at: datetime


@dataclass
class SettlementOutcome:
    ended_at: datetime
    highest_bid: Decimal
    highest_bidder_id: str | None
    bid_count: int
    winner_id: str | None
    winning_amount: Decimal | None
    winning_usd: Decimal | None
    ranking_basis: str
