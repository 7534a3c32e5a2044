"""Pydantic schemas for ah_auction requests and read-model views.

Amounts are Decimal and serialize as strings (`model_dump(mode="json")`),
so no value ever passes through float on its way to the client.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from src.ah_auction.domain.lifecycle import auction_phase, hours_remaining
from src.ah_auction.domain.models import Auction, Bid
from src.ah_common.units import fits_amount_column
from src.ah_gateway.user.repository import UserRecord
from src.ah_gateway.user.wallet import normalize_wallet
from src.ah_identity.domain.models import DisplayIdentity, placeholder_identity

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateAuctionRequest(BaseModel):
    ledger_auction_id: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=200)
    token_address: str
    currency: str = Field(..., min_length=1, max_length=20)
    minimum_bid: Decimal = Field(..., ge=0)
    start_time: datetime
    end_time: datetime

    @field_validator("token_address")
    @classmethod
    def token_format(cls, v: str) -> str:
        return normalize_wallet(v)

    @field_validator("minimum_bid")
    @classmethod
    def minimum_fits(cls, v: Decimal) -> Decimal:
        if not fits_amount_column(v):
            raise ValueError("minimum_bid allows at most 18 decimal places and 60 integer digits")
        return v

    @model_validator(mode="after")
    def end_after_start(self) -> "CreateAuctionRequest":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


class IdentityOut(BaseModel):
    wallet: str
    fid: str | None = None
    display_name: str
    avatar_url: str
    username: str | None = None

    @classmethod
    def build(
        cls, wallet: str, fid: str | None, identity: DisplayIdentity | None
    ) -> "IdentityOut":
        identity = identity or placeholder_identity(wallet)
        return cls(
            wallet=wallet,
            fid=fid,
            display_name=identity.display_name,
            avatar_url=identity.avatar_url,
            username=identity.username,
        )


class AuctionCard(BaseModel):
    """List item: what the running/hosted/participated lists show."""

    ledger_auction_id: str
    name: str
    token_address: str
    currency: str
    minimum_bid: Decimal
    start_time: datetime
    end_time: datetime
    phase: str
    hours_remaining: int
    highest_bid: Decimal
    bid_count: int
    participant_count: int
    host: IdentityOut
    top_bidder: IdentityOut | None

    @classmethod
    def from_domain(
        cls,
        a: Auction,
        now: datetime,
        identities: dict[str, DisplayIdentity],
    ) -> "AuctionCard":
        top_bidder = None
        if a.highest_bidder_wallet:
            top_bidder = IdentityOut.build(
                a.highest_bidder_wallet,
                a.highest_bidder_fid,
                identities.get(a.highest_bidder_wallet),
            )
        return cls(
            ledger_auction_id=a.ledger_auction_id,
            name=a.name,
            token_address=a.token_address,
            currency=a.currency,
            minimum_bid=a.minimum_bid,
            start_time=a.start_time,
            end_time=a.end_time,
            phase=auction_phase(a, now).value,
            hours_remaining=hours_remaining(a, now),
            highest_bid=a.highest_bid,
            bid_count=a.bid_count,
            participant_count=a.participant_count,
            host=IdentityOut.build(a.host_wallet, a.host_fid, identities.get(a.host_wallet)),
            top_bidder=top_bidder,
        )


class RunningAuctionsResponse(BaseModel):
    items: list[AuctionCard]


class HostedCounts(BaseModel):
    active: int
    upcoming: int
    ended: int


class HostedAuctionsResponse(BaseModel):
    active: list[AuctionCard]
    upcoming: list[AuctionCard]
    ended: list[AuctionCard]
    counts: HostedCounts


class ParticipatedAuctionsResponse(BaseModel):
    items: list[AuctionCard]


class BidOut(BaseModel):
    id: int
    bidder: IdentityOut
    amount: Decimal
    usd_value: Decimal | None
    source: str
    created_at: datetime

    @classmethod
    def from_domain(cls, b: Bid, identities: dict[str, DisplayIdentity]) -> "BidOut":
        return cls(
            id=b.id,
            bidder=IdentityOut.build(
                b.bidder_wallet, b.bidder_fid, identities.get(b.bidder_wallet)
            ),
            amount=b.amount,
            usd_value=b.usd_value,
            source=b.source,
            created_at=b.created_at,
        )


class WinnerOut(BaseModel):
    bidder: IdentityOut
    amount: Decimal | None
    usd_value: Decimal | None


class AuctionDetail(AuctionCard):
    status: str
    settled_at: datetime | None
    ranking_basis: str | None
    winner: WinnerOut | None
    bids: list[BidOut]

    @classmethod
    def from_domain_with_bids(
        cls,
        a: Auction,
        bids: list[Bid],
        now: datetime,
        identities: dict[str, DisplayIdentity],
    ) -> "AuctionDetail":
        card = AuctionCard.from_domain(a, now, identities)
        winner = None
        if a.winner_wallet:
            winner = WinnerOut(
                bidder=IdentityOut.build(
                    a.winner_wallet, a.winner_fid, identities.get(a.winner_wallet)
                ),
                amount=a.winning_amount,
                usd_value=a.winning_usd,
            )
        return cls(
            **card.model_dump(),
            status=a.status,
            settled_at=a.settled_at,
            ranking_basis=a.ranking_basis,
            winner=winner,
            bids=[BidOut.from_domain(b, identities) for b in bids],
        )


class LedgerBidderOut(BaseModel):
    bidder: IdentityOut
    raw_amount: str
    amount: Decimal
    usd_value: Decimal | None


class LedgerBiddersResponse(BaseModel):
    ledger_auction_id: str
    status: str  # "Running" while end_time is in the future, else "Ended"
    currency: str
    bidders: list[LedgerBidderOut]


class UserProfile(BaseModel):
    user_id: str
    wallet: str
    fid: str | None = None
    display_name: str
    avatar_url: str
    username: str | None = None

    @classmethod
    def build(cls, user: UserRecord, identity: DisplayIdentity | None) -> "UserProfile":
        identity = identity or placeholder_identity(user.wallet)
        return cls(
            user_id=user.id,
            wallet=user.wallet,
            fid=user.fid,
            display_name=identity.display_name,
            avatar_url=identity.avatar_url,
            username=identity.username,
        )


class UserSearchResponse(BaseModel):
    items: list[UserProfile]


class UserAuctionsResponse(BaseModel):
    """Public profile: active holds everything not yet ENDED, upcoming included."""

    user: UserProfile
    active: list[AuctionCard]
    ended: list[AuctionCard]
