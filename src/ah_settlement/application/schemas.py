"""Pydantic schemas for the host's end-auction request and its result."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from src.ah_auction.application.schemas import IdentityOut
from src.ah_common.units import parse_raw_amount
from src.ah_ledger.domain.models import LedgerBidder


class ExternalBidderIn(BaseModel):
    """One getBidders() entry as relayed by the host's client."""

    bidder: str
    bid_amount: int | str  # uint256 in token base units, decimal or 0x-hex
    fid: str | None = None

    @field_validator("bid_amount")
    @classmethod
    def raw_amount(cls, v: int | str) -> int:
        return parse_raw_amount(v)

    def to_ledger(self) -> LedgerBidder:
        return LedgerBidder(bidder=self.bidder, raw_amount=int(self.bid_amount), fid=self.fid)


class EndAuctionRequest(BaseModel):
    bidders: list[ExternalBidderIn] | None = Field(
        None, description="Omit to have the server read the list from the contract."
    )


class WinnerSummary(BaseModel):
    bidder: IdentityOut
    amount: Decimal
    usd_value: Decimal | None


class SettlementResponse(BaseModel):
    ledger_auction_id: str
    status: str
    ended_at: datetime
    currency: str
    ranking_basis: str
    total_bids: int
    participant_count: int
    winner: WinnerSummary | None
