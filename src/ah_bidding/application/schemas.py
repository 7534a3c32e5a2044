"""Pydantic schemas for bid ingestion.

`amount` is not range-checked here: the bid validator owns that decision so
a zero, negative, NaN or infinite amount comes back as INVALID_AMOUNT, not a
schema error.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.ah_auction.domain.models import Bid


class PlaceBidRequest(BaseModel):
    amount: Decimal = Field(..., allow_inf_nan=True)
    client_bid_id: str | None = Field(None, min_length=1, max_length=64)


class BidResponse(BaseModel):
    bid_id: int
    ledger_auction_id: str
    bidder: str
    amount: Decimal
    usd_value: Decimal | None
    currency: str
    source: str
    client_bid_id: str | None
    created_at: datetime

    @classmethod
    def from_domain(cls, bid: Bid, ledger_auction_id: str, currency: str) -> "BidResponse":
        return cls(
            bid_id=bid.id,
            ledger_auction_id=ledger_auction_id,
            bidder=bid.bidder_wallet,
            amount=bid.amount,
            usd_value=bid.usd_value,
            currency=currency,
            source=bid.source,
            client_bid_id=bid.client_bid_id,
            created_at=bid.created_at,
        )
