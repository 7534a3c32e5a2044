"""Ledger entries -> human units and USD, one quote cache per pass."""

from dataclasses import dataclass
from decimal import Decimal

from src.ah_gateway.user.wallet import normalize_wallet
from src.ah_ledger.domain.models import LedgerBidder
from src.ah_pricing.application.normalizer import PriceNormalizer, PriceQuoteCache


@dataclass(frozen=True)
class PricedLedgerEntry:
    position: int  # index in the ledger's list; earlier wins ties
    wallet: str
    fid: str | None
    raw_amount: int
    amount: Decimal
    usd_value: Decimal | None


async def price_ledger_entries(
    entries: list[LedgerBidder],
    token_address: str,
    normalizer: PriceNormalizer,
) -> list[PricedLedgerEntry]:
    """A failed USD quote leaves that entry's usd_value None and moves on."""
    cache = PriceQuoteCache()
    priced: list[PricedLedgerEntry] = []
    for position, entry in enumerate(entries):
        amount = await normalizer.to_human_units(entry.raw_amount, token_address)
        usd_value = await normalizer.to_usd(amount, token_address, cache)
        priced.append(
            PricedLedgerEntry(
                position=position,
                wallet=normalize_wallet(entry.bidder),
                fid=entry.fid or None,
                raw_amount=entry.raw_amount,
                amount=amount,
                usd_value=usd_value,
            )
        )
    return priced
