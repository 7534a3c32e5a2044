"""Winner selection over one settlement batch.

USD is comparable across the batch only when every entry was priced; a
single unpriced entry switches the whole batch to human-amount ranking.
Ties go to the earliest ledger entry.
"""

from collections.abc import Callable
from decimal import Decimal

from src.ah_common.enums import RankingBasis
from src.ah_ledger.application.pricing import PricedLedgerEntry


def ranking_basis(entries: list[PricedLedgerEntry]) -> RankingBasis:
    if entries and all(e.usd_value is not None for e in entries):
        return RankingBasis.USD
    return RankingBasis.AMOUNT


def _first_max(
    entries: list[PricedLedgerEntry], key: Callable[[PricedLedgerEntry], Decimal]
) -> PricedLedgerEntry | None:
    best: PricedLedgerEntry | None = None
    for entry in sorted(entries, key=lambda e: e.position):
        if best is None or key(entry) > key(best):
            best = entry
    return best


def pick_winner(
    entries: list[PricedLedgerEntry],
) -> tuple[PricedLedgerEntry | None, RankingBasis]:
    basis = ranking_basis(entries)
    if basis == RankingBasis.USD:
        return _first_max(entries, lambda e: e.usd_value), basis  # type: ignore[arg-type,return-value]
    return _first_max(entries, lambda e: e.amount), basis


def highest_amount(entries: list[PricedLedgerEntry]) -> PricedLedgerEntry | None:
    """Top entry by human amount, for the denormalized highest_bid column."""
    return _first_max(entries, lambda e: e.amount)
