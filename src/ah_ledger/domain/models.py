"""Authority-side types: facts as reported by the auction contract.

These are inputs to settlement only. The read-model never writes them back
and never claims they are final until a settlement commits them.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class LedgerBidder:
    """One entry of the contract's getBidders(auctionId) result."""

    bidder: str          # wallet address, as returned by the chain
    raw_amount: int      # uint256 in token base units
    fid: str | None      # social id, or a "none…"/address placeholder
