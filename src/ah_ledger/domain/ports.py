from typing import Protocol

from src.ah_ledger.domain.models import LedgerBidder


class LedgerReaderProtocol(Protocol):
    async def get_bidders(self, ledger_auction_id: str) -> list[LedgerBidder]:
        """Full bid history for one auction. Raises LedgerUnavailableError."""
        ...
