"""Read-only binding to the auction contract's getBidders(string)."""

import asyncio
import logging

from web3 import AsyncWeb3

from src.ah_common.errors import LedgerUnavailableError
from src.ah_ledger.domain.models import LedgerBidder

logger = logging.getLogger(__name__)

AUCTION_READ_ABI = [
    {
        "inputs": [{"internalType": "string", "name": "_auctionId", "type": "string"}],
        "name": "getBidders",
        "outputs": [
            {
                "components": [
                    {"internalType": "address", "name": "bidder", "type": "address"},
                    {"internalType": "uint256", "name": "bidAmount", "type": "uint256"},
                    {"internalType": "string", "name": "fid", "type": "string"},
                ],
                "internalType": "struct Bidders[]",
                "name": "",
                "type": "tuple[]",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    }
]


class AuctionContractReader:
    def __init__(self, w3: AsyncWeb3, contract_address: str, timeout_seconds: float) -> None:
        self._contract = w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(contract_address),
            abi=AUCTION_READ_ABI,
        )
        self._timeout = timeout_seconds

    async def get_bidders(self, ledger_auction_id: str) -> list[LedgerBidder]:
        try:
            rows = await asyncio.wait_for(
                self._contract.functions.getBidders(ledger_auction_id).call(),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise LedgerUnavailableError(f"getBidders({ledger_auction_id}) timed out") from exc
        except Exception as exc:  # noqa: BLE001 - web3 raises many unrelated types
            logger.warning("getBidders(%s) failed: %s", ledger_auction_id, exc)
            raise LedgerUnavailableError(str(exc)) from exc

        return [
            LedgerBidder(bidder=str(row[0]), raw_amount=int(row[1]), fid=str(row[2]) or None)
            for row in rows
        ]
