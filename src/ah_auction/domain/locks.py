"""Per-auction critical sections for bid ingestion and settlement.

One asyncio.Lock per ledger auction key serializes every write to that
auction inside this process (cross-process safety comes from the row lock
and the conditional highest-bid UPDATE). A lock exists only while someone
holds or waits for it, so the registry stays empty between requests.

Settlement policy: once a settlement has announced itself for a key, bids
for that key fail fast with AUCTION_ENDED instead of queueing behind it,
and a bid that was already waiting for the lock re-checks on acquisition.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from src.ah_common.enums import RejectionReason
from src.ah_common.errors import BidRejectedError


class AuctionLockRegistry:
    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}  # holders + waiters per key
        self._settling: dict[str, int] = {}

    def is_settling(self, auction_key: str) -> bool:
        return auction_key in self._settling

    def _fail_if_settling(self, auction_key: str) -> None:
        if auction_key in self._settling:
            raise BidRejectedError(RejectionReason.AUCTION_ENDED, "Auction has ended")

    @asynccontextmanager
    async def _acquire(self, auction_key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(auction_key, asyncio.Lock())
        self._holders[auction_key] = self._holders.get(auction_key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._holders[auction_key] - 1
            if remaining:
                self._holders[auction_key] = remaining
            else:
                del self._holders[auction_key]
                del self._locks[auction_key]

    @asynccontextmanager
    async def bidding(self, auction_key: str) -> AsyncIterator[None]:
        self._fail_if_settling(auction_key)
        async with self._acquire(auction_key):
            self._fail_if_settling(auction_key)
            yield

    @asynccontextmanager
    async def settling(self, auction_key: str) -> AsyncIterator[None]:
        self._settling[auction_key] = self._settling.get(auction_key, 0) + 1
        try:
            async with self._acquire(auction_key):
                yield
        finally:
            remaining = self._settling[auction_key] - 1
            if remaining:
                self._settling[auction_key] = remaining
            else:
                del self._settling[auction_key]


_registry: AuctionLockRegistry | None = None


def get_lock_registry() -> AuctionLockRegistry:
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = AuctionLockRegistry()
    return _registry
