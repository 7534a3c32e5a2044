"""Shared AsyncWeb3 instance for contract reads (Base mainnet RPC).

Returns None when CHAIN_RPC_URL is not configured; callers then fall back
to client-supplied data or static defaults.
"""

from web3 import AsyncHTTPProvider, AsyncWeb3

from config.settings import settings

_w3: AsyncWeb3 | None = None


def get_web3() -> AsyncWeb3 | None:
    global _w3  # noqa: PLW0603
    if _w3 is None and settings.CHAIN_RPC_URL:
        _w3 = AsyncWeb3(AsyncHTTPProvider(settings.CHAIN_RPC_URL))
    return _w3
