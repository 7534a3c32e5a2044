"""Ports for the external numeric sources: dependency inversion for testability."""

from decimal import Decimal
from typing import Protocol


class PriceOracleProtocol(Protocol):
    async def spot_price_usd(self, token_address: str) -> Decimal:
        """USD price of one whole token. Raises PriceUnavailableError on any failure."""
        ...


class TokenDecimalsProtocol(Protocol):
    async def decimals(self, token_address: str) -> int:
        """ERC-20 decimals(). Raises on any failure."""
        ...
