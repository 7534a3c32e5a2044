"""PriceNormalizer: raw token integers to human units, human units to USD.

Decimals resolution order for a token:
  1. fixed count of a known stablecoin;
  2. cached result of a previous on-chain decimals() call;
  3. a fresh decimals() call (cached on success);
  4. DEFAULT_DECIMALS (18), not cached, so the next call retries the chain.

USD conversion never raises: any oracle failure yields None ("unavailable").
None is never coerced to 0 because 0 is a legitimate amount.
"""

import asyncio
import logging
from decimal import Decimal, localcontext

from src.ah_common.errors import PriceUnavailableError
from src.ah_common.units import WIDE_CONTEXT, scale_down
from src.ah_pricing.domain.ports import PriceOracleProtocol, TokenDecimalsProtocol
from src.ah_pricing.domain.tokens import DEFAULT_DECIMALS, STABLE_USD_PRICE, stable_token

logger = logging.getLogger(__name__)


class PriceQuoteCache:
    """Successful quotes for one settlement pass. Failures are not remembered."""

    def __init__(self) -> None:
        self._quotes: dict[str, Decimal] = {}

    def get(self, token_address: str) -> Decimal | None:
        return self._quotes.get(token_address.lower())

    def put(self, token_address: str, price: Decimal) -> None:
        self._quotes[token_address.lower()] = price

    def __len__(self) -> int:
        return len(self._quotes)


class PriceNormalizer:
    def __init__(
        self,
        oracle: PriceOracleProtocol | None = None,
        decimals_source: TokenDecimalsProtocol | None = None,
        timeout_seconds: float = 5.0,
    ) -> None:
        self._oracle = oracle
        self._decimals_source = decimals_source
        self._timeout = timeout_seconds
        self._decimals_cache: dict[str, int] = {}

    async def token_decimals(self, token_address: str) -> int:
        stable = stable_token(token_address)
        if stable is not None:
            return stable.decimals

        key = token_address.lower()
        cached = self._decimals_cache.get(key)
        if cached is not None:
            return cached

        if self._decimals_source is None:
            return DEFAULT_DECIMALS
        try:
            value = await asyncio.wait_for(
                self._decimals_source.decimals(token_address), timeout=self._timeout
            )
        except Exception as exc:  # noqa: BLE001 - any chain failure falls back to 18
            logger.warning(
                "decimals() failed for %s, assuming %d: %s", token_address, DEFAULT_DECIMALS, exc
            )
            return DEFAULT_DECIMALS
        self._decimals_cache[key] = value
        return value

    async def to_human_units(self, raw_amount: int, token_address: str) -> Decimal:
        return scale_down(raw_amount, await self.token_decimals(token_address))

    async def spot_price_usd(
        self, token_address: str, cache: PriceQuoteCache | None = None
    ) -> Decimal | None:
        if stable_token(token_address) is not None:
            return STABLE_USD_PRICE
        if cache is not None:
            hit = cache.get(token_address)
            if hit is not None:
                return hit
        if self._oracle is None:
            return None
        try:
            price = await asyncio.wait_for(
                self._oracle.spot_price_usd(token_address), timeout=self._timeout
            )
        except (PriceUnavailableError, asyncio.TimeoutError) as exc:
            logger.warning("Price unavailable for %s: %s", token_address, str(exc) or "timeout")
            return None
        if cache is not None:
            cache.put(token_address, price)
        return price

    async def to_usd(
        self,
        human_amount: Decimal,
        token_address: str,
        cache: PriceQuoteCache | None = None,
    ) -> Decimal | None:
        price = await self.spot_price_usd(token_address, cache)
        if price is None:
            return None
        with localcontext(WIDE_CONTEXT):
            return human_amount * price
