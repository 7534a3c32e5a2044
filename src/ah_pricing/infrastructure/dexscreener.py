"""DexScreener price oracle.

GET {PRICE_ORACLE_URL}/{token_address} returns a JSON array of trading
pairs; the first pair's `priceUsd` is taken as the spot price.
"""

import logging
from decimal import Decimal, InvalidOperation

import httpx

from src.ah_common.errors import PriceUnavailableError

logger = logging.getLogger(__name__)


class DexScreenerOracle:
    def __init__(
        self,
        base_url: str,
        timeout_seconds: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._transport = transport

    async def spot_price_usd(self, token_address: str) -> Decimal:
        url = f"{self._base_url}/{token_address}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            # 429 lands here too; callers treat every failure as "unavailable"
            raise PriceUnavailableError(
                f"HTTP {e.response.status_code} for {token_address}"
            ) from e
        except httpx.TimeoutException as e:
            raise PriceUnavailableError(f"Timeout quoting {token_address}") from e
        except (httpx.RequestError, ValueError) as e:
            raise PriceUnavailableError(f"Request error quoting {token_address}: {e}") from e

        if not isinstance(payload, list) or not payload:
            raise PriceUnavailableError(f"No price data for {token_address}")
        raw_price = payload[0].get("priceUsd") if isinstance(payload[0], dict) else None
        try:
            price = Decimal(str(raw_price))
        except (InvalidOperation, ValueError) as e:
            raise PriceUnavailableError(f"Invalid price {raw_price!r} for {token_address}") from e
        if not price.is_finite() or price <= 0:
            raise PriceUnavailableError(f"Invalid price {raw_price!r} for {token_address}")
        return price
