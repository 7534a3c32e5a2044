"""Process-wide PriceNormalizer, wired from settings on first use."""

from config.settings import settings
from src.ah_ledger.infrastructure.web3_client import get_web3
from src.ah_pricing.application.normalizer import PriceNormalizer
from src.ah_pricing.infrastructure.dexscreener import DexScreenerOracle
from src.ah_pricing.infrastructure.erc20 import Erc20DecimalsReader

_normalizer: PriceNormalizer | None = None


def get_price_normalizer() -> PriceNormalizer:
    global _normalizer  # noqa: PLW0603
    if _normalizer is None:
        w3 = get_web3()
        _normalizer = PriceNormalizer(
            oracle=DexScreenerOracle(
                settings.PRICE_ORACLE_URL, settings.EXTERNAL_TIMEOUT_SECONDS
            ),
            decimals_source=(
                Erc20DecimalsReader(w3, settings.EXTERNAL_TIMEOUT_SECONDS) if w3 else None
            ),
            timeout_seconds=settings.EXTERNAL_TIMEOUT_SECONDS,
        )
    return _normalizer
