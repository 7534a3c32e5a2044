"""Settlement token registry (Base mainnet).

Stablecoins listed here have a fixed decimal count and a pinned USD price of
1; every other token needs an on-chain decimals() call and an oracle quote.
"""

from dataclasses import dataclass
from decimal import Decimal

DEFAULT_DECIMALS = 18
STABLE_USD_PRICE = Decimal(1)


@dataclass(frozen=True)
class StableToken:
    symbol: str
    decimals: int


# Keys are lower-cased contract addresses.
STABLE_TOKENS: dict[str, StableToken] = {
    "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913": StableToken("USDC", 6),
    "0xd9aaec86b65d86f6a7b5b1b0c42ffa531710b6ca": StableToken("USDbC", 6),
    "0xfde4c96c8593536e31f229ea8f37b2ada2699bb2": StableToken("USDT", 6),
}


def stable_token(token_address: str) -> StableToken | None:
    return STABLE_TOKENS.get(token_address.strip().lower())
