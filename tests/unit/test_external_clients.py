"""DexScreener and Neynar clients against httpx.MockTransport."""

from decimal import Decimal

import httpx
import pytest

from src.ah_common.errors import IdentityLookupError, PriceUnavailableError
from src.ah_identity.infrastructure.neynar import NeynarClient
from src.ah_pricing.infrastructure.dexscreener import DexScreenerOracle
from tests.unit.fakes import MEME

BASE = "https://dex.test/tokens/v1/base"


def _oracle(handler) -> DexScreenerOracle:
    return DexScreenerOracle(BASE, 1.0, transport=httpx.MockTransport(handler))


class TestDexScreenerOracle:
    async def test_first_pair_price(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json=[{"priceUsd": "0.0421"}, {"priceUsd": "9"}])

        assert await _oracle(handler).spot_price_usd(MEME) == Decimal("0.0421")
        assert seen == [f"{BASE}/{MEME}"]

    async def test_http_error(self) -> None:
        oracle = _oracle(lambda request: httpx.Response(429))
        with pytest.raises(PriceUnavailableError, match="HTTP 429"):
            await oracle.spot_price_usd(MEME)

    async def test_empty_payload(self) -> None:
        oracle = _oracle(lambda request: httpx.Response(200, json=[]))
        with pytest.raises(PriceUnavailableError, match="No price data"):
            await oracle.spot_price_usd(MEME)

    @pytest.mark.parametrize("price", [None, "abc", "0", "-1"])
    async def test_unusable_price(self, price) -> None:
        oracle = _oracle(lambda request: httpx.Response(200, json=[{"priceUsd": price}]))
        with pytest.raises(PriceUnavailableError, match="Invalid price"):
            await oracle.spot_price_usd(MEME)

    async def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(PriceUnavailableError, match="Request error"):
            await _oracle(handler).spot_price_usd(MEME)

    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(PriceUnavailableError, match="Timeout"):
            await _oracle(handler).spot_price_usd(MEME)


class TestNeynarClient:
    async def test_bulk_lookup_keyed_by_fid(self) -> None:
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["fids"] = request.url.params["fids"]
            captured["key"] = request.headers["x-api-key"]
            return httpx.Response(
                200,
                json={
                    "users": [
                        {"fid": 3, "username": "dwr", "display_name": "Dan", "pfp_url": "p3"},
                        {"fid": 42, "username": "alice"},
                    ]
                },
            )

        client = NeynarClient(
            "https://neynar.test/user/bulk", "k-123", 1.0, transport=httpx.MockTransport(handler)
        )
        users = await client.fetch_users(["3", "42"])

        assert captured == {"fids": "3,42", "key": "k-123"}
        assert set(users) == {"3", "42"}
        assert users["3"]["display_name"] == "Dan"

    async def test_no_fids_no_request(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("should not be called")

        client = NeynarClient("https://neynar.test", "k", 1.0, transport=httpx.MockTransport(handler))
        assert await client.fetch_users([]) == {}

    async def test_http_error_raises_lookup_error(self) -> None:
        client = NeynarClient(
            "https://neynar.test",
            "k",
            1.0,
            transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )
        with pytest.raises(IdentityLookupError):
            await client.fetch_users(["1"])
