"""HTTP layer: routing, envelope and error codes, over in-memory services."""

from types import SimpleNamespace

import pytest
from httpx import AsyncClient

from src.ah_auction.api.router import get_auction_service
from src.ah_auction.application.service import AuctionService
from src.ah_bidding.api.router import get_bidding_service
from src.ah_bidding.application.service import BiddingService
from src.ah_common.database import get_db_session
from src.ah_gateway.auth.dependencies import enforce_bid_rate_limit, get_current_user
from src.ah_settlement.api.router import get_settlement_service
from src.ah_settlement.application.service import SettlementService
from src.main import app
from tests.unit.fakes import HOST, USDC, WALLET1, WALLET2, FakeLedger


@pytest.fixture
def caller() -> SimpleNamespace:
    """Mutable signed-in user; tests switch wallets by assigning to it."""
    return SimpleNamespace(id="user-host", wallet=HOST)


@pytest.fixture
def api(caller, repo, users, db, normalizer, resolver, locks, clock):
    ledger = FakeLedger()
    app.dependency_overrides[get_db_session] = lambda: db
    app.dependency_overrides[get_current_user] = lambda: caller
    app.dependency_overrides[enforce_bid_rate_limit] = lambda: caller
    app.dependency_overrides[get_auction_service] = lambda: AuctionService(
        repo=repo, users=users, resolver=resolver, normalizer=normalizer,
        ledger_reader=ledger, clock=clock,
    )
    app.dependency_overrides[get_bidding_service] = lambda: BiddingService(
        repo=repo, users=users, normalizer=normalizer, locks=locks, clock=clock
    )
    app.dependency_overrides[get_settlement_service] = lambda: SettlementService(
        repo=repo, users=users, normalizer=normalizer, ledger_reader=ledger,
        resolver=resolver, locks=locks, clock=clock,
    )
    return ledger


def _create_body(clock, key: str = "77") -> dict:
    return {
        "ledger_auction_id": key,
        "name": "Genesis drop",
        "token_address": USDC,
        "currency": "USDC",
        "minimum_bid": "100",
        "start_time": clock.now.isoformat(),
        "end_time": clock.now.replace(hour=18).isoformat(),
    }


async def _bid(client: AsyncClient, caller, wallet: str, amount: str, key: str = "77"):
    caller.wallet = wallet
    return await client.post(f"/api/v1/auctions/{key}/bids", json={"amount": amount})


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


class TestAuctionRoutes:
    async def test_create_then_detail(self, client, api, clock) -> None:
        resp = await client.post("/api/v1/auctions", json=_create_body(clock))
        assert resp.status_code == 201
        body = resp.json()
        assert body["code"] == 0
        assert body["message"] == "Auction created"
        assert body["data"]["minimum_bid"] == "100"
        assert body["request_id"].startswith("req_")

        detail = await client.get("/api/v1/auctions/77")
        assert detail.status_code == 200
        assert detail.json()["data"]["host"]["wallet"] == HOST
        assert detail.json()["data"]["bids"] == []

    async def test_duplicate_create_is_409(self, client, api, clock) -> None:
        await client.post("/api/v1/auctions", json=_create_body(clock))
        resp = await client.post("/api/v1/auctions", json=_create_body(clock))
        assert resp.status_code == 409
        assert resp.json()["code"] == 3002
        assert resp.json()["data"] is None

    async def test_unknown_auction_is_404(self, client, api) -> None:
        resp = await client.get("/api/v1/auctions/404")
        assert resp.status_code == 404
        assert resp.json()["code"] == 3001

    async def test_minimum_bid_beyond_eighteen_places_is_422(self, client, api, clock) -> None:
        body = _create_body(clock)
        body["minimum_bid"] = "0.0000000000000000001"
        resp = await client.post("/api/v1/auctions", json=body)
        assert resp.status_code == 422

    async def test_running_limit_bounds(self, client, api) -> None:
        resp = await client.get("/api/v1/auctions/running", params={"limit": 0})
        assert resp.status_code == 422

    async def test_running_and_hosted(self, client, api, clock) -> None:
        await client.post("/api/v1/auctions", json=_create_body(clock))

        running = await client.get("/api/v1/auctions/running")
        assert [c["ledger_auction_id"] for c in running.json()["data"]["items"]] == ["77"]

        hosted = await client.get("/api/v1/auctions/hosted")
        assert hosted.json()["data"]["counts"] == {"active": 1, "upcoming": 0, "ended": 0}

    async def test_ledger_bidders_unavailable_is_503(self, client, api, clock) -> None:
        await client.post("/api/v1/auctions", json=_create_body(clock))
        api.fail = True
        resp = await client.get("/api/v1/auctions/77/bidders")
        assert resp.status_code == 503
        assert resp.json()["code"] == 9003


class TestBidRoutes:
    async def test_bid_flow_and_rejection_messages(self, client, api, caller, clock) -> None:
        await client.post("/api/v1/auctions", json=_create_body(clock))

        low = await _bid(client, caller, WALLET1, "50")
        assert low.status_code == 422
        assert low.json()["code"] == 4003
        assert low.json()["message"] == "Bid amount must be at least 100 USDC"

        ok = await _bid(client, caller, WALLET1, "150")
        assert ok.status_code == 201
        assert ok.json()["message"] == "Bid placed successfully"
        assert ok.json()["data"]["amount"] == "150"
        assert ok.json()["data"]["usd_value"] == "150"
        assert ok.json()["data"]["bidder"] == WALLET1

        tie = await _bid(client, caller, WALLET2, "150")
        assert tie.json()["code"] == 4004
        assert tie.json()["message"] == "Bid must exceed 150 USDC"

        caller.wallet = WALLET1
        mine = await client.get("/api/v1/auctions/participated")
        assert [c["ledger_auction_id"] for c in mine.json()["data"]["items"]] == ["77"]

    async def test_zero_amount_is_business_error(self, client, api, caller, clock) -> None:
        await client.post("/api/v1/auctions", json=_create_body(clock))
        resp = await _bid(client, caller, WALLET1, "0")
        assert resp.status_code == 422
        assert resp.json()["code"] == 4001

    @pytest.mark.parametrize("amount", ["NaN", "Infinity", "-Infinity", "150.0000000000000000001"])
    async def test_non_finite_or_unstorable_amount_is_4001(
        self, client, api, caller, clock, repo, amount
    ) -> None:
        await client.post("/api/v1/auctions", json=_create_body(clock))
        resp = await _bid(client, caller, WALLET1, amount)
        assert resp.status_code == 422
        assert resp.json()["code"] == 4001
        assert resp.json()["message"] == "Invalid bid amount"
        assert repo.bids == []

    async def test_large_amount_keeps_every_digit(self, client, api, caller, clock) -> None:
        await client.post("/api/v1/auctions", json=_create_body(clock))
        resp = await _bid(client, caller, WALLET1, "1000000000000.000000000000000001")
        assert resp.status_code == 201
        assert resp.json()["data"]["amount"] == "1000000000000.000000000000000001"


class TestSettlementRoutes:
    async def test_end_with_relayed_bidders(self, client, api, caller, clock) -> None:
        await client.post("/api/v1/auctions", json=_create_body(clock))
        await _bid(client, caller, WALLET1, "150")
        caller.wallet = HOST

        resp = await client.post(
            "/api/v1/auctions/77/end",
            json={
                "bidders": [
                    {"bidder": WALLET1, "bid_amount": "150000000", "fid": "none"},
                    {"bidder": WALLET2, "bid_amount": "0xbebc200", "fid": "12"},
                ]
            },
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Auction ended successfully"
        assert body["data"]["ranking_basis"] == "USD"
        assert body["data"]["winner"]["bidder"]["wallet"] == WALLET2
        assert body["data"]["winner"]["amount"] == "200.000000"
        assert api.calls == 0

        again = await client.post("/api/v1/auctions/77/end")
        assert again.status_code == 409
        assert again.json()["code"] == 5003

        late = await _bid(client, caller, WALLET1, "999")
        assert late.json()["code"] == 4002
        assert late.json()["message"] == "Auction has ended"

    async def test_end_without_body_reads_ledger(self, client, api, clock) -> None:
        await client.post("/api/v1/auctions", json=_create_body(clock))
        resp = await client.post("/api/v1/auctions/77/end")
        assert resp.status_code == 200
        assert resp.json()["data"]["winner"] is None
        assert api.calls == 1

    async def test_non_host_is_403(self, client, api, caller, clock) -> None:
        await client.post("/api/v1/auctions", json=_create_body(clock))
        caller.wallet = WALLET1
        resp = await client.post("/api/v1/auctions/77/end", json={"bidders": []})
        assert resp.status_code == 403
        assert resp.json()["code"] == 5001


class TestUserRoutes:
    async def test_me(self, client, api, caller) -> None:
        caller.wallet = WALLET1
        resp = await client.get("/api/v1/users/me")
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["wallet"] == WALLET1
        assert data["display_name"] == "0x1111...1111"

    async def test_search(self, client, api, caller, clock) -> None:
        await client.post("/api/v1/auctions", json=_create_body(clock))
        await _bid(client, caller, WALLET1, "150")

        resp = await client.get("/api/v1/users/search", params={"q": "0x1111"})

        assert resp.status_code == 200
        assert [u["wallet"] for u in resp.json()["data"]["items"]] == [WALLET1]

    async def test_search_without_query_is_empty(self, client, api) -> None:
        resp = await client.get("/api/v1/users/search")
        assert resp.status_code == 200
        assert resp.json()["data"]["items"] == []

    async def test_public_profile_lists_hosted_auctions(self, client, api, users, clock) -> None:
        await client.post("/api/v1/auctions", json=_create_body(clock))
        host_id = users.users[HOST].id

        resp = await client.get(f"/api/v1/users/{host_id}/auctions")

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["user"]["user_id"] == host_id
        assert [c["ledger_auction_id"] for c in data["active"]] == ["77"]
        assert data["ended"] == []

    async def test_unknown_user_is_404(self, client, api) -> None:
        resp = await client.get("/api/v1/users/00000000-0000-0000-0000-000000000000/auctions")
        assert resp.status_code == 404
        assert resp.json()["code"] == 1007

    async def test_malformed_user_id_is_422(self, client, api) -> None:
        resp = await client.get("/api/v1/users/not-a-uuid/auctions")
        assert resp.status_code == 422
