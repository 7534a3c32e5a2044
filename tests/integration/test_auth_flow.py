"""Integration tests for wallet sign-in (requires running PG + Redis).

Run: pytest tests/integration/test_auth_flow.py -v
Pre-condition: PostgreSQL + Redis reachable via .env, `alembic upgrade head`
"""

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from httpx import AsyncClient

from tests.integration.conftest import sign_in

# All tests in this module share the session-scoped event loop so that the
# module-level SQLAlchemy async engine pool stays alive across tests.
pytestmark = [pytest.mark.integration, pytest.mark.asyncio(loop_scope="session")]


class TestNonce:
    async def test_nonce_message_names_wallet(self, client: AsyncClient) -> None:
        wallet = Account.create().address
        resp = await client.post("/api/v1/auth/nonce", json={"wallet": wallet})
        assert resp.status_code == 200
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["wallet"] == wallet.lower()
        assert body["data"]["nonce"] in body["data"]["message"]

    async def test_malformed_wallet(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/auth/nonce", json={"wallet": "0x1234"})
        assert resp.status_code == 422
        assert resp.json()["code"] == 1006


class TestLogin:
    async def test_login_success(self, client: AsyncClient) -> None:
        account = Account.create()
        wallet, headers = await sign_in(client, account)
        assert headers["Authorization"].startswith("Bearer ")

    async def test_nonce_is_single_use(self, client: AsyncClient) -> None:
        account = Account.create()
        wallet = account.address.lower()
        nonce = await client.post("/api/v1/auth/nonce", json={"wallet": wallet})
        signed = account.sign_message(encode_defunct(text=nonce.json()["data"]["message"]))
        body = {"wallet": wallet, "signature": "0x" + bytes(signed.signature).hex()}

        first = await client.post("/api/v1/auth/login", json=body)
        second = await client.post("/api/v1/auth/login", json=body)

        assert first.status_code == 200
        assert second.status_code == 401
        assert second.json()["code"] == 1003

    async def test_signature_from_other_key(self, client: AsyncClient) -> None:
        wallet = Account.create().address.lower()
        nonce = await client.post("/api/v1/auth/nonce", json={"wallet": wallet})
        signed = Account.create().sign_message(
            encode_defunct(text=nonce.json()["data"]["message"])
        )
        resp = await client.post(
            "/api/v1/auth/login",
            json={"wallet": wallet, "signature": "0x" + bytes(signed.signature).hex()},
        )
        assert resp.status_code == 401


class TestRefreshAndFid:
    async def test_refresh_returns_new_access_token(self, client: AsyncClient) -> None:
        account = Account.create()
        wallet = account.address.lower()
        nonce = await client.post("/api/v1/auth/nonce", json={"wallet": wallet})
        signed = account.sign_message(encode_defunct(text=nonce.json()["data"]["message"]))
        login = await client.post(
            "/api/v1/auth/login",
            json={"wallet": wallet, "signature": "0x" + bytes(signed.signature).hex()},
        )
        resp = await client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": login.json()["data"]["refresh_token"]},
        )
        assert resp.status_code == 200
        assert "access_token" in resp.json()["data"]

    async def test_link_fid_once(self, client: AsyncClient) -> None:
        _, headers = await sign_in(client)
        first = await client.patch("/api/v1/users/me/fid", json={"fid": "1234"}, headers=headers)
        second = await client.patch("/api/v1/users/me/fid", json={"fid": "5678"}, headers=headers)
        assert first.json()["data"]["updated"] is True
        assert second.json()["data"]["updated"] is False
        assert second.json()["data"]["user"]["fid"] == "1234"

    async def test_protected_route_requires_token(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/auctions/hosted")
        assert resp.status_code == 401


class TestProfiles:
    async def test_me_then_search_then_public_page(self, client: AsyncClient) -> None:
        wallet, headers = await sign_in(client)

        me = await client.get("/api/v1/users/me", headers=headers)
        assert me.status_code == 200
        user_id = me.json()["data"]["user_id"]

        found = await client.get(
            "/api/v1/users/search", params={"q": wallet[2:14].upper()}, headers=headers
        )
        assert wallet in [u["wallet"] for u in found.json()["data"]["items"]]

        page = await client.get(f"/api/v1/users/{user_id}/auctions", headers=headers)
        assert page.status_code == 200
        assert page.json()["data"]["user"]["wallet"] == wallet

    async def test_search_treats_wildcards_literally(self, client: AsyncClient) -> None:
        _, headers = await sign_in(client)
        resp = await client.get("/api/v1/users/search", params={"q": "%_"}, headers=headers)
        assert resp.json()["data"]["items"] == []
