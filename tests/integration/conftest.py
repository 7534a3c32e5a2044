"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.
"""

import pytest_asyncio
from eth_account import Account
from eth_account.messages import encode_defunct
from httpx import ASGITransport, AsyncClient

from src.main import app


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def sign_in(client: AsyncClient, account=None) -> tuple[str, dict[str, str]]:
    """Nonce -> personal_sign -> login for a (fresh) key. Returns (wallet, headers)."""
    account = account or Account.create()
    wallet = account.address.lower()
    nonce_resp = await client.post("/api/v1/auth/nonce", json={"wallet": wallet})
    message = nonce_resp.json()["data"]["message"]
    signed = account.sign_message(encode_defunct(text=message))
    login_resp = await client.post(
        "/api/v1/auth/login",
        json={"wallet": wallet, "signature": "0x" + bytes(signed.signature).hex()},
    )
    token = login_resp.json()["data"]["access_token"]
    return wallet, {"Authorization": f"Bearer {token}"}
