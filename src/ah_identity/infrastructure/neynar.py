"""Neynar bulk-user lookup (Farcaster profiles by fid)."""

import httpx

from src.ah_common.errors import IdentityLookupError


class NeynarClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._api_key = api_key
        self._timeout = timeout_seconds
        self._transport = transport

    async def fetch_users(self, fids: list[str]) -> dict[str, dict]:
        """Return {fid: profile} for the fids Neynar knows about."""
        if not fids:
            return {}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(
                    self._base_url,
                    params={"fids": ",".join(fids)},
                    headers={"x-api-key": self._api_key},
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise IdentityLookupError(str(e) or type(e).__name__) from e

        users = payload.get("users") if isinstance(payload, dict) else None
        return {str(u.get("fid")): u for u in users or [] if isinstance(u, dict)}
