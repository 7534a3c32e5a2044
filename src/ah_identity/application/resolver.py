"""IdentityResolver: best-effort wallet/fid -> display identity.

Never raises and never blocks core logic for longer than one bounded
lookup: anything Neynar cannot answer gets the wallet placeholder.
"""

import logging

from config.settings import settings
from src.ah_common.errors import IdentityLookupError
from src.ah_gateway.user.wallet import is_placeholder_fid
from src.ah_identity.domain.models import (
    DisplayIdentity,
    IdentityRef,
    placeholder_identity,
)
from src.ah_identity.infrastructure.neynar import NeynarClient

logger = logging.getLogger(__name__)


class IdentityResolver:
    def __init__(self, client: NeynarClient | None = None) -> None:
        self._client = client

    async def resolve_many(self, refs: list[IdentityRef]) -> dict[str, DisplayIdentity]:
        """Map each ref's lower-cased wallet to a display identity."""
        fids = sorted({ref.fid.strip() for ref in refs if not is_placeholder_fid(ref.fid)})
        profiles: dict[str, dict] = {}
        if fids and self._client is not None:
            try:
                profiles = await self._client.fetch_users(fids)
            except IdentityLookupError as exc:
                logger.warning("Identity lookup failed for %d fids: %s", len(fids), exc)

        resolved: dict[str, DisplayIdentity] = {}
        for ref in refs:
            wallet = ref.wallet.lower()
            fallback = placeholder_identity(wallet)
            profile = profiles.get(ref.fid.strip()) if ref.fid else None
            if profile is None:
                resolved[wallet] = fallback
                continue
            resolved[wallet] = DisplayIdentity(
                display_name=profile.get("display_name")
                or profile.get("username")
                or fallback.display_name,
                avatar_url=profile.get("pfp_url") or fallback.avatar_url,
                username=profile.get("username"),
            )
        return resolved

    async def resolve_display_identity(self, wallet: str, fid: str | None = None) -> DisplayIdentity:
        return (await self.resolve_many([IdentityRef(wallet, fid)]))[wallet.lower()]


_resolver: IdentityResolver | None = None


def get_identity_resolver() -> IdentityResolver:
    global _resolver  # noqa: PLW0603
    if _resolver is None:
        client = (
            NeynarClient(
                settings.NEYNAR_API_URL,
                settings.NEYNAR_API_KEY,
                settings.EXTERNAL_TIMEOUT_SECONDS,
            )
            if settings.NEYNAR_API_KEY
            else None
        )
        _resolver = IdentityResolver(client)
    return _resolver
