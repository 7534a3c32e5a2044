"""IdentityResolver: Neynar profiles with wallet placeholders as fallback."""

from unittest.mock import AsyncMock

from src.ah_common.errors import IdentityLookupError
from src.ah_identity.application.resolver import IdentityResolver
from src.ah_identity.domain.models import IdentityRef, placeholder_identity, truncate_wallet
from tests.unit.fakes import WALLET1, WALLET2


def test_truncate_wallet() -> None:
    assert truncate_wallet("0x1234567890abcdef1234567890abcdef12345678") == "0x1234...5678"


def test_placeholder_is_deterministic_and_case_insensitive() -> None:
    upper = placeholder_identity(WALLET1.upper().replace("0X", "0x"))
    lower = placeholder_identity(WALLET1)
    assert upper == lower
    assert lower.display_name == "0x1111...1111"
    assert lower.avatar_url.endswith(f"seed={WALLET1}")


async def test_without_client_everyone_gets_placeholder() -> None:
    resolver = IdentityResolver(client=None)
    identity = await resolver.resolve_display_identity(WALLET1, "3")
    assert identity == placeholder_identity(WALLET1)


async def test_profiles_are_used_when_found() -> None:
    client = AsyncMock()
    client.fetch_users = AsyncMock(
        return_value={"3": {"fid": 3, "username": "dwr", "display_name": "Dan", "pfp_url": "p"}}
    )
    resolver = IdentityResolver(client=client)

    resolved = await resolver.resolve_many(
        [IdentityRef(WALLET1, "3"), IdentityRef(WALLET2, "none-123")]
    )

    client.fetch_users.assert_awaited_once_with(["3"])
    assert resolved[WALLET1].display_name == "Dan"
    assert resolved[WALLET1].avatar_url == "p"
    assert resolved[WALLET1].username == "dwr"
    assert resolved[WALLET2] == placeholder_identity(WALLET2)


async def test_display_name_falls_back_to_username() -> None:
    client = AsyncMock()
    client.fetch_users = AsyncMock(return_value={"7": {"fid": 7, "username": "bob"}})
    resolved = await IdentityResolver(client=client).resolve_display_identity(WALLET1, "7")
    assert resolved.display_name == "bob"
    assert resolved.avatar_url == placeholder_identity(WALLET1).avatar_url


async def test_lookup_failure_degrades_to_placeholders() -> None:
    client = AsyncMock()
    client.fetch_users = AsyncMock(side_effect=IdentityLookupError("503"))
    resolved = await IdentityResolver(client=client).resolve_display_identity(WALLET1, "3")
    assert resolved == placeholder_identity(WALLET1)


async def test_placeholder_fids_skip_the_network() -> None:
    client = AsyncMock()
    await IdentityResolver(client=client).resolve_many(
        [IdentityRef(WALLET1, None), IdentityRef(WALLET2, WALLET2)]
    )
    client.fetch_users.assert_not_called()
