"""Display identity types and the deterministic wallet-derived placeholder."""

from dataclasses import dataclass

AVATAR_PLACEHOLDER_URL = "https://api.dicebear.com/5.x/identicon/svg?seed={seed}"


@dataclass(frozen=True)
class IdentityRef:
    wallet: str
    fid: str | None = None


@dataclass(frozen=True)
class DisplayIdentity:
    display_name: str
    avatar_url: str
    username: str | None = None


def truncate_wallet(wallet: str) -> str:
    """0x1234567890abcdef... -> 0x1234...cdef"""
    if len(wallet) <= 10:
        return wallet
    return f"{wallet[:6]}...{wallet[-4:]}"


def placeholder_identity(wallet: str) -> DisplayIdentity:
    lowered = wallet.lower()
    return DisplayIdentity(
        display_name=truncate_wallet(lowered),
        avatar_url=AVATAR_PLACEHOLDER_URL.format(seed=lowered),
    )
