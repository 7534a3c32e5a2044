"""Wallet address normalization.

The store keys users by lower-cased hex address; every entry point runs
addresses through `normalize_wallet` before touching the users table.
"""

import re

from src.ah_common.errors import InvalidWalletAddressError

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


def normalize_wallet(wallet: str) -> str:
    candidate = (wallet or "").strip().lower()
    if not _ADDRESS_RE.match(candidate):
        raise InvalidWalletAddressError(wallet)
    return candidate


def is_placeholder_fid(fid: str | None) -> bool:
    """Clients without a social identity report 'none…' or their own address."""
    if not fid:
        return True
    lowered = fid.strip().lower()
    return lowered.startswith("none") or lowered.startswith("0x")
