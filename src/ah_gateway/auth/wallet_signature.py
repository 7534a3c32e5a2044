"""EIP-191 personal-sign verification for wallet sign-in.

The server builds the exact message the wallet must sign from the nonce it
issued, so a client can neither choose the statement nor replay a message
signed for another nonce.

Only EOA signatures are recovered; ERC-1271 / ERC-6492 smart-wallet
signatures are rejected as invalid.
"""

import logging

from eth_account import Account
from eth_account.messages import encode_defunct

from config.settings import settings

logger = logging.getLogger(__name__)


def build_sign_in_message(wallet: str, nonce: str) -> str:
    return f"{settings.AUTH_STATEMENT}\n\nWallet: {wallet}\nNonce: {nonce}"


def recover_signer(message: str, signature: str) -> str | None:
    """Return the lower-cased signer address, or None if the signature is malformed."""
    if not signature.startswith("0x"):
        return None
    try:
        signer = Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception as exc:  # noqa: BLE001 - eth_keys raises its own non-ValueError types
        logger.info("Signature recovery failed: %s", exc)
        return None
    return str(signer).lower()


def verify_wallet_signature(wallet: str, nonce: str, signature: str) -> bool:
    signer = recover_signer(build_sign_in_message(wallet, nonce), signature)
    return signer is not None and signer == wallet
