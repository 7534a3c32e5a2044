from config.settings import settings
from src.ah_ledger.domain.ports import LedgerReaderProtocol
from src.ah_ledger.infrastructure.auction_contract import AuctionContractReader
from src.ah_ledger.infrastructure.web3_client import get_web3

_reader: LedgerReaderProtocol | None = None


def get_ledger_reader() -> LedgerReaderProtocol | None:
    """Contract reader, or None when no RPC / contract address is configured."""
    global _reader  # noqa: PLW0603
    if _reader is None:
        w3 = get_web3()
        if w3 is not None and settings.AUCTION_CONTRACT_ADDRESS:
            _reader = AuctionContractReader(
                w3, settings.AUCTION_CONTRACT_ADDRESS, settings.EXTERNAL_TIMEOUT_SECONDS
            )
    return _reader
