"""ERC-20 decimals() reader over web3.py."""

import asyncio

from web3 import AsyncWeb3

_ERC20_DECIMALS_ABI = [
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    }
]


class Erc20DecimalsReader:
    def __init__(self, w3: AsyncWeb3, timeout_seconds: float) -> None:
        self._w3 = w3
        self._timeout = timeout_seconds

    async def decimals(self, token_address: str) -> int:
        contract = self._w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(token_address),
            abi=_ERC20_DECIMALS_ABI,
        )
        value = await asyncio.wait_for(
            contract.functions.decimals().call(), timeout=self._timeout
        )
        return int(value)
