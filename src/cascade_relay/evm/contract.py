"""Target contract ABI and read-only queries."""

from __future__ import annotations

import logging

from web3 import AsyncWeb3, Web3

from cascade_relay.models.records import SignalStatus

log = logging.getLogger(__name__)

# Minimal ABI fragments, only what the daemon calls
TARGET_ABI = [
    {"name": "emitCascade", "outputs": [],
     "inputs": [{"type": "string", "name": "signalText"},
                {"type": "uint256", "name": "feeTier"}],
     "stateMutability": "nonpayable", "type": "function"},
    {"name": "claimYield", "outputs": [],
     "inputs": [{"type": "string", "name": "signalText"}],
     "stateMutability": "nonpayable", "type": "function"},
    {"name": "getSignalStatus",
     "outputs": [{"type": "bool", "name": "active"},
                 {"type": "uint256", "name": "royalty"},
                 {"type": "uint256", "name": "yield"}],
     "inputs": [{"type": "string", "name": "signalText"}],
     "stateMutability": "view", "type": "function"},
]


class SignalContractQueries:
    """Implements SignalRegistry with eth_call against the target contract."""

    def __init__(self, w3: AsyncWeb3, target_address: str) -> None:
        self._contract = w3.eth.contract(
            address=Web3.to_checksum_address(target_address), abi=TARGET_ABI,
        )

    async def get_signal_status(self, signal_text: str) -> SignalStatus:
        active, royalty, yield_amount = await self._contract.functions.getSignalStatus(
            signal_text
        ).call()
        return SignalStatus(
            active=bool(active),
            royalty=int(royalty),
            yield_amount=int(yield_amount),
        )
