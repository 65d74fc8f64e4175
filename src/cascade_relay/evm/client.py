"""Web3 chain client - block, log, and nonce reads over JSON-RPC."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from web3 import AsyncWeb3, Web3

from cascade_relay.models.events import BlockData, RawLog, TransactionData

log = logging.getLogger(__name__)


def _hex(value: Any) -> str:
    """Normalize HexBytes / bytes / str to 0x-prefixed hex."""
    if value is None:
        return "0x"
    if isinstance(value, str):
        return value if value.startswith("0x") else "0x" + value
    return Web3.to_hex(value)


def to_raw_log(entry: Mapping[str, Any]) -> RawLog:
    """Convert an eth_getLogs entry into a RawLog."""
    return RawLog(
        address=str(entry["address"]),
        topics=tuple(_hex(t) for t in entry.get("topics", [])),
        data=_hex(entry.get("data")),
        block_number=int(entry["blockNumber"]),
        log_index=int(entry.get("logIndex", 0)),
        tx_hash=_hex(entry.get("transactionHash")),
    )


def to_transaction(tx: Mapping[str, Any]) -> TransactionData:
    return TransactionData(
        hash=_hex(tx.get("hash")),
        sender=str(tx["from"]),
        to=str(tx["to"]) if tx.get("to") else None,
        data=_hex(tx.get("input", tx.get("data"))),
        gas=int(tx.get("gas", 0)),
    )


def to_block(raw: Mapping[str, Any]) -> BlockData:
    """Convert an eth_getBlockByNumber(full=True) response into BlockData.

    Transaction hashes (full=False) are skipped since they carry no calldata.
    """
    txs = tuple(
        to_transaction(tx)
        for tx in raw.get("transactions", [])
        if isinstance(tx, Mapping)
    )
    return BlockData(
        number=int(raw["number"]),
        timestamp=int(raw["timestamp"]),
        gas_used=int(raw.get("gasUsed", 0)),
        transactions=txs,
    )


class Web3ChainClient:
    """Implements ChainClient using web3's AsyncWeb3 over HTTP."""

    def __init__(self, rpc_url: str) -> None:
        self._rpc_url = rpc_url
        self.w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        try:
            await self.w3.provider.disconnect()
        except Exception as exc:
            log.debug("Provider disconnect failed: %s", exc)

    async def get_block_number(self) -> int:
        return int(await self.w3.eth.block_number)

    async def get_logs(
        self, address: str, from_block: int, to_block: int
    ) -> list[RawLog]:
        entries = await self.w3.eth.get_logs({
            "address": Web3.to_checksum_address(address),
            "fromBlock": from_block,
            "toBlock": to_block,
        })
        logs = [to_raw_log(e) for e in entries]
        logs.sort(key=lambda lg: (lg.block_number, lg.log_index))
        return logs

    async def get_block_with_transactions(self, number: int) -> BlockData:
        raw = await self.w3.eth.get_block(number, full_transactions=True)
        return to_block(raw)

    async def get_pending_nonce(self, address: str) -> int:
        return int(await self.w3.eth.get_transaction_count(
            Web3.to_checksum_address(address), "pending",
        ))
