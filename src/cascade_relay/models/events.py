"""Chain data models: raw logs, blocks, transactions and decoded bridge events."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RawLog:
    """A log entry as returned by eth_getLogs."""

    address: str
    topics: tuple[str, ...]  # 0x hex, topic[0] is the event signature hash
    data: str  # 0x hex
    block_number: int
    log_index: int = 0
    tx_hash: str = ""


@dataclass(frozen=True)
class TransactionData:
    """The subset of a block transaction the dispatcher needs."""

    hash: str
    sender: str
    to: str | None
    data: str  # 0x hex calldata
    gas: int  # gas limit

    @property
    def selector(self) -> str:
        """Leading 4 bytes of calldata as lowercase 0x hex ('' if too short)."""
        if len(self.data) < 10:
            return ""
        return self.data[:10].lower()


@dataclass(frozen=True)
class BlockData:
    """Block header fields plus its ordered transaction list."""

    number: int
    timestamp: int
    gas_used: int
    transactions: tuple[TransactionData, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class BridgeRequestEvent:
    """Emitted when a deposit is requested on the bridge (BridgeRequest)."""

    sender: str
    amount: int
    block_number: int
    tx_hash: str = ""


@dataclass(frozen=True)
class BridgeCompleteEvent:
    """Emitted when a bridge request settles (BridgeComplete). Not acted on."""

    request_id: str  # bytes32 hex
    amount: int
    block_number: int
    tx_hash: str = ""
