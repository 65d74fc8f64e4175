"""Synthetic chain data factories for testing."""

from __future__ import annotations

from eth_abi import encode
from web3 import Web3

from cascade_relay.evm.logs import BRIDGE_COMPLETE_TOPIC, BRIDGE_REQUEST_TOPIC
from cascade_relay.models.events import (
    BlockData,
    BridgeRequestEvent,
    RawLog,
    TransactionData,
)
from cascade_relay.models.signal import Signal

BRIDGE_ADDRESS = "0x" + "b" * 40
TRADE_ROUTER = "0x7a250d5630b4cf539739df2c5dacb4c659f2488d"
TARGET_ADDRESS = "0x" + "c" * 40

SENDER = "0x" + "a" * 40
TRADER = "0x" + "1" * 40

SWAP_EXACT_TOKENS = "0x38ed1739"


def make_trade_calldata(
    selector: str = SWAP_EXACT_TOKENS,
    amount_in: int = 1_000_000,
    min_out: int = 990_000,
    deadline: int = 1_700_000_000,
) -> str:
    words = encode(["uint256", "uint256", "uint256"], [amount_in, min_out, deadline])
    return selector + words.hex()


def make_trade_tx(
    amount_in: int = 1_000_000,
    min_out: int = 990_000,
    deadline: int = 1_700_000_000,
    selector: str = SWAP_EXACT_TOKENS,
    sender: str = TRADER,
    to: str | None = TRADE_ROUTER,
    gas: int = 200_000,
    tx_hash: str = "0x" + "e" * 64,
    data: str | None = None,
) -> TransactionData:
    return TransactionData(
        hash=tx_hash,
        sender=sender,
        to=to,
        data=data if data is not None else make_trade_calldata(selector, amount_in, min_out, deadline),
        gas=gas,
    )


def make_block(
    number: int = 1000,
    timestamp: int = 1_700_000_000,
    gas_used: int = 1_000_000,
    transactions: tuple[TransactionData, ...] = (),
) -> BlockData:
    return BlockData(
        number=number,
        timestamp=timestamp,
        gas_used=gas_used,
        transactions=tuple(transactions),
    )


def make_bridge_log(
    sender: str = SENDER,
    amount: int = 500,
    block_number: int = 1000,
    indexed: bool = True,
    log_index: int = 0,
    tx_hash: str = "0x" + "d" * 64,
    address: str = BRIDGE_ADDRESS,
) -> RawLog:
    """A BridgeRequest log, with ``from`` either indexed or in the data."""
    if indexed:
        topics = (BRIDGE_REQUEST_TOPIC, "0x" + "00" * 12 + sender.lower()[2:])
        data = encode(["uint256"], [amount])
    else:
        topics = (BRIDGE_REQUEST_TOPIC,)
        data = encode(["address", "uint256"], [Web3.to_checksum_address(sender), amount])
    return RawLog(
        address=address,
        topics=topics,
        data=Web3.to_hex(data),
        block_number=block_number,
        log_index=log_index,
        tx_hash=tx_hash,
    )


def make_bridge_complete_log(
    request_id: str = "0x" + "12" * 32,
    amount: int = 500,
    block_number: int = 1000,
    log_index: int = 1,
) -> RawLog:
    return RawLog(
        address=BRIDGE_ADDRESS,
        topics=(BRIDGE_COMPLETE_TOPIC, request_id),
        data=Web3.to_hex(encode(["uint256"], [amount])),
        block_number=block_number,
        log_index=log_index,
        tx_hash="0x" + "f" * 64,
    )


def make_bridge_event(
    sender: str = SENDER,
    amount: int = 500,
    block_number: int = 1000,
) -> BridgeRequestEvent:
    return BridgeRequestEvent(
        sender=Web3.to_checksum_address(sender),
        amount=amount,
        block_number=block_number,
        tx_hash="0x" + "d" * 64,
    )


def make_signal(tag: str = "000001", blk: int = 1000, **overrides) -> Signal:
    """An unsealed trade signal with plausible field values."""
    fields = dict(
        tag=tag,
        intent="swap_exact_tokens_for_tokens",
        path=("WETH", "USDC"),
        amount_in="1000000",
        min_out="990000",
        deadline="1700000000",
        kws="0x" + "ab" * 32,
        gas="mid",
        phi=1,
        blk=blk,
        ts=1_700_000_000,
    )
    fields.update(overrides)
    return Signal(**fields)
