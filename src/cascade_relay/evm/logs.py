"""Bridge contract log decoding - BridgeRequest / BridgeComplete."""

from __future__ import annotations

import logging
from typing import Union

from eth_abi import decode
from web3 import Web3

from cascade_relay.errors import DecodeFailure
from cascade_relay.models.events import BridgeCompleteEvent, BridgeRequestEvent, RawLog

log = logging.getLogger(__name__)

BRIDGE_REQUEST_SIGNATURE = "BridgeRequest(address,uint256)"
BRIDGE_COMPLETE_SIGNATURE = "BridgeComplete(bytes32,uint256)"

BRIDGE_REQUEST_TOPIC = Web3.to_hex(Web3.keccak(text=BRIDGE_REQUEST_SIGNATURE))
BRIDGE_COMPLETE_TOPIC = Web3.to_hex(Web3.keccak(text=BRIDGE_COMPLETE_SIGNATURE))

BridgeEvent = Union[BridgeRequestEvent, BridgeCompleteEvent]


def _data_bytes(entry: RawLog) -> bytes:
    try:
        return Web3.to_bytes(hexstr=entry.data) if entry.data not in ("", "0x") else b""
    except ValueError as exc:
        raise DecodeFailure(f"log data is not hex: {exc}") from exc


def _topic_address(topic: str) -> str:
    raw = Web3.to_bytes(hexstr=topic)
    if len(raw) != 32:
        raise DecodeFailure(f"indexed address topic has {len(raw)} bytes")
    return Web3.to_checksum_address(raw[-20:])


def _decode_request(entry: RawLog) -> BridgeRequestEvent:
    data = _data_bytes(entry)
    try:
        if len(entry.topics) >= 2:
            # from is indexed
            sender = _topic_address(entry.topics[1])
            (amount,) = decode(["uint256"], data)
        else:
            sender, amount = decode(["address", "uint256"], data)
    except DecodeFailure:
        raise
    except Exception as exc:
        raise DecodeFailure(f"BridgeRequest decode failed: {exc}") from exc
    return BridgeRequestEvent(
        sender=Web3.to_checksum_address(sender),
        amount=int(amount),
        block_number=entry.block_number,
        tx_hash=entry.tx_hash,
    )


def _decode_complete(entry: RawLog) -> BridgeCompleteEvent:
    data = _data_bytes(entry)
    try:
        if len(entry.topics) >= 2:
            request_id = entry.topics[1]
            (amount,) = decode(["uint256"], data)
        else:
            raw_id, amount = decode(["bytes32", "uint256"], data)
            request_id = Web3.to_hex(raw_id)
    except Exception as exc:
        raise DecodeFailure(f"BridgeComplete decode failed: {exc}") from exc
    return BridgeCompleteEvent(
        request_id=request_id,
        amount=int(amount),
        block_number=entry.block_number,
        tx_hash=entry.tx_hash,
    )


def parse_bridge_log(entry: RawLog) -> BridgeEvent | None:
    """Decode a raw bridge log into one of our event types.

    Returns None for logs with an unrecognized signature. Raises
    DecodeFailure if a recognized log is malformed.
    """
    if not entry.topics:
        raise DecodeFailure(f"log {entry.tx_hash}:{entry.log_index} has no topics")

    kind = entry.topics[0].lower()
    if kind == BRIDGE_REQUEST_TOPIC:
        return _decode_request(entry)
    if kind == BRIDGE_COMPLETE_TOPIC:
        return _decode_complete(entry)

    log.debug("Ignoring bridge log with topic %s", kind)
    return None
