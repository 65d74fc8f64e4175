"""Signal codec - content-addressed identifiers and canonical wire form.

Every function here is pure: no network access and no shared state.
Digests are keccak256 over the ABI encoding of their inputs and are
returned as 0x-prefixed lowercase hex.
"""

from __future__ import annotations

import json
from dataclasses import replace
from typing import Any

from eth_abi import encode
from web3 import Web3

from cascade_relay.errors import DecodeFailure
from cascade_relay.models.signal import BRIDGE_INTENT, ZERO_PARENT, Signal
from cascade_relay.signals.heuristics import BRIDGE_FEE_TIER, classify_fee_tier


def _keccak_hex(data: bytes) -> str:
    return Web3.to_hex(Web3.keccak(data))


def _bytes32(value: str) -> bytes:
    raw = Web3.to_bytes(hexstr=value)
    if len(raw) > 32:
        raise DecodeFailure(f"not a bytes32 value: {value}")
    return raw.rjust(32, b"\x00")


def hash_signal(signal_text: str) -> str:
    """Digest of the ABI ``string`` encoding of a canonical signal text."""
    return _keccak_hex(encode(["string"], [signal_text]))


def hash_child(signal_hash: str, block_number: int, entropy: str) -> str:
    """Bind a signal hash to one occurrence (block + entropy)."""
    return _keccak_hex(
        encode(
            ["bytes32", "uint256", "bytes32"],
            [_bytes32(signal_hash), block_number, _bytes32(entropy)],
        )
    )


def extract_entropy(sender: str, calldata: str) -> str:
    """Digest of a transaction's origin and payload."""
    return _keccak_hex(
        encode(
            ["address", "bytes"],
            [Web3.to_checksum_address(sender), Web3.to_bytes(hexstr=calldata)],
        )
    )


BRIDGE_ENTROPY = _keccak_hex(b"bridge")


def bridge_entropy() -> str:
    """Fixed entropy shared by all bridge signals."""
    return BRIDGE_ENTROPY


# ── Wire form ──────────────────────────────────────────────


def _to_wire(signal: Signal) -> dict[str, Any]:
    wire: dict[str, Any] = {
        "tag": signal.tag,
        "intent": signal.intent,
        "path": list(signal.path),
    }
    if signal.is_bridge:
        wire["amount"] = signal.amount
        wire["bridgeFrom"] = signal.bridge_from
        wire["kws"] = signal.kws
    else:
        wire["in"] = signal.amount_in
        wire["out"] = signal.min_out
        wire["dead"] = signal.deadline
        wire["kws"] = signal.kws
        wire["gas"] = signal.gas
    wire["phi"] = signal.phi
    wire["blk"] = signal.blk
    wire["ts"] = signal.ts
    wire["parent"] = signal.parent
    # hash/child are appended last, only once computed
    if signal.hash is not None:
        wire["hash"] = signal.hash
    if signal.child is not None:
        wire["child"] = signal.child
    return wire


def encode_signal(signal: Signal) -> str:
    """Canonical compact JSON text of a signal, in fixed key order."""
    return json.dumps(_to_wire(signal), separators=(",", ":"), ensure_ascii=False)


def decode_signal(text: str) -> Signal:
    """Parse canonical signal text back into a Signal.

    Raises DecodeFailure if the text is not a well-formed signal record.
    """
    try:
        wire = json.loads(text)
    except ValueError as exc:
        raise DecodeFailure(f"signal text is not JSON: {exc}") from exc
    if not isinstance(wire, dict):
        raise DecodeFailure("signal text is not an object")

    try:
        common = dict(
            tag=str(wire["tag"]),
            intent=str(wire["intent"]),
            path=tuple(str(p) for p in wire["path"]),
            kws=str(wire["kws"]),
            phi=int(wire["phi"]),
            blk=int(wire["blk"]),
            ts=int(wire["ts"]),
            parent=str(wire.get("parent", ZERO_PARENT)),
            hash=wire.get("hash"),
            child=wire.get("child"),
        )
        if common["intent"] == BRIDGE_INTENT:
            return Signal(
                amount=str(wire["amount"]),
                bridge_from=str(wire["bridgeFrom"]),
                fee_tier=BRIDGE_FEE_TIER,
                **common,
            )
        return Signal(
            amount_in=str(wire["in"]),
            min_out=str(wire["out"]),
            deadline=str(wire["dead"]),
            gas=str(wire["gas"]),
            fee_tier=classify_fee_tier(int(wire["in"]), int(wire["out"])),
            **common,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise DecodeFailure(f"malformed signal record: {exc}") from exc


# ── Content addressing ─────────────────────────────────────


def seal_signal(signal: Signal) -> Signal:
    """Compute ``hash`` and ``child`` over the record excluding themselves."""
    unsealed = replace(signal, hash=None, child=None)
    signal_hash = hash_signal(encode_signal(unsealed))
    return replace(
        unsealed,
        hash=signal_hash,
        child=hash_child(signal_hash, signal.blk, signal.kws),
    )


def verify_signal(text: str) -> bool:
    """Re-derive hash/child of a stored sealed record and compare."""
    signal = decode_signal(text)
    if not signal.sealed:
        return False
    resealed = seal_signal(signal)
    return resealed.hash == signal.hash and resealed.child == signal.child


def signal_hash(signal: Signal) -> str:
    """Identifier used to chain the next signal's ``parent`` to this one."""
    if signal.hash is not None:
        return signal.hash
    return hash_signal(encode_signal(signal))
