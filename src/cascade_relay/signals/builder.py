"""Signal builder - assembles Signal records from detected events."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from cascade_relay.errors import DecodeFailure
from cascade_relay.models.config import DEFAULT_TRADE_SELECTORS
from cascade_relay.models.events import BlockData, BridgeRequestEvent, TransactionData
from cascade_relay.models.signal import BRIDGE_INTENT, ZERO_PARENT, Signal
from cascade_relay.signals import codec
from cascade_relay.signals.heuristics import (
    classify_fee_tier,
    classify_gas_bucket,
    cyclic_index,
)

log = logging.getLogger(__name__)

SELECTOR_BYTES = 4
WORD_BYTES = 32
TRADE_WORDS = 3  # amountIn, amountOutMin, deadline


@dataclass
class SignalChainState:
    """Causal chaining context for one process lifetime.

    Nothing here is persisted: a restart begins again from ZERO_PARENT
    and tag counter 0.
    """

    trade_counter: int = 0
    last_hash: str = ZERO_PARENT

    def next_trade_tag(self) -> str:
        self.trade_counter += 1
        return f"{self.trade_counter:06d}"


def decode_trade_words(calldata: str) -> tuple[int, int, int]:
    """Read the three 32-byte words that follow the 4-byte selector."""
    try:
        raw = bytes.fromhex(calldata[2:] if calldata.startswith("0x") else calldata)
    except ValueError as exc:
        raise DecodeFailure(f"calldata is not hex: {exc}") from exc

    needed = SELECTOR_BYTES + TRADE_WORDS * WORD_BYTES
    if len(raw) < needed:
        raise DecodeFailure(
            f"calldata too short: {len(raw)} bytes, need {needed}"
        )

    words = []
    for i in range(TRADE_WORDS):
        start = SELECTOR_BYTES + i * WORD_BYTES
        words.append(int.from_bytes(raw[start:start + WORD_BYTES], "big"))
    return words[0], words[1], words[2]


class SignalBuilder:
    """Builds bridge and trade signals, chained through SignalChainState."""

    def __init__(
        self,
        state: SignalChainState | None = None,
        trade_selectors: dict[str, str] | None = None,
        trade_path: tuple[str, ...] = ("WETH", "USDC"),
        bridge_path: tuple[str, ...] = ("ETH", "WETH"),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.state = state or SignalChainState()
        selectors = trade_selectors if trade_selectors is not None else DEFAULT_TRADE_SELECTORS
        self._selectors = {k.lower(): v for k, v in selectors.items()}
        self._trade_path = tuple(trade_path)
        self._bridge_path = tuple(bridge_path)
        self._clock = clock

    def handles(self, selector: str) -> bool:
        """True if calls with this selector become trade signals."""
        return selector.lower() in self._selectors

    def intent_for(self, selector: str) -> str:
        selector = selector.lower()
        return self._selectors.get(selector) or f"trade_{selector[2:]}"

    def build_bridge(self, event: BridgeRequestEvent, now: float | None = None) -> Signal:
        """Signal for an incoming bridge deposit."""
        if now is None:
            now = self._clock()
        return Signal(
            tag=f"{event.block_number}-{event.sender[:8]}",
            intent=BRIDGE_INTENT,
            path=self._bridge_path,
            amount=str(event.amount),
            bridge_from=event.sender,
            kws=codec.bridge_entropy(),
            phi=cyclic_index(event.block_number),
            blk=event.block_number,
            ts=int(now),
            parent=self.state.last_hash,
            fee_tier=classify_fee_tier(event.amount, 0, bridge=True),
        )

    def build_trade(self, tx: TransactionData, block: BlockData) -> Signal:
        """Sealed signal for a selector-matched trade call.

        Raises DecodeFailure if the calldata does not carry three words
        after the selector. The tag counter only advances on success.
        """
        amount_in, min_out, deadline = decode_trade_words(tx.data)
        kws = codec.extract_entropy(tx.sender, tx.data)

        signal = Signal(
            tag=self.state.next_trade_tag(),
            intent=self.intent_for(tx.selector),
            path=self._trade_path,
            amount_in=str(amount_in),
            min_out=str(min_out),
            deadline=str(deadline),
            kws=kws,
            gas=classify_gas_bucket(tx.gas, block.gas_used, len(block.transactions)),
            phi=cyclic_index(block.number),
            blk=block.number,
            ts=block.timestamp,
            parent=self.state.last_hash,
            fee_tier=classify_fee_tier(amount_in, min_out),
        )
        return codec.seal_signal(signal)

    def record_handoff(self, signal: Signal) -> None:
        """Make ``signal`` the parent of the next one built."""
        self.state.last_hash = codec.signal_hash(signal)
        log.debug("Chain head is now %s (tag %s)", self.state.last_hash, signal.tag)
