"""The Signal record submitted to the target contract."""

from __future__ import annotations

from dataclasses import dataclass

BRIDGE_INTENT = "bridge_incoming"
ZERO_PARENT = "0x0"


@dataclass(frozen=True)
class Signal:
    """A structured record describing one detected on-chain event.

    Trade signals carry ``amount_in``/``min_out``/``deadline``/``gas`` and,
    once sealed, ``hash``/``child``. Bridge signals carry ``amount`` and
    ``bridge_from`` instead. ``fee_tier`` travels alongside the record but
    is not part of its canonical text.
    """

    tag: str
    intent: str
    path: tuple[str, ...]
    kws: str  # entropy digest, 0x hex
    phi: int
    blk: int
    ts: int
    parent: str = ZERO_PARENT
    fee_tier: int = 1

    # Trade-only
    amount_in: str | None = None  # decimal string
    min_out: str | None = None
    deadline: str | None = None
    gas: str | None = None  # "low" | "mid" | "high"
    hash: str | None = None
    child: str | None = None

    # Bridge-only
    amount: str | None = None
    bridge_from: str | None = None

    @property
    def is_bridge(self) -> bool:
        return self.intent == BRIDGE_INTENT

    @property
    def sealed(self) -> bool:
        return self.hash is not None and self.child is not None
