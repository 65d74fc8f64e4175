"""Auxiliary signal fields derived from raw chain data."""

from __future__ import annotations

TRADE_FEE_TIER = 1
BRIDGE_FEE_TIER = 2

# Price impact is scaled to parts per million before tiering.
IMPACT_SCALE = 1_000_000

CYCLE_SEQUENCE = (1, 2, 3, 5, 8, 13, 21, 34, 55, 89, 144, 233, 377, 610)

GAS_LOW = "low"
GAS_MID = "mid"
GAS_HIGH = "high"


def classify_fee_tier(amount_in: int, min_out: int, bridge: bool = False) -> int:
    """Royalty tier passed verbatim to emitCascade.

    Bridge signals always get the higher tier. Trade signals are tiered by
    price impact, but both the low- and high-impact branches currently
    resolve to TRADE_FEE_TIER, so every trade lands in tier 1. Changing
    that is a behaviour change for the target contract, not a fix.
    """
    if bridge:
        return BRIDGE_FEE_TIER
    if amount_in == 0:
        return TRADE_FEE_TIER
    ratio = abs(amount_in - min_out) * IMPACT_SCALE // amount_in
    if ratio < 1:
        return TRADE_FEE_TIER
    if ratio > 1:
        return TRADE_FEE_TIER
    return ratio


def classify_gas_bucket(tx_gas_limit: int, block_gas_used: int, tx_count: int) -> str:
    """Bucket a transaction's gas limit against the block's per-tx average."""
    average = block_gas_used // max(tx_count, 1)
    delta = tx_gas_limit - average
    if delta < 0:
        return GAS_LOW
    if delta * 2 > average:
        return GAS_HIGH
    return GAS_MID


def cyclic_index(block_number: int) -> int:
    """First element of CYCLE_SEQUENCE dividing the block number, else 0.

    Searched in ascending order, so 1 always wins.
    """
    for step in CYCLE_SEQUENCE:
        if block_number % step == 0:
            return step
    return 0
