from cascade_relay.signals.builder import SignalBuilder, SignalChainState
from cascade_relay.signals.codec import (
    decode_signal,
    encode_signal,
    extract_entropy,
    hash_child,
    hash_signal,
    seal_signal,
    verify_signal,
)
from cascade_relay.signals.heuristics import (
    classify_fee_tier,
    classify_gas_bucket,
    cyclic_index,
)

__all__ = [
    "SignalBuilder", "SignalChainState",
    "decode_signal", "encode_signal", "extract_entropy", "hash_child",
    "hash_signal", "seal_signal", "verify_signal",
    "classify_fee_tier", "classify_gas_bucket", "cyclic_index",
]
