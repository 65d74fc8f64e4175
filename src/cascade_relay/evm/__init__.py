from cascade_relay.evm.client import Web3ChainClient
from cascade_relay.evm.contract import SignalContractQueries, TARGET_ABI
from cascade_relay.evm.logs import parse_bridge_log
from cascade_relay.evm.signer import Web3Signer, classify_failure

__all__ = [
    "Web3ChainClient", "SignalContractQueries", "TARGET_ABI",
    "parse_bridge_log", "Web3Signer", "classify_failure",
]
