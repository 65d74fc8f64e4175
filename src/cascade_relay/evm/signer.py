"""Web3 signer - builds, signs, and broadcasts EIP-1559 contract calls."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from eth_account import Account
from web3 import AsyncWeb3, Web3

from cascade_relay.errors import FailureKind, SubmissionFailure
from cascade_relay.evm.contract import TARGET_ABI
from cascade_relay.models.records import TxParams

log = logging.getLogger(__name__)

# Node error substrings, lowercase. Checked in order: "replacement
# transaction underpriced" is a fee problem, not a nonce problem.
_FEE_TOO_LOW = (
    "underpriced",
    "fee too low",
    "max fee per gas less than block base fee",
    "maxfeepergas too low",
    "insufficient fee",
)
_NONCE_CONFLICT = (
    "nonce too low",
    "nonce has already been used",
    "already known",
    "invalid nonce",
    "nonce too high",
)


def _error_message(exc: Exception) -> str:
    """Pull the node's message out of a web3 RPC error."""
    msg = getattr(exc, "message", None)
    if isinstance(msg, str) and msg:
        return msg
    if exc.args and isinstance(exc.args[0], dict):
        return str(exc.args[0].get("message", exc.args[0]))
    return str(exc)


def classify_failure(exc: Exception) -> SubmissionFailure:
    """Map a node/web3 error to a SubmissionFailure with a discriminated kind."""
    if isinstance(exc, SubmissionFailure):
        return exc
    message = _error_message(exc)
    lowered = message.lower()
    if any(s in lowered for s in _FEE_TOO_LOW):
        return SubmissionFailure(FailureKind.FEE_TOO_LOW, message)
    if any(s in lowered for s in _NONCE_CONFLICT):
        return SubmissionFailure(FailureKind.NONCE_CONFLICT, message)
    return SubmissionFailure(FailureKind.OTHER, message)


class Web3Signer:
    """Implements Signer with a local eth-account key and send_raw_transaction."""

    def __init__(self, w3: AsyncWeb3, private_key: str, chain_id: int) -> None:
        self._w3 = w3
        self._account = Account.from_key(private_key)
        self._chain_id = chain_id

    @property
    def address(self) -> str:
        return self._account.address

    async def submit_call(
        self,
        contract_address: str,
        function: str,
        args: Sequence[Any],
        params: TxParams,
    ) -> str:
        contract = self._w3.eth.contract(
            address=Web3.to_checksum_address(contract_address), abi=TARGET_ABI,
        )
        try:
            fn = contract.get_function_by_name(function)(*args)
            tx = await fn.build_transaction({
                "from": self._account.address,
                "nonce": params.nonce,
                "gas": params.gas_limit,
                "maxFeePerGas": params.max_fee_per_gas,
                "maxPriorityFeePerGas": params.max_priority_fee_per_gas,
                "chainId": self._chain_id,
            })
            signed = self._account.sign_transaction(tx)
            tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as exc:
            failure = classify_failure(exc)
            log.debug("%s(nonce=%d) rejected: %s (%s)",
                      function, params.nonce, failure.kind.value, failure.message)
            raise failure from exc

        return Web3.to_hex(tx_hash)
