"""Signer protocol - signs and broadcasts contract calls."""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from cascade_relay.models.records import TxParams


class Signer(Protocol):
    """Wallet that submits fee-paying calls to a contract."""

    @property
    def address(self) -> str:
        ...

    async def submit_call(
        self,
        contract_address: str,
        function: str,
        args: Sequence[Any],
        params: TxParams,
    ) -> str:
        """Sign and broadcast the call. Returns the transaction hash.

        Raises SubmissionFailure with a discriminated FailureKind.
        """
        ...
