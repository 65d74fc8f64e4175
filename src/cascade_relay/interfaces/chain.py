"""ChainClient protocol - read access to the chain RPC node."""

from __future__ import annotations

from typing import Protocol

from cascade_relay.models.events import BlockData, RawLog


class ChainClient(Protocol):
    """Node connectivity used by the dispatcher, engine and reconciler."""

    async def get_block_number(self) -> int:
        """Current head block number."""
        ...

    async def get_logs(
        self, address: str, from_block: int, to_block: int
    ) -> list[RawLog]:
        """Logs emitted by ``address`` in the inclusive block range, in order."""
        ...

    async def get_block_with_transactions(self, number: int) -> BlockData:
        """Block header plus its ordered transaction list."""
        ...

    async def get_pending_nonce(self, address: str) -> int:
        """Pending-inclusive transaction count for ``address``."""
        ...
