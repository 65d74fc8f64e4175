"""SignalRegistry protocol - read-only view of the target contract."""

from __future__ import annotations

from typing import Protocol

from cascade_relay.models.records import SignalStatus


class SignalRegistry(Protocol):
    """Queries signal state on the target contract."""

    async def get_signal_status(self, signal_text: str) -> SignalStatus:
        """Return (active, royalty, yield) for a canonical signal text."""
        ...
