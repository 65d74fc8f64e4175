"""ActivityJournal protocol - audit trail of terminal outcomes."""

from __future__ import annotations

from typing import Protocol

from cascade_relay.models.records import ActivityRecord


class ActivityJournal(Protocol):
    """Append-only record of what the daemon decided and why.

    The daemon never reads it back to make decisions.
    """

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        ...

    async def close(self) -> None:
        ...

    # ── Activity log ───────────────────────────────────────

    async def log_activity(
        self,
        event_type: str,
        message: str,
        tag: str | None = None,
        block_number: int | None = None,
        tx_hash: str | None = None,
    ) -> None:
        ...

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        ...
