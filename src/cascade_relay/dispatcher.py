"""Event dispatcher - turns one block into bridge and trade signal submissions."""

from __future__ import annotations

import logging
import time
from typing import Callable

from cascade_relay.engine.submission import SubmissionEngine
from cascade_relay.errors import DecodeFailure
from cascade_relay.evm.logs import parse_bridge_log
from cascade_relay.interfaces.chain import ChainClient
from cascade_relay.interfaces.journal import ActivityJournal
from cascade_relay.models.events import (
    BlockData,
    BridgeCompleteEvent,
    BridgeRequestEvent,
    TransactionData,
)
from cascade_relay.models.records import (
    BlockReport,
    BridgeRequestRecord,
    SubmissionOutcome,
    SubmissionResult,
)
from cascade_relay.models.signal import Signal
from cascade_relay.signals.builder import SignalBuilder

log = logging.getLogger(__name__)

BRIDGE_CACHE_TTL = 600  # seconds

_ACTIVITY_TYPES = {
    SubmissionOutcome.SUBMITTED: "signal_submitted",
    SubmissionOutcome.ACTIVE_SKIP: "signal_skipped",
    SubmissionOutcome.GAS_EXCEEDED: "signal_gas_exceeded",
    SubmissionOutcome.RETRIES_EXHAUSTED: "signal_retries_exhausted",
    SubmissionOutcome.FATAL_ERROR: "signal_failed",
}


class EventDispatcher:
    """Processes one block at a time.

    Order within a block:
    1. Bridge logs (BridgeRequest → bridge signal), in log order
    2. Trade-contract calls with an allow-listed selector, in block order
    3. Purge stale bridge-request cache entries

    A failure on one event is logged and never stops the next one.
    Callers must not run two handle_block() calls concurrently: they
    share the signer's nonce sequence and the builder's chaining state.
    """

    def __init__(
        self,
        chain: ChainClient,
        builder: SignalBuilder,
        engine: SubmissionEngine,
        bridge_address: str,
        trade_address: str,
        journal: ActivityJournal | None = None,
        cache_ttl: int = BRIDGE_CACHE_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._chain = chain
        self._builder = builder
        self._engine = engine
        self._bridge_address = bridge_address
        self._trade_address = trade_address.lower()
        self._journal = journal
        self._cache_ttl = cache_ttl
        self._clock = clock
        self.bridge_requests: dict[int, list[BridgeRequestRecord]] = {}

    async def handle_block(self, block_number: int) -> BlockReport:
        report = BlockReport(block_number=block_number)

        await self._process_bridge_logs(block_number, report)
        await self._process_trades(block_number, report)

        self.purge_bridge_cache()

        if report.results:
            log.info(
                "Block %d: %d bridge, %d trade, %d submitted",
                block_number, report.bridge_events, report.trade_calls,
                sum(1 for r in report.results if r.success),
            )
        return report

    # ── Bridge path ───────────────────────────────────────

    async def _process_bridge_logs(self, block_number: int, report: BlockReport) -> None:
        try:
            logs = await self._chain.get_logs(self._bridge_address, block_number, block_number)
        except Exception as exc:
            log.error("Bridge log fetch failed for block %d: %s", block_number, exc)
            return

        for entry in logs:
            try:
                event = parse_bridge_log(entry)
            except DecodeFailure as exc:
                report.decode_failures += 1
                log.warning("Skipping bridge log %s:%d in block %d: %s",
                            entry.tx_hash, entry.log_index, block_number, exc)
                await self._record("decode_failure", str(exc), block_number=block_number,
                                   tx_hash=entry.tx_hash or None)
                continue

            if isinstance(event, BridgeRequestEvent):
                report.bridge_events += 1
                await self._handle_bridge_request(event, report)
            elif isinstance(event, BridgeCompleteEvent):
                log.debug("BridgeComplete %s amount=%d (block %d)",
                          event.request_id, event.amount, block_number)

    async def _handle_bridge_request(self, event: BridgeRequestEvent, report: BlockReport) -> None:
        log.info("BridgeRequest: from=%s amount=%d block=%d",
                 event.sender, event.amount, event.block_number)
        self.bridge_requests.setdefault(event.block_number, []).append(
            BridgeRequestRecord(amount=event.amount, sender=event.sender, timestamp=self._clock())
        )
        try:
            signal = self._builder.build_bridge(event)
            await self._submit(signal, event.block_number, report)
        except Exception as exc:
            log.error("Bridge signal for %s at block %d failed: %s",
                      event.sender, event.block_number, exc, exc_info=True)

    # ── Trade path ────────────────────────────────────────

    async def _process_trades(self, block_number: int, report: BlockReport) -> None:
        try:
            block = await self._chain.get_block_with_transactions(block_number)
        except Exception as exc:
            log.error("Block fetch failed for block %d: %s", block_number, exc)
            return

        for tx in self.matching_transactions(block):
            report.trade_calls += 1
            try:
                signal = self._builder.build_trade(tx, block)
            except DecodeFailure as exc:
                report.decode_failures += 1
                log.warning("Skipping trade tx %s in block %d: %s", tx.hash, block_number, exc)
                await self._record("decode_failure", str(exc), block_number=block_number,
                                   tx_hash=tx.hash)
                continue
            except Exception as exc:
                log.error("Trade tx %s in block %d could not be built: %s",
                          tx.hash, block_number, exc, exc_info=True)
                await self._record("error", f"Trade tx {tx.hash}: {exc}",
                                   block_number=block_number, tx_hash=tx.hash)
                continue

            try:
                await self._submit(signal, block_number, report)
            except Exception as exc:
                log.error("Trade signal %s (tx %s) failed: %s",
                          signal.tag, tx.hash, exc, exc_info=True)

    def matching_transactions(self, block: BlockData) -> list[TransactionData]:
        """Calls to the trade contract with an allow-listed selector, in block order."""
        return [
            tx for tx in block.transactions
            if tx.to is not None
            and tx.to.lower() == self._trade_address
            and self._builder.handles(tx.selector)
        ]

    # ── Shared ────────────────────────────────────────────

    async def _submit(self, signal: Signal, block_number: int, report: BlockReport) -> SubmissionResult:
        result = await self._engine.submit(signal, block_number)
        # The next signal chains to this one whatever the outcome
        self._builder.record_handoff(signal)
        report.results.append(result)

        message = f"{signal.intent} {signal.tag}: {result.outcome.value}"
        if result.error:
            message += f" ({result.error})"
        await self._record(
            _ACTIVITY_TYPES[result.outcome], message,
            tag=signal.tag, block_number=block_number, tx_hash=result.tx_hash,
        )
        return result

    def purge_bridge_cache(self) -> int:
        """Drop bridge-request records older than the retention window."""
        cutoff = self._clock() - self._cache_ttl
        purged = 0
        for block_number in list(self.bridge_requests):
            kept = [r for r in self.bridge_requests[block_number] if r.timestamp >= cutoff]
            purged += len(self.bridge_requests[block_number]) - len(kept)
            if kept:
                self.bridge_requests[block_number] = kept
            else:
                del self.bridge_requests[block_number]
        if purged:
            log.debug("Purged %d stale bridge requests", purged)
        return purged

    async def _record(
        self,
        event_type: str,
        message: str,
        tag: str | None = None,
        block_number: int | None = None,
        tx_hash: str | None = None,
    ) -> None:
        if self._journal is None:
            return
        try:
            await self._journal.log_activity(
                event_type, message, tag=tag, block_number=block_number, tx_hash=tx_hash,
            )
        except Exception as exc:
            log.warning("Activity journal write failed: %s", exc)
