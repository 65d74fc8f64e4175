"""Claim reconciler - periodic claimYield() for submitted signals."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone

from cascade_relay.errors import SubmissionFailure
from cascade_relay.interfaces.chain import ChainClient
from cascade_relay.interfaces.journal import ActivityJournal
from cascade_relay.interfaces.registry import SignalRegistry
from cascade_relay.interfaces.signer import Signer
from cascade_relay.models.config import ClaimConfig
from cascade_relay.models.records import (
    ClaimResult,
    ReconcileReport,
    RetryQueueEntry,
    TxParams,
)
from cascade_relay.models.signal import Signal
from cascade_relay.signals.codec import encode_signal

log = logging.getLogger(__name__)

CLAIM_FUNCTION = "claimYield"
_ALREADY_CLAIMED = "already claimed"


class ClaimReconciler:
    """Owns the retry queue of submitted signals and claims their yield.

    Each period:
    1. Reads on-chain yield for every queued signal
    2. Drops entries with zero yield (nothing left to claim)
    3. Submits claimYield() for the rest; drops them on success
    4. Keeps failed entries for the next period (no backoff, no bound)

    The queue lives in memory only and is lost on restart.
    """

    def __init__(
        self,
        registry: SignalRegistry,
        chain: ChainClient,
        signer: Signer,
        target_address: str,
        config: ClaimConfig | None = None,
        journal: ActivityJournal | None = None,
    ) -> None:
        self._registry = registry
        self._chain = chain
        self._signer = signer
        self._target = target_address
        self._config = config or ClaimConfig()
        self._journal = journal
        self._queue: list[RetryQueueEntry] = []
        self._running = False
        self._task: asyncio.Task | None = None
        self._last_report: ReconcileReport | None = None

    # ── Queue ─────────────────────────────────────────────

    def enqueue(self, signal: Signal, block_number: int) -> bool:
        """Queue a submitted signal. Returns False if it is already queued."""
        text = encode_signal(signal)
        if any(entry.text == text for entry in self._queue):
            log.debug("Signal %s already queued for claim", signal.tag)
            return False
        self._queue.append(RetryQueueEntry(signal=signal, block_number=block_number, text=text))
        log.debug("Queued signal %s for claim (%d pending)", signal.tag, len(self._queue))
        return True

    def pending(self) -> list[RetryQueueEntry]:
        return list(self._queue)

    @property
    def last_report(self) -> ReconcileReport | None:
        return self._last_report

    def _remove(self, entry: RetryQueueEntry) -> None:
        try:
            self._queue.remove(entry)
        except ValueError:
            pass

    # ── Lifecycle ─────────────────────────────────────────

    async def start(self) -> None:
        """Start the periodic reconciliation loop."""
        self._running = True
        self._task = asyncio.create_task(self._loop())
        log.info("Claim reconciler started (interval=%ds)", self._config.interval)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        log.info("Claim reconciler stopped (%d entries left unclaimed)", len(self._queue))

    async def _loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._config.interval)
            except asyncio.CancelledError:
                break

            try:
                await self.run_cycle()
            except asyncio.CancelledError:
                break
            except Exception as exc:
                log.error("Reconciliation cycle error: %s", exc, exc_info=True)

    # ── Reconciliation ────────────────────────────────────

    async def run_cycle(self) -> ReconcileReport:
        """Run one reconciliation period over a snapshot of the queue."""
        started = datetime.now(timezone.utc).isoformat()
        start_time = time.monotonic()
        entries = list(self._queue)

        claimed = dropped = failed = 0
        for entry in entries:
            try:
                outcome = await self._reconcile_one(entry)
            except Exception as exc:
                log.error("Claim check for signal %s errored: %s", entry.signal.tag, exc)
                outcome = "failed"
            if outcome == "claimed":
                claimed += 1
            elif outcome == "dropped":
                dropped += 1
            elif outcome == "failed":
                failed += 1

        report = ReconcileReport(
            started_at=started,
            completed_at=datetime.now(timezone.utc).isoformat(),
            checked=len(entries),
            claimed=claimed,
            dropped=dropped,
            failed=failed,
            remaining=len(self._queue),
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )
        self._last_report = report
        if entries:
            log.info(
                "Reconciliation complete: %d checked, %d claimed, %d dropped, %d failed, %d remaining",
                report.checked, claimed, dropped, failed, report.remaining,
            )
        return report

    async def _reconcile_one(self, entry: RetryQueueEntry) -> str:
        status = await self._registry.get_signal_status(entry.text)
        if status.yield_amount == 0:
            self._remove(entry)
            log.debug("Signal %s has no yield, dropped from queue", entry.signal.tag)
            return "dropped"

        result = await self.submit_claim(entry, status.yield_amount)
        if result.success:
            self._remove(entry)
            await self._record(
                "claim_success",
                f"Claimed {result.yield_amount} for signal {entry.signal.tag}",
                entry, result.tx_hash,
            )
            return "claimed"

        if result.error == "already_claimed":
            return "kept"

        await self._record(
            "claim_failed", f"Claim failed: {result.error}", entry, None,
        )
        return "failed"

    async def submit_claim(self, entry: RetryQueueEntry, yield_amount: int) -> ClaimResult:
        """Build, sign, and submit a claimYield() transaction."""
        tag = entry.signal.tag
        try:
            nonce = await self._chain.get_pending_nonce(self._signer.address)
            tx_hash = await self._signer.submit_call(
                self._target,
                CLAIM_FUNCTION,
                [entry.text],
                TxParams(
                    nonce=nonce,
                    gas_limit=self._config.gas_limit,
                    max_fee_per_gas=self._config.fee,
                    max_priority_fee_per_gas=self._config.fee,
                ),
            )
        except SubmissionFailure as exc:
            if _ALREADY_CLAIMED in exc.message.lower():
                return ClaimResult(success=False, tag=tag, error="already_claimed")
            log.warning("claimYield failed for signal %s (block %d): %s",
                        tag, entry.block_number, exc.message)
            return ClaimResult(success=False, tag=tag, error=f"{exc.kind.value}: {exc.message}")
        except Exception as exc:
            log.error("claimYield unexpected error for signal %s: %s", tag, exc)
            return ClaimResult(success=False, tag=tag, error=str(exc))

        log.info(
            "claimYield submitted for signal %s (yield=%d, nonce %d, tx=%s)",
            tag, yield_amount, nonce, tx_hash,
        )
        return ClaimResult(success=True, tag=tag, yield_amount=yield_amount, tx_hash=tx_hash)

    async def _record(
        self, event_type: str, message: str, entry: RetryQueueEntry, tx_hash: str | None,
    ) -> None:
        if self._journal is None:
            return
        try:
            await self._journal.log_activity(
                event_type, message,
                tag=entry.signal.tag,
                block_number=entry.block_number,
                tx_hash=tx_hash,
            )
        except Exception as exc:
            log.warning("Activity journal write failed: %s", exc)
