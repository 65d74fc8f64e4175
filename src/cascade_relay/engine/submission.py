"""Submission engine - emitCascade() with fee escalation and bounded retry."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from cascade_relay.engine.reconciler import ClaimReconciler
from cascade_relay.errors import SubmissionFailure
from cascade_relay.interfaces.chain import ChainClient
from cascade_relay.interfaces.registry import SignalRegistry
from cascade_relay.interfaces.signer import Signer
from cascade_relay.models.config import RetryPolicy
from cascade_relay.models.records import SubmissionOutcome, SubmissionResult, TxParams
from cascade_relay.models.signal import Signal
from cascade_relay.signals.codec import encode_signal

log = logging.getLogger(__name__)

EMIT_FUNCTION = "emitCascade"


class SubmissionEngine:
    """Drives one signal to a terminal SubmissionOutcome.

    1. Skip if the signal is already active on-chain
    2. Submit at the current fee with a freshly fetched pending nonce
    3. On fee-too-low / nonce-conflict: raise fee by one step, back off
       exponentially, retry (bounded by attempts and max fee)
    4. On success: hand the signal to the ClaimReconciler queue

    The active-status check is the only deduplication. It is best-effort:
    two submitters can both observe ``active=False`` before either lands.
    """

    def __init__(
        self,
        registry: SignalRegistry,
        chain: ChainClient,
        signer: Signer,
        target_address: str,
        reconciler: ClaimReconciler,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._registry = registry
        self._chain = chain
        self._signer = signer
        self._target = target_address
        self._reconciler = reconciler
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def submit(self, signal: Signal, block_number: int) -> SubmissionResult:
        text = encode_signal(signal)
        policy = self._policy

        # 1. Active-status pre-check
        try:
            status = await self._registry.get_signal_status(text)
        except Exception as exc:
            log.error("Status query failed for signal %s at block %d: %s",
                      signal.tag, block_number, exc)
            return SubmissionResult(
                outcome=SubmissionOutcome.FATAL_ERROR,
                tag=signal.tag,
                block_number=block_number,
                error=f"status_query_failed: {exc}",
            )

        if status.active:
            log.info("Signal %s already active, skipping (block %d)", signal.tag, block_number)
            return SubmissionResult(
                outcome=SubmissionOutcome.ACTIVE_SKIP,
                tag=signal.tag,
                block_number=block_number,
            )

        # 2. Escalation loop
        fee = policy.base_fee
        attempt = 0
        nonce: int | None = None
        last_error: str | None = None

        while attempt < policy.max_attempts:
            if fee > policy.max_fee:
                log.warning(
                    "Signal %s: fee %d exceeds max %d after %d attempts (block %d)",
                    signal.tag, fee, policy.max_fee, attempt, block_number,
                )
                return SubmissionResult(
                    outcome=SubmissionOutcome.GAS_EXCEEDED,
                    tag=signal.tag,
                    block_number=block_number,
                    attempts=attempt,
                    fee=fee,
                    nonce=nonce,
                    error=last_error,
                )

            # Nonce is fetched fresh: the reconciler shares this signer
            try:
                nonce = await self._chain.get_pending_nonce(self._signer.address)
            except Exception as exc:
                log.error("Nonce fetch failed for signal %s: %s", signal.tag, exc)
                return SubmissionResult(
                    outcome=SubmissionOutcome.FATAL_ERROR,
                    tag=signal.tag,
                    block_number=block_number,
                    attempts=attempt,
                    fee=fee,
                    error=f"nonce_fetch_failed: {exc}",
                )

            params = TxParams(
                nonce=nonce,
                gas_limit=policy.gas_limit,
                max_fee_per_gas=fee,
                max_priority_fee_per_gas=fee,
            )

            try:
                tx_hash = await self._signer.submit_call(
                    self._target, EMIT_FUNCTION, [text, signal.fee_tier], params,
                )
            except SubmissionFailure as exc:
                if not exc.transient:
                    log.error(
                        "Signal %s fatal submission error (block %d, nonce %d): %s",
                        signal.tag, block_number, nonce, exc.message,
                    )
                    return SubmissionResult(
                        outcome=SubmissionOutcome.FATAL_ERROR,
                        tag=signal.tag,
                        block_number=block_number,
                        attempts=attempt + 1,
                        fee=fee,
                        nonce=nonce,
                        error=f"{exc.kind.value}: {exc.message}",
                    )

                last_error = f"{exc.kind.value}: {exc.message}"
                fee += policy.fee_step
                attempt += 1
                if attempt >= policy.max_attempts or fee > policy.max_fee:
                    log.warning("Signal %s attempt %d rejected (%s), giving up",
                                signal.tag, attempt, exc.kind.value)
                    continue
                delay = policy.backoff(attempt)
                log.warning(
                    "Signal %s attempt %d rejected (%s), retrying at fee %d in %.1fs",
                    signal.tag, attempt, exc.kind.value, fee, delay,
                )
                await self._sleep(delay)
                continue

            log.info(
                "emitCascade submitted for signal %s (block %d, nonce %d, fee %d, tx=%s)",
                signal.tag, block_number, nonce, fee, tx_hash,
            )
            self._reconciler.enqueue(signal, block_number)
            return SubmissionResult(
                outcome=SubmissionOutcome.SUBMITTED,
                tag=signal.tag,
                block_number=block_number,
                attempts=attempt + 1,
                fee=fee,
                nonce=nonce,
                tx_hash=tx_hash,
            )

        log.error(
            "Signal %s: retries exhausted after %d attempts (block %d, last fee %d)",
            signal.tag, attempt, block_number, fee,
        )
        return SubmissionResult(
            outcome=SubmissionOutcome.RETRIES_EXHAUSTED,
            tag=signal.tag,
            block_number=block_number,
            attempts=attempt,
            fee=fee,
            nonce=nonce,
            error=last_error,
        )
