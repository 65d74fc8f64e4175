"""Operation results and in-memory bookkeeping records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from cascade_relay.models.signal import Signal


class SubmissionOutcome(str, Enum):
    """Terminal states of a single signal's submission."""

    ACTIVE_SKIP = "active-skip"
    SUBMITTED = "submitted"
    GAS_EXCEEDED = "gas-exceeded"
    RETRIES_EXHAUSTED = "retries-exhausted"
    FATAL_ERROR = "fatal-error"


@dataclass(frozen=True)
class SignalStatus:
    """Result of getSignalStatus(signalText) on the target contract."""

    active: bool
    royalty: int
    yield_amount: int


@dataclass
class SubmissionResult:
    """Result of driving one signal through the SubmissionEngine."""

    outcome: SubmissionOutcome
    tag: str
    block_number: int
    attempts: int = 0
    fee: int | None = None  # wei per gas of the last attempt
    nonce: int | None = None
    tx_hash: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome == SubmissionOutcome.SUBMITTED


@dataclass
class ClaimResult:
    """Result of reconciling one queued signal."""

    success: bool
    tag: str
    yield_amount: int = 0
    tx_hash: str | None = None
    error: str | None = None


@dataclass
class RetryQueueEntry:
    """A submitted signal waiting for its yield to be claimed."""

    signal: Signal
    block_number: int
    text: str  # canonical wire text, the on-chain key


@dataclass(frozen=True)
class BridgeRequestRecord:
    """Short-lived observability record of a bridge request."""

    amount: int
    sender: str
    timestamp: float


@dataclass
class ReconcileReport:
    """Summary of one claim reconciliation period."""

    started_at: str
    completed_at: str
    checked: int = 0
    claimed: int = 0
    dropped: int = 0
    failed: int = 0
    remaining: int = 0
    duration_ms: int = 0


@dataclass
class BlockReport:
    """Summary of one block processed by the dispatcher."""

    block_number: int
    bridge_events: int = 0
    trade_calls: int = 0
    decode_failures: int = 0
    results: list[SubmissionResult] = field(default_factory=list)


@dataclass
class ActivityRecord:
    """A single activity journal entry."""

    id: int
    event_type: str
    tag: str | None
    block_number: int | None
    tx_hash: str | None
    message: str
    created_at: str


@dataclass(frozen=True)
class TxParams:
    """Per-transaction fee and ordering parameters handed to the Signer."""

    nonce: int
    gas_limit: int
    max_fee_per_gas: int
    max_priority_fee_per_gas: int
