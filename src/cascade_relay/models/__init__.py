"""Data models for the cascade_relay daemon."""

from cascade_relay.models.signal import BRIDGE_INTENT, ZERO_PARENT, Signal
from cascade_relay.models.events import (
    BlockData,
    BridgeCompleteEvent,
    BridgeRequestEvent,
    RawLog,
    TransactionData,
)
from cascade_relay.models.records import (
    ActivityRecord,
    BlockReport,
    BridgeRequestRecord,
    ClaimResult,
    ReconcileReport,
    RetryQueueEntry,
    SignalStatus,
    SubmissionOutcome,
    SubmissionResult,
    TxParams,
)
from cascade_relay.models.config import ClaimConfig, DaemonConfig, RetryPolicy

__all__ = [
    "BRIDGE_INTENT", "ZERO_PARENT", "Signal",
    "BlockData", "BridgeCompleteEvent", "BridgeRequestEvent", "RawLog",
    "TransactionData",
    "ActivityRecord", "BlockReport", "BridgeRequestRecord", "ClaimResult",
    "ReconcileReport", "RetryQueueEntry", "SignalStatus", "SubmissionOutcome",
    "SubmissionResult", "TxParams",
    "ClaimConfig", "DaemonConfig", "RetryPolicy",
]
