"""Error taxonomy for signal construction and submission."""

from __future__ import annotations

from enum import Enum


class CascadeRelayError(Exception):
    """Base class for all cascade_relay errors."""


class FailureKind(str, Enum):
    """Discriminated kind of a signer-side submission failure."""

    FEE_TOO_LOW = "fee-too-low"
    NONCE_CONFLICT = "nonce-conflict"
    OTHER = "other"


class SubmissionFailure(CascadeRelayError):
    """Raised by a Signer when a transaction could not be submitted.

    Fee-too-low and nonce-conflict are transient and eligible for retry
    with fee escalation. Everything else is fatal for that signal.
    """

    def __init__(self, kind: FailureKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def transient(self) -> bool:
        return self.kind in (FailureKind.FEE_TOO_LOW, FailureKind.NONCE_CONFLICT)

    def __repr__(self) -> str:
        return f"SubmissionFailure({self.kind.value!r}, {self.message!r})"


class DecodeFailure(CascadeRelayError, ValueError):
    """Malformed log, calldata or signal wire text."""


class ConfigError(CascadeRelayError):
    """Missing or invalid daemon configuration."""
