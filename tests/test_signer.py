"""Signer failure classification and key handling."""

from __future__ import annotations

import pytest

from cascade_relay.errors import FailureKind, SubmissionFailure
from cascade_relay.evm.signer import Web3Signer, classify_failure

from tests.conftest import TEST_ADDRESS, TEST_PRIVATE_KEY


@pytest.mark.parametrize(
    "message,kind",
    [
        ("replacement transaction underpriced", FailureKind.FEE_TOO_LOW),
        ("transaction underpriced", FailureKind.FEE_TOO_LOW),
        ("max fee per gas less than block base fee: maxFeePerGas: 1, baseFee: 7",
         FailureKind.FEE_TOO_LOW),
        ("nonce too low: next nonce 8, tx nonce 7", FailureKind.NONCE_CONFLICT),
        ("already known", FailureKind.NONCE_CONFLICT),
        ("execution reverted: paused", FailureKind.OTHER),
        ("insufficient funds for gas * price + value", FailureKind.OTHER),
    ],
)
def test_classify_rpc_error_message(message, kind):
    # web3 raises ValueError / Web3RPCError carrying the node's error dict
    exc = ValueError({"code": -32000, "message": message})
    failure = classify_failure(exc)
    assert failure.kind == kind
    assert failure.message == message


def test_classify_plain_exception():
    failure = classify_failure(RuntimeError("Nonce has already been used"))
    assert failure.kind == FailureKind.NONCE_CONFLICT


def test_classify_passes_submission_failure_through():
    original = SubmissionFailure(FailureKind.FEE_TOO_LOW, "x")
    assert classify_failure(original) is original


def test_transient_kinds():
    assert SubmissionFailure(FailureKind.FEE_TOO_LOW, "").transient
    assert SubmissionFailure(FailureKind.NONCE_CONFLICT, "").transient
    assert not SubmissionFailure(FailureKind.OTHER, "").transient


def test_signer_address_from_key():
    signer = Web3Signer(w3=None, private_key=TEST_PRIVATE_KEY, chain_id=31337)
    assert signer.address == TEST_ADDRESS
