"""Daemon block loop: catch-up, de-duplication, error recovery, lifecycle."""

from __future__ import annotations

import asyncio

from cascade_relay.daemon import RelayDaemon
from cascade_relay.dispatcher import EventDispatcher
from cascade_relay.engine.reconciler import ClaimReconciler
from cascade_relay.engine.submission import SubmissionEngine
from cascade_relay.evm.client import Web3ChainClient
from cascade_relay.signals.builder import SignalBuilder
from cascade_relay.storage.sqlite import SQLiteActivityJournal

from tests.conftest import TEST_ADDRESS, make_test_config
from tests.factories import make_block, make_bridge_log, make_trade_tx


class RecordingDispatcher:
    def __init__(self) -> None:
        self.blocks: list[int] = []

    async def handle_block(self, block_number: int):
        self.blocks.append(block_number)


# ── Test 1: Wiring ────────────────────────────────────────────────


def test_daemon_wires_components():
    d = RelayDaemon(make_test_config())
    assert isinstance(d.chain, Web3ChainClient)
    assert isinstance(d.reconciler, ClaimReconciler)
    assert isinstance(d.engine, SubmissionEngine)
    assert isinstance(d.builder, SignalBuilder)
    assert isinstance(d.dispatcher, EventDispatcher)
    assert d.signer.address == TEST_ADDRESS
    assert d.engine.policy.max_attempts == 13
    assert d.last_block is None


# ── Test 2: Block polling ─────────────────────────────────────────


async def test_first_poll_starts_at_head(daemon, mock_chain):
    daemon.dispatcher = RecordingDispatcher()
    mock_chain.head = 1000

    assert await daemon.poll_once() == [1000]
    assert daemon.last_block == 1000


async def test_catch_up_is_sequential(daemon, mock_chain):
    daemon.dispatcher = recorder = RecordingDispatcher()
    mock_chain.head = 1000
    await daemon.poll_once()

    mock_chain.head = 1003
    assert await daemon.poll_once() == [1001, 1002, 1003]
    assert recorder.blocks == [1000, 1001, 1002, 1003]


async def test_repeated_or_lower_head_ignored(daemon, mock_chain):
    daemon.dispatcher = recorder = RecordingDispatcher()
    mock_chain.head = 1000
    await daemon.poll_once()

    assert await daemon.poll_once() == []
    mock_chain.head = 998
    assert await daemon.poll_once() == []
    assert recorder.blocks == [1000]
    assert daemon.last_block == 1000


async def test_blocks_flow_to_submission(daemon, mock_chain, mock_signer):
    mock_chain.add_block(make_block(number=1000, transactions=(make_trade_tx(),)))
    await daemon.poll_once()
    mock_chain.add_block(make_block(number=1001), make_bridge_log(block_number=1001))
    await daemon.poll_once()

    assert len(mock_signer.emit_calls) == 2
    assert len(daemon.reconciler.pending()) == 2


# ── Test 3: Main loop error handling ──────────────────────────────


async def test_main_loop_recovers_from_errors(daemon, journal):
    class FailingChain:
        def __init__(self) -> None:
            self.calls = 0

        async def get_block_number(self) -> int:
            self.calls += 1
            if self.calls == 1:
                raise ConnectionError("rpc unreachable")
            await daemon.stop()
            return 1000

    daemon.chain = FailingChain()
    daemon.dispatcher = recorder = RecordingDispatcher()
    daemon._running = True

    await asyncio.wait_for(daemon._main_loop(), timeout=5)

    assert daemon.chain.calls == 2
    assert recorder.blocks == [1000]
    activity = await journal.get_recent_activity(10)
    assert any(a.event_type == "error" and "rpc unreachable" in a.message for a in activity)


# ── Test 4: Lifecycle ─────────────────────────────────────────────


async def test_start_and_stop(daemon, mock_chain, mock_signer):
    daemon.journal = SQLiteActivityJournal(":memory:")
    mock_chain.add_block(make_block(number=1000, transactions=(make_trade_tx(),)))

    task = asyncio.create_task(daemon.start())
    for _ in range(200):
        await asyncio.sleep(0.01)
        if daemon.last_block == 1000:
            break
    await daemon.stop()
    await asyncio.wait_for(task, timeout=5)

    assert daemon.last_block == 1000
    assert len(mock_signer.emit_calls) == 1
    assert mock_chain.closed


async def test_bad_transaction_does_not_stall_block_progress(daemon, mock_chain, mock_signer):
    txs = (
        make_trade_tx(sender="0xnot-an-address", tx_hash="0x01"),
        make_trade_tx(tx_hash="0x02"),
    )
    mock_chain.add_block(make_block(number=1000, transactions=txs))

    assert await daemon.poll_once() == [1000]
    assert daemon.last_block == 1000

    mock_chain.add_block(make_block(number=1001))
    assert await daemon.poll_once() == [1001]
    assert len(mock_signer.emit_calls) == 1
