"""Main daemon loop - wires all components together."""

from __future__ import annotations

import asyncio
import logging
import signal

from cascade_relay.dispatcher import EventDispatcher
from cascade_relay.engine.reconciler import ClaimReconciler
from cascade_relay.engine.submission import SubmissionEngine
from cascade_relay.evm.client import Web3ChainClient
from cascade_relay.evm.contract import SignalContractQueries
from cascade_relay.evm.signer import Web3Signer
from cascade_relay.models.config import DaemonConfig
from cascade_relay.signals.builder import SignalBuilder, SignalChainState
from cascade_relay.storage.sqlite import SQLiteActivityJournal

log = logging.getLogger(__name__)


class RelayDaemon:
    """Block-driven signal relay.

    Follows the chain head one block at a time, hands every block to the
    EventDispatcher, and runs the ClaimReconciler alongside it.
    """

    def __init__(self, cfg: DaemonConfig) -> None:
        self._cfg = cfg
        self._running = False
        self._last_block: int | None = None

        # Core components
        self.chain = Web3ChainClient(cfg.rpc_url)
        self.registry = SignalContractQueries(self.chain.w3, cfg.target_address)
        self.signer = Web3Signer(self.chain.w3, cfg.private_key, cfg.chain_id)
        self.journal = SQLiteActivityJournal(cfg.db_path)
        self.reconciler = ClaimReconciler(
            registry=self.registry,
            chain=self.chain,
            signer=self.signer,
            target_address=cfg.target_address,
            config=cfg.claim,
            journal=self.journal,
        )
        self.engine = SubmissionEngine(
            registry=self.registry,
            chain=self.chain,
            signer=self.signer,
            target_address=cfg.target_address,
            reconciler=self.reconciler,
            policy=cfg.retry,
        )
        self.builder = SignalBuilder(
            state=SignalChainState(),
            trade_selectors=cfg.trade_selectors,
            trade_path=cfg.trade_path,
            bridge_path=cfg.bridge_path,
        )
        self.dispatcher = EventDispatcher(
            chain=self.chain,
            builder=self.builder,
            engine=self.engine,
            bridge_address=cfg.bridge_address,
            trade_address=cfg.trade_address,
            journal=self.journal,
            cache_ttl=cfg.bridge_cache_ttl,
        )

    @property
    def last_block(self) -> int | None:
        return self._last_block

    async def start(self) -> None:
        """Initialize components and run the main loop."""
        log.info("Starting cascade_relay daemon")
        log.info("  Address: %s", self.signer.address)
        log.info("  Target: %s", self._cfg.target_address)
        log.info("  Bridge: %s", self._cfg.bridge_address)
        log.info("  Trade router: %s", self._cfg.trade_address)
        log.info("  RPC: %s", self._cfg.rpc_url)

        await self.journal.initialize()
        self._running = True
        await self.journal.log_activity("daemon_started", "Daemon started")
        await self.reconciler.start()

        try:
            await self._main_loop()
        finally:
            await self.reconciler.stop()
            await self.journal.log_activity("daemon_stopped", "Daemon stopped")
            await self.journal.close()
            await self.chain.close()
            log.info("Daemon shut down cleanly")

    async def stop(self) -> None:
        """Signal the daemon to stop gracefully."""
        log.info("Stop requested")
        self._running = False

    async def _main_loop(self) -> None:
        """Poll the head and process new blocks strictly in order."""
        while self._running:
            try:
                await self.poll_once()
                await asyncio.sleep(self._cfg.poll_interval)

            except asyncio.CancelledError:
                log.info("Main loop cancelled")
                break
            except Exception as exc:
                log.error("Main loop error: %s", exc, exc_info=True)
                await self.journal.log_activity("error", str(exc))
                await asyncio.sleep(self._cfg.error_backoff)

    async def poll_once(self) -> list[int]:
        """Process every block after the last one handled, up to the head.

        The first poll starts at the current head. Block numbers at or
        below the last processed block are never handled twice.
        """
        head = await self.chain.get_block_number()
        start = head if self._last_block is None else self._last_block + 1

        processed: list[int] = []
        for number in range(start, head + 1):
            await self.dispatcher.handle_block(number)
            self._last_block = number
            processed.append(number)
        return processed


async def run_daemon(cfg: DaemonConfig) -> None:
    """Entry point for running the daemon."""
    daemon = RelayDaemon(cfg)

    loop = asyncio.get_running_loop()

    def _signal_handler():
        asyncio.ensure_future(daemon.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
