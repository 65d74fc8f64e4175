"""Shared fixtures for cascade_relay tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from cascade_relay.daemon import RelayDaemon
from cascade_relay.dispatcher import EventDispatcher
from cascade_relay.engine.reconciler import ClaimReconciler
from cascade_relay.engine.submission import SubmissionEngine
from cascade_relay.models.config import GWEI, ClaimConfig, DaemonConfig, RetryPolicy
from cascade_relay.signals.builder import SignalBuilder, SignalChainState
from cascade_relay.storage.sqlite import SQLiteActivityJournal

from tests.factories import BRIDGE_ADDRESS, TARGET_ADDRESS, TRADE_ROUTER
from tests.mocks import MockChain, MockRegistry, MockSigner, RecordingSleep

# Well-known development key (first account of the default local test mnemonic)
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

FIXED_NOW = 1_700_000_500


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add chain info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Chain"] = "Mocked EVM (no RPC)"
    meta["Target Contract"] = TARGET_ADDRESS
    meta["Bridge Contract"] = BRIDGE_ADDRESS
    meta["Trade Router"] = TRADE_ROUTER
    meta["Relay Account"] = TEST_ADDRESS


def pytest_html_results_summary(prefix, summary, postfix):
    """Inject the contract addresses into the report summary."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Contracts</strong><br/>"
        f"Target: {TARGET_ADDRESS}<br/>"
        f"Bridge: {BRIDGE_ADDRESS}<br/>"
        f"Trade router: {TRADE_ROUTER}"
        "</div>"
    )


def make_test_config(**overrides) -> DaemonConfig:
    """Build a DaemonConfig suitable for testing."""
    defaults = dict(
        poll_interval=0,
        error_backoff=0,
        rpc_url="http://127.0.0.1:8545",
        chain_id=31337,
        private_key=TEST_PRIVATE_KEY,
        target_address=TARGET_ADDRESS,
        bridge_address=BRIDGE_ADDRESS,
        trade_address=TRADE_ROUTER,
        retry=RetryPolicy(),
        claim=ClaimConfig(interval=3600),
        db_path=":memory:",
    )
    defaults.update(overrides)
    return DaemonConfig(**defaults)


def make_policy(**overrides) -> RetryPolicy:
    fields = dict(
        max_attempts=13,
        base_fee=1 * GWEI,
        fee_step=1 * GWEI,
        max_fee=20 * GWEI,
        gas_limit=500_000,
        backoff_base=0.3,
    )
    fields.update(overrides)
    return RetryPolicy(**fields)


@pytest.fixture
def test_config():
    """Default DaemonConfig for tests."""
    return make_test_config()


@pytest.fixture
async def journal():
    """Initialized in-memory SQLiteActivityJournal."""
    j = SQLiteActivityJournal(":memory:")
    await j.initialize()
    yield j
    await j.close()


@pytest.fixture
def mock_chain():
    return MockChain(head=1000, nonce=7)


@pytest.fixture
def mock_signer(mock_chain):
    return MockSigner(chain=mock_chain)


@pytest.fixture
def mock_registry():
    return MockRegistry()


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def reconciler(mock_registry, mock_chain, mock_signer, journal):
    return ClaimReconciler(
        registry=mock_registry,
        chain=mock_chain,
        signer=mock_signer,
        target_address=TARGET_ADDRESS,
        config=ClaimConfig(interval=3600, gas_limit=300_000, fee=2 * GWEI),
        journal=journal,
    )


@pytest.fixture
def engine(mock_registry, mock_chain, mock_signer, reconciler, sleeper):
    return SubmissionEngine(
        registry=mock_registry,
        chain=mock_chain,
        signer=mock_signer,
        target_address=TARGET_ADDRESS,
        reconciler=reconciler,
        policy=make_policy(),
        sleep=sleeper,
    )


@pytest.fixture
def builder():
    return SignalBuilder(state=SignalChainState(), clock=lambda: FIXED_NOW)


@pytest.fixture
def dispatcher(mock_chain, builder, engine, journal):
    return EventDispatcher(
        chain=mock_chain,
        builder=builder,
        engine=engine,
        bridge_address=BRIDGE_ADDRESS,
        trade_address=TRADE_ROUTER,
        journal=journal,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
async def daemon(test_config, journal, mock_chain, mock_signer, mock_registry,
                 reconciler, engine, builder, dispatcher):
    """Fully wired RelayDaemon with mocked chain-facing components."""
    d = RelayDaemon(test_config)
    d.chain = mock_chain
    d.signer = mock_signer
    d.registry = mock_registry
    d.journal = journal
    d.reconciler = reconciler
    d.engine = engine
    d.builder = builder
    d.dispatcher = dispatcher
    return d
