"""Configuration models for the daemon."""

from __future__ import annotations

from dataclasses import dataclass, field

GWEI = 10**9

# Router selectors whose calls are turned into trade signals.
DEFAULT_TRADE_SELECTORS: dict[str, str] = {
    "0x38ed1739": "swap_exact_tokens_for_tokens",
    "0x8803dbee": "swap_tokens_for_exact_tokens",
    "0x7ff36ab5": "swap_exact_eth_for_tokens",
    "0x18cbafe5": "swap_exact_tokens_for_eth",
}


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded fee-escalation policy for signal submission.

    Fee grows linearly by ``fee_step`` per attempt; the wait between
    attempts grows exponentially as ``backoff_base * 2**attempt`` seconds.
    """

    max_attempts: int = 13
    base_fee: int = 1 * GWEI  # wei per gas
    fee_step: int = 1 * GWEI
    max_fee: int = 20 * GWEI
    gas_limit: int = 500_000
    backoff_base: float = 0.3  # seconds

    def backoff(self, attempt: int) -> float:
        return self.backoff_base * (2 ** attempt)


@dataclass
class ClaimConfig:
    """Claim reconciliation settings."""

    interval: int = 60  # seconds between reconciliation periods
    gas_limit: int = 300_000
    fee: int = 2 * GWEI  # fixed wei per gas for claim transactions


@dataclass
class DaemonConfig:
    """Complete daemon configuration."""

    # Daemon
    poll_interval: int = 2  # seconds between head polls
    error_backoff: int = 10  # seconds
    log_level: str = "info"
    bridge_cache_ttl: int = 600  # seconds

    # Chain
    rpc_url: str = "http://127.0.0.1:8545"
    chain_id: int = 1
    private_key: str = ""  # loaded from env var CASCADE_RELAY_PRIVATE_KEY

    # Contracts
    target_address: str = ""  # contract exposing emitCascade/claimYield
    bridge_address: str = ""
    trade_address: str = ""
    trade_selectors: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_TRADE_SELECTORS)
    )
    trade_path: tuple[str, ...] = ("WETH", "USDC")
    bridge_path: tuple[str, ...] = ("ETH", "WETH")

    # Submission / claims
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    claim: ClaimConfig = field(default_factory=ClaimConfig)

    # Storage
    db_path: str = "~/.cascade_relay/activity.db"
