"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from cascade_relay.errors import ConfigError
from cascade_relay.models.config import GWEI, ClaimConfig, DaemonConfig, RetryPolicy


def _gwei(value: object) -> int:
    """Convert a gwei amount (int, float or str) to wei."""
    return int(Decimal(str(value)) * GWEI)


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "CASCADE_RELAY_",
) -> DaemonConfig:
    """Load daemon configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (CASCADE_RELAY_PRIVATE_KEY, etc.)
        2. TOML config file
        3. Defaults from DaemonConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                try:
                    raw = tomllib.load(f)
                except tomllib.TOMLDecodeError as exc:
                    raise ConfigError(f"{p}: {exc}") from exc

    cfg = DaemonConfig()

    # ── Daemon section ─────────────────────────────────────
    daemon = raw.get("daemon", {})
    if v := daemon.get("poll_interval"):
        cfg.poll_interval = int(v)
    if v := daemon.get("error_backoff"):
        cfg.error_backoff = int(v)
    if v := daemon.get("log_level"):
        cfg.log_level = str(v)
    if v := daemon.get("bridge_cache_ttl"):
        cfg.bridge_cache_ttl = int(v)

    # ── Chain section ──────────────────────────────────────
    chain = raw.get("chain", {})
    if v := chain.get("rpc_url"):
        cfg.rpc_url = str(v)
    if v := chain.get("chain_id"):
        cfg.chain_id = int(v)
    if v := chain.get("private_key"):
        cfg.private_key = str(v)

    # ── Contracts section ──────────────────────────────────
    contracts = raw.get("contracts", {})
    if v := contracts.get("target"):
        cfg.target_address = str(v)
    if v := contracts.get("bridge"):
        cfg.bridge_address = str(v)
    if v := contracts.get("trade_router"):
        cfg.trade_address = str(v)
    if v := contracts.get("selectors"):
        cfg.trade_selectors = {str(k).lower(): str(name) for k, name in v.items()}
    if v := contracts.get("trade_path"):
        cfg.trade_path = tuple(str(s) for s in v)
    if v := contracts.get("bridge_path"):
        cfg.bridge_path = tuple(str(s) for s in v)

    # ── Submission section ─────────────────────────────────
    sub = raw.get("submission", {})
    defaults = RetryPolicy()
    cfg.retry = RetryPolicy(
        max_attempts=int(sub.get("max_attempts", defaults.max_attempts)),
        base_fee=_gwei(sub["base_fee_gwei"]) if "base_fee_gwei" in sub else defaults.base_fee,
        fee_step=_gwei(sub["fee_step_gwei"]) if "fee_step_gwei" in sub else defaults.fee_step,
        max_fee=_gwei(sub["max_fee_gwei"]) if "max_fee_gwei" in sub else defaults.max_fee,
        gas_limit=int(sub.get("gas_limit", defaults.gas_limit)),
        backoff_base=float(sub.get("backoff_base", defaults.backoff_base)),
    )

    # ── Claim section ──────────────────────────────────────
    claim = raw.get("claim", {})
    claim_defaults = ClaimConfig()
    cfg.claim = ClaimConfig(
        interval=int(claim.get("interval", claim_defaults.interval)),
        gas_limit=int(claim.get("gas_limit", claim_defaults.gas_limit)),
        fee=_gwei(claim["fee_gwei"]) if "fee_gwei" in claim else claim_defaults.fee,
    )

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)

    # ── Environment variable overrides (highest priority) ──
    if key := os.environ.get(f"{env_prefix}PRIVATE_KEY"):
        cfg.private_key = key
    if rpc := os.environ.get(f"{env_prefix}RPC_URL"):
        cfg.rpc_url = rpc
    if chain_id := os.environ.get(f"{env_prefix}CHAIN_ID"):
        cfg.chain_id = int(chain_id)
    if target := os.environ.get(f"{env_prefix}TARGET"):
        cfg.target_address = target
    if bridge := os.environ.get(f"{env_prefix}BRIDGE"):
        cfg.bridge_address = bridge
    if router := os.environ.get(f"{env_prefix}TRADE_ROUTER"):
        cfg.trade_address = router

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg


def missing_settings(cfg: DaemonConfig) -> list[str]:
    """Names of settings the daemon cannot run without."""
    missing = []
    if not cfg.private_key:
        missing.append("private_key")
    if not cfg.target_address:
        missing.append("contracts.target")
    if not cfg.bridge_address:
        missing.append("contracts.bridge")
    if not cfg.trade_address:
        missing.append("contracts.trade_router")
    return missing
