"""CLI entry point for the cascade_relay daemon."""

from __future__ import annotations

import asyncio
import logging
import sys

import click
from eth_account import Account

from cascade_relay.config import load_config, missing_settings
from cascade_relay.daemon import run_daemon
from cascade_relay.errors import ConfigError, DecodeFailure
from cascade_relay.models.config import GWEI
from cascade_relay.signals import codec
from cascade_relay.storage.sqlite import SQLiteActivityJournal


def _gwei(wei: int) -> str:
    return f"{wei / GWEI:g} gwei"


def _load(ctx: click.Context):
    try:
        return load_config(ctx.obj["config_path"])
    except ConfigError as exc:
        click.echo(f"Error: invalid config: {exc}", err=True)
        sys.exit(1)


def _require_settings(cfg):
    """Exit with error if the key or any contract address is missing."""
    missing = missing_settings(cfg)
    if missing:
        click.echo(f"Error: missing settings: {', '.join(missing)}", err=True)
        click.echo(
            "Set CASCADE_RELAY_PRIVATE_KEY / CASCADE_RELAY_TARGET / "
            "CASCADE_RELAY_BRIDGE / CASCADE_RELAY_TRADE_ROUTER or the config file.",
            err=True,
        )
        sys.exit(1)


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """cascade_relay - Bridge and trade signal relay for EVM chains."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Daemon ─────────────────────────────────────────────


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Start the relay daemon."""
    cfg = _load(ctx)
    _require_settings(cfg)

    click.echo(f"Starting cascade_relay daemon (chain id {cfg.chain_id})")
    asyncio.run(run_daemon(cfg))


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show daemon configuration."""
    cfg = _load(ctx)
    click.echo(f"RPC URL:      {cfg.rpc_url}")
    click.echo(f"Chain ID:     {cfg.chain_id}")
    click.echo(f"Target:       {cfg.target_address or '(not set)'}")
    click.echo(f"Bridge:       {cfg.bridge_address or '(not set)'}")
    click.echo(f"Trade router: {cfg.trade_address or '(not set)'}")
    click.echo(f"Selectors:    {', '.join(sorted(cfg.trade_selectors)) or '(none)'}")
    click.echo(f"Retry:        {cfg.retry.max_attempts} attempts, "
               f"{_gwei(cfg.retry.base_fee)} +{_gwei(cfg.retry.fee_step)} "
               f"up to {_gwei(cfg.retry.max_fee)}")
    click.echo(f"Claims:       every {cfg.claim.interval}s at {_gwei(cfg.claim.fee)}")
    click.echo(f"DB path:      {cfg.db_path}")
    if cfg.private_key:
        try:
            address = Account.from_key(cfg.private_key).address
        except Exception:
            address = "(invalid key)"
        click.echo(f"Key:          ***configured*** ({address})")
    else:
        click.echo("Key:          (not set)")


@cli.command()
@click.option("-n", "--limit", type=int, default=20, help="Number of recent entries to show")
@click.option("--counts", is_flag=True, help="Show totals per event type instead")
@click.pass_context
def activity(ctx: click.Context, limit: int, counts: bool) -> None:
    """Show the activity journal."""
    cfg = _load(ctx)

    async def _activity():
        journal = SQLiteActivityJournal(cfg.db_path)
        await journal.initialize()
        try:
            if counts:
                totals = await journal.count_by_type()
                if not totals:
                    click.echo("No activity recorded.")
                    return
                for event_type, n in sorted(totals.items()):
                    click.echo(f"  {event_type:28s} {n}")
                return

            records = await journal.get_recent_activity(limit)
            if not records:
                click.echo("No activity recorded.")
                return

            for r in records:
                where = f"block={r.block_number}" if r.block_number is not None else ""
                tx = f" tx={r.tx_hash[:18]}..." if r.tx_hash else ""
                click.echo(f"  {r.created_at} [{r.event_type:24s}] {where}{tx} {r.message}")
        finally:
            await journal.close()

    asyncio.run(_activity())


# ── Tools ──────────────────────────────────────────────


@cli.command("verify-signal")
@click.argument("text", required=False)
@click.option("-f", "--file", "file_", type=click.File("r"), default=None,
              help="Read the signal text from a file ('-' for stdin)")
def verify_signal(text: str | None, file_) -> None:
    """Re-derive hash/child of a sealed signal record and compare."""
    if file_ is not None:
        text = file_.read().strip()
    if not text:
        click.echo("Error: pass the signal text or --file.", err=True)
        sys.exit(2)

    try:
        signal = codec.decode_signal(text)
    except DecodeFailure as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    click.echo(f"Tag:     {signal.tag}")
    click.echo(f"Intent:  {signal.intent}")
    click.echo(f"Block:   {signal.blk}")
    click.echo(f"Parent:  {signal.parent}")
    click.echo(f"Digest:  {codec.hash_signal(text)}")

    if not signal.sealed:
        click.echo("Record is not sealed (no hash/child).")
        sys.exit(1)

    if codec.verify_signal(text):
        click.echo("OK: hash and child match")
    else:
        resealed = codec.seal_signal(signal)
        click.echo("MISMATCH", err=True)
        click.echo(f"  hash  stored={signal.hash} derived={resealed.hash}", err=True)
        click.echo(f"  child stored={signal.child} derived={resealed.child}", err=True)
        sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
