"""CLI entry point for the autoraffle daemon."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from datetime import datetime, timezone

import click
from stellar_sdk import Keypair, StrKey

from autoraffle.config import load_config
from autoraffle.daemon import run_daemon
from autoraffle.engine.raffle import RaffleEngine
from autoraffle.ledger.memory import InMemoryLedger
from autoraffle.models.snapshots import format_xlm
from autoraffle.storage.sqlite import SQLiteStateStore
from autoraffle.vrf.coordinator import LocalVRFCoordinator


def _require_secret(cfg):
    """Exit with error if no raffle secret is configured."""
    if not cfg.raffle_secret:
        click.echo("Error: No raffle secret configured.", err=True)
        click.echo("Set AUTORAFFLE_SECRET env var or raffle_secret in config.", err=True)
        click.echo("Generate one with 'autoraffle new-address'.", err=True)
        sys.exit(1)


def _ts(ts: float) -> str:
    return datetime.fromtimestamp(ts, timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """autoraffle - Automated raffle with verifiable randomness."""
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
    """Start the raffle daemon (engine, keeper and local coordinator)."""
    cfg = load_config(ctx.obj["config_path"])
    _require_secret(cfg)

    click.echo(f"Starting autoraffle daemon (network: {cfg.network})")
    asyncio.run(run_daemon(cfg))


@cli.command("new-address")
def new_address() -> None:
    """Generate a fresh account keypair."""
    keypair = Keypair.random()
    click.echo(f"Address: {keypair.public_key}")
    click.echo(f"Secret:  {keypair.secret}")


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show daemon configuration."""
    cfg = load_config(ctx.obj["config_path"])
    click.echo(f"Network:        {cfg.network}")
    click.echo(f"Entrance fee:   {cfg.raffle.entrance_fee} stroops ({format_xlm(cfg.raffle.entrance_fee)})")
    click.echo(f"Interval:       {cfg.raffle.interval}s")
    click.echo(f"Gas lane:       {cfg.raffle.gas_lane}")
    click.echo(f"Subscription:   {cfg.raffle.subscription_id or '(created on start)'}")
    click.echo(f"Callback gas:   {cfg.raffle.callback_gas_limit}")
    click.echo(f"Coordinator:    {cfg.vrf.coordinator}")
    click.echo(f"Keeper:         {'enabled' if cfg.keeper.enabled else 'disabled'}")
    click.echo(f"DB path:        {cfg.db_path}")
    click.echo(f"Secret:         {'***configured***' if cfg.raffle_secret else '(not set)'}")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the snapshot as JSON")
@click.pass_context
def info(ctx: click.Context, as_json: bool) -> None:
    """Show raffle state from the latest checkpoint."""
    cfg = load_config(ctx.obj["config_path"])
    _require_secret(cfg)
    address = Keypair.from_secret(cfg.raffle_secret).public_key

    async def _info():
        store = SQLiteStateStore(cfg.db_path)
        await store.initialize()
        try:
            restored = await store.load_checkpoint()
        finally:
            await store.close()

        if restored is None:
            click.echo("No raffle state yet. Start the daemon with 'autoraffle run'.")
            return

        checkpoint, balances, _ = restored
        engine = RaffleEngine(
            cfg.raffle.to_raffle_config(vrf_coordinator=cfg.vrf.coordinator),
            address,
            InMemoryLedger(balances),
            LocalVRFCoordinator(),
            checkpoint=checkpoint,
        )
        snap = await engine.snapshot()

        if as_json:
            click.echo(json.dumps(snap.to_dict(), indent=2))
            return

        click.echo(f"Raffle:         {snap.address}")
        click.echo(f"State:          {snap.state.upper()}")
        click.echo(f"Entrance fee:   {snap.entrance_fee} stroops ({format_xlm(snap.entrance_fee)})")
        click.echo(f"Interval:       {snap.interval}s (ready in {snap.seconds_until_ready:.0f}s)")
        click.echo(f"Randomness:     {snap.num_words} word(s), {snap.request_confirmations} confirmations")
        click.echo(f"Pool balance:   {snap.pool_balance} stroops ({snap.pool_balance_xlm})")
        click.echo(f"Players:        {snap.number_of_players}")
        click.echo(f"Last draw:      {_ts(snap.last_timestamp)}")
        click.echo(f"Recent winner:  {snap.recent_winner or '(none yet)'}")
        click.echo(f"Cycles:         {snap.cycle}")
        if snap.pending_request_id is not None:
            click.echo(f"Pending request: {snap.pending_request_id}")
        for i, player in enumerate(snap.players):
            click.echo(f"  [{i}] {player}")

    asyncio.run(_info())


# ── Entering ───────────────────────────────────────────


@cli.command()
@click.argument("participant")
@click.option("--amount", type=int, default=None, help="Payment in stroops (default: entrance fee)")
@click.pass_context
def enter(ctx: click.Context, participant: str, amount: int | None) -> None:
    """Queue an entry for PARTICIPANT; the running daemon submits it."""
    cfg = load_config(ctx.obj["config_path"])

    if not StrKey.is_valid_ed25519_public_key(participant):
        click.echo(f"Error: {participant} is not a valid account address.", err=True)
        sys.exit(1)

    payment = amount if amount is not None else cfg.raffle.entrance_fee
    if payment < cfg.raffle.entrance_fee:
        click.echo(
            f"Warning: {payment} stroops is below the entrance fee "
            f"({cfg.raffle.entrance_fee}); the entry will be rejected.",
            err=True,
        )

    async def _enter():
        store = SQLiteStateStore(cfg.db_path)
        await store.initialize()
        try:
            entry_id = await store.queue_entry(participant, payment)
            click.echo(f"Entry #{entry_id} queued: {participant} paying {payment} stroops")
        finally:
            await store.close()

    asyncio.run(_enter())


# ── History ────────────────────────────────────────────


@cli.command()
@click.option("-n", "--limit", type=int, default=10, help="Number of recent winners to show")
@click.pass_context
def winners(ctx: click.Context, limit: int) -> None:
    """Show recent winners."""
    cfg = load_config(ctx.obj["config_path"])

    async def _winners():
        store = SQLiteStateStore(cfg.db_path)
        await store.initialize()
        try:
            records = await store.get_winners(limit)
            if not records:
                click.echo("No winners yet.")
                return

            for w in records:
                click.echo(
                    f"  #{w.cycle} winner={w.winner} amount={w.amount} "
                    f"({format_xlm(w.amount)}) request={w.request_id} at={w.picked_at}"
                )
        finally:
            await store.close()

    asyncio.run(_winners())


@cli.command()
@click.option("-n", "--limit", type=int, default=20, help="Number of recent events to show")
@click.pass_context
def events(ctx: click.Context, limit: int) -> None:
    """Show recent raffle notifications."""
    cfg = load_config(ctx.obj["config_path"])

    async def _events():
        store = SQLiteStateStore(cfg.db_path)
        await store.initialize()
        try:
            records = await store.get_recent_events(limit)
            if not records:
                click.echo("No events recorded.")
                return

            for e in records:
                fields = " ".join(
                    f"{k}={v}" for k, v in e.payload.items() if k != "timestamp"
                )
                click.echo(f"  [{e.created_at}] {e.event_type:20s} {fields}")
        finally:
            await store.close()

    asyncio.run(_events())


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
