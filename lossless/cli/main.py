"""
Lossless CLI - Command Line Interface for the auction house

Main entry point for all CLI commands.
"""

import json
import logging
from pathlib import Path

import click

from lossless.core.config import load_config
from lossless.core.errors import InvalidParameter
from lossless.utils.logger import setup_logging, get_logger

logger = get_logger("cli")


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, help="Data directory (overrides LOSSLESS_DATA_DIR)")
@click.option("--env-file", default=None, type=click.Path(dir_okay=False), help="Load settings from a .env file")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, data_dir, env_file):
    """Lossless auction house - escrowed auctions with instant refunds"""
    try:
        config = load_config(env_file)
    except InvalidParameter as e:
        raise click.BadParameter(str(e), param_hint="configuration")

    if data_dir:
        config.data_dir = Path(data_dir).expanduser()

    level = logging.DEBUG if debug else getattr(logging, config.log_level.upper(), logging.INFO)
    setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=config.log_to_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


def _open_storage(ctx):
    from lossless.core.storage import StorageManager

    config = ctx.obj["config"]
    if not config.db_path.exists():
        return None
    return StorageManager(config.data_dir, db_name=config.db_name)


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.option("--starting-bid", default=100, type=int, help="Starting bid of the demo auction")
@click.option("--persist", is_flag=True, help="Write the demo auction to the data directory")
@click.pass_context
def demo(ctx, starting_bid, persist):
    """Run the two-bidder scenario and print every balance"""
    from lossless.core.auction import AuctionHouse
    from lossless.core.clock import ManualClock
    from lossless.core.storage import StorageManager
    from lossless.core.token import TokenLedger
    from lossless.crypto import generate_keypair, bytes_to_hex

    config = ctx.obj["config"]

    click.echo("=" * 60)
    click.echo("  LOSSLESS AUCTION - DEMO")
    click.echo("=" * 60)
    click.echo()

    storage = None
    if persist:
        config.ensure_dirs()
        storage = StorageManager(config.data_dir, db_name=config.db_name)

    token = TokenLedger(symbol="LSS")
    clock = ManualClock()
    house = AuctionHouse(config=config, clock=clock, tokens=[token], storage_manager=storage)

    seller = generate_keypair().address
    alice = generate_keypair().address
    bob = generate_keypair().address

    for who in (alice, bob):
        token.mint(who, starting_bid * 10)
        token.approve(who, house.address, starting_bid * 10)

    auction_id = house.create_auction(seller, token, starting_bid=starting_bid, duration=86400)
    click.echo(f"Auction {auction_id} created by {bytes_to_hex(seller)[:12]}...")
    click.echo(f"  Starting bid: {starting_bid} {token.symbol}")
    click.echo()

    def show_balances():
        click.echo(f"  Alice:  {token.balance_of(alice)}")
        click.echo(f"  Bob:    {token.balance_of(bob)}")
        click.echo(f"  Seller: {token.balance_of(seller)}")
        click.echo(f"  Escrow: {house.escrow_of(auction_id)}")
        click.echo()

    first = house.minimum_bid(auction_id)
    click.echo(f"Alice bids {first}")
    house.place_bid(auction_id, alice, first)
    show_balances()

    second = house.minimum_bid(auction_id)
    click.echo(f"Bob bids {second} (Alice is refunded with a bonus)")
    house.place_bid(auction_id, bob, second)
    show_balances()

    clock.advance(house.time_remaining(auction_id))
    result = house.end_auction(auction_id)
    click.echo(f"Settled: winning bid {result.winning_bid}, seller paid {result.payout}")
    if result.has_winner:
        winner = "Bob" if result.winner == bob else "Alice"
        click.echo(f"  Winner: {winner}")
    show_balances()

    solvent, err = house.check_solvency()
    click.echo(f"Solvency check: {'ok' if solvent else err}")

    if storage:
        click.echo(f"Saved to: {storage.db_path}")
        storage.close()


# =============================================================================
# History Commands
# =============================================================================


@cli.command("history")
@click.option("--active-only", is_flag=True, help="Only list auctions that are still open")
@click.pass_context
def history(ctx, active_only):
    """List persisted auctions"""
    storage = _open_storage(ctx)
    if storage is None:
        click.echo("No auctions found.")
        return

    records = storage.load_auctions()
    storage.close()
    if active_only:
        records = [r for r in records if r.active]

    if not records:
        click.echo("No auctions found.")
        return

    for record in records:
        status = "open" if record.active else "settled"
        click.echo(
            f"  #{record.auction_id}: {status}, bid={record.current_bid}, "
            f"bids={record.bid_count}, escrow={record.escrow}, ends={record.end_time}"
        )


@cli.command("show")
@click.argument("auction_id", type=int)
@click.pass_context
def show(ctx, auction_id):
    """Show one auction and its events as JSON"""
    storage = _open_storage(ctx)
    record = storage.get_auction(auction_id) if storage else None
    if record is None:
        if storage:
            storage.close()
        click.echo(f"❌ Auction {auction_id} not found")
        ctx.exit(1)

    events = storage.load_events(auction_id)
    storage.close()
    payload = {
        "auction": record.to_dict(),
        "events": [e.to_dict() for e in events],
    }
    click.echo(json.dumps(payload, indent=2))


if __name__ == "__main__":
    cli()
