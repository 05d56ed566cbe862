"""CLI commands for inspecting and releasing a shard lease.

Usage:
    shardlease leader --shard shard-5
    shardlease release --shard shard-5
"""

from __future__ import annotations

import typer

from shardlease.config import settings
from shardlease.election import current_leader, release_lease
from shardlease.errors import StoreTransportError
from shardlease.store import StoreClient

leader_app = typer.Typer(help="Show the current leaseholder of a shard")
release_app = typer.Typer(help="Delete a shard's leader key")


@leader_app.callback(invoke_without_command=True)
def leader(
    shard: str = typer.Option(settings.shard, "--shard", "-s", help="Shard name"),
    store_url: str = typer.Option(
        settings.store_url, "--store-url", "-u", help="Coordination store endpoint"
    ),
) -> None:
    """Print the id of the actor holding the lease."""
    try:
        with StoreClient(store_url, timeout=settings.request_timeout) as store:
            holder = current_leader(store, shard)
    except StoreTransportError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if holder is None:
        typer.echo(f"No leader for '{shard}'")
        raise typer.Exit(3)
    typer.echo(holder)


@release_app.callback(invoke_without_command=True)
def release(
    shard: str = typer.Option(settings.shard, "--shard", "-s", help="Shard name"),
    store_url: str = typer.Option(
        settings.store_url, "--store-url", "-u", help="Coordination store endpoint"
    ),
) -> None:
    """Force the lease free so another actor can claim it."""
    try:
        with StoreClient(store_url, timeout=settings.request_timeout) as store:
            released = release_lease(store, shard)
    except StoreTransportError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if released:
        typer.echo(f"Released lease on '{shard}'")
    else:
        typer.echo(f"No lease held on '{shard}'")
