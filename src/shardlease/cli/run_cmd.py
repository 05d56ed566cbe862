"""CLI command for running election actors.

Usage:
    shardlease run
    shardlease run --shard shard-5 --actors 30 --ttl 1
    shardlease run --stall-probability 0 --release-on-stop --metrics-port 9100
"""

from __future__ import annotations

import logging
import signal
from types import FrameType

import typer

from shardlease.config import settings
from shardlease.election import RandomStallModel, Supervisor
from shardlease.observability import configure_logging, get_metrics
from shardlease.store import StoreClient

logger = logging.getLogger(__name__)

app = typer.Typer(help="Run election actors competing for a shard")


@app.callback(invoke_without_command=True)
def run(
    shard: str = typer.Option(
        settings.shard,
        "--shard",
        "-s",
        help="Shard name; keys are <shard>-leader and <shard>-broadcast",
    ),
    actors: int = typer.Option(
        settings.actor_count,
        "--actors",
        "-n",
        min=1,
        help="Number of competing actors",
    ),
    ttl: float = typer.Option(
        settings.lease_ttl,
        "--ttl",
        "-t",
        help="Lease TTL in seconds",
    ),
    store_url: str = typer.Option(
        settings.store_url,
        "--store-url",
        "-u",
        help="Coordination store endpoint",
    ),
    stall_probability: float = typer.Option(
        settings.stall_probability,
        "--stall-probability",
        min=0.0,
        max=1.0,
        help="Chance per renewal that a leader stalls past its lease",
    ),
    release_on_stop: bool = typer.Option(
        settings.release_on_stop,
        "--release-on-stop/--no-release-on-stop",
        help="Delete the leader key on shutdown",
    ),
    metrics_port: int | None = typer.Option(
        settings.metrics_port,
        "--metrics-port",
        help="Expose Prometheus metrics on this port",
    ),
    log_level: str = typer.Option(
        settings.log_level,
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, error",
    ),
    json_logs: bool = typer.Option(
        settings.log_json,
        "--json-logs/--console-logs",
        help="Emit JSON log lines instead of the console trace",
    ),
) -> None:
    """Run election actors until interrupted.

    Actors that hit a transport error stop for good; the command returns
    once all of them have stopped or on SIGINT/SIGTERM.
    """
    configure_logging(json_format=json_logs, level=log_level)

    if metrics_port is not None:
        get_metrics().serve(metrics_port)

    with StoreClient(store_url, timeout=settings.request_timeout) as store:
        supervisor = Supervisor(
            shard,
            actors,
            store,
            ttl,
            fault_model_factory=lambda _actor_id: RandomStallModel(
                probability=stall_probability,
                multiplier=settings.stall_multiplier,
            ),
            release_on_stop=release_on_stop,
        )

        def _signal_handler(signum: int, frame: FrameType | None) -> None:
            logger.info(f"Received {signal.Signals(signum).name}, stopping actors")
            supervisor.stop_event.set()

        for sig in (signal.SIGTERM, signal.SIGINT):
            signal.signal(sig, _signal_handler)

        logger.info(f"Electing a leader for '{shard}' among {actors} actors via {store_url}")
        supervisor.start()

        # Short joins keep the main thread responsive to signals
        while not supervisor.wait(timeout=1.0):
            pass

        leader = supervisor.leaders()
        logger.info(f"All actors stopped; local leader at exit: {leader[0] if leader else 'none'}")
