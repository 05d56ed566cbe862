"""CLI commands for shardlease.

Provides command-line interface using Typer:
- shardlease run: Run competing election actors for a shard
- shardlease leader: Show the current leaseholder
- shardlease release: Delete the leader key

Usage:
    shardlease --help
    shardlease run --shard shard-5 --actors 30
    shardlease leader --shard shard-5
"""

import typer

from shardlease.cli.lease_cmd import leader_app, release_app
from shardlease.cli.run_cmd import app as run_app

# Main CLI application
app = typer.Typer(
    name="shardlease",
    help="shardlease: leader election over an etcd v2 keys API",
    no_args_is_help=True,
)

app.add_typer(run_app, name="run")
app.add_typer(leader_app, name="leader")
app.add_typer(release_app, name="release")


@app.callback()
def callback() -> None:
    """shardlease: leader election over an etcd v2 keys API."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
