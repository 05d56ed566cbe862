"""Supervisor running a fixed set of election actors for one shard.

Every actor gets its own thread and performs blocking store calls in
sequence, so a slow request in one actor never holds up another. Actors share
the store client and a single stop event, nothing else.

Example:
    with StoreClient("http://127.0.0.1:4001") as store:
        supervisor = Supervisor("shard-5", 30, store)
        supervisor.start()
        supervisor.wait()  # blocks until every actor has stopped

    # Or with a bounded lifetime
    with Supervisor("shard-5", 3, store) as supervisor:
        time.sleep(10)
        print(supervisor.leaders())
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from types import TracebackType

from shardlease.election.actor import (
    DEFAULT_LEASE_TTL,
    LEADER_SUFFIX,
    ElectionActor,
    RoleListener,
)
from shardlease.election.policy import FaultModel, Jitter, JitterPolicy, RandomStallModel
from shardlease.store.client import StoreClient
from shardlease.store.models import RequestOptions

logger = logging.getLogger(__name__)

FaultModelFactory = Callable[[str], FaultModel]
JitterFactory = Callable[[str], JitterPolicy]


class Supervisor:
    """Starts ``actor_count`` actors competing for ``shard`` and waits on them.

    Actor ids are ``"0"`` through ``str(actor_count - 1)``.

    Args:
        shard: Election namespace shared by all actors
        actor_count: Number of actors to run
        store: Store client shared by all actors
        lease_ttl: Lease lifetime in seconds
        fault_model_factory: Builds each actor's fault model from its id
        jitter_factory: Builds each actor's jitter from its id
        release_on_stop: Have the leader delete its key on a clean stop
    """

    def __init__(
        self,
        shard: str,
        actor_count: int,
        store: StoreClient,
        lease_ttl: float = DEFAULT_LEASE_TTL,
        *,
        fault_model_factory: FaultModelFactory | None = None,
        jitter_factory: JitterFactory | None = None,
        release_on_stop: bool = False,
    ) -> None:
        if actor_count < 1:
            raise ValueError(f"actor_count must be at least 1, got {actor_count}")

        self.shard = shard
        self.store = store
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []

        make_fault_model = fault_model_factory or (lambda _actor_id: RandomStallModel())
        make_jitter = jitter_factory or (lambda _actor_id: Jitter())

        self.actors: list[ElectionActor] = [
            ElectionActor(
                store,
                shard,
                str(i),
                lease_ttl,
                fault_model=make_fault_model(str(i)),
                jitter=make_jitter(str(i)),
                stop_event=self._stop_event,
                release_on_stop=release_on_stop,
            )
            for i in range(actor_count)
        ]

    @property
    def running(self) -> bool:
        """True while any actor thread is alive."""
        return any(t.is_alive() for t in self._threads)

    @property
    def stop_event(self) -> threading.Event:
        return self._stop_event

    def on_change(self, listener: RoleListener) -> None:
        """Register a role-change listener on every actor."""
        for actor in self.actors:
            actor.on_change(listener)

    def start(self) -> None:
        """Start one thread per actor."""
        if self._threads:
            return

        for actor in self.actors:
            thread = threading.Thread(
                target=actor.run,
                name=f"election-{self.shard}-{actor.actor_id}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()

        logger.info(f"Started {len(self.actors)} election actors for '{self.shard}'")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until every actor has stopped.

        Actors only stop on a transport error or ``stop()``, so without a
        timeout this normally blocks for the life of the process.

        Returns:
            True if all actors stopped, False if the timeout elapsed first
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        for thread in self._threads:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            thread.join(remaining)
            if thread.is_alive():
                return False
        return True

    def stop(self, timeout: float | None = None) -> bool:
        """Signal every actor to stop and wait for them.

        Returns:
            True if all actors stopped within ``timeout``
        """
        self._stop_event.set()
        stopped = self.wait(timeout)
        if stopped:
            logger.info(f"Stopped election actors for '{self.shard}'")
        else:
            logger.warning(f"Election actors for '{self.shard}' still running after stop")
        return stopped

    def run(self) -> None:
        """Start all actors and block until they have all stopped."""
        self.start()
        self.wait()

    def leaders(self) -> list[str]:
        """Ids of actors whose local state claims leadership."""
        return [a.actor_id for a in self.actors if a.is_leader]

    def current_leader(self) -> str | None:
        """Read the leaseholder from the store, ``None`` if the lease is vacant."""
        return current_leader(self.store, self.shard)

    def __enter__(self) -> "Supervisor":
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.stop()


def current_leader(store: StoreClient, shard: str) -> str | None:
    """Read the current leaseholder of ``shard`` from the store.

    Raises:
        StoreTransportError: The store could not be reached.
    """
    resp = store.get(shard + LEADER_SUFFIX, RequestOptions())
    if resp.ok:
        return resp.node.value
    return None


def release_lease(store: StoreClient, shard: str) -> bool:
    """Delete the leader key of ``shard`` regardless of who holds it.

    Returns:
        True if a lease was removed, False if none was held
    """
    resp = store.delete(shard + LEADER_SUFFIX, RequestOptions())
    if resp.ok:
        logger.info(f"Released lease on '{shard}'")
    return resp.ok
