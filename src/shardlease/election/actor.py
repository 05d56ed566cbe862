"""Election actor: one identity competing for a shard's leader key.

Coordination happens entirely through the store. The leader key
(``<shard>-leader``) names the current leaseholder and is the only source of
truth; the broadcast key (``<shard>-broadcast``) is a best-effort hint whose
write failures never affect leadership.

Each cycle the actor:
1. Reads the leader key
2. Creates it with ``prevExist=false`` if absent (acquisition)
3. Renews it with ``prevIndex=<modifiedIndex>`` if it names this actor,
   possibly after an injected stall that outlives the lease
4. Defers if it names another actor
5. Sleeps a jittered fraction of the lease

Only transport errors end the loop. Lost races and rejected renewals are
ordinary role transitions.

Example:
    with StoreClient() as store:
        actor = ElectionActor(store, "shard-5", "0")
        threading.Thread(target=actor.run).start()
        ...
        actor.stop()
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from shardlease.election.policy import FaultModel, Jitter, JitterPolicy, RandomStallModel
from shardlease.errors import StoreTransportError
from shardlease.observability.logging import LogContext
from shardlease.observability.metrics import (
    get_metrics,
    record_transport_error,
    set_leader_state,
)
from shardlease.store.client import StoreClient
from shardlease.store.models import PrevExist, RequestOptions

logger = logging.getLogger(__name__)

DEFAULT_LEASE_TTL = 1.0  # Seconds

LEADER_SUFFIX = "-leader"
BROADCAST_SUFFIX = "-broadcast"

ACQUIRE_BROADCAST_OPTIONS = RequestOptions()
# Fails once any broadcast value exists, so renewals rarely republish.
# Kept as-is: the broadcast key carries no correctness weight.
RENEWAL_BROADCAST_OPTIONS = RequestOptions(prev_exist=PrevExist.MUST_NOT_EXIST)

RoleListener = Callable[[str, "ElectionRole"], None]
WaitFn = Callable[[float], bool]


class ElectionRole(str, Enum):
    """Role an actor believes it holds."""

    FOLLOWER = "follower"
    LEADER = "leader"


@dataclass
class ActorState:
    """Election state owned by a single actor."""

    election_key: str
    actor_id: str
    lease_ttl: float = DEFAULT_LEASE_TTL
    is_leader: bool = False
    # modifiedIndex of our last successful create/renew, 0 when follower
    fencing_index: int = 0

    @property
    def leader_key(self) -> str:
        return self.election_key + LEADER_SUFFIX

    @property
    def broadcast_key(self) -> str:
        return self.election_key + BROADCAST_SUFFIX

    @property
    def role(self) -> ElectionRole:
        return ElectionRole.LEADER if self.is_leader else ElectionRole.FOLLOWER


class ElectionActor:
    """Runs the election state machine for one actor identity.

    Args:
        store: Store client; may be shared with other actors
        shard: Election namespace; keys are derived from it
        actor_id: Stable identity written into the leader key
        lease_ttl: Lease lifetime in seconds
        fault_model: Stall policy for the leader path (default: 25% chance of
            stalling for ten leases)
        jitter: Inter-cycle delay policy
        stop_event: Cancellation signal, usually shared by a Supervisor
        wait: Sleep function returning True when the actor should stop
            (default: wait on ``stop_event``)
        release_on_stop: Delete the leader key when stopping while leader
    """

    def __init__(
        self,
        store: StoreClient,
        shard: str,
        actor_id: str,
        lease_ttl: float = DEFAULT_LEASE_TTL,
        *,
        fault_model: FaultModel | None = None,
        jitter: JitterPolicy | None = None,
        stop_event: threading.Event | None = None,
        wait: WaitFn | None = None,
        release_on_stop: bool = False,
    ) -> None:
        if lease_ttl <= 0:
            raise ValueError(f"lease_ttl must be positive, got {lease_ttl}")

        self.store = store
        self.shard = shard
        self.state = ActorState(election_key=shard, actor_id=actor_id, lease_ttl=lease_ttl)
        self.fault_model: FaultModel = fault_model or RandomStallModel()
        self.jitter: JitterPolicy = jitter or Jitter()
        self.release_on_stop = release_on_stop

        self._stop_event = stop_event or threading.Event()
        self._wait: WaitFn = wait or self._stop_event.wait
        self._finished = threading.Event()
        self._listeners: list[RoleListener] = []
        self._metrics = get_metrics()

    @property
    def actor_id(self) -> str:
        return self.state.actor_id

    @property
    def is_leader(self) -> bool:
        """Whether this actor currently believes it holds the lease."""
        return self.state.is_leader

    @property
    def role(self) -> ElectionRole:
        return self.state.role

    @property
    def finished(self) -> bool:
        """True once ``run()`` has returned."""
        return self._finished.is_set()

    def on_change(self, listener: RoleListener) -> None:
        """Register a callback invoked with ``(actor_id, role)`` on every transition."""
        self._listeners.append(listener)

    def stop(self) -> None:
        """Ask the loop to exit at its next wait."""
        self._stop_event.set()

    def run(self) -> None:
        """Run election cycles until stopped or a transport error occurs."""
        with LogContext(actor_id=self.actor_id, shard=self.shard):
            logger.debug(f"joined election for '{self.shard}'")
            try:
                while not self._stop_event.is_set():
                    delay = self.step()
                    if self._wait(delay):
                        break
            except StoreTransportError as e:
                record_transport_error(self.shard, e.operation)
                logger.error(f"error: {e}")
            else:
                if self.release_on_stop and self.is_leader:
                    self._release_quietly()
            finally:
                self._transition(False)
                self._finished.set()
                logger.debug(f"left election for '{self.shard}'")

    def step(self) -> float:
        """Run one election cycle and return the delay before the next one.

        Raises:
            StoreTransportError: The store could not be reached or answered
                with an unparseable body.
        """
        state = self.state
        self._metrics.cycles_total.labels(shard=self.shard).inc()

        current = self.store.get(state.leader_key, RequestOptions(wait=False))

        if current.key_not_found:
            self._acquire()
        elif current.ok:
            if current.node.value == state.actor_id:
                stall = self.fault_model.stall(state.lease_ttl)
                if stall > 0:
                    self._metrics.stalls_total.labels(shard=self.shard).inc()
                    logger.warning(f"-- stalling {stall:.2f}s before renewal")
                    if self._wait(stall):
                        return 0.0
                self._renew(current.node.modified_index)
            else:
                self._transition(False)
        else:
            logger.debug(
                f"unexpected errorCode {current.error_code} reading "
                f"{state.leader_key}: {current.message}"
            )

        return self.jitter.interval(state.lease_ttl)

    def release(self) -> bool:
        """Delete the leader key if this actor still holds it.

        The delete is fenced on the last known ``modifiedIndex``, so a lease
        that has already passed to another actor is left untouched.

        Returns:
            True if the key was deleted
        """
        if not self.is_leader:
            return False

        resp = self.store.delete(
            self.state.leader_key, RequestOptions(prev_index=self.state.fencing_index)
        )
        self._transition(False)
        if resp.ok:
            logger.info("released leadership")
        else:
            logger.info(f"lease already superseded: {resp.message}")
        return resp.ok

    def _acquire(self) -> None:
        state = self.state
        created = self.store.put(
            state.leader_key,
            state.actor_id,
            RequestOptions(prev_exist=PrevExist.MUST_NOT_EXIST, ttl=state.lease_ttl),
        )
        if created.ok:
            self._metrics.acquisitions_total.labels(shard=self.shard).inc()
            self._transition(True, created.node.modified_index)
            self._publish(ACQUIRE_BROADCAST_OPTIONS)
        else:
            self._metrics.acquisition_conflicts_total.labels(shard=self.shard).inc()
            logger.info("-x lost acquisition race")
            self._transition(False)

    def _renew(self, prev_index: int) -> None:
        state = self.state
        renewed = self.store.put(
            state.leader_key,
            state.actor_id,
            RequestOptions(prev_index=prev_index, ttl=state.lease_ttl),
        )
        if renewed.ok:
            self._metrics.renewals_total.labels(shard=self.shard).inc()
            self._transition(True, renewed.node.modified_index)
            self._publish(RENEWAL_BROADCAST_OPTIONS)
        else:
            self._metrics.renewal_failures_total.labels(shard=self.shard).inc()
            logger.info(f"renewal rejected: {renewed.message or renewed.error_code}")
            self._transition(False)

    def _publish(self, options: RequestOptions) -> None:
        resp = self.store.put(self.state.broadcast_key, self.state.actor_id, options)
        if not resp.ok:
            logger.debug(f"broadcast not written: errorCode={resp.error_code}")

    def _release_quietly(self) -> None:
        try:
            self.release()
        except StoreTransportError as e:
            record_transport_error(self.shard, e.operation)
            logger.error(f"error releasing lease: {e}")

    def _transition(self, leader: bool, fencing_index: int = 0) -> None:
        state = self.state
        was_leader = state.is_leader
        state.is_leader = leader
        state.fencing_index = fencing_index if leader else 0

        if was_leader == leader:
            return

        set_leader_state(self.shard, state.actor_id, leader)
        if leader:
            logger.info("-> gained leadership")
        else:
            logger.info("<- lost leadership")

        for listener in self._listeners:
            try:
                listener(state.actor_id, state.role)
            except Exception:
                logger.exception(f"role listener failed on transition to {state.role.value}")
