"""Lease-based leader election over a compare-and-swap key-value store.

Provides:
- ElectionActor: one identity's acquire/renew/defer state machine
- Supervisor: runs a fixed set of actors for a shard
- Fault and jitter policies

Example:
    from shardlease.election import Supervisor
    from shardlease.store import StoreClient

    with StoreClient() as store:
        Supervisor("shard-5", 30, store).run()
"""

from shardlease.election.actor import (
    DEFAULT_LEASE_TTL,
    ActorState,
    ElectionActor,
    ElectionRole,
)
from shardlease.election.policy import (
    FaultModel,
    FixedJitter,
    Jitter,
    JitterPolicy,
    NoStallModel,
    RandomStallModel,
    ScriptedStallModel,
)
from shardlease.election.supervisor import Supervisor, current_leader, release_lease

__all__ = [
    "DEFAULT_LEASE_TTL",
    "ActorState",
    "ElectionActor",
    "ElectionRole",
    "Supervisor",
    "current_leader",
    "release_lease",
    "FaultModel",
    "RandomStallModel",
    "NoStallModel",
    "ScriptedStallModel",
    "Jitter",
    "JitterPolicy",
    "FixedJitter",
]
