"""Timing policies for election actors.

Two things decide when an actor talks to the store:

- the *fault model*, consulted once per cycle on the leader path, which may
  stall a leader before it renews to simulate a slow or partitioned process;
- the *jitter*, which spreads polling so actors do not move in lockstep.

Both take an injectable ``random.Random`` so tests can seed or replace them.
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Iterator
from typing import Protocol

DEFAULT_STALL_PROBABILITY = 0.25
DEFAULT_STALL_MULTIPLIER = 10.0


class FaultModel(Protocol):
    """Decides how long a leader stalls before renewing."""

    def stall(self, lease_ttl: float) -> float:
        """Seconds to stall this cycle, 0 for none."""
        ...


class NoStallModel:
    """Never stalls."""

    def stall(self, lease_ttl: float) -> float:
        return 0.0


class RandomStallModel:
    """Stalls for ``multiplier * lease_ttl`` with a fixed probability.

    With the defaults a leader outlives its own lease roughly one renewal in
    four, which exercises lease loss and fencing on every run.
    """

    def __init__(
        self,
        probability: float = DEFAULT_STALL_PROBABILITY,
        multiplier: float = DEFAULT_STALL_MULTIPLIER,
        rng: random.Random | None = None,
    ) -> None:
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"probability must be within [0, 1], got {probability}")
        self.probability = probability
        self.multiplier = multiplier
        self._rng = rng or random.Random()

    def stall(self, lease_ttl: float) -> float:
        if self._rng.random() < self.probability:
            return lease_ttl * self.multiplier
        return 0.0


class ScriptedStallModel:
    """Replays a fixed sequence of stall decisions, then stops stalling.

    ``True`` stalls for ``multiplier * lease_ttl``; ``False`` does not.
    """

    def __init__(
        self, decisions: Iterable[bool], multiplier: float = DEFAULT_STALL_MULTIPLIER
    ) -> None:
        self._decisions: Iterator[bool] = iter(decisions)
        self.multiplier = multiplier

    def stall(self, lease_ttl: float) -> float:
        if next(self._decisions, False):
            return lease_ttl * self.multiplier
        return 0.0


class JitterPolicy(Protocol):
    """Decides how long an actor waits between cycles."""

    def interval(self, lease_ttl: float) -> float:
        """Seconds to wait before the next cycle."""
        ...


class Jitter:
    """Inter-cycle delay drawn from ``[lease_ttl/8, 3*lease_ttl/8)``.

    Computed as ``lease_ttl/4 * (0.5 + U)`` with ``U`` uniform in ``[0, 1)``.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def interval(self, lease_ttl: float) -> float:
        return lease_ttl / 4 * (0.5 + self._rng.random())


class FixedJitter:
    """Constant fraction of the lease, for deterministic schedules."""

    def __init__(self, fraction: float = 0.25) -> None:
        self.fraction = fraction

    def interval(self, lease_ttl: float) -> float:
        return lease_ttl * self.fraction
