"""Prometheus metrics for election actors.

Provides:
- Election cycle and outcome counters (acquisitions, renewals, conflicts)
- Injected stall and transport error counters
- A per-actor leadership gauge

Usage:
    from shardlease.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.acquisitions_total.labels(shard="shard-5").inc()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest
from prometheus_client import start_http_server as _start_http_server

from shardlease.config import settings

logger = logging.getLogger(__name__)


class NoOpMetric:
    """No-op metric for when metrics are disabled."""

    def labels(self, **kwargs: Any) -> "NoOpMetric":
        """Return self for chaining."""
        return self

    def inc(self, amount: float = 1) -> None:
        """No-op."""
        pass

    def set(self, value: float) -> None:
        """No-op."""
        pass


_NOOP = NoOpMetric()


@dataclass
class MetricsRegistry:
    """Registry for election metrics."""

    enabled: bool = True

    cycles_total: Any = _NOOP
    acquisitions_total: Any = _NOOP
    acquisition_conflicts_total: Any = _NOOP
    renewals_total: Any = _NOOP
    renewal_failures_total: Any = _NOOP
    stalls_total: Any = _NOOP
    transport_errors_total: Any = _NOOP
    is_leader: Any = _NOOP

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _registry: CollectorRegistry | None = field(default=None, repr=False)

    def initialize(self) -> None:
        """Create Prometheus collectors in a private registry."""
        if self._initialized:
            return

        self._initialized = True
        if not self.enabled:
            logger.info("Metrics are disabled")
            return

        registry = CollectorRegistry()
        self._registry = registry

        self.cycles_total = Counter(
            "shardlease_cycles_total",
            "Election cycles completed",
            ["shard"],
            registry=registry,
        )
        self.acquisitions_total = Counter(
            "shardlease_acquisitions_total",
            "Leader key created by this process",
            ["shard"],
            registry=registry,
        )
        self.acquisition_conflicts_total = Counter(
            "shardlease_acquisition_conflicts_total",
            "Create attempts that lost the race",
            ["shard"],
            registry=registry,
        )
        self.renewals_total = Counter(
            "shardlease_renewals_total",
            "Successful lease renewals",
            ["shard"],
            registry=registry,
        )
        self.renewal_failures_total = Counter(
            "shardlease_renewal_failures_total",
            "Renewals rejected by the fencing index",
            ["shard"],
            registry=registry,
        )
        self.stalls_total = Counter(
            "shardlease_injected_stalls_total",
            "Simulated leader stalls",
            ["shard"],
            registry=registry,
        )
        self.transport_errors_total = Counter(
            "shardlease_transport_errors_total",
            "Store requests that failed to complete",
            ["shard", "operation"],
            registry=registry,
        )
        self.is_leader = Gauge(
            "shardlease_is_leader",
            "1 while the actor believes it holds the lease",
            ["shard", "actor_id"],
            registry=registry,
        )
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if self._registry is None:
            return b"# Metrics disabled\n"
        return generate_latest(self._registry)

    def serve(self, port: int, addr: str = "0.0.0.0") -> None:  # nosec B104
        """Expose the registry on ``http://addr:port/metrics``."""
        if self._registry is None:
            logger.warning("Metrics are disabled, not starting exporter")
            return
        _start_http_server(port, addr=addr, registry=self._registry)
        logger.info(f"Metrics exporter listening on {addr}:{port}")


# Global metrics registry
metrics_registry = MetricsRegistry(enabled=settings.enable_metrics)


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


def set_leader_state(shard: str, actor_id: str, is_leader: bool) -> None:
    """Record an actor's current role."""
    get_metrics().is_leader.labels(shard=shard, actor_id=actor_id).set(1 if is_leader else 0)


def record_transport_error(shard: str, operation: str) -> None:
    """Record a failed store request."""
    get_metrics().transport_errors_total.labels(shard=shard, operation=operation).inc()
