"""Observability module for shardlease.

Provides structured logging and metrics:
- Console trace and JSON logging with actor context
- Prometheus election metrics
"""

from shardlease.observability.logging import (
    LogContext,
    actor_id_var,
    configure_logging,
    get_logger,
    shard_var,
)
from shardlease.observability.metrics import (
    get_metrics,
    metrics_registry,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    "actor_id_var",
    "shard_var",
    # Metrics
    "metrics_registry",
    "get_metrics",
]
