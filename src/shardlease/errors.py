"""Exceptions raised by shardlease.

Only failures to talk to the coordination store are exceptions. A write whose
precondition does not hold is an ordinary response, see
:class:`shardlease.store.models.StoreResponse`.
"""

from __future__ import annotations


class ShardLeaseError(Exception):
    """Base class for shardlease errors."""


class StoreTransportError(ShardLeaseError):
    """The request could not be completed or its response could not be parsed.

    The store may or may not have applied the request, so callers must not
    draw conclusions about store state from this error.
    """

    def __init__(self, operation: str, key: str, cause: BaseException) -> None:
        self.operation = operation
        self.key = key
        self.cause = cause
        super().__init__(f"{operation} {key}: {cause}")
