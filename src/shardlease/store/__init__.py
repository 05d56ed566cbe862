"""Client for the external coordination store.

Example:
    from shardlease.store import StoreClient, RequestOptions, PrevExist

    with StoreClient("http://127.0.0.1:4001") as store:
        resp = store.get("shard-5-leader")
"""

from shardlease.store.client import DEFAULT_STORE_URL, StoreClient
from shardlease.store.models import (
    ERROR_KEY_NOT_FOUND,
    ERROR_NODE_EXIST,
    ERROR_NONE,
    ERROR_TEST_FAILED,
    PrevExist,
    RequestOptions,
    StoreNode,
    StoreResponse,
)

__all__ = [
    "DEFAULT_STORE_URL",
    "StoreClient",
    "RequestOptions",
    "PrevExist",
    "StoreNode",
    "StoreResponse",
    "ERROR_NONE",
    "ERROR_KEY_NOT_FOUND",
    "ERROR_TEST_FAILED",
    "ERROR_NODE_EXIST",
]
