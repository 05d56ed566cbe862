"""Global pytest configuration and fixtures.

Provides an in-memory emulator of the etcd v2 keys API mounted on
``httpx.MockTransport``, with a controllable clock for TTL expiry.
"""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs, unquote

import httpx
import pytest

from shardlease.store import StoreClient

KEYS_PREFIX = "/v2/keys"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class _Entry:
    value: str
    created_index: int
    modified_index: int
    expires_at: float | None


class EtcdEmulator:
    """Linearizable single-node emulation of the etcd v2 keys API.

    Supports GET, PUT (ttl, prevExist, prevIndex) and DELETE (prevIndex),
    with etcd's error documents and status codes.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self.index = 0
        self.down = False
        self.garbage_body = False
        self.requests: list[tuple[str, str, dict[str, str]]] = []
        # (method, key) of requests turned away while down
        self.refused: list[tuple[str, str]] = []
        self._keys: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    # -- inspection helpers -------------------------------------------------

    def value(self, key: str) -> str | None:
        with self._lock:
            entry = self._live(f"/{key}")
            return entry.value if entry else None

    def modified_index(self, key: str) -> int | None:
        with self._lock:
            entry = self._live(f"/{key}")
            return entry.modified_index if entry else None

    def writes(self, key: str) -> list[dict[str, str]]:
        """Form bodies of every PUT sent to ``key``."""
        return [params for method, k, params in self.requests if method == "PUT" and k == key]

    # -- transport ----------------------------------------------------------

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        if self.down:
            path = unquote(request.url.path)[len(KEYS_PREFIX) :]
            self.refused.append((request.method, path.lstrip("/")))
            raise httpx.ConnectError("connection refused", request=request)
        if self.garbage_body:
            return httpx.Response(200, content=b"<html>bad gateway</html>")

        path = unquote(request.url.path)
        assert path.startswith(KEYS_PREFIX)
        key = path[len(KEYS_PREFIX) :]

        params = {k: v for k, v in request.url.params.items()}
        if request.method == "PUT":
            body = parse_qs(request.read().decode())
            params.update({k: v[0] for k, v in body.items()})

        self.requests.append((request.method, key.lstrip("/"), params))

        with self._lock:
            if request.method == "GET":
                status, doc = self._get(key)
            elif request.method == "PUT":
                status, doc = self._put(key, params)
            elif request.method == "DELETE":
                status, doc = self._delete(key, params)
            else:
                status, doc = 405, {"errorCode": 400, "message": "Method not allowed"}

        return httpx.Response(status, content=json.dumps(doc).encode())

    # -- semantics ----------------------------------------------------------

    def _live(self, key: str) -> _Entry | None:
        entry = self._keys.get(key)
        if entry and entry.expires_at is not None and entry.expires_at <= self.clock():
            del self._keys[key]
            self.index += 1
            return None
        return entry

    def _node(self, key: str, entry: _Entry) -> dict[str, Any]:
        node: dict[str, Any] = {
            "key": key,
            "value": entry.value,
            "modifiedIndex": entry.modified_index,
            "createdIndex": entry.created_index,
        }
        if entry.expires_at is not None:
            node["ttl"] = max(0, round(entry.expires_at - self.clock()))
        return node

    def _error(self, code: int, message: str, key: str) -> dict[str, Any]:
        return {"errorCode": code, "message": message, "cause": key, "index": self.index}

    def _get(self, key: str) -> tuple[int, dict[str, Any]]:
        entry = self._live(key)
        if entry is None:
            return 404, self._error(100, "Key not found", key)
        return 200, {"action": "get", "node": self._node(key, entry)}

    def _put(self, key: str, params: dict[str, str]) -> tuple[int, dict[str, Any]]:
        entry = self._live(key)
        prev_exist = params.get("prevExist")
        prev_index = int(params.get("prevIndex", "0"))

        if prev_exist == "false" and entry is not None:
            return 412, self._error(105, "Key already exists", key)
        if (prev_exist == "true" or prev_index) and entry is None:
            return 404, self._error(100, "Key not found", key)
        if prev_index and entry is not None and entry.modified_index != prev_index:
            return 412, self._error(
                101, "Compare failed", f"[{prev_index} != {entry.modified_index}]"
            )

        self.index += 1
        ttl = params.get("ttl")
        expires_at = self.clock() + int(ttl) if ttl else None
        created = entry.created_index if entry is not None else self.index
        new_entry = _Entry(params.get("value", ""), created, self.index, expires_at)
        self._keys[key] = new_entry

        if entry is None:
            action, status = "create", 201
        elif prev_index:
            action, status = "compareAndSwap", 200
        else:
            action, status = "set", 200
        doc: dict[str, Any] = {"action": action, "node": self._node(key, new_entry)}
        if entry is not None:
            doc["prevNode"] = self._node(key, entry)
        return status, doc

    def _delete(self, key: str, params: dict[str, str]) -> tuple[int, dict[str, Any]]:
        entry = self._live(key)
        prev_index = int(params.get("prevIndex", "0"))
        if entry is None:
            return 404, self._error(100, "Key not found", key)
        if prev_index and entry.modified_index != prev_index:
            return 412, self._error(
                101, "Compare failed", f"[{prev_index} != {entry.modified_index}]"
            )

        self.index += 1
        del self._keys[key]
        return 200, {
            "action": "compareAndDelete" if prev_index else "delete",
            "node": {"key": key, "modifiedIndex": self.index, "createdIndex": entry.created_index},
            "prevNode": self._node(key, entry),
        }


@pytest.fixture
def clock() -> FakeClock:
    """Manually advanced clock driving TTL expiry."""
    return FakeClock()


@pytest.fixture
def etcd(clock: FakeClock) -> EtcdEmulator:
    """Store emulator on the fake clock."""
    return EtcdEmulator(clock=clock)


@pytest.fixture
def store(etcd: EtcdEmulator) -> Iterator[StoreClient]:
    """Store client wired to the emulator."""
    http = httpx.Client(transport=etcd.transport())
    yield StoreClient("http://etcd.test:4001", client=http)
    http.close()


@pytest.fixture
def live_etcd() -> EtcdEmulator:
    """Store emulator on the real monotonic clock, for threaded tests."""
    return EtcdEmulator()


@pytest.fixture
def live_store(live_etcd: EtcdEmulator) -> Iterator[StoreClient]:
    """Thread-safe store client wired to the real-clock emulator."""
    http = httpx.Client(transport=live_etcd.transport())
    yield StoreClient("http://etcd.test:4001", client=http)
    http.close()
