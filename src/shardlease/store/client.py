"""HTTP client for the coordination store (etcd v2 keys API).

Each call is a single blocking round trip with no retry. The underlying
``httpx.Client`` is thread-safe, so one ``StoreClient`` can be shared by all
election actors of a process.

Example:
    with StoreClient("http://127.0.0.1:4001") as store:
        resp = store.get("shard-5-leader")
        if resp.key_not_found:
            store.put(
                "shard-5-leader",
                "0",
                RequestOptions(prev_exist=PrevExist.MUST_NOT_EXIST, ttl=1),
            )
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from shardlease.errors import StoreTransportError
from shardlease.store.models import PrevExist, RequestOptions, StoreResponse

logger = logging.getLogger(__name__)

DEFAULT_STORE_URL = "http://127.0.0.1:4001"
DEFAULT_TIMEOUT = 5.0

_NO_OPTIONS = RequestOptions()


class StoreClient:
    """Translates read, conditional write and delete intents into store requests.

    Args:
        base_url: Store endpoint, e.g. ``http://127.0.0.1:4001``
        timeout: Per-request timeout in seconds (ignored if ``client`` is given)
        client: Pre-configured ``httpx.Client``; owned by the caller
    """

    def __init__(
        self,
        base_url: str = DEFAULT_STORE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def key_url(self, key: str) -> str:
        """URL of a key in the v2 keyspace."""
        return f"{self.base_url}/v2/keys/{quote(key, safe='/')}"

    def get(self, key: str, options: RequestOptions = _NO_OPTIONS) -> StoreResponse:
        """Read a key."""
        params = {"wait": "true"} if options.wait else None
        return self._request("GET", key, params=params)

    def put(
        self, key: str, value: str, options: RequestOptions = _NO_OPTIONS
    ) -> StoreResponse:
        """Write a key, subject to the preconditions in ``options``.

        A precondition that does not hold comes back as a response with a
        nonzero ``error_code``, not as an exception.
        """
        form: dict[str, str] = {"value": value}
        ttl = options.ttl_seconds()
        if ttl is not None:
            form["ttl"] = str(ttl)
        if options.prev_exist is not PrevExist.UNSPECIFIED:
            form["prevExist"] = options.prev_exist.value
        if options.prev_index:
            form["prevIndex"] = str(options.prev_index)
        return self._request("PUT", key, data=form)

    def delete(self, key: str, options: RequestOptions = _NO_OPTIONS) -> StoreResponse:
        """Delete a key.

        With ``prev_index`` set the delete only applies while the key is still
        at that index, which makes it safe for releasing a held lease.
        """
        params = {"prevIndex": str(options.prev_index)} if options.prev_index else None
        return self._request("DELETE", key, params=params)

    def _request(self, method: str, key: str, **kwargs: Any) -> StoreResponse:
        url = self.key_url(key)
        try:
            # Precondition failures arrive as 4xx with a JSON body, so the
            # status code is not checked here.
            response = self._client.request(method, url, **kwargs)
            result = StoreResponse.model_validate_json(response.content)
        except (httpx.HTTPError, ValidationError) as e:
            logger.debug(f"{method} {key} failed: {e}")
            raise StoreTransportError(method, key, e) from e

        logger.debug(
            f"{method} {key} -> errorCode={result.error_code} "
            f"modifiedIndex={result.node.modified_index}"
        )
        return result

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "StoreClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
