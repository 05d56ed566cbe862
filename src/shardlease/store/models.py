"""Request directives and response shapes for the etcd v2 keys API.

The store reports every outcome, including failed preconditions, as a JSON
document. Only ``errorCode`` distinguishes them:

- 0 (or absent): the operation took effect
- 100: the key does not exist
- anything else: a store-defined failure, usually a compare that did not hold
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# etcd v2 error codes used by the election protocol
ERROR_NONE = 0
ERROR_KEY_NOT_FOUND = 100
ERROR_TEST_FAILED = 101
ERROR_NODE_EXIST = 105


class PrevExist(str, Enum):
    """Existence precondition attached to a write."""

    UNSPECIFIED = "unspecified"
    MUST_EXIST = "true"
    MUST_NOT_EXIST = "false"


@dataclass(frozen=True)
class RequestOptions:
    """Per-call directives for a store request.

    Attributes:
        ttl: Key lifetime in seconds, 0 for no expiry
        wait: Ask for the long-poll variant of a read
        prev_exist: Existence precondition for writes
        prev_index: Required current ``modifiedIndex``, 0 for unconstrained
    """

    ttl: float = 0
    wait: bool = False
    prev_exist: PrevExist = PrevExist.UNSPECIFIED
    prev_index: int = 0

    def ttl_seconds(self) -> int | None:
        """TTL as the whole number of seconds sent on the wire."""
        if self.ttl <= 0:
            return None
        # Whole seconds only; a sub-second lease must not become "expire now".
        return max(1, int(self.ttl))


class StoreNode(BaseModel):
    """A key as reported by the store."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    created_index: int = Field(
        default=0, validation_alias=AliasChoices("createdIndex", "CreatedIndex")
    )
    key: str = ""
    modified_index: int = Field(
        default=0, validation_alias=AliasChoices("modifiedIndex", "ModifiedIndex")
    )
    value: str = ""


class StoreResponse(BaseModel):
    """Parsed body of any keys API response."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    error_code: int = Field(default=ERROR_NONE, validation_alias="errorCode")
    message: str = ""
    action: str = ""
    node: StoreNode = Field(default_factory=StoreNode)
    cause: str = ""
    index: int = 0

    @property
    def ok(self) -> bool:
        """True when the operation took effect."""
        return self.error_code == ERROR_NONE

    @property
    def key_not_found(self) -> bool:
        """True when the addressed key does not exist."""
        return self.error_code == ERROR_KEY_NOT_FOUND
