"""Tests for store request options and response parsing."""

import pytest

from shardlease.store.models import (
    ERROR_KEY_NOT_FOUND,
    ERROR_TEST_FAILED,
    PrevExist,
    RequestOptions,
    StoreResponse,
)


class TestRequestOptions:
    """Tests for RequestOptions."""

    def test_defaults_are_unconstrained(self) -> None:
        """Default options carry no directives."""
        options = RequestOptions()

        assert options.ttl == 0
        assert options.wait is False
        assert options.prev_exist is PrevExist.UNSPECIFIED
        assert options.prev_index == 0
        assert options.ttl_seconds() is None

    @pytest.mark.parametrize(
        ("ttl", "expected"),
        [(1, 1), (1.0, 1), (30, 30), (2.9, 2), (0.25, 1)],
    )
    def test_ttl_in_whole_seconds(self, ttl: float, expected: int) -> None:
        """TTL is sent as whole seconds and never rounds down to zero."""
        assert RequestOptions(ttl=ttl).ttl_seconds() == expected

    def test_prev_exist_wire_values(self) -> None:
        """Existence preconditions map to etcd's true/false strings."""
        assert PrevExist.MUST_EXIST.value == "true"
        assert PrevExist.MUST_NOT_EXIST.value == "false"

    def test_options_are_immutable(self) -> None:
        """Options are frozen value objects."""
        options = RequestOptions(ttl=1)
        with pytest.raises(AttributeError):
            options.ttl = 2  # type: ignore[misc]


class TestStoreResponse:
    """Tests for StoreResponse parsing."""

    def test_parse_success_document(self) -> None:
        """A successful read has errorCode 0 and a populated node."""
        resp = StoreResponse.model_validate_json(
            b'{"action":"get","node":{"key":"/shard-5-leader","value":"7",'
            b'"modifiedIndex":42,"createdIndex":40}}'
        )

        assert resp.ok
        assert not resp.key_not_found
        assert resp.error_code == 0
        assert resp.action == "get"
        assert resp.node.key == "/shard-5-leader"
        assert resp.node.value == "7"
        assert resp.node.modified_index == 42
        assert resp.node.created_index == 40

    def test_parse_capitalized_index_fields(self) -> None:
        """Index fields are accepted in either capitalization."""
        resp = StoreResponse.model_validate_json(
            b'{"node":{"key":"/k","value":"v","ModifiedIndex":9,"CreatedIndex":3}}'
        )

        assert resp.node.modified_index == 9
        assert resp.node.created_index == 3

    def test_parse_key_not_found(self) -> None:
        """An absent key is reported through errorCode 100."""
        resp = StoreResponse.model_validate_json(
            b'{"errorCode":100,"message":"Key not found","cause":"/k","index":12}'
        )

        assert resp.key_not_found
        assert not resp.ok
        assert resp.error_code == ERROR_KEY_NOT_FOUND
        assert resp.cause == "/k"
        assert resp.index == 12
        assert resp.node.value == ""
        assert resp.node.modified_index == 0

    def test_parse_compare_failed(self) -> None:
        """A failed compare is a normal response, not an exception."""
        resp = StoreResponse.model_validate_json(
            b'{"errorCode":101,"message":"Compare failed","cause":"[3 != 5]","index":5}'
        )

        assert resp.error_code == ERROR_TEST_FAILED
        assert not resp.ok
        assert not resp.key_not_found

    def test_unknown_fields_ignored(self) -> None:
        """Fields outside the contract do not break parsing."""
        resp = StoreResponse.model_validate_json(
            b'{"action":"set","node":{"key":"/k","value":"v","modifiedIndex":2,'
            b'"createdIndex":1,"ttl":1,"expiration":"2026-01-01T00:00:00Z"},'
            b'"prevNode":{"key":"/k","value":"old"}}'
        )

        assert resp.ok
        assert resp.node.value == "v"
