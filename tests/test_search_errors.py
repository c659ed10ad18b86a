"""Tests for backend error classification and messages."""
from insight_engine.search.errors import (
    SearchBackendError,
    error_message,
    is_benign_missing_index,
    prettify_error_message,
)


def test_missing_index_is_benign():
    assert is_benign_missing_index(SearchBackendError(404, "index_not_found_exception", "x"))


def test_other_404_is_not_benign():
    assert not is_benign_missing_index(SearchBackendError(404, "resource_not_found", "x"))
    assert not is_benign_missing_index(SearchBackendError(500, "index_not_found_exception", "x"))
    assert not is_benign_missing_index(ValueError("index_not_found_exception"))


def test_error_message_prefers_reason():
    assert error_message(SearchBackendError(400, "parse", "bad query")) == "bad query"
    assert error_message(RuntimeError("boom")) == "boom"


def test_permission_error_rewritten():
    raw = (
        "no permissions for [indices:data/read/search] and "
        "User [name=alice, backend_roles=[], requestedTenant=null]"
    )
    assert prettify_error_message(raw) == "User alice has no permissions to [indices:data/read/search]."


def test_unknown_errors():
    assert prettify_error_message("") == "Unknown error is returned."
    assert prettify_error_message("undefined") == "Unknown error is returned."
    assert prettify_error_message("shard failure") == "shard failure"
