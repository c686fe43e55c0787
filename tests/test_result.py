"""Tests for the ResolutionResult channel."""

import pytest

from apptivolink.result import ErrorKind, Failure, ResolutionError, ResolutionResult


class TestResolutionResult:
    """Tests for success/failure construction and access."""

    def test_ok_is_truthy(self):
        """A successful result is truthy and carries its payload."""
        result = ResolutionResult.ok({"id": "1"})
        assert result
        assert result.success is True
        assert result.payload == {"id": "1"}
        assert result.error is None
        assert result.kind is None
        assert result.message == ""

    def test_ok_allows_empty_payload(self):
        """Empty string is a valid success payload (value not set)."""
        result = ResolutionResult.ok("")
        assert result
        assert result.payload == ""

    def test_fail_is_falsy(self):
        """A failed result is falsy and carries kind and message."""
        result = ResolutionResult.fail(ErrorKind.UNKNOWN_APP, "nope")
        assert not result
        assert result.payload is None
        assert result.kind == ErrorKind.UNKNOWN_APP
        assert result.message == "nope"

    def test_from_failure_propagates(self):
        """Re-wrapping a failure keeps kind and message unchanged."""
        original = ResolutionResult.fail(ErrorKind.ATTRIBUTE_NOT_FOUND, "missing")
        rewrapped = ResolutionResult.from_failure(original.error)
        assert rewrapped.error == original.error

    def test_unwrap_success(self):
        assert ResolutionResult.ok(5).unwrap() == 5

    def test_unwrap_failure_raises(self):
        """unwrap() is the only place a failure becomes an exception."""
        result = ResolutionResult.fail(ErrorKind.NO_MATCHING_OPTION, "no option")
        with pytest.raises(ResolutionError) as exc_info:
            result.unwrap()
        assert exc_info.value.kind == ErrorKind.NO_MATCHING_OPTION
        assert "no option" in str(exc_info.value)

    def test_map_and_then(self):
        """map/and_then apply on success and pass failures through."""
        assert ResolutionResult.ok(2).map(lambda x: x * 3).payload == 6
        chained = ResolutionResult.ok(2).and_then(
            lambda x: ResolutionResult.fail(ErrorKind.EMPTY_REQUIRED_VALUE, f"bad {x}")
        )
        assert chained.kind == ErrorKind.EMPTY_REQUIRED_VALUE

        failed = ResolutionResult.fail(ErrorKind.UNKNOWN_APP, "x")
        assert failed.map(lambda x: x + 1) is failed
        assert failed.and_then(lambda x: ResolutionResult.ok(x)) is failed

    def test_failure_str(self):
        failure = Failure(ErrorKind.CONFIG_FETCH_FAILED, "timeout")
        assert str(failure) == "config_fetch_failed: timeout"
