"""Tests for Result and the failure kinds."""

import pytest

from lendingdesk.results import LendingError, LendingOperationError, Result


def test_success():
    result = Result.success(42)
    assert result.ok
    assert result.error is None
    assert result.unwrap() == 42


def test_failure_uses_default_message():
    result = Result.failure(LendingError.TRANSACTION_NOT_FOUND)
    assert not result.ok
    assert result.value is None
    assert result.message == "Transaction not found"


def test_failure_custom_message():
    result = Result.failure(LendingError.MISSING_NAME, "Name please")
    with pytest.raises(LendingOperationError, match="Name please") as exc_info:
        result.unwrap()
    assert exc_info.value.error == LendingError.MISSING_NAME


def test_every_kind_has_a_message():
    for kind in LendingError:
        assert kind.default_message
