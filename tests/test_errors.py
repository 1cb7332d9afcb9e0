from __future__ import annotations

import pytest

from spatial_logger.errors import (
    RETURN_OK,
    RETURN_TIMEOUT,
    FailureRecord,
    InitializationFailure,
    SDKCallFailure,
    check_return,
)
from spatial_logger.sensors.mock_spatial import MockSpatialBinding


def test_success_code_is_silent():
    calls = []

    def describe(code):
        calls.append(code)
        return "never"

    assert check_return(RETURN_OK, describe) is None
    assert calls == []


def test_failure_carries_code_and_description():
    binding = MockSpatialBinding()
    with pytest.raises(SDKCallFailure) as ei:
        check_return(RETURN_TIMEOUT, binding.describe_error, "open_wait_for_attachment")
    assert ei.value.record == FailureRecord(RETURN_TIMEOUT, "Timed Out")
    assert ei.value.operation == "open_wait_for_attachment"
    assert str(ei.value) == "open_wait_for_attachment: Timed Out (3)"


def test_description_lookup_failure_keeps_original_code():
    binding = MockSpatialBinding()
    with pytest.raises(SDKCallFailure) as ei:
        check_return(99, binding.describe_error)
    rec = ei.value.record
    assert rec.code == 99
    assert rec.description == "description unavailable, reason unknown error code 99"


def test_initialization_failure_names_step():
    inner = SDKCallFailure(FailureRecord(21, "Invalid Argument"), operation="set_on_error")
    e = InitializationFailure("init callbacks", inner)
    assert e.step == "init callbacks"
    assert e.record.code == 21
    assert "init callbacks" in str(e)
    assert "set_on_error" in str(e)
