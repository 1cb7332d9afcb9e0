from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

# Phidget22 return codes used directly by this package
RETURN_OK = 0x00
RETURN_TIMEOUT = 0x03
RETURN_INVALID_ARG = 0x15
RETURN_UNKNOWN_VALUE = 0x33
RETURN_NOT_ATTACHED = 0x34
RETURN_CLOSED = 0x38


@dataclass(frozen=True)
class FailureRecord:
    code: int
    description: str

    def __str__(self) -> str:
        return f"{self.description} ({self.code})"


class SpatialError(Exception):
    """Base class for every failure raised by this package."""

    def __init__(self, message: str, record: Optional[FailureRecord] = None):
        super().__init__(message)
        self.record = record


class SDKCallFailure(SpatialError):
    def __init__(self, record: FailureRecord, operation: Optional[str] = None):
        msg = f"{operation}: {record}" if operation else str(record)
        super().__init__(msg, record)
        self.operation = operation


class InitializationFailure(SpatialError):
    """Spatial channel construction failed at `step`.

    step is one of "create", "init callbacks", "install data callback".
    """

    def __init__(self, step: str, failure: SDKCallFailure):
        super().__init__(f"failed to initialize spatial channel ({step}): {failure}", failure.record)
        self.step = step
        self.failure = failure


class AttachTimeout(SpatialError):
    def __init__(self, timeout_ms: int, failure: SDKCallFailure):
        super().__init__(f"no device attached within {timeout_ms} ms: {failure}", failure.record)
        self.timeout_ms = timeout_ms
        self.failure = failure


class OpenFailure(SpatialError):
    def __init__(self, failure: SDKCallFailure):
        super().__init__(f"failed to open channel: {failure}", failure.record)
        self.failure = failure


class CallbackAccessFailure(SpatialError):
    """A handle accessor failed inside an event callback."""

    def __init__(self, what: str, failure: SDKCallFailure):
        super().__init__(f"failed to get {what}", failure.record)
        self.what = what
        self.failure = failure


def describe_failure(code: int, describe: Callable[[int], str]) -> FailureRecord:
    try:
        description = describe(code)
    except Exception as e:
        description = f"description unavailable, reason {e}"
    return FailureRecord(code=int(code), description=description)


def check_return(code: int, describe: Callable[[int], str], operation: Optional[str] = None) -> None:
    """
    Raise SDKCallFailure for any non-success SDK return code.

    Never logs; the caller decides what a failure means.
    """
    if code == RETURN_OK:
        return
    raise SDKCallFailure(describe_failure(code, describe), operation=operation)


@contextmanager
def translate_phidget_errors(describe: Callable[[int], str], operation: str) -> Iterator[None]:
    """
    Route a PhidgetException raised inside the block through check_return.

    The Phidget22 Python wrapper raises instead of returning codes; the
    exception only has to expose an integer `code`.
    """
    # local import keeps this module usable without the vendor library
    from Phidget22.PhidgetException import PhidgetException

    try:
        yield
    except PhidgetException as e:
        check_return(int(e.code), describe, operation)
        raise
