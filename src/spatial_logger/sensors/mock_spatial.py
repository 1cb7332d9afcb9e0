from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

import numpy as np

from ..errors import (
    RETURN_CLOSED,
    RETURN_INVALID_ARG,
    RETURN_NOT_ATTACHED,
    RETURN_OK,
    RETURN_TIMEOUT,
    RETURN_UNKNOWN_VALUE,
    check_return,
)
from .spatial_base import (
    AttachHandler,
    DetachHandler,
    ErrorHandler,
    SpatialBinding,
    SpatialDataHandler,
    SpatialHandle,
    SpatialSample,
)

logger = logging.getLogger(__name__)

DESCRIPTIONS: Dict[int, str] = {
    RETURN_OK: "Success",
    RETURN_TIMEOUT: "Timed Out",
    RETURN_INVALID_ARG: "Invalid Argument",
    RETURN_UNKNOWN_VALUE: "Unknown or Invalid Value",
    RETURN_NOT_ATTACHED: "Device not Attached",
    RETURN_CLOSED: "Closed",
}


@dataclass
class MockEvent:
    kind: str  # attach | detach | error | data
    sample: Optional[SpatialSample] = None
    code: int = 0
    description: str = ""

    @classmethod
    def attach(cls) -> "MockEvent":
        return cls("attach")

    @classmethod
    def detach(cls) -> "MockEvent":
        return cls("detach")

    @classmethod
    def error(cls, code: int, description: str) -> "MockEvent":
        return cls("error", code=code, description=description)

    @classmethod
    def data(cls, sample: SpatialSample) -> "MockEvent":
        return cls("data", sample=sample)


@dataclass
class MockSpatialChannel:
    serial: int
    channel: int
    hub_port: Optional[int]
    handlers: Dict[str, Optional[Callable[..., None]]] = field(default_factory=dict)
    selectors: Dict[str, Any] = field(default_factory=dict)
    opened: bool = False
    attached: bool = False
    deleted: bool = False


class MockSpatialBinding(SpatialBinding):
    """
    In-process stand-in for the Phidget22 spatial API.

    - records every SDK call name in `calls`, in order
    - fail_ops: operation names that return `fail_code`
    - fail_accessors: accessor names (get_serial, get_channel, get_hub_port)
      that fail inside callbacks
    - attach_on_open=False makes open_wait_for_attachment time out (no real wait)
    - after a successful open, a dispatcher thread delivers attach and then
      `events` in order, `event_interval_s` apart
    - close joins the dispatcher, then delivers a final detach if attached
    """

    def __init__(self,
                 events: Iterable[MockEvent] = (),
                 *,
                 serial: int = 370001,
                 channel: int = 0,
                 hub_port: Optional[int] = None,
                 attach_on_open: bool = True,
                 fail_ops: Iterable[str] = (),
                 fail_accessors: Iterable[str] = (),
                 fail_code: int = RETURN_INVALID_ARG,
                 event_interval_s: float = 0.0):
        self.events: List[MockEvent] = list(events)
        self.serial = int(serial)
        self.channel = int(channel)
        self.hub_port = hub_port
        self.attach_on_open = attach_on_open
        self.fail_ops = set(fail_ops)
        self.fail_accessors = set(fail_accessors)
        self.fail_code = int(fail_code)
        self.event_interval_s = float(event_interval_s)

        self.calls: List[str] = []
        self.channels: List[MockSpatialChannel] = []
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._idle = threading.Event()
        self._dispatcher: Optional[threading.Thread] = None

    # ----------------------- bookkeeping -----------------------

    def _record(self, op: str) -> None:
        with self._lock:
            self.calls.append(op)
        if op in self.fail_ops:
            check_return(self.fail_code, self.describe_error, op)

    def count(self, op: str) -> int:
        with self._lock:
            return self.calls.count(op)

    def wait_idle(self, timeout: float = 5.0) -> bool:
        """Block until the dispatcher has delivered every scripted event."""
        return self._idle.wait(timeout)

    @staticmethod
    def _channel(handle: SpatialHandle) -> MockSpatialChannel:
        ch = handle.base
        if ch is None or ch.deleted:
            raise RuntimeError("spatial handle used after destroy_spatial")
        return ch

    # ----------------------- lifecycle -----------------------

    def create_spatial(self) -> SpatialHandle:
        self._record("create_spatial")
        ch = MockSpatialChannel(serial=self.serial, channel=self.channel, hub_port=self.hub_port)
        self.channels.append(ch)
        return SpatialHandle(base=ch)

    def destroy_spatial(self, handle: SpatialHandle) -> None:
        ch = self._channel(handle)
        with self._lock:
            self.calls.append("destroy_spatial")
        ch.handlers.clear()
        ch.deleted = True

    def open_wait_for_attachment(self, handle: SpatialHandle, timeout_ms: int) -> None:
        ch = self._channel(handle)
        self._record("open_wait_for_attachment")
        if not self.attach_on_open:
            check_return(RETURN_TIMEOUT, self.describe_error, "open_wait_for_attachment")

        ch.opened = True
        attached = threading.Event()
        self._stop.clear()
        self._idle.clear()
        self._dispatcher = threading.Thread(
            target=self._dispatch, args=(ch, attached), name="mock-spatial-events", daemon=True,
        )
        self._dispatcher.start()
        if not attached.wait(timeout_ms / 1000.0):
            check_return(RETURN_TIMEOUT, self.describe_error, "open_wait_for_attachment")

    def close(self, handle: SpatialHandle) -> None:
        ch = self._channel(handle)
        self._record("close")
        if not ch.opened:
            return
        self._stop.set()
        t = self._dispatcher
        if t is not None and t is not threading.current_thread():
            t.join()
        self._dispatcher = None
        if ch.attached:
            ch.attached = False
            self._deliver(ch, "detach", ch)
        ch.opened = False

    # ----------------------- dispatch -----------------------

    def _deliver(self, ch: MockSpatialChannel, name: str, *args: Any) -> None:
        fn = ch.handlers.get(name)
        if fn is None:
            return
        try:
            fn(*args)
        except Exception:
            logger.exception("mock %s handler raised", name)

    def _dispatch(self, ch: MockSpatialChannel, attached: threading.Event) -> None:
        try:
            ch.attached = True
            self._deliver(ch, "attach", ch)
            attached.set()
            for ev in self.events:
                if self._stop.is_set():
                    break
                if ev.kind == "attach":
                    ch.attached = True
                    self._deliver(ch, "attach", ch)
                elif ev.kind == "detach":
                    ch.attached = False
                    self._deliver(ch, "detach", ch)
                elif ev.kind == "error":
                    self._deliver(ch, "error", ch, ev.code, ev.description)
                elif ev.kind == "data" and ev.sample is not None:
                    s = ev.sample
                    self._deliver(
                        ch, "spatial_data", ch,
                        s.acceleration.tolist(), s.angular_rate.tolist(), s.magnetic_field.tolist(),
                        s.timestamp,
                    )
                else:
                    raise ValueError(f"unknown mock event: {ev.kind}")
                if self.event_interval_s > 0.0:
                    self._stop.wait(self.event_interval_s)
        finally:
            self._idle.set()

    # ----------------------- handlers -----------------------

    def set_on_attach(self, handle: SpatialHandle, fn: Optional[AttachHandler]) -> None:
        ch = self._channel(handle)
        self._record("set_on_attach")
        ch.handlers["attach"] = fn

    def set_on_detach(self, handle: SpatialHandle, fn: Optional[DetachHandler]) -> None:
        ch = self._channel(handle)
        self._record("set_on_detach")
        ch.handlers["detach"] = fn

    def set_on_error(self, handle: SpatialHandle, fn: Optional[ErrorHandler]) -> None:
        ch = self._channel(handle)
        self._record("set_on_error")
        ch.handlers["error"] = fn

    def set_on_spatial_data(self, handle: SpatialHandle, fn: Optional[SpatialDataHandler]) -> None:
        ch = self._channel(handle)
        self._record("set_on_spatial_data")
        ch.handlers["spatial_data"] = fn

    # ----------------------- selectors -----------------------

    def _select(self, handle: SpatialHandle, op: str, key: str, value: Any) -> None:
        ch = self._channel(handle)
        self._record(op)
        ch.selectors[key] = value

    def set_serial(self, handle: SpatialHandle, serial: int) -> None:
        self._select(handle, "set_serial", "serial", int(serial))

    def set_hub_port(self, handle: SpatialHandle, hub_port: int) -> None:
        self._select(handle, "set_hub_port", "hub_port", int(hub_port))

    def set_channel(self, handle: SpatialHandle, channel: int) -> None:
        self._select(handle, "set_channel", "channel", int(channel))

    def set_is_remote(self, handle: SpatialHandle, is_remote: bool) -> None:
        self._select(handle, "set_is_remote", "is_remote", bool(is_remote))

    # ----------------------- accessors -----------------------

    def _access(self, ch: MockSpatialChannel, op: str) -> None:
        if op in self.fail_accessors:
            check_return(self.fail_code, self.describe_error, op)
        if ch.deleted:
            check_return(RETURN_CLOSED, self.describe_error, op)

    def get_serial(self, channel: Any) -> int:
        self._access(channel, "get_serial")
        return channel.serial

    def get_channel(self, channel: Any) -> int:
        self._access(channel, "get_channel")
        return channel.channel

    def get_hub_port(self, channel: Any) -> Optional[int]:
        self._access(channel, "get_hub_port")
        return channel.hub_port

    def describe_error(self, code: int) -> str:
        try:
            return DESCRIPTIONS[int(code)]
        except KeyError:
            raise ValueError(f"unknown error code {code}") from None


def synthetic_events(count: int, rate_hz: float = 50.0, seed: int = 0) -> List[MockEvent]:
    """
    Plausible spatial samples for running without hardware.
    - acc: 1g on z plus small sway [g]
    - gyr: slow oscillation [deg/s]
    - mag: fixed field with noise [G]
    """
    rng = np.random.default_rng(seed)
    dt = 1.0 / float(rate_hz)
    events: List[MockEvent] = []
    for i in range(int(count)):
        t = i * dt
        acc = np.array([0.02 * np.sin(2.0 * np.pi * 0.5 * t), 0.02 * np.cos(2.0 * np.pi * 0.3 * t), 1.0])
        acc += rng.normal(0.0, 0.002, 3)
        gyr = np.array([5.0 * np.sin(2.0 * np.pi * 0.8 * t), 3.0 * np.cos(2.0 * np.pi * 0.6 * t), 0.0])
        gyr += rng.normal(0.0, 0.1, 3)
        mag = np.array([0.21, -0.05, 0.42]) + rng.normal(0.0, 0.003, 3)
        events.append(MockEvent.data(SpatialSample.from_sdk(acc, gyr, mag, t)))
    return events
