from __future__ import annotations

import logging
import sys
import threading
from typing import Any, Optional, Sequence, TextIO

from .errors import CallbackAccessFailure, SDKCallFailure
from .sensors.spatial_base import SpatialBinding, SpatialSample
from .utils.formatting import format_value, format_vec3

logger = logging.getLogger(__name__)


def format_attachment(channel: int, serial: int, hub_port: Optional[int], verb: str) -> str:
    if hub_port is None:
        return f"channel {channel} on device {serial} {verb}\n"
    return f"channel {channel} on device {serial} hub port {hub_port} {verb}\n"


def format_sample(sample: SpatialSample) -> str:
    return (
        f"Acceleration Changed: {format_vec3(sample.acceleration)}\n"
        f"Angular Rate Changed: {format_vec3(sample.angular_rate)}\n"
        f"Magnetic Field Changed: {format_vec3(sample.magnetic_field)}\n"
        f"Timestamp: {format_value(float(sample.timestamp))}\n"
        "\n"
    )


def format_error(code: int, description: str) -> str:
    return f"Error: {description} ({code})\n"


class EventSink:
    """
    Callback bodies for one spatial channel.

    Callbacks run on SDK threads, possibly concurrently. Each event is
    formatted into one string first and then written + flushed while holding
    a single lock, so events never interleave on `out` or `err`.
    Nothing raised here reaches the SDK.
    """

    def __init__(self, binding: SpatialBinding, out: TextIO, err: Optional[TextIO] = None):
        self.binding = binding
        self.out = out
        self.err = err if err is not None else sys.stderr
        self._lock = threading.Lock()

    # ----------------------- output -----------------------

    def _emit(self, stream: TextIO, text: str) -> None:
        with self._lock:
            stream.write(text)
            stream.flush()

    def notice(self, text: str) -> None:
        self._emit(self.out, text if text.endswith("\n") else text + "\n")

    def diagnostic(self, text: str) -> None:
        self._emit(self.err, text if text.endswith("\n") else text + "\n")

    # ----------------------- identity -----------------------

    def _read(self, what: str, getter, channel: Any) -> int:
        try:
            return getter(channel)
        except SDKCallFailure as e:
            raise CallbackAccessFailure(what, e) from e

    def _identity(self, channel: Any):
        serial = self._read("device serial number", self.binding.get_serial, channel)
        number = self._read("channel number", self.binding.get_channel, channel)
        try:
            hub_port = self.binding.get_hub_port(channel)
        except SDKCallFailure as e:
            logger.debug("hub port unavailable: %s", e)
            hub_port = None
        return serial, number, hub_port

    def _attachment(self, channel: Any, verb: str) -> None:
        try:
            serial, number, hub_port = self._identity(channel)
        except CallbackAccessFailure as e:
            logger.debug("%s event dropped: %s", verb, e.failure)
            self.diagnostic(str(e))
            return
        self._emit(self.out, format_attachment(number, serial, hub_port, verb))

    # ----------------------- SDK callbacks -----------------------

    def on_attach(self, channel: Any) -> None:
        try:
            self._attachment(channel, "attached")
        except Exception as e:
            self.diagnostic(f"attach handler failed: {e!r}")

    def on_detach(self, channel: Any) -> None:
        try:
            self._attachment(channel, "detached")
        except Exception as e:
            self.diagnostic(f"detach handler failed: {e!r}")

    def on_error(self, channel: Any, code: int, description: str) -> None:
        try:
            self._emit(self.err, format_error(int(code), str(description)))
        except Exception as e:
            logger.error("error handler failed: %r", e)

    def on_spatial_data(self,
                        channel: Any,
                        acceleration: Sequence[float],
                        angular_rate: Sequence[float],
                        magnetic_field: Sequence[float],
                        timestamp: float) -> None:
        try:
            sample = SpatialSample.from_sdk(acceleration, angular_rate, magnetic_field, timestamp)
            self._emit(self.out, format_sample(sample))
        except Exception as e:
            self.diagnostic(f"spatial data handler failed: {e!r}")
