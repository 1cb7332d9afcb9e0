from __future__ import annotations

import logging
from typing import Any, Optional

from Phidget22.Devices.Log import Log
from Phidget22.Devices.Spatial import Spatial
from Phidget22.LogLevel import LogLevel
from Phidget22.PhidgetException import PhidgetException

from ..errors import RETURN_UNKNOWN_VALUE, translate_phidget_errors
from .spatial_base import (
    AttachHandler,
    DetachHandler,
    ErrorHandler,
    SpatialBinding,
    SpatialDataHandler,
    SpatialHandle,
)

logger = logging.getLogger(__name__)

MS_PER_S = 1000.0


class PhidgetSpatialBinding(SpatialBinding):
    """
    Phidget22 spatial channel (PhidgetSpatial_*, Phidget_* C API).

    - handles are Phidget22.Devices.Spatial.Spatial objects
    - callbacks are invoked on the Phidget22 event thread
    - Phidget_close guarantees no callback fires after it returns
    """

    LOG_LEVELS = {
        "CRITICAL": LogLevel.PHIDGET_LOG_CRITICAL,
        "ERROR": LogLevel.PHIDGET_LOG_ERROR,
        "WARNING": LogLevel.PHIDGET_LOG_WARNING,
        "INFO": LogLevel.PHIDGET_LOG_INFO,
        "DEBUG": LogLevel.PHIDGET_LOG_DEBUG,
        "VERBOSE": LogLevel.PHIDGET_LOG_VERBOSE,
    }

    def _call(self, operation: str):
        return translate_phidget_errors(self.describe_error, operation)

    def create_spatial(self) -> SpatialHandle:
        with self._call("create_spatial"):
            ch = Spatial()
        return SpatialHandle(base=ch)

    def destroy_spatial(self, handle: SpatialHandle) -> None:
        ch = handle.base
        if ch is None:
            return
        # drop our references; the wrapper's finalizer deletes the native handle
        ch.setOnAttachHandler(None)
        ch.setOnDetachHandler(None)
        ch.setOnErrorHandler(None)
        ch.setOnSpatialDataHandler(None)
        handle.base = None

    def close(self, handle: SpatialHandle) -> None:
        if handle.base is None:
            return
        with self._call("close"):
            handle.as_handle().close()

    def open_wait_for_attachment(self, handle: SpatialHandle, timeout_ms: int) -> None:
        with self._call("open_wait_for_attachment"):
            handle.as_handle().openWaitForAttachment(int(timeout_ms))

    def set_on_attach(self, handle: SpatialHandle, fn: Optional[AttachHandler]) -> None:
        with self._call("set_on_attach"):
            handle.as_handle().setOnAttachHandler(fn)

    def set_on_detach(self, handle: SpatialHandle, fn: Optional[DetachHandler]) -> None:
        with self._call("set_on_detach"):
            handle.as_handle().setOnDetachHandler(fn)

    def set_on_error(self, handle: SpatialHandle, fn: Optional[ErrorHandler]) -> None:
        with self._call("set_on_error"):
            handle.as_handle().setOnErrorHandler(fn)

    def set_on_spatial_data(self, handle: SpatialHandle, fn: Optional[SpatialDataHandler]) -> None:
        handler = None
        if fn is not None:
            # the channel keeps the wrapper alive; timestamp arrives in ms
            def handler(ch, acceleration, angular_rate, magnetic_field, timestamp):
                fn(ch, acceleration, angular_rate, magnetic_field, timestamp / MS_PER_S)
        with self._call("set_on_spatial_data"):
            handle.base.setOnSpatialDataHandler(handler)

    def set_serial(self, handle: SpatialHandle, serial: int) -> None:
        with self._call("set_serial"):
            handle.as_handle().setDeviceSerialNumber(int(serial))

    def set_hub_port(self, handle: SpatialHandle, hub_port: int) -> None:
        with self._call("set_hub_port"):
            handle.as_handle().setHubPort(int(hub_port))

    def set_channel(self, handle: SpatialHandle, channel: int) -> None:
        with self._call("set_channel"):
            handle.as_handle().setChannel(int(channel))

    def set_is_remote(self, handle: SpatialHandle, is_remote: bool) -> None:
        with self._call("set_is_remote"):
            handle.as_handle().setIsRemote(bool(is_remote))

    def get_serial(self, channel: Any) -> int:
        with self._call("get_serial"):
            return int(channel.getDeviceSerialNumber())

    def get_channel(self, channel: Any) -> int:
        with self._call("get_channel"):
            return int(channel.getChannel())

    def get_hub_port(self, channel: Any) -> Optional[int]:
        try:
            port = channel.getHubPort()
        except PhidgetException as e:
            if int(e.code) == RETURN_UNKNOWN_VALUE:
                return None
            with self._call("get_hub_port"):
                raise
        port = int(port)
        return port if port >= 0 else None

    def describe_error(self, code: int) -> str:
        # PhidgetException looks the text up via Phidget_getErrorDescription
        # and leaves it empty when that call fails
        description = str(PhidgetException(int(code)).description or "")
        if not description:
            raise LookupError(f"Phidget_getErrorDescription gave no text for code {code}")
        return description

    def enable_sdk_log(self, level: str, path: Optional[str] = None) -> None:
        lvl = self.LOG_LEVELS.get(level.upper())
        if lvl is None:
            raise ValueError(f"unknown SDK log level: {level}")
        with self._call("enable_sdk_log"):
            Log.enable(lvl, path)
        logger.info("Phidget22 log enabled: level=%s path=%s", level, path or "<stderr>")
