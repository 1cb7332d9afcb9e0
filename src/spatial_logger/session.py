from __future__ import annotations

import enum
import logging
import threading
from typing import Any, Optional, Sequence

from .errors import (
    RETURN_TIMEOUT,
    AttachTimeout,
    InitializationFailure,
    OpenFailure,
    SDKCallFailure,
)
from .events import EventSink
from .sensors.channel_init import ChannelSelectors, init_channel
from .sensors.spatial_base import SpatialBinding, SpatialHandle

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    CREATED = "created"
    ATTACHED = "attached"
    DESTROYED = "destroyed"


class SpatialSession:
    """
    Owns one spatial channel from creation to deletion.

    Construction creates the channel, installs attach/detach/error handlers
    and the data handler; any failure releases the partial channel and raises
    InitializationFailure. close() (or leaving the `with` block) runs
    close + destroy exactly once, whether or not open() ever succeeded.

    Use as a context manager:

        with SpatialSession(binding, sink) as session:
            session.open(5000)
            ...
    """

    def __init__(self,
                 binding: SpatialBinding,
                 sink: EventSink,
                 selectors: Optional[ChannelSelectors] = None):
        self.binding = binding
        self.sink = sink
        self.selectors = selectors
        self._state = SessionState.UNINITIALIZED
        self._state_lock = threading.Lock()
        self._handle: Optional[SpatialHandle] = None

        step = "create"
        try:
            self._handle = binding.create_spatial()
            self._set_state(SessionState.CREATED)

            step = "init callbacks"
            init_channel(
                binding,
                self._handle,
                on_attach=self._on_attach,
                on_detach=self._on_detach,
                on_error=self._on_error,
                selectors=selectors,
            )

            step = "install data callback"
            binding.set_on_spatial_data(self._handle, self._on_spatial_data)
        except SDKCallFailure as e:
            logger.debug("spatial construction failed at %s: %s", step, e)
            self._release()
            raise InitializationFailure(step, e) from e
        except BaseException:
            self._release()
            raise

        logger.debug("spatial channel created")

    # ----------------------- state -----------------------

    @property
    def state(self) -> SessionState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: SessionState) -> None:
        with self._state_lock:
            if self._state is SessionState.DESTROYED:
                return
            self._state = state

    # ----------------------- operation -----------------------

    def open(self, timeout_ms: int) -> None:
        """
        Open the channel and block until it attaches or timeout_ms elapses.

        Raises AttachTimeout when nothing attached in time (expected when no
        device is plugged in) and OpenFailure for any other SDK failure.
        A failed open releases the channel (close + destroy) before raising;
        the session is then DESTROYED and cannot be opened again.
        """
        if self._handle is None or self.state is SessionState.DESTROYED:
            raise RuntimeError("open() on a destroyed spatial session")
        logger.info("waiting up to %d ms for spatial attachment", timeout_ms)
        try:
            self.binding.open_wait_for_attachment(self._handle, int(timeout_ms))
        except SDKCallFailure as e:
            logger.debug("open failed, releasing channel: %s", e)
            self._release()
            if e.record is not None and e.record.code == RETURN_TIMEOUT:
                raise AttachTimeout(int(timeout_ms), e) from e
            raise OpenFailure(e) from e

    def close(self) -> None:
        self._release()

    def _release(self) -> None:
        with self._state_lock:
            if self._state is SessionState.DESTROYED:
                return
            self._state = SessionState.DESTROYED
            handle, self._handle = self._handle, None

        if handle is None:
            return
        try:
            try:
                self.binding.close(handle)
            except SDKCallFailure as e:
                logger.warning("closing spatial channel failed: %s", e)
        finally:
            self.binding.destroy_spatial(handle)
            logger.debug("spatial channel released")

    def __enter__(self) -> "SpatialSession":
        return self

    def __exit__(self, *exc) -> None:
        self._release()

    # ----------------------- callbacks (SDK threads) -----------------------

    def _on_attach(self, channel: Any) -> None:
        self._set_state(SessionState.ATTACHED)
        self.sink.on_attach(channel)

    def _on_detach(self, channel: Any) -> None:
        self._set_state(SessionState.CREATED)
        self.sink.on_detach(channel)

    def _on_error(self, channel: Any, code: int, description: str) -> None:
        self.sink.on_error(channel, code, description)

    def _on_spatial_data(self,
                         channel: Any,
                         acceleration: Sequence[float],
                         angular_rate: Sequence[float],
                         magnetic_field: Sequence[float],
                         timestamp: float) -> None:
        self.sink.on_spatial_data(channel, acceleration, angular_rate, magnetic_field, timestamp)
