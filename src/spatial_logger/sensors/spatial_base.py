from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)

AttachHandler = Callable[[Any], None]
DetachHandler = Callable[[Any], None]
ErrorHandler = Callable[[Any, int, str], None]
SpatialDataHandler = Callable[[Any, Sequence[float], Sequence[float], Sequence[float], float], None]


def _vec3(x: Sequence[float]) -> np.ndarray:
    a = np.array(x, dtype=float).reshape(3)
    a.flags.writeable = False
    return a


@dataclass(frozen=True)
class SpatialSample:
    acceleration: np.ndarray  # (3,) g
    angular_rate: np.ndarray  # (3,) deg/s
    magnetic_field: np.ndarray  # (3,) gauss
    timestamp: float  # s

    @classmethod
    def from_sdk(cls,
                 acceleration: Sequence[float],
                 angular_rate: Sequence[float],
                 magnetic_field: Sequence[float],
                 timestamp: float) -> "SpatialSample":
        return cls(
            acceleration=_vec3(acceleration),
            angular_rate=_vec3(angular_rate),
            magnetic_field=_vec3(magnetic_field),
            timestamp=float(timestamp),
        )


@dataclass
class SpatialHandle:
    """
    Owning wrapper around the SDK's spatial channel object.

    `base` is the spatial-specific object; accessors and the generic
    open/close calls take the generic projection from as_handle().
    """
    base: Any

    def as_handle(self) -> Any:
        return self.base


class SpatialBinding(ABC):
    """
    The subset of the vendor SDK used to run one spatial channel.

    Every operation raises SDKCallFailure (see errors.py) on a non-success
    return code. Only open_wait_for_attachment blocks.
    """

    @abstractmethod
    def create_spatial(self) -> SpatialHandle:
        ...

    @abstractmethod
    def destroy_spatial(self, handle: SpatialHandle) -> None:
        ...

    @abstractmethod
    def close(self, handle: SpatialHandle) -> None:
        ...

    @abstractmethod
    def open_wait_for_attachment(self, handle: SpatialHandle, timeout_ms: int) -> None:
        ...

    @abstractmethod
    def set_on_attach(self, handle: SpatialHandle, fn: Optional[AttachHandler]) -> None:
        ...

    @abstractmethod
    def set_on_detach(self, handle: SpatialHandle, fn: Optional[DetachHandler]) -> None:
        ...

    @abstractmethod
    def set_on_error(self, handle: SpatialHandle, fn: Optional[ErrorHandler]) -> None:
        ...

    @abstractmethod
    def set_on_spatial_data(self, handle: SpatialHandle, fn: Optional[SpatialDataHandler]) -> None:
        ...

    # selectors: must be set before open
    @abstractmethod
    def set_serial(self, handle: SpatialHandle, serial: int) -> None:
        ...

    @abstractmethod
    def set_hub_port(self, handle: SpatialHandle, hub_port: int) -> None:
        ...

    @abstractmethod
    def set_channel(self, handle: SpatialHandle, channel: int) -> None:
        ...

    @abstractmethod
    def set_is_remote(self, handle: SpatialHandle, is_remote: bool) -> None:
        ...

    # accessors: take the generic channel passed to callbacks, valid after attach
    @abstractmethod
    def get_serial(self, channel: Any) -> int:
        ...

    @abstractmethod
    def get_channel(self, channel: Any) -> int:
        ...

    @abstractmethod
    def get_hub_port(self, channel: Any) -> Optional[int]:
        ...

    @abstractmethod
    def describe_error(self, code: int) -> str:
        ...

    def enable_sdk_log(self, level: str, path: Optional[str] = None) -> None:
        logger.info("%s has no SDK log; sdk_log setting ignored", type(self).__name__)
