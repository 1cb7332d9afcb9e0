from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .spatial_base import AttachHandler, DetachHandler, ErrorHandler, SpatialBinding, SpatialHandle


@dataclass
class ChannelSelectors:
    """
    Channel matching. None means "any".
    - serial: device serial number (for VINT devices, the hub's serial)
    - hub_port: VINT hub port the device must be plugged into
    - channel: channel index on the device; must be a spatial channel
    - is_remote: only match channels served by a Phidget network server
    """
    serial: Optional[int] = None
    hub_port: Optional[int] = None
    channel: Optional[int] = None
    is_remote: Optional[bool] = None


def apply_selectors(binding: SpatialBinding, handle: SpatialHandle, selectors: ChannelSelectors) -> None:
    if selectors.serial is not None:
        binding.set_serial(handle, selectors.serial)
    if selectors.hub_port is not None:
        binding.set_hub_port(handle, selectors.hub_port)
    if selectors.channel is not None:
        binding.set_channel(handle, selectors.channel)
    if selectors.is_remote is not None:
        binding.set_is_remote(handle, selectors.is_remote)


def init_channel(binding: SpatialBinding,
                 handle: SpatialHandle,
                 on_attach: AttachHandler,
                 on_detach: DetachHandler,
                 on_error: ErrorHandler,
                 selectors: Optional[ChannelSelectors] = None) -> None:
    """
    Prepare a freshly created channel for open.

    Selectors first, then attach -> detach -> error handlers. The first
    SDKCallFailure propagates and nothing after it runs. Handlers have to be
    in place before open so the attach handshake (and early errors) reach them.
    """
    if selectors is not None:
        apply_selectors(binding, handle, selectors)

    binding.set_on_attach(handle, on_attach)
    binding.set_on_detach(handle, on_detach)
    binding.set_on_error(handle, on_error)
