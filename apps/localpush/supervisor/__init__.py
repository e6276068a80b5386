"""Client for the supervisor API of a device running in local mode."""
from __future__ import annotations

from .core.device_api import DeviceAPI, create_device_api
from .core.endpoints import DeviceEndpoint
from .core.errors import BadRequestDeviceAPIError, DeviceAPIError, ServiceUnavailableAPIError
from .models.device import ContainerStatus, DeviceInfo, DeviceStatus, ImageStatus
from .util.settings import ClientSettings, DeviceAddress

__all__ = [
    "BadRequestDeviceAPIError",
    "ClientSettings",
    "ContainerStatus",
    "DeviceAPI",
    "DeviceAPIError",
    "DeviceAddress",
    "DeviceEndpoint",
    "DeviceInfo",
    "DeviceStatus",
    "ImageStatus",
    "ServiceUnavailableAPIError",
    "create_device_api",
]
