"""Supervisor local API endpoint registry."""
from __future__ import annotations

from enum import StrEnum
from types import MappingProxyType
from typing import Mapping


class DeviceEndpoint(StrEnum):
    """Actions exposed by the supervisor on a local-mode device."""

    SET_TARGET_STATE = "setTargetState"
    GET_TARGET_STATE = "getTargetState"
    GET_DEVICE_INFORMATION = "getDeviceInformation"
    LOGS = "logs"
    PING = "ping"
    VERSION = "version"
    STATUS = "status"
    CONTAINER_ID = "containerId"


_ENDPOINT_PATHS: Mapping[DeviceEndpoint, str] = MappingProxyType(
    {
        DeviceEndpoint.SET_TARGET_STATE: "v2/local/target-state",
        DeviceEndpoint.GET_TARGET_STATE: "v2/local/target-state",
        DeviceEndpoint.GET_DEVICE_INFORMATION: "v2/local/device-info",
        DeviceEndpoint.LOGS: "v2/local/logs",
        DeviceEndpoint.PING: "ping",
        DeviceEndpoint.VERSION: "v2/version",
        DeviceEndpoint.STATUS: "v2/state/status",
        DeviceEndpoint.CONTAINER_ID: "v2/containerId",
    }
)

_missing = set(DeviceEndpoint) - set(_ENDPOINT_PATHS)
if _missing:  # pragma: no cover - guarded at import time
    raise RuntimeError(f"Endpoints without a path: {sorted(_missing)}")


def resolve(action: DeviceEndpoint) -> str:
    """Return the path of ``action`` relative to the supervisor base URL."""
    if not isinstance(action, DeviceEndpoint):
        raise TypeError(f"Expected a DeviceEndpoint, got {type(action).__name__}")
    return _ENDPOINT_PATHS[action]
