"""Supervisor API exceptions."""
from __future__ import annotations


class DeviceAPIError(Exception):
    """Generic or transport-level failure talking to the supervisor."""

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message or "Supervisor API request failed")


class BadRequestDeviceAPIError(DeviceAPIError):
    """The supervisor rejected the request (HTTP 400)."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, status_code=400)


class ServiceUnavailableAPIError(DeviceAPIError):
    """The supervisor is temporarily unable to serve the request (HTTP 503)."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, status_code=503)


def is_retryable(exc: BaseException) -> bool:
    """Return True when repeating the request may produce a different outcome."""
    return isinstance(exc, DeviceAPIError) and not isinstance(exc, BadRequestDeviceAPIError)
