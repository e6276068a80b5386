"""Client for the supervisor's local-mode HTTP API."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Mapping, TypeVar

import httpx
from pydantic import ValidationError

from ..models.device import DeviceInfo, DeviceStatus
from ..util.settings import ClientSettings, DeviceAddress
from .endpoints import DeviceEndpoint
from .errors import DeviceAPIError
from .http_client import DeviceClient, DeviceRequest
from .retry import run_with_retry

T = TypeVar("T")


def _require(body: Any, key: str, endpoint: str) -> Any:
    if not isinstance(body, Mapping) or key not in body:
        raise DeviceAPIError(f"Response from supervisor {endpoint} endpoint is missing {key!r}")
    return body[key]


def _require_success(body: Any, endpoint: str) -> Mapping[str, Any]:
    if not isinstance(body, Mapping) or body.get("status") != "success":
        raise DeviceAPIError(f"Non-successful response from supervisor {endpoint} endpoint")
    return body


async def _iter_lines(response: httpx.Response) -> AsyncIterator[str]:
    try:
        async for line in response.aiter_lines():
            if line:
                yield line
    except httpx.HTTPError as exc:
        raise DeviceAPIError(f"Log stream interrupted: {exc}") from exc


async def _iter_chunks(response: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except httpx.HTTPError as exc:
        raise DeviceAPIError(f"Log stream interrupted: {exc}") from exc


class DeviceAPI:
    """Talks to the supervisor of one device.

    Every call except :meth:`log_stream` is retried according to the
    instance's :class:`ClientSettings`. Calls may run concurrently; they
    share nothing but the immutable address and settings.
    """

    def __init__(
        self,
        address: str,
        port: int | None = None,
        *,
        settings: ClientSettings | None = None,
        logger: logging.Logger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._address = DeviceAddress(address, port if port is not None else self._settings.port)
        self._logger = logger or logging.getLogger(__name__)
        self._client = DeviceClient(
            timeout=self._settings.timeout,
            transport=transport,
            logger=self._logger,
        )

    @property
    def address(self) -> DeviceAddress:
        return self._address

    async def _call(
        self,
        request: DeviceRequest,
        handle: Callable[[Any], T] | None = None,
    ) -> T:
        async def attempt() -> T:
            body = await self._client.send(request)
            return handle(body) if handle is not None else body

        policy = self._settings.retry_policy(f"Supervisor API ({request.method} {request.url})")
        return await run_with_retry(attempt, policy, logger=self._logger)

    def _request(
        self,
        method: str,
        action: DeviceEndpoint,
        *,
        body: Any = None,
        params: Mapping[str, Any] | None = None,
        expect_json: bool = True,
    ) -> DeviceRequest:
        return DeviceRequest(
            method=method,
            url=self._address.url_for(action),
            body=body,
            params=params,
            expect_json=expect_json,
        )

    async def set_target_state(self, state: Any) -> None:
        """Push a new target state; returns nothing or raises."""
        request = self._request(
            "POST", DeviceEndpoint.SET_TARGET_STATE, body=state, expect_json=False
        )
        await self._call(request)

    async def get_target_state(self) -> Any:
        request = self._request("GET", DeviceEndpoint.GET_TARGET_STATE)
        return await self._call(request, lambda body: _require(body, "state", "target-state"))

    async def get_device_information(self) -> DeviceInfo:
        request = self._request("GET", DeviceEndpoint.GET_DEVICE_INFORMATION)

        def handle(body: Any) -> DeviceInfo:
            info = _require(body, "info", "device-info")
            try:
                return DeviceInfo.model_validate(info)
            except ValidationError as exc:
                raise DeviceAPIError(f"Unexpected response shape from device-info: {exc}") from exc

        return await self._call(request, handle)

    async def get_container_id(self, service_name: str) -> str:
        request = self._request(
            "GET",
            DeviceEndpoint.CONTAINER_ID,
            params={"serviceName": service_name},
        )

        def handle(body: Any) -> str:
            return _require(_require_success(body, "containerId"), "containerId", "containerId")

        return await self._call(request, handle)

    async def ping(self) -> None:
        request = self._request("GET", DeviceEndpoint.PING, expect_json=False)
        await self._call(request)

    async def get_version(self) -> str:
        request = self._request("GET", DeviceEndpoint.VERSION)

        def handle(body: Any) -> str:
            return _require(_require_success(body, "version"), "version", "version")

        return await self._call(request, handle)

    async def get_status(self) -> DeviceStatus:
        request = self._request("GET", DeviceEndpoint.STATUS)

        def handle(body: Any) -> DeviceStatus:
            body = _require_success(body, "status")
            payload = {key: value for key, value in body.items() if key != "status"}
            try:
                return DeviceStatus.model_validate(payload)
            except ValidationError as exc:
                raise DeviceAPIError(f"Unexpected response shape from status: {exc}") from exc

        return await self._call(request, handle)

    @asynccontextmanager
    async def log_stream(self, *, raw: bool = False) -> AsyncIterator[AsyncIterator[Any]]:
        """Stream device logs.

        Yields an async iterator of log lines, or of raw byte chunks when
        ``raw`` is set. The connection is not retried; it is released when
        the ``async with`` block exits, however it exits.
        """

        request = self._request("GET", DeviceEndpoint.LOGS, expect_json=False)
        async with self._client.stream(request) as response:
            yield _iter_chunks(response) if raw else _iter_lines(response)

    async def close(self) -> None:
        await self._client.close()

    async def __aenter__(self) -> "DeviceAPI":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


@asynccontextmanager
async def create_device_api(
    address: str,
    port: int | None = None,
    *,
    settings: ClientSettings | None = None,
    logger: logging.Logger | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[DeviceAPI]:
    api = DeviceAPI(address, port, settings=settings, logger=logger, transport=transport)
    try:
        yield api
    finally:
        await api.close()
