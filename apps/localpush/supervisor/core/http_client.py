"""Single-shot HTTP dispatch against the supervisor API."""
from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Mapping

import httpx

from .errors import BadRequestDeviceAPIError, DeviceAPIError, ServiceUnavailableAPIError


@dataclass(slots=True)
class DeviceRequest:
    """One request to send to a device."""

    method: str
    url: str
    body: Any = None
    params: Mapping[str, Any] | None = None
    expect_json: bool = False


def _body_message(response: httpx.Response) -> str | None:
    text = response.text
    if not text:
        return None
    try:
        body = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(body, str):
        return body
    if isinstance(body, dict):
        message = body.get("message")
        return None if message is None else str(message)
    return text


def raise_for_status(response: httpx.Response) -> None:
    """Raise the typed error for any status other than 200."""

    match response.status_code:
        case 200:
            return
        case 400:
            raise BadRequestDeviceAPIError(_body_message(response))
        case 503:
            raise ServiceUnavailableAPIError(_body_message(response))
        case status_code:
            message = _body_message(response) or (
                f"Unexpected response {status_code} from {response.request.url}"
            )
            raise DeviceAPIError(message, status_code=status_code)


def _build(client: httpx.AsyncClient, request: DeviceRequest) -> httpx.Request:
    return client.build_request(
        request.method,
        request.url,
        params=dict(request.params) if request.params else None,
        json=request.body,
    )


async def send_request(
    client: httpx.AsyncClient,
    request: DeviceRequest,
    *,
    logger: logging.Logger | None = None,
) -> Any:
    """Perform exactly one round trip and return the parsed body.

    Never retries; callers wrap this in :func:`run_with_retry`.
    """

    if logger is not None:
        logger.debug("Sending request to %s", request.url)
    http_request = _build(client, request)
    try:
        response = await client.send(http_request)
    except httpx.HTTPError as exc:
        raise DeviceAPIError(str(exc) or type(exc).__name__) from exc

    raise_for_status(response)
    if not request.expect_json:
        return response.text
    try:
        return response.json()
    except ValueError as exc:
        raise DeviceAPIError(f"Invalid JSON response from {request.url}: {exc}") from exc


class DeviceClient:
    """Owns the HTTP connection used to reach a device supervisor."""

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._logger = logger

    async def send(self, request: DeviceRequest) -> Any:
        return await send_request(self._client, request, logger=self._logger)

    @asynccontextmanager
    async def stream(self, request: DeviceRequest) -> AsyncIterator[httpx.Response]:
        """Open a streamed response, classified like :meth:`send`."""

        if self._logger is not None:
            self._logger.debug("Opening stream to %s", request.url)
        http_request = _build(self._client, request)
        try:
            response = await self._client.send(http_request, stream=True)
        except httpx.HTTPError as exc:
            raise DeviceAPIError(str(exc) or type(exc).__name__) from exc
        try:
            if response.status_code != 200:
                try:
                    await response.aread()
                except httpx.HTTPError as exc:
                    raise DeviceAPIError(str(exc) or type(exc).__name__) from exc
            raise_for_status(response)
            yield response
        finally:
            await response.aclose()

    async def close(self) -> None:
        await self._client.aclose()


    async def __aenter__(self) -> "DeviceClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


@asynccontextmanager
async def create_device_client(
    *,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
    logger: logging.Logger | None = None,
) -> AsyncIterator[DeviceClient]:
    client = DeviceClient(timeout=timeout, transport=transport, logger=logger)
    try:
        yield client
    finally:
        await client.close()
