"""Tests for the shared retry loop."""
from __future__ import annotations

import asyncio
import logging

import pytest
from tenacity import RetryError

from ..core.errors import BadRequestDeviceAPIError, DeviceAPIError, ServiceUnavailableAPIError
from ..core.retry import RetryPolicy, run_with_retry


class _Operation:
    """Fails with the queued errors, then returns ``result``."""

    def __init__(self, *errors: BaseException, result: object = "ok") -> None:
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def _run(operation, policy: RetryPolicy, **kwargs):
    return asyncio.run(run_with_retry(operation, policy, **kwargs))


async def _no_sleep(delay: float) -> None:
    return None


def test_success_short_circuits() -> None:
    operation = _Operation()
    delays: list[float] = []

    async def record(delay: float) -> None:
        delays.append(delay)

    assert _run(operation, RetryPolicy(label="ok"), sleep=record) == "ok"
    assert operation.calls == 1
    assert delays == []


def test_bad_request_is_raised_immediately() -> None:
    operation = _Operation(BadRequestDeviceAPIError("nope"))

    with pytest.raises(BadRequestDeviceAPIError, match="nope"):
        _run(operation, RetryPolicy(label="bad", max_attempts=10), sleep=_no_sleep)
    assert operation.calls == 1


def test_unrelated_exceptions_are_not_retried() -> None:
    operation = _Operation(KeyError("state"))

    with pytest.raises(KeyError):
        _run(operation, RetryPolicy(label="bug"), sleep=_no_sleep)
    assert operation.calls == 1


def test_exhausted_attempts_raise_last_error() -> None:
    errors = [ServiceUnavailableAPIError(f"busy {index}") for index in range(5)]
    operation = _Operation(*errors)

    with pytest.raises(ServiceUnavailableAPIError) as excinfo:
        _run(operation, RetryPolicy(label="busy", max_attempts=5), sleep=_no_sleep)

    assert excinfo.value is errors[-1]
    assert not isinstance(excinfo.value, RetryError)
    assert operation.calls == 5


def test_generic_errors_are_retried_like_unavailable() -> None:
    operation = _Operation(
        DeviceAPIError("Connection refused"),
        ServiceUnavailableAPIError("busy"),
        result={"state": {}},
    )

    result = _run(operation, RetryPolicy(label="mixed"), sleep=_no_sleep)

    assert result == {"state": {}}
    assert operation.calls == 3


def test_single_attempt_policy_never_sleeps() -> None:
    operation = _Operation(ServiceUnavailableAPIError("busy"))
    delays: list[float] = []

    async def record(delay: float) -> None:
        delays.append(delay)

    with pytest.raises(ServiceUnavailableAPIError):
        _run(operation, RetryPolicy(label="once", max_attempts=1), sleep=record)
    assert delays == []


def test_backoff_grows_exponentially_and_is_capped() -> None:
    operation = _Operation(*[DeviceAPIError("down") for _ in range(6)])
    delays: list[float] = []

    async def record(delay: float) -> None:
        delays.append(delay)

    policy = RetryPolicy(label="backoff", initial_delay=2.0, max_attempts=6, max_delay=10.0)
    with pytest.raises(DeviceAPIError):
        _run(operation, policy, sleep=record)

    assert delays == [2.0, 4.0, 8.0, 10.0, 10.0]
    assert delays == sorted(delays)


def test_fixed_delay_with_unit_scaler() -> None:
    operation = _Operation(DeviceAPIError("down"), DeviceAPIError("down"))
    delays: list[float] = []

    async def record(delay: float) -> None:
        delays.append(delay)

    policy = RetryPolicy(label="fixed", initial_delay=0.5, backoff_scaler=1.0)
    assert _run(operation, policy, sleep=record) == "ok"
    assert delays == [0.5, 0.5]


def test_each_retry_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    log = logging.getLogger("supervisor.retry.test")
    caplog.set_level(logging.DEBUG, logger="supervisor.retry.test")
    operation = _Operation(ServiceUnavailableAPIError("busy"), DeviceAPIError("reset"))

    _run(operation, RetryPolicy(label="Supervisor API (GET ping)", max_attempts=3), logger=log, sleep=_no_sleep)

    messages = [record.getMessage() for record in caplog.records if record.levelno == logging.WARNING]
    assert messages == [
        'Retrying "Supervisor API (GET ping)" after 2.00s (1 of 3) due to: busy',
        'Retrying "Supervisor API (GET ping)" after 4.00s (2 of 3) due to: reset',
    ]


def test_cancel_during_wait_stops_the_loop() -> None:
    operation = _Operation(*[ServiceUnavailableAPIError("busy") for _ in range(5)])

    async def scenario() -> None:
        policy = RetryPolicy(label="cancel", initial_delay=30.0, max_attempts=6)
        task = asyncio.create_task(run_with_retry(operation, policy))
        while operation.calls == 0:
            await asyncio.sleep(0)
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())
    assert operation.calls == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0},
        {"initial_delay": -1.0},
        {"max_delay": -1.0},
        {"backoff_scaler": 0.5},
    ],
)
def test_policy_rejects_invalid_bounds(kwargs) -> None:
    with pytest.raises(ValueError):
        RetryPolicy(label="invalid", **kwargs)
