"""Retry loop shared by every non-streaming supervisor call."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .errors import DeviceAPIError, is_retryable

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounds and backoff for one logical call.

    The first retry waits ``initial_delay`` seconds; every later wait is
    multiplied by ``backoff_scaler`` and capped at ``max_delay``.
    """

    label: str
    initial_delay: float = 2.0
    max_attempts: int = 6
    backoff_scaler: float = 2.0
    max_delay: float = 3600.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("Retry delays must not be negative")
        if self.backoff_scaler < 1:
            raise ValueError("backoff_scaler must be at least 1")


def _log_before_retry(
    policy: RetryPolicy, log: logging.Logger
) -> Callable[[RetryCallState], None]:
    def _before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        log.warning(
            'Retrying "%s" after %.2fs (%d of %d) due to: %s',
            policy.label,
            delay,
            retry_state.attempt_number,
            policy.max_attempts,
            error,
        )

    return _before_sleep


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    logger: logging.Logger | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``operation`` until it succeeds, fails permanently or runs out of attempts.

    Only retryable :class:`DeviceAPIError` failures are repeated. Once the
    attempts are exhausted the last error is raised unchanged. Cancelling
    the awaiting task stops the loop without starting another attempt.
    """

    log = logger if logger is not None else logging.getLogger(__name__)
    retrying = AsyncRetrying(
        retry=retry_if_exception(is_retryable),
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(
            multiplier=policy.initial_delay,
            exp_base=policy.backoff_scaler,
            max=policy.max_delay,
        ),
        before_sleep=_log_before_retry(policy, log),
        sleep=sleep,
        reraise=True,
    )
    try:
        return await retrying(operation)
    except DeviceAPIError as exc:
        log.debug('Giving up on "%s": %s', policy.label, exc)
        raise
