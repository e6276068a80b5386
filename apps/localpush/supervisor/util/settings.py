"""Client configuration for the supervisor local API."""
from __future__ import annotations

import os
from dataclasses import dataclass

from ..core.endpoints import DeviceEndpoint, resolve
from ..core.retry import RetryPolicy

DEFAULT_PORT = 48484


@dataclass(frozen=True, slots=True)
class DeviceAddress:
    """Where the supervisor of a single device can be reached."""

    host: str
    port: int = DEFAULT_PORT

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("Device address host must not be empty")
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid supervisor port: {self.port}")

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    def url_for(self, action: DeviceEndpoint) -> str:
        return f"{self.base_url}{resolve(action)}"


@dataclass(frozen=True, slots=True)
class ClientSettings:
    """Transport and retry tuning for supervisor API calls."""

    port: int = DEFAULT_PORT
    timeout: float = 30.0
    initial_delay: float = 2.0
    max_attempts: int = 6
    backoff_scaler: float = 2.0
    max_delay: float = 3600.0

    @classmethod
    def from_env(cls) -> "ClientSettings":
        defaults = cls()
        return cls(
            port=_env_int("SUPERVISOR_API_PORT", default=defaults.port),
            timeout=_env_float("SUPERVISOR_API_TIMEOUT", default=defaults.timeout),
            initial_delay=_env_float(
                "SUPERVISOR_API_RETRY_INITIAL_DELAY", default=defaults.initial_delay
            ),
            max_attempts=_env_int(
                "SUPERVISOR_API_RETRY_MAX_ATTEMPTS", default=defaults.max_attempts
            ),
            backoff_scaler=_env_float(
                "SUPERVISOR_API_RETRY_BACKOFF", default=defaults.backoff_scaler
            ),
            max_delay=_env_float("SUPERVISOR_API_RETRY_MAX_DELAY", default=defaults.max_delay),
        )

    def retry_policy(self, label: str) -> RetryPolicy:
        """Build the retry policy for one logical call."""

        return RetryPolicy(
            label=label,
            initial_delay=self.initial_delay,
            max_attempts=self.max_attempts,
            backoff_scaler=self.backoff_scaler,
            max_delay=self.max_delay,
        )


def _env_int(name: str, *, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, *, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
