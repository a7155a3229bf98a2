"""Runtime configuration for rhino, read from the environment."""

import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from rhino.errors import ConfigError

MIN_INTERVAL = 0.1  # seconds


class GpuFailurePolicy(Enum):
    """What a failed per-cycle GPU query does to the dashboard."""

    DEGRADE = "degrade"  # show N/A for that field this cycle
    FATAL = "fatal"  # stop the dashboard


@dataclass(slots=True, frozen=True)
class DashboardConfig:
    """Settings for one dashboard process."""

    interval: float = 1.0  # seconds slept after each cycle
    gpu_index: int = 0
    gpu_failures: GpuFailurePolicy = GpuFailurePolicy.DEGRADE
    log_level: str = "WARNING"
    log_file: str | None = None

    def __post_init__(self) -> None:
        # Frozen, so clamp through object.__setattr__
        object.__setattr__(self, "interval", max(MIN_INTERVAL, self.interval))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "DashboardConfig":
        """
        Build a config from RHINO_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ.

        Raises:
            ConfigError: If a variable is set to a value that cannot be parsed.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        interval = _parse(env, "RHINO_INTERVAL", float, defaults.interval)
        if not math.isfinite(interval):
            raise ConfigError(f"RHINO_INTERVAL must be a finite number of seconds, got {interval}")

        gpu_index = _parse(env, "RHINO_GPU_INDEX", int, defaults.gpu_index)
        if gpu_index < 0:
            raise ConfigError(f"RHINO_GPU_INDEX must not be negative, got {gpu_index}")

        gpu_failures = _parse(
            env,
            "RHINO_GPU_FAILURES",
            lambda raw: GpuFailurePolicy(raw.strip().lower()),
            defaults.gpu_failures,
        )

        log_level = _parse(env, "RHINO_LOG_LEVEL", lambda raw: raw.strip().upper(), defaults.log_level)
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"RHINO_LOG_LEVEL has unknown level {log_level!r}")

        log_file = env.get("RHINO_LOG_FILE") or None

        return cls(
            interval=interval,
            gpu_index=gpu_index,
            gpu_failures=gpu_failures,
            log_level=log_level,
            log_file=log_file,
        )


def _parse(env, name, convert, default):
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return convert(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} has invalid value {raw!r}") from exc
