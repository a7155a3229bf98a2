"""Data models for rhino."""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class Reading(Generic[T]):
    """Result of a single sensor query that is allowed to fail."""

    value: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: T) -> "Reading[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "Reading[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None


# Raw samples, as returned by the sensor backends.


@dataclass(slots=True, frozen=True)
class HostSample:
    hostname: str | None
    os_name: str | None
    os_version: str | None


@dataclass(slots=True, frozen=True)
class CpuSample:
    name: str | None
    core_percents: tuple[float, ...]
    temperatures: tuple[float, ...]

    @property
    def core_count(self) -> int:
        return len(self.core_percents)


@dataclass(slots=True, frozen=True)
class MemorySample:
    total: int
    used: int


@dataclass(slots=True, frozen=True)
class DiskSample:
    name: str
    kind: str
    total: int
    available: int


@dataclass(slots=True, frozen=True)
class GpuIdentity:
    """GPU properties read once when the device is opened."""

    name: str
    architecture: str
    cuda_version: str


@dataclass(slots=True, frozen=True)
class GpuSample:
    """Per-cycle GPU readings; each one fails independently."""

    utilization: Reading[float]
    temperature: Reading[float]
    core_clock: Reading[float]
    memory_clock: Reading[float]
    memory_used: Reading[int]
    memory_total: Reading[int]


# Snapshot, as consumed by the renderer.


@dataclass(slots=True, frozen=True)
class HostInfo:
    hostname: str
    os_name: str
    os_version: str


@dataclass(slots=True, frozen=True)
class CpuInfo:
    name: str
    core_count: int
    utilization: float  # mean over all cores, 0.0 - 100.0
    temperatures: tuple[float, ...]  # empty when no component is readable


@dataclass(slots=True, frozen=True)
class GpuInfo:
    name: str
    architecture: str
    cuda_version: str
    # None when the reading failed this cycle
    utilization: float | None
    temperature: float | None
    core_clock: float | None  # MHz
    memory_clock: float | None  # MHz
    memory_used: int | None  # Bytes
    memory_total: int | None  # Bytes


@dataclass(slots=True, frozen=True)
class MemoryInfo:
    used: int  # Bytes
    total: int  # Bytes


@dataclass(slots=True, frozen=True)
class DiskInfo:
    name: str
    kind: str
    used: int  # Bytes
    total: int  # Bytes


@dataclass(slots=True, frozen=True)
class Snapshot:
    """Immutable telemetry reading for one dashboard cycle."""

    host: HostInfo
    cpu: CpuInfo
    gpu: GpuInfo
    memory: MemoryInfo
    disks: tuple[DiskInfo, ...]
