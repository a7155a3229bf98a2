"""Assembles one Snapshot per cycle from the sensor backends."""

import logging

from rhino.config import GpuFailurePolicy
from rhino.errors import GpuQueryError
from rhino.models import (
    CpuInfo,
    CpuSample,
    DiskInfo,
    DiskSample,
    GpuInfo,
    GpuSample,
    HostInfo,
    HostSample,
    MemoryInfo,
    Reading,
    Snapshot,
)

logger = logging.getLogger(__name__)

DEFAULT_HOSTNAME = "Default_System_Name"
DEFAULT_OS_NAME = "Default_OS_Name"
DEFAULT_OS_VERSION = "XXXX"
DEFAULT_CPU_NAME = "Default CPU Name"
DEFAULT_DISK_NAME = "N/A"


def mean_utilization(core_percents: tuple[float, ...]) -> float:
    """Arithmetic mean of per-core percentages, 0.0 when there are no cores."""
    if not core_percents:
        return 0.0
    return sum(core_percents) / len(core_percents)


def host_info(sample: HostSample) -> HostInfo:
    return HostInfo(
        hostname=sample.hostname or DEFAULT_HOSTNAME,
        os_name=sample.os_name or DEFAULT_OS_NAME,
        os_version=sample.os_version or DEFAULT_OS_VERSION,
    )


def cpu_info(sample: CpuSample) -> CpuInfo:
    return CpuInfo(
        name=sample.name or DEFAULT_CPU_NAME,
        core_count=sample.core_count,
        utilization=mean_utilization(sample.core_percents),
        temperatures=sample.temperatures,
    )


def disk_info(sample: DiskSample) -> DiskInfo:
    return DiskInfo(
        name=sample.name or DEFAULT_DISK_NAME,
        kind=sample.kind,
        used=max(sample.total - sample.available, 0),
        total=sample.total,
    )


class SnapshotBuilder:
    """
    Queries each sensor once per cycle and applies the fallback policy.

    GPU identity is read once here and reused for every snapshot.
    """

    def __init__(self, sensors, gpu, gpu_failures: GpuFailurePolicy = GpuFailurePolicy.DEGRADE) -> None:
        """
        Initialize the SnapshotBuilder.

        Args:
            sensors: Host sensor source (see rhino.sensors.SensorSource).
            gpu: Opened GPU device (see rhino.sensors.GpuDevice).
            gpu_failures: What to do when a per-cycle GPU query fails.
        """
        self._sensors = sensors
        self._gpu = gpu
        self._gpu_identity = gpu.identity
        self._gpu_failures = gpu_failures

    @property
    def gpu_failures(self) -> GpuFailurePolicy:
        return self._gpu_failures

    def build(self) -> Snapshot:
        """Collect a fresh snapshot of the current system state."""
        return Snapshot(
            host=host_info(self._sensors.host_info()),
            cpu=cpu_info(self._sensors.cpu_sample()),
            gpu=self._gpu_info(self._gpu.sample()),
            memory=self._memory_info(),
            disks=tuple(disk_info(disk) for disk in self._sensors.disk_sample()),
        )

    def _memory_info(self) -> MemoryInfo:
        mem = self._sensors.memory_sample()
        return MemoryInfo(used=mem.used, total=mem.total)

    def _gpu_info(self, sample: GpuSample) -> GpuInfo:
        identity = self._gpu_identity
        return GpuInfo(
            name=identity.name,
            architecture=identity.architecture,
            cuda_version=identity.cuda_version,
            utilization=self._resolve("utilization", sample.utilization),
            temperature=self._resolve("temperature", sample.temperature),
            core_clock=self._resolve("core clock", sample.core_clock),
            memory_clock=self._resolve("memory clock", sample.memory_clock),
            memory_used=self._resolve("memory used", sample.memory_used),
            memory_total=self._resolve("memory total", sample.memory_total),
        )

    def _resolve(self, metric: str, reading: Reading):
        if reading.ok:
            return reading.value
        if self._gpu_failures is GpuFailurePolicy.FATAL:
            raise GpuQueryError(f"{metric} query failed: {reading.error}")
        logger.debug("GPU %s unavailable this cycle: %s", metric, reading.error)
        return None
