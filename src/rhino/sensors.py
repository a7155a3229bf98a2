"""Sensor backends for rhino: psutil for the host, pynvml for the GPU."""

import logging
import platform

import psutil
import pynvml

from rhino.errors import GpuUnavailableError
from rhino.models import (
    CpuSample,
    DiskSample,
    GpuIdentity,
    GpuSample,
    HostSample,
    MemorySample,
    Reading,
)

logger = logging.getLogger(__name__)

CPUINFO_PATH = "/proc/cpuinfo"

# nvmlDeviceGetArchitecture codes
GPU_ARCHITECTURES = {
    2: "Kepler",
    3: "Maxwell",
    4: "Pascal",
    5: "Volta",
    6: "Turing",
    7: "Ampere",
    8: "Ada",
    9: "Hopper",
    10: "Blackwell",
}


def _clean(value: str | None) -> str | None:
    """Return None for missing or blank strings."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def read_cpu_model(path: str = CPUINFO_PATH) -> str | None:
    """Return the processor model name from /proc/cpuinfo, or None if unknown."""
    try:
        with open(path, "r", encoding="utf-8", errors="ignore") as f:
            for line in f:
                if line.startswith("model name"):
                    return _clean(line.split(":", 1)[1])
    except OSError:
        return None
    return None


class SensorSource:
    """
    Host sensors read through psutil and the platform module.

    Every query is best effort: missing hardware or permissions produce empty
    or zero values rather than exceptions.
    """

    def __init__(self, cpuinfo_path: str = CPUINFO_PATH) -> None:
        # Initialize CPU percent (first call returns 0.0)
        psutil.cpu_percent(percpu=True)
        self._cpu_name = read_cpu_model(cpuinfo_path)

    def host_info(self) -> HostSample:
        """Read hostname, OS name and OS version."""
        os_name = os_version = None
        try:
            release = platform.freedesktop_os_release()
            os_name = release.get("NAME")
            os_version = release.get("VERSION_ID")
        except OSError:
            # Not a freedesktop system (Windows, macOS, minimal containers)
            pass

        return HostSample(
            hostname=_clean(platform.node()),
            os_name=_clean(os_name) or _clean(platform.system()),
            os_version=_clean(os_version) or _clean(platform.release()),
        )

    def cpu_sample(self) -> CpuSample:
        """Refresh per-core utilization and component temperatures."""
        # Non-blocking, compares against the previous call
        core_percents = tuple(float(p) for p in psutil.cpu_percent(percpu=True))
        return CpuSample(
            name=self._cpu_name,
            core_percents=core_percents,
            temperatures=self._read_temperatures(),
        )

    def _read_temperatures(self) -> tuple[float, ...]:
        # Only Linux and FreeBSD builds of psutil expose sensors_temperatures
        read_sensors = getattr(psutil, "sensors_temperatures", None)
        if read_sensors is None:
            return ()

        try:
            sensors = read_sensors()
        except (OSError, RuntimeError) as exc:
            logger.debug("Temperature sensors unreadable: %s", exc)
            return ()

        temperatures: list[float] = []
        for entries in sensors.values():
            for entry in entries:
                if entry.current is not None:
                    temperatures.append(float(entry.current))
        return tuple(temperatures)

    def memory_sample(self) -> MemorySample:
        """Refresh total and used system memory."""
        mem = psutil.virtual_memory()
        return MemorySample(total=mem.total, used=mem.used)

    def disk_sample(self) -> tuple[DiskSample, ...]:
        """
        Refresh usage of every mounted partition, in backend order.

        A partition whose usage cannot be read (permission denied, drive not
        ready) is kept with zero bytes so the row order stays the same.
        """
        disks: list[DiskSample] = []
        for part in psutil.disk_partitions(all=False):
            try:
                usage = psutil.disk_usage(part.mountpoint)
                total, available = usage.total, usage.free
            except OSError as exc:
                logger.debug("Cannot read usage of %s: %s", part.mountpoint, exc)
                total = available = 0

            disks.append(
                DiskSample(
                    name=part.device or "",
                    kind=part.fstype or "Unknown",
                    total=total,
                    available=available,
                )
            )
        return tuple(disks)


def format_cuda_version(version: int) -> str:
    """Format an NVML CUDA driver version such as 12020 as '12.2'."""
    return f"{version // 1000}.{(version % 1000) // 10}"


def _text(value: str | bytes) -> str:
    # Older pynvml releases return bytes
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


class GpuDevice:
    """An opened NVIDIA GPU, queried through NVML."""

    def __init__(self, handle, identity: GpuIdentity) -> None:
        self._handle = handle
        self._identity = identity

    @classmethod
    def open(cls, index: int = 0) -> "GpuDevice":
        """
        Initialize NVML and read the identity of one device.

        Args:
            index: NVML device index.

        Raises:
            GpuUnavailableError: If the driver, library or device is missing.
        """
        try:
            pynvml.nvmlInit()
        except pynvml.NVMLError as exc:
            raise GpuUnavailableError(f"cannot open GPU {index}: {exc}") from exc

        try:
            handle = pynvml.nvmlDeviceGetHandleByIndex(index)
            name = _text(pynvml.nvmlDeviceGetName(handle))
            arch_code = pynvml.nvmlDeviceGetArchitecture(handle)
            cuda_version = format_cuda_version(pynvml.nvmlSystemGetCudaDriverVersion())
        except pynvml.NVMLError as exc:
            cls._shutdown()
            raise GpuUnavailableError(f"cannot open GPU {index}: {exc}") from exc

        identity = GpuIdentity(
            name=name,
            architecture=GPU_ARCHITECTURES.get(arch_code, "Unknown"),
            cuda_version=cuda_version,
        )
        logger.info("Opened GPU %d: %s (%s)", index, identity.name, identity.architecture)
        return cls(handle, identity)

    @property
    def identity(self) -> GpuIdentity:
        return self._identity

    def sample(self) -> GpuSample:
        """Query every per-cycle metric; a failing query fails only its reading."""
        handle = self._handle
        utilization = self._query(lambda: float(pynvml.nvmlDeviceGetUtilizationRates(handle).gpu))
        temperature = self._query(
            lambda: float(pynvml.nvmlDeviceGetTemperature(handle, pynvml.NVML_TEMPERATURE_GPU))
        )
        core_clock = self._query(
            lambda: float(pynvml.nvmlDeviceGetClockInfo(handle, pynvml.NVML_CLOCK_GRAPHICS))
        )
        memory_clock = self._query(
            lambda: float(pynvml.nvmlDeviceGetClockInfo(handle, pynvml.NVML_CLOCK_MEM))
        )
        memory = self._query(lambda: pynvml.nvmlDeviceGetMemoryInfo(handle))

        if memory.ok:
            memory_used = Reading.success(int(memory.value.used))
            memory_total = Reading.success(int(memory.value.total))
        else:
            memory_used = memory_total = Reading.failure(memory.error)

        return GpuSample(
            utilization=utilization,
            temperature=temperature,
            core_clock=core_clock,
            memory_clock=memory_clock,
            memory_used=memory_used,
            memory_total=memory_total,
        )

    @staticmethod
    def _query(func) -> Reading:
        try:
            return Reading.success(func())
        except pynvml.NVMLError as exc:
            return Reading.failure(str(exc))

    def close(self) -> None:
        """Release NVML."""
        self._shutdown()

    @staticmethod
    def _shutdown() -> None:
        try:
            pynvml.nvmlShutdown()
        except pynvml.NVMLError as exc:
            logger.debug("nvmlShutdown failed: %s", exc)
