"""Shared fakes for rhino tests."""

import pytest

from rhino.models import (
    CpuInfo,
    CpuSample,
    DiskInfo,
    DiskSample,
    GpuIdentity,
    GpuInfo,
    GpuSample,
    HostInfo,
    HostSample,
    MemoryInfo,
    MemorySample,
    Reading,
    Snapshot,
)


def gpu_sample(**overrides) -> GpuSample:
    """A GpuSample where every reading succeeds unless overridden."""
    readings = {
        "utilization": Reading.success(12.0),
        "temperature": Reading.success(55.0),
        "core_clock": Reading.success(1500.0),
        "memory_clock": Reading.success(7000.0),
        "memory_used": Reading.success(1_000_000_000),
        "memory_total": Reading.success(8_000_000_000),
    }
    readings.update(overrides)
    return GpuSample(**readings)


class FakeSensors:
    """Sensor source returning queued samples, one per call."""

    def __init__(self, cpu=None, memory=None, disks=None, host=None) -> None:
        self.host = host or HostSample("box", "Linux", "6.1")
        self.cpu = list(cpu or [CpuSample("Test CPU", (10.0, 20.0, 30.0, 40.0), (45.0,))])
        self.memory = list(memory or [MemorySample(total=8_000_000_000, used=2_000_000_000)])
        self.disks = list(disks or [(DiskSample("/dev/sda1", "ext4", 100_000_000_000, 40_000_000_000),)])
        self.calls = 0

    @staticmethod
    def _next(queue):
        # Repeat the last sample once the queue is exhausted
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def host_info(self) -> HostSample:
        return self.host

    def cpu_sample(self) -> CpuSample:
        self.calls += 1
        return self._next(self.cpu)

    def memory_sample(self) -> MemorySample:
        return self._next(self.memory)

    def disk_sample(self) -> tuple[DiskSample, ...]:
        return self._next(self.disks)


class FakeGpu:
    """GPU device returning queued samples."""

    def __init__(self, samples=None) -> None:
        self.identity = GpuIdentity("GeForce Test", "Ampere", "12.2")
        self.samples = list(samples or [gpu_sample()])
        self.closed = False

    def sample(self) -> GpuSample:
        return self.samples.pop(0) if len(self.samples) > 1 else self.samples[0]

    def close(self) -> None:
        self.closed = True


class FakeTerminal:
    """Terminal controller that records clears into the output stream."""

    MARKER = "<clear>"

    def __init__(self, stream=None) -> None:
        self.stream = stream
        self.clears = 0

    def clear(self) -> None:
        self.clears += 1
        if self.stream is not None:
            self.stream.write(self.MARKER)


@pytest.fixture
def fake_sensors() -> FakeSensors:
    return FakeSensors()


@pytest.fixture
def fake_gpu() -> FakeGpu:
    return FakeGpu()


@pytest.fixture
def snapshot() -> Snapshot:
    """A fully populated snapshot."""
    return Snapshot(
        host=HostInfo("box", "Ubuntu", "22.04"),
        cpu=CpuInfo("Test CPU", 4, 25.0, (45.0, 47.5)),
        gpu=GpuInfo(
            name="GeForce Test",
            architecture="Ampere",
            cuda_version="12.2",
            utilization=12.0,
            temperature=55.0,
            core_clock=1500.0,
            memory_clock=7000.0,
            memory_used=1_000_000_000,
            memory_total=8_000_000_000,
        ),
        memory=MemoryInfo(used=2_000_000_000, total=8_000_000_000),
        disks=(
            DiskInfo("/dev/sda1", "ext4", 60_000_000_000, 100_000_000_000),
            DiskInfo("N/A", "vfat", 0, 0),
        ),
    )
