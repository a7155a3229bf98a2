"""Tests for the rhino entry point."""

import io
import logging

import pytest

from conftest import FakeGpu, FakeSensors, gpu_sample
from rhino import app
from rhino.app import BANNER, BANNER_DELAY, BANNER_TICKS, configure_logging, print_banner, run
from rhino.config import DashboardConfig
from rhino.errors import GpuUnavailableError
from rhino.models import Reading
from rhino.terminal import CLEAR_AND_HOME


class InterruptingSleep:
    """Sleep that raises KeyboardInterrupt on the n-th loop interval."""

    def __init__(self, loop_cycles: int) -> None:
        self.loop_cycles = loop_cycles
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if seconds != BANNER_DELAY:
            if sum(1 for s in self.calls if s != BANNER_DELAY) >= self.loop_cycles:
                raise KeyboardInterrupt


@pytest.fixture
def opened_gpus(monkeypatch):
    """Replace GPU and host sensors with fakes; returns the opened devices."""
    opened: list[FakeGpu] = []

    class FakeGpuDevice:
        gpu = FakeGpu()

        @classmethod
        def open(cls, index=0):
            opened.append(cls.gpu)
            return cls.gpu

    monkeypatch.setattr(app, "GpuDevice", FakeGpuDevice)
    monkeypatch.setattr(app, "SensorSource", FakeSensors)
    return opened


def test_print_banner():
    """Test the banner prints paced progress dots and a blank line."""
    stream = io.StringIO()
    delays: list[float] = []

    print_banner(stream, delays.append)

    assert stream.getvalue() == "...\n" * BANNER_TICKS + "\n"
    assert delays == [BANNER_DELAY] * BANNER_TICKS


def test_configure_logging_level(monkeypatch):
    """Test logging is configured with the configured level."""
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    configure_logging(DashboardConfig(log_level="DEBUG", log_file="/tmp/rhino.log"))

    assert calls[0]["level"] == "DEBUG"
    assert calls[0]["filename"] == "/tmp/rhino.log"


class TestRun:
    """Tests for run()."""

    def test_interrupt_exits_cleanly(self, opened_gpus):
        """Test Ctrl-C ends the dashboard with status 0 and releases the GPU."""
        stdout, stderr = io.StringIO(), io.StringIO()

        status = run({}, stdout, stderr, InterruptingSleep(loop_cycles=2))

        assert status == 0
        assert stderr.getvalue() == ""
        assert opened_gpus[0].closed
        output = stdout.getvalue()
        assert output.startswith(BANNER + "\n")
        assert output.count(CLEAR_AND_HOME) == 2
        assert output.count("System Info") == 2

    def test_interval_from_environment(self, opened_gpus):
        """Test the loop sleeps for the configured interval."""
        sleep = InterruptingSleep(loop_cycles=1)

        run({"RHINO_INTERVAL": "2.5"}, io.StringIO(), io.StringIO(), sleep)

        assert sleep.calls[-1] == 2.5

    def test_gpu_unavailable_exits_with_error(self, monkeypatch):
        """Test a missing GPU stops before the loop with status 1."""

        class MissingGpu:
            @classmethod
            def open(cls, index=0):
                raise GpuUnavailableError(f"cannot open GPU {index}: Driver Not Loaded")

        monkeypatch.setattr(app, "GpuDevice", MissingGpu)
        stdout, stderr = io.StringIO(), io.StringIO()

        status = run({}, stdout, stderr, InterruptingSleep(loop_cycles=1))

        assert status == 1
        assert stderr.getvalue() == "rhino: gpu error: cannot open GPU 0: Driver Not Loaded\n"
        assert "System Info" not in stdout.getvalue()

    def test_config_error_exits_with_error(self, opened_gpus):
        """Test an invalid environment setting exits before opening the GPU."""
        stderr = io.StringIO()

        status = run({"RHINO_GPU_FAILURES": "sometimes"}, io.StringIO(), stderr)

        assert status == 1
        assert stderr.getvalue().startswith("rhino: config error: RHINO_GPU_FAILURES")
        assert opened_gpus == []

    def test_fatal_gpu_query_clears_and_exits(self, opened_gpus):
        """Test a GPU query failure under the fatal policy clears and exits 1."""
        app.GpuDevice.gpu = FakeGpu([gpu_sample(utilization=Reading.failure("GPU is lost"))])
        stdout, stderr = io.StringIO(), io.StringIO()

        status = run({"RHINO_GPU_FAILURES": "fatal"}, stdout, stderr, InterruptingSleep(loop_cycles=5))

        assert status == 1
        assert stderr.getvalue() == "rhino: gpu error: utilization query failed: GPU is lost\n"
        assert stdout.getvalue().endswith(CLEAR_AND_HOME)
        assert opened_gpus[0].closed

    def test_fatal_error_is_not_logged_at_warning(self, opened_gpus, caplog):
        """Test a fatal error reaches the user as the single stderr line only."""
        app.GpuDevice.gpu = FakeGpu([gpu_sample(utilization=Reading.failure("GPU is lost"))])
        stderr = io.StringIO()

        with caplog.at_level(logging.WARNING):
            status = run({"RHINO_GPU_FAILURES": "fatal"}, io.StringIO(), stderr, InterruptingSleep(loop_cycles=5))

        assert status == 1
        assert stderr.getvalue().count("utilization query failed") == 1
        assert [r for r in caplog.records if r.name.startswith("rhino")] == []

    def test_cpu_counters_primed_before_banner(self, opened_gpus, monkeypatch):
        """Test the CPU counters are primed before the banner delay, not just before the first frame."""
        events: list[str] = []

        class RecordingSensors(FakeSensors):
            def __init__(self) -> None:
                events.append("prime")
                super().__init__()

            def cpu_sample(self):
                events.append("sample")
                return super().cpu_sample()

        class EventSleep(InterruptingSleep):
            def __call__(self, seconds: float) -> None:
                events.append("banner" if seconds == BANNER_DELAY else "interval")
                super().__call__(seconds)

        monkeypatch.setattr(app, "SensorSource", RecordingSensors)

        run({}, io.StringIO(), io.StringIO(), EventSleep(loop_cycles=1))

        assert events[0] == "prime"
        assert events[1 : 1 + BANNER_TICKS] == ["banner"] * BANNER_TICKS
        assert events.index("sample") > events.index("banner")
